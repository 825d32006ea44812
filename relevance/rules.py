"""Rule engine for explainable contact relevance scoring.

Every relevance signal is a ``RuleConfig`` in a fixed policy table. The
engine evaluates the rules for one contact and returns the score delta plus
a full audit trace; a rule that passes with a non-zero delta always carries
the human-readable reason shown to the user.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable

from .contacts import Contact, TagCategory, normalize_term, term_in
from .fuzzy import is_similar_company_name
from .tags import industry_for

logger = logging.getLogger(__name__)


class RuleType(str, Enum):
    """Rule types."""
    # Location signals
    LOCATION_CURRENT = "location_current"
    LOCATION_HOMETOWN = "location_hometown"
    LOCATION_WORK_HISTORY = "location_work_history"
    LOCATION_TAG = "location_tag"

    # Company signals
    COMPANY_CURRENT = "company_current"
    COMPANY_HISTORY = "company_history"
    COMPANY_TAG = "company_tag"

    # Job function signals
    FUNCTION_CURRENT = "function_current"
    FUNCTION_HISTORY = "function_history"
    FUNCTION_TAG = "function_tag"

    # Skill and interest signals (per matching item)
    SKILL_LIST = "skill_list"
    SKILL_TITLE = "skill_title"
    SKILL_TAG = "skill_tag"
    INTEREST_LIST = "interest_list"
    INTEREST_TAG = "interest_tag"
    INDUSTRY_MATCH = "industry_match"

    # Networking signals
    MUTUAL_FRIENDS = "mutual_friends"
    CONNECTION_COUNT = "connection_count"
    INTERACTION_COUNT = "interaction_count"

    # General text fallback
    QUERY_IN_NAME = "query_in_name"
    QUERY_IN_COMPANY = "query_in_company"
    QUERY_IN_TITLE = "query_in_title"

    # Cross-cutting boosts
    FACEBOOK_PROFILE = "facebook_profile"
    LINKEDIN_PROFILE = "linkedin_profile"
    AUTO_TAGGED = "auto_tagged"
    MATCH_CONFIDENCE = "match_confidence"
    RECENT_INTERACTION = "recent_interaction"


class RuleStatus(str, Enum):
    """Rule evaluation status."""
    PASS = "PASS"
    FAIL = "FAIL"
    SKIP = "SKIP"


@dataclass
class Evidence:
    """Evidence for a rule evaluation."""
    source: str  # e.g., "employment.current", "tags"
    text: str


@dataclass
class RuleTrace:
    """Audit trace for a single rule evaluation."""
    rule_id: str
    name: str
    status: RuleStatus
    reason: str
    evidence: list[Evidence] = field(default_factory=list)
    score_delta: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "name": self.name,
            "status": self.status.value,
            "reason": self.reason,
            "evidence": [{"source": e.source, "text": e.text} for e in self.evidence],
            "score_delta": self.score_delta,
        }


@dataclass
class RuleConfig:
    """Configuration for a single rule."""
    id: str
    name: str
    type: RuleType
    params: dict[str, Any]
    weight: float = 1.0


@dataclass(frozen=True)
class QueryTerms:
    """Normalized search terms, expanded once per query."""
    location: str | None = None
    location_terms: tuple[str, ...] = ()
    company: str | None = None
    company_term: str = ""
    function: str | None = None
    function_terms: tuple[str, ...] = ()
    skill: str | None = None
    skill_terms: tuple[str, ...] = ()
    interest: str | None = None
    interest_terms: tuple[str, ...] = ()
    industry: str | None = None
    industry_term: str = ""
    query: str = ""
    historical: bool = False
    now: datetime | None = None
    recent_interaction_days: int = 90


def _rule(rule_id: str, name: str, rule_type: RuleType, **params: Any) -> RuleConfig:
    return RuleConfig(id=rule_id, name=name, type=rule_type, params=params)


# Policy table: signal weights per rule group
RULE_GROUPS: dict[str, list[RuleConfig]] = {
    "location": [
        _rule("location_current", "Current location", RuleType.LOCATION_CURRENT, points=15.0),
        _rule("location_hometown", "Hometown", RuleType.LOCATION_HOMETOWN, points=12.0),
        _rule("location_work", "Work history location", RuleType.LOCATION_WORK_HISTORY, points=10.0),
        _rule("location_tag", "Location tag", RuleType.LOCATION_TAG, points=8.0),
    ],
    "company": [
        _rule("company_current", "Current employer", RuleType.COMPANY_CURRENT, points=20.0),
        _rule("company_history", "Past employers", RuleType.COMPANY_HISTORY, per_item=15.0),
        _rule("company_tag", "Professional tag", RuleType.COMPANY_TAG, points=12.0),
    ],
    "function": [
        _rule("function_current", "Current role", RuleType.FUNCTION_CURRENT, points=10.0),
        _rule("function_history", "Past role", RuleType.FUNCTION_HISTORY, points=6.0),
        _rule("function_tag", "Function tag", RuleType.FUNCTION_TAG, points=5.0),
    ],
    "skill": [
        _rule("skill_list", "Skills", RuleType.SKILL_LIST, per_item=10.0),
        _rule("skill_title", "Title mentions skill", RuleType.SKILL_TITLE, points=12.0),
        _rule("skill_tag", "Skill tags", RuleType.SKILL_TAG, per_item=8.0),
    ],
    "interest": [
        _rule("interest_list", "Interests", RuleType.INTEREST_LIST, per_item=6.0),
        _rule("interest_tag", "Interest tags", RuleType.INTEREST_TAG, per_item=4.0),
    ],
    "industry": [
        _rule("industry_match", "Industry", RuleType.INDUSTRY_MATCH, points=12.0),
    ],
    "networking": [
        _rule("mutual_friends", "Mutual friends", RuleType.MUTUAL_FRIENDS, min=5, points=5.0),
        _rule("connection_count", "Large network", RuleType.CONNECTION_COUNT, min=500, points=3.0),
        _rule("interaction_count", "Frequent contact", RuleType.INTERACTION_COUNT, min=3, points=4.0),
    ],
    "general": [
        _rule("query_in_name", "Name match", RuleType.QUERY_IN_NAME, points=10.0),
        _rule("query_in_company", "Company match", RuleType.QUERY_IN_COMPANY, points=8.0),
        _rule("query_in_title", "Title match", RuleType.QUERY_IN_TITLE, points=7.0),
    ],
}

BOOST_RULES: list[RuleConfig] = [
    _rule("facebook_profile", "Facebook profile", RuleType.FACEBOOK_PROFILE, points=2.0),
    _rule("linkedin_profile", "LinkedIn profile", RuleType.LINKEDIN_PROFILE, points=2.0),
    _rule("auto_tagged", "Auto-tagged", RuleType.AUTO_TAGGED, points=1.0),
    _rule("match_confidence", "Identity match confidence", RuleType.MATCH_CONFIDENCE, factor=3.0),
    _rule("recent_interaction", "Recent interaction", RuleType.RECENT_INTERACTION, points=2.0),
]


def _matches_any(terms: tuple[str, ...], text: str) -> bool:
    return any(term_in(term, text) for term in terms)


class RuleEngine:
    """Config-driven rule engine for contact relevance.

    Rules are additive; each evaluation yields a ``RuleTrace`` so a result
    can always be explained.
    """

    def __init__(self, rules: list[RuleConfig]):
        """Initialize rule engine.

        Args:
            rules: List of RuleConfig objects
        """
        self.rules = rules
        self._handlers: dict[RuleType, Callable[[RuleConfig, Contact, QueryTerms], RuleTrace]] = {
            RuleType.LOCATION_CURRENT: self._eval_location_current,
            RuleType.LOCATION_HOMETOWN: self._eval_location_hometown,
            RuleType.LOCATION_WORK_HISTORY: self._eval_location_work_history,
            RuleType.LOCATION_TAG: self._eval_location_tag,
            RuleType.COMPANY_CURRENT: self._eval_company_current,
            RuleType.COMPANY_HISTORY: self._eval_company_history,
            RuleType.COMPANY_TAG: self._eval_company_tag,
            RuleType.FUNCTION_CURRENT: self._eval_function_current,
            RuleType.FUNCTION_HISTORY: self._eval_function_history,
            RuleType.FUNCTION_TAG: self._eval_function_tag,
            RuleType.SKILL_LIST: self._eval_skill_list,
            RuleType.SKILL_TITLE: self._eval_skill_title,
            RuleType.SKILL_TAG: self._eval_skill_tag,
            RuleType.INTEREST_LIST: self._eval_interest_list,
            RuleType.INTEREST_TAG: self._eval_interest_tag,
            RuleType.INDUSTRY_MATCH: self._eval_industry,
            RuleType.MUTUAL_FRIENDS: self._eval_mutual_friends,
            RuleType.CONNECTION_COUNT: self._eval_connection_count,
            RuleType.INTERACTION_COUNT: self._eval_interaction_count,
            RuleType.QUERY_IN_NAME: self._eval_query_in_name,
            RuleType.QUERY_IN_COMPANY: self._eval_query_in_company,
            RuleType.QUERY_IN_TITLE: self._eval_query_in_title,
            RuleType.FACEBOOK_PROFILE: self._eval_facebook_profile,
            RuleType.LINKEDIN_PROFILE: self._eval_linkedin_profile,
            RuleType.AUTO_TAGGED: self._eval_auto_tagged,
            RuleType.MATCH_CONFIDENCE: self._eval_match_confidence,
            RuleType.RECENT_INTERACTION: self._eval_recent_interaction,
        }
        logger.debug(f"Initialized rule engine with {len(rules)} rules")

    def evaluate(
        self,
        contact: Contact,
        terms: QueryTerms,
        base_score: float = 0.0,
    ) -> tuple[float, list[RuleTrace]]:
        """Evaluate all rules for one contact.

        Args:
            contact: Contact to score
            terms: Expanded query terms
            base_score: Score to add deltas onto

        Returns:
            Tuple of (score, rule_traces)
        """
        traces = []
        total_delta = 0.0

        for rule in self.rules:
            trace = self._evaluate_rule(rule, contact, terms)
            traces.append(trace)

            if trace.status == RuleStatus.PASS:
                total_delta += trace.score_delta * rule.weight

        return base_score + total_delta, traces

    def _evaluate_rule(self, rule: RuleConfig, contact: Contact, terms: QueryTerms) -> RuleTrace:
        """Evaluate a single rule; failures become SKIP traces."""
        handler = self._handlers.get(rule.type)
        if handler is None:
            logger.warning(f"Unknown rule type: {rule.type}")
            return RuleTrace(
                rule_id=rule.id,
                name=rule.name,
                status=RuleStatus.SKIP,
                reason=f"Unknown rule type: {rule.type}",
            )
        try:
            return handler(rule, contact, terms)
        except Exception as e:
            logger.error(f"Rule evaluation failed for {rule.id} on contact {contact.id}: {e}")
            return RuleTrace(
                rule_id=rule.id,
                name=rule.name,
                status=RuleStatus.SKIP,
                reason=f"Evaluation error: {e}",
            )

    # Trace helpers

    @staticmethod
    def _pass(rule: RuleConfig, reason: str, delta: float, evidence: list[Evidence]) -> RuleTrace:
        return RuleTrace(
            rule_id=rule.id,
            name=rule.name,
            status=RuleStatus.PASS,
            reason=reason,
            evidence=evidence,
            score_delta=delta,
        )

    @staticmethod
    def _fail(rule: RuleConfig, reason: str) -> RuleTrace:
        return RuleTrace(rule_id=rule.id, name=rule.name, status=RuleStatus.FAIL, reason=reason)

    @staticmethod
    def _skip(rule: RuleConfig, reason: str) -> RuleTrace:
        return RuleTrace(rule_id=rule.id, name=rule.name, status=RuleStatus.SKIP, reason=reason)

    def _tag_matches(
        self, contact: Contact, terms: tuple[str, ...], *categories: TagCategory
    ) -> list[str]:
        return [tag for tag in contact.index.tags_in(*categories) if _matches_any(terms, tag)]

    # Location

    def _eval_location_current(self, rule, contact, terms) -> RuleTrace:
        if _matches_any(terms.location_terms, contact.index.location):
            return self._pass(
                rule,
                f"Currently lives in {contact.location.current}",
                rule.params["points"],
                [Evidence("location.current", contact.location.current)],
            )
        return self._fail(rule, f"Not currently in {terms.location}")

    def _eval_location_hometown(self, rule, contact, terms) -> RuleTrace:
        if _matches_any(terms.location_terms, contact.index.hometown):
            return self._pass(
                rule,
                f"Originally from {contact.location.hometown}",
                rule.params["points"],
                [Evidence("location.hometown", contact.location.hometown)],
            )
        return self._fail(rule, f"Hometown is not {terms.location}")

    def _eval_location_work_history(self, rule, contact, terms) -> RuleTrace:
        hits = [loc for loc in contact.index.work_locations if _matches_any(terms.location_terms, loc)]
        if hits:
            return self._pass(
                rule,
                f"Has worked in {terms.location}",
                rule.params["points"],
                [Evidence("location.work_locations", loc) for loc in hits],
            )
        return self._fail(rule, f"No work history in {terms.location}")

    def _eval_location_tag(self, rule, contact, terms) -> RuleTrace:
        hits = self._tag_matches(contact, terms.location_terms, TagCategory.LOCATION)
        if hits:
            return self._pass(
                rule,
                f"Tagged with location {terms.location}",
                rule.params["points"],
                [Evidence("tags", tag) for tag in hits],
            )
        return self._fail(rule, "No matching location tag")

    # Company

    def _company_matches(self, terms: QueryTerms, indexed: str, raw: str) -> bool:
        if not indexed or not terms.company_term:
            return False
        return term_in(terms.company_term, indexed) or is_similar_company_name(terms.company, raw)

    def _eval_company_current(self, rule, contact, terms) -> RuleTrace:
        if terms.historical:
            return self._skip(rule, "Historical search ignores current employer")
        if self._company_matches(terms, contact.index.company, contact.company):
            return self._pass(
                rule,
                f"Currently works at {contact.company}",
                rule.params["points"],
                [Evidence("employment.current", contact.company)],
            )
        return self._fail(rule, f"Does not currently work at {terms.company}")

    def _eval_company_history(self, rule, contact, terms) -> RuleTrace:
        hits = [
            past.employer
            for past in contact.employment.history
            if self._company_matches(terms, normalize_term(past.employer), past.employer)
        ]
        if hits:
            return self._pass(
                rule,
                f"Previously worked at {', '.join(hits)}",
                rule.params["per_item"] * len(hits),
                [Evidence("employment.history", employer) for employer in hits],
            )
        return self._fail(rule, f"Never worked at {terms.company}")

    def _eval_company_tag(self, rule, contact, terms) -> RuleTrace:
        hits = self._tag_matches(contact, (terms.company_term,), TagCategory.PROFESSIONAL)
        if hits:
            return self._pass(
                rule,
                f"Tagged with {terms.company}",
                rule.params["points"],
                [Evidence("tags", tag) for tag in hits],
            )
        return self._fail(rule, "No matching professional tag")

    # Function

    def _eval_function_current(self, rule, contact, terms) -> RuleTrace:
        if terms.historical:
            return self._skip(rule, "Historical search ignores current role")
        if _matches_any(terms.function_terms, contact.index.position):
            return self._pass(
                rule,
                f"Current role: {contact.position}",
                rule.params["points"],
                [Evidence("employment.current", contact.position)],
            )
        return self._fail(rule, f"Current role is not {terms.function}")

    def _eval_function_history(self, rule, contact, terms) -> RuleTrace:
        hits = [
            past.job_function
            for past in contact.employment.history
            if past.job_function and _matches_any(terms.function_terms, normalize_term(past.job_function))
        ]
        if hits:
            return self._pass(
                rule,
                f"Previously worked as {hits[0]}",
                rule.params["points"],
                [Evidence("employment.history", title) for title in hits],
            )
        return self._fail(rule, f"No past {terms.function} role")

    def _eval_function_tag(self, rule, contact, terms) -> RuleTrace:
        hits = self._tag_matches(contact, terms.function_terms, TagCategory.PROFESSIONAL)
        if hits:
            return self._pass(
                rule,
                f"Tagged with {terms.function}",
                rule.params["points"],
                [Evidence("tags", tag) for tag in hits],
            )
        return self._fail(rule, "No matching function tag")

    # Skills and interests

    def _eval_skill_list(self, rule, contact, terms) -> RuleTrace:
        hits = [
            skill
            for skill, indexed in zip(contact.skills, contact.index.skills)
            if _matches_any(terms.skill_terms, indexed)
        ]
        if hits:
            return self._pass(
                rule,
                f"Skilled in {', '.join(hits)}",
                rule.params["per_item"] * len(hits),
                [Evidence("skills", skill) for skill in hits],
            )
        return self._fail(rule, f"No {terms.skill} skills listed")

    def _eval_skill_title(self, rule, contact, terms) -> RuleTrace:
        if _matches_any(terms.skill_terms, contact.index.position):
            return self._pass(
                rule,
                f"Job title mentions {terms.skill}: {contact.position}",
                rule.params["points"],
                [Evidence("employment.current", contact.position)],
            )
        return self._fail(rule, f"Title does not mention {terms.skill}")

    def _eval_skill_tag(self, rule, contact, terms) -> RuleTrace:
        hits = self._tag_matches(contact, terms.skill_terms, TagCategory.SKILLS)
        if hits:
            return self._pass(
                rule,
                f"Has {len(hits)} {terms.skill} skill tag(s)",
                rule.params["per_item"] * len(hits),
                [Evidence("tags", tag) for tag in hits],
            )
        return self._fail(rule, "No matching skill tags")

    def _eval_interest_list(self, rule, contact, terms) -> RuleTrace:
        if not terms.interest_terms:
            return self._skip(rule, f"No vocabulary for interest {terms.interest}")
        values = [*contact.social.interests, *contact.social.hobbies]
        hits = [
            value
            for value, indexed in zip(values, contact.index.interests)
            if _matches_any(terms.interest_terms, indexed)
        ]
        if hits:
            return self._pass(
                rule,
                f"Interested in {', '.join(hits)}",
                rule.params["per_item"] * len(hits),
                [Evidence("social.interests", value) for value in hits],
            )
        return self._fail(rule, f"No {terms.interest} interests")

    def _eval_interest_tag(self, rule, contact, terms) -> RuleTrace:
        if not terms.interest_terms:
            return self._skip(rule, f"No vocabulary for interest {terms.interest}")
        hits = self._tag_matches(contact, terms.interest_terms, TagCategory.INTERESTS)
        if hits:
            return self._pass(
                rule,
                f"Has {len(hits)} {terms.interest} interest tag(s)",
                rule.params["per_item"] * len(hits),
                [Evidence("tags", tag) for tag in hits],
            )
        return self._fail(rule, "No matching interest tags")

    def _eval_industry(self, rule, contact, terms) -> RuleTrace:
        industry = (industry_for(contact.company) or "").lower()
        tagged = self._tag_matches(contact, (terms.industry_term,), TagCategory.PROFESSIONAL)
        if industry == terms.industry_term or tagged:
            return self._pass(
                rule,
                f"Works in the {terms.industry} industry",
                rule.params["points"],
                [Evidence("employment.current", contact.company)],
            )
        return self._fail(rule, f"Not in the {terms.industry} industry")

    # Networking

    def _threshold_rule(self, rule, count: int, reason: str, source: str) -> RuleTrace:
        if count > rule.params["min"]:
            return self._pass(rule, reason, rule.params["points"], [Evidence(source, str(count))])
        return self._fail(rule, f"{count} is not above {rule.params['min']}")

    def _eval_mutual_friends(self, rule, contact, terms) -> RuleTrace:
        count = contact.social.mutual_friends
        return self._threshold_rule(rule, count, f"{count} mutual friends", "social.mutual_friends")

    def _eval_connection_count(self, rule, contact, terms) -> RuleTrace:
        count = contact.social.linkedin_connections
        return self._threshold_rule(
            rule, count, f"Well connected ({count} connections)", "social.linkedin_connections"
        )

    def _eval_interaction_count(self, rule, contact, terms) -> RuleTrace:
        count = contact.interaction_count
        return self._threshold_rule(
            rule, count, f"You interact often ({count} times)", "interaction_count"
        )

    # General text fallback

    def _query_rule(self, rule, terms, indexed: str, raw: str, label: str, source: str) -> RuleTrace:
        if terms.query and terms.query in indexed:
            return self._pass(
                rule,
                f"{label} matches '{terms.query}': {raw}",
                rule.params["points"],
                [Evidence(source, raw)],
            )
        return self._fail(rule, f"{label} does not contain '{terms.query}'")

    def _eval_query_in_name(self, rule, contact, terms) -> RuleTrace:
        return self._query_rule(rule, terms, contact.index.name, contact.name, "Name", "name")

    def _eval_query_in_company(self, rule, contact, terms) -> RuleTrace:
        return self._query_rule(
            rule, terms, contact.index.company, contact.company, "Company", "employment.current"
        )

    def _eval_query_in_title(self, rule, contact, terms) -> RuleTrace:
        return self._query_rule(
            rule, terms, contact.index.position, contact.position, "Title", "employment.current"
        )

    # Boosts

    def _flag_rule(self, rule, present: bool, reason: str, source: str, value: str) -> RuleTrace:
        if present:
            return self._pass(rule, reason, rule.params["points"], [Evidence(source, value)])
        return self._fail(rule, f"No {rule.name.lower()}")

    def _eval_facebook_profile(self, rule, contact, terms) -> RuleTrace:
        return self._flag_rule(
            rule, bool(contact.facebook_id), "Connected on Facebook", "facebook_id", contact.facebook_id
        )

    def _eval_linkedin_profile(self, rule, contact, terms) -> RuleTrace:
        return self._flag_rule(
            rule, bool(contact.linkedin_id), "Connected on LinkedIn", "linkedin_id", contact.linkedin_id
        )

    def _eval_auto_tagged(self, rule, contact, terms) -> RuleTrace:
        stamp = contact.last_auto_tagged.isoformat() if contact.last_auto_tagged else ""
        return self._flag_rule(
            rule, contact.last_auto_tagged is not None, "Profile enriched with tags", "last_auto_tagged", stamp
        )

    def _eval_match_confidence(self, rule, contact, terms) -> RuleTrace:
        confidence = contact.match_confidence
        if confidence > 0:
            return self._pass(
                rule,
                f"Profiles matched with {confidence:.0%} confidence",
                rule.params["factor"] * confidence,
                [Evidence("match_confidence", f"{confidence:.2f}")],
            )
        return self._fail(rule, "No cross-source match confidence")

    def _eval_recent_interaction(self, rule, contact, terms) -> RuleTrace:
        last = contact.last_interaction
        if last is None or terms.now is None:
            return self._fail(rule, "No recorded interaction")
        if terms.now - last <= timedelta(days=terms.recent_interaction_days):
            return self._pass(
                rule,
                "Interacted with recently",
                rule.params["points"],
                [Evidence("last_interaction", last.isoformat())],
            )
        return self._fail(rule, f"Last interaction {last.date().isoformat()}")
