"""Relevance ranking: SearchIntent + contacts -> sorted, explained matches.

Workflow:
1. Expand the intent's slots into normalized search terms (once per query)
2. Select rule groups for the populated slots
3. Score each contact with the intent rules
4. Drop contacts with no evidence (score <= 0)
5. Add cross-cutting boosts to the survivors
6. Sort by score, then name, and cap at the result limit
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from beetagged.config import settings

from .contacts import Contact, normalize_term
from .intent import IntentType, SearchIntent
from .rules import BOOST_RULES, RULE_GROUPS, QueryTerms, RuleConfig, RuleEngine, RuleStatus, RuleTrace
from .taxonomy import CITY_TAXONOMY, INTEREST_PATTERNS, JOB_FUNCTION_PATTERNS

logger = logging.getLogger(__name__)

# Score at which a match is reported with full confidence
CONFIDENCE_SCALE = 40.0


@dataclass
class MatchResult:
    """Single contact match result."""
    contact: Contact
    relevance_score: float
    match_reasons: list[str]
    confidence: float
    rule_trace: list[RuleTrace] = field(default_factory=list)

    def to_dict(self, include_trace: bool = False) -> dict[str, Any]:
        data = {
            "id": self.contact.id,
            "name": self.contact.name,
            "relevanceScore": self.relevance_score,
            "matchReasons": list(self.match_reasons),
            "confidence": self.confidence,
            "currentJob": self.contact.position or None,
            "currentEmployer": self.contact.company or None,
            "currentLocation": self.contact.current_location or None,
            "email": self.contact.email or None,
            "tags": [t.value for t in self.contact.tags],
        }
        if include_trace:
            data["ruleTrace"] = [t.to_dict() for t in self.rule_trace]
        return data


def _location_terms(location: str) -> tuple[str, ...]:
    """Known cities expand to all their synonyms; anything else is literal."""
    text = normalize_term(location)
    if not text:
        return ()
    for entry in CITY_TAXONOMY:
        canonical = entry["canonical"].lower()
        if text == canonical or text in entry["synonyms"]:
            return tuple(dict.fromkeys([canonical, *entry["synonyms"]]))
    return (text,)


def _function_terms(function: str) -> tuple[str, ...]:
    text = normalize_term(function)
    if not text:
        return ()
    if text in JOB_FUNCTION_PATTERNS:
        return tuple(dict.fromkeys([text, *JOB_FUNCTION_PATTERNS[text]]))
    return (text,)


def _interest_terms(interest: str) -> tuple[str, ...]:
    text = normalize_term(interest)
    if not text:
        return ()
    if text in INTEREST_PATTERNS:
        return tuple(dict.fromkeys([text, *INTEREST_PATTERNS[text]]))
    return (text,)


def build_query_terms(
    intent: SearchIntent,
    *,
    near: str | None = None,
    now: datetime | None = None,
) -> QueryTerms:
    """Expand intent slots into normalized search terms.

    Args:
        intent: Parsed search intent
        near: Caller's location, used for proximity queries without a place
        now: Reference time for recency boosts

    Returns:
        QueryTerms shared by every contact evaluation for this query
    """
    location = intent.location
    if not location and intent.proximity and near:
        location = near

    return QueryTerms(
        location=location,
        location_terms=_location_terms(location or ""),
        company=intent.company,
        company_term=normalize_term(intent.company),
        function=intent.function,
        function_terms=_function_terms(intent.function or ""),
        skill=intent.skill,
        skill_terms=(normalize_term(intent.skill),) if normalize_term(intent.skill) else (),
        interest=intent.interest,
        interest_terms=_interest_terms(intent.interest or ""),
        industry=intent.industry,
        industry_term=normalize_term(intent.industry),
        query=normalize_term(intent.query),
        historical=intent.historical,
        now=now,
        recent_interaction_days=settings.search.recent_interaction_days,
    )


def rule_groups_for(intent: SearchIntent, terms: QueryTerms) -> list[str]:
    """Rule groups that apply to this intent's populated slots."""
    groups = []
    if terms.location_terms:
        groups.append("location")
    if terms.company_term:
        groups.append("company")
    if terms.function_terms:
        groups.append("function")
    if terms.skill_terms:
        groups.append("skill")
    if terms.interest:
        groups.append("interest")
    if terms.industry_term:
        groups.append("industry")
    if intent.type == IntentType.NETWORKING:
        groups.append("networking")
    if (intent.type == IntentType.GENERAL or not groups) and terms.query:
        groups.append("general")
    return groups


def load_rules_config(intent: SearchIntent, terms: QueryTerms) -> list[RuleConfig]:
    """Rule list for one query, in policy-table order."""
    groups = rule_groups_for(intent, terms)
    rules = [rule for group in groups for rule in RULE_GROUPS[group]]
    logger.debug(f"Loaded {len(rules)} rules for groups {groups}")
    return rules


def score_contact(
    contact: Contact,
    terms: QueryTerms,
    engine: RuleEngine,
    boosts: RuleEngine,
) -> MatchResult | None:
    """Score one contact; None when nothing about the query matched."""
    score, traces = engine.evaluate(contact, terms)
    if score <= 0:
        return None

    score, boost_traces = boosts.evaluate(contact, terms, base_score=score)
    traces = traces + boost_traces
    reasons = [t.reason for t in traces if t.status == RuleStatus.PASS and t.score_delta]

    score = round(score, 2)
    return MatchResult(
        contact=contact,
        relevance_score=score,
        match_reasons=reasons,
        confidence=round(min(1.0, score / CONFIDENCE_SCALE), 2),
        rule_trace=traces,
    )


def rank(
    contacts: Iterable[Contact | Mapping[str, Any]],
    intent: SearchIntent,
    *,
    near: str | None = None,
    now: datetime | None = None,
    limit: int | None = None,
) -> list[MatchResult]:
    """Rank contacts against a search intent.

    Args:
        contacts: Already-fetched contacts (raw records are converted)
        intent: Parsed search intent
        near: Caller's location for proximity queries
        now: Reference time for recency boosts (default: current UTC time)
        limit: Maximum results (default from config)

    Returns:
        MatchResults with score > 0, sorted by score descending then name
    """
    contacts = [Contact.from_record(c) for c in contacts]
    if not contacts:
        return []

    limit = limit or settings.search.result_limit
    now = now or datetime.now(timezone.utc)
    terms = build_query_terms(intent, near=near, now=now)

    rules = load_rules_config(intent, terms)
    if not rules:
        logger.info(f"No applicable rules for {intent.type.value} query {intent.query!r}")
        return []

    engine = RuleEngine(rules)
    boosts = RuleEngine(BOOST_RULES)

    results = []
    for contact in contacts:
        result = score_contact(contact, terms, engine, boosts)
        if result is not None:
            results.append(result)

    results.sort(key=lambda r: (-r.relevance_score, r.contact.name.lower(), r.contact.id))

    logger.info(
        f"Ranked {len(contacts)} contacts for {intent.type.value} query: "
        f"{len(results)} matched, returning top {min(len(results), limit)}"
    )
    return results[:limit]
