"""Natural-language query parsing into a structured search intent.

Single-pass keyword matching over the tables in ``relevance.taxonomy``; no
NLP dependency. Slots are extracted in a fixed order (function, location,
company, interest, skill, modifiers) and each slot keeps its first match.
``parse_intent`` never raises: unusable input yields a general intent.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .contacts import normalize_term, term_in, word_in
from .taxonomy import (
    CITY_TAXONOMY,
    EMPLOYMENT_PHRASES,
    HISTORICAL_PHRASES,
    INTEREST_PATTERNS,
    JOB_FUNCTION_PATTERNS,
    JOB_SEARCH_KEYWORDS,
    NETWORKING_KEYWORDS,
    NETWORKING_TYPES,
    PROXIMITY_PHRASES,
    SKILL_HELP_PHRASES,
    SKILL_KEYWORDS,
    TRAVEL_KEYWORDS,
)

logger = logging.getLogger(__name__)


class IntentType(str, Enum):
    """Primary query intent."""
    TRAVEL = "travel"
    JOB_SEARCH = "job_search"
    SKILL_HELP = "skill_help"
    NETWORKING = "networking"
    COMPANY = "company"
    FUNCTION_LOCATION = "function_location"
    FUNCTION = "function"
    LOCATION = "location"
    INTEREST = "interest"
    GENERAL = "general"


class Modifier(str, Enum):
    """Flags that adjust scoring without changing the intent type."""
    PROXIMITY = "proximity"
    HISTORICAL = "historical"


@dataclass(frozen=True)
class SearchIntent:
    """Structured, immutable view of one search query."""
    type: IntentType = IntentType.GENERAL
    query: str = ""
    location: str | None = None
    company: str | None = None
    function: str | None = None
    skill: str | None = None
    interest: str | None = None
    industry: str | None = None
    networking_type: str | None = None
    modifiers: frozenset[Modifier] = frozenset()

    @property
    def historical(self) -> bool:
        return Modifier.HISTORICAL in self.modifiers

    @property
    def proximity(self) -> bool:
        return Modifier.PROXIMITY in self.modifiers

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "query": self.query,
            "location": self.location,
            "company": self.company,
            "function": self.function,
            "skill": self.skill,
            "interest": self.interest,
            "industry": self.industry,
            "networking_type": self.networking_type,
            "modifiers": sorted(m.value for m in self.modifiers),
        }


SCENARIOS = (
    "job-search",
    "travel",
    "skill-help",
    "function-referral",
    "industry-networking",
    "interest",
)

# Capitalized words after at/with/for, except "help with X" and "good at X".
_COMPANY_PATTERN = re.compile(
    r"(?<![Hh]elp )(?<![Gg]ood )\b(?:at|with|for|introduction to|intro to)\s+"
    r"([A-Z][\w&.'-]*(?:\s+&?\s*[A-Z][\w&.'-]*)*)"
)
_LOCATION_PATTERN = re.compile(
    r"\b(?:in|visiting|near)\s+([A-Z][a-zA-Z.'-]*(?:\s+[A-Z][a-zA-Z.'-]*)*)"
)
# "to X" names a place only in travel phrasing ("trip to Denver").
_TRAVEL_LOCATION_PATTERN = re.compile(
    r"\b(?:to|in|at|visiting)\s+([A-Z][a-zA-Z.'-]*(?:\s+[A-Z][a-zA-Z.'-]*)*)"
)
_NOT_A_SKILL = {"someone", "somebody", "anyone", "anybody", "people", "me", "us"}
_FILLER_WORDS = {"people", "person", "folks", "someone", "anyone", "friends", "contacts"}
_STOP_WORDS = r"in|near|who|that|and|around|from|with|for|at"
_EMPLOYMENT_PATTERN = re.compile(
    r"\b(?:" + "|".join(re.escape(p) for p in EMPLOYMENT_PHRASES) + r")\s+"
    r"(.+?)(?=\s+(?:" + _STOP_WORDS + r")\b|[,?!.]|$)"
)
_SKILL_PATTERN = re.compile(
    r"\b(?:" + "|".join(re.escape(p) for p in SKILL_HELP_PHRASES) + r")\s+"
    r"(?:an?\s+|the\s+|some\s+)?(.+?)(?=\s+(?:" + _STOP_WORDS + r")\b|[,?!]|$)"
)


def _contains_any(text: str, terms: list[str]) -> bool:
    return any(term_in(term, text) for term in terms)


def _match_table(text: str, table: dict[str, list[str]]) -> str | None:
    """First table key that occurs, or whose synonyms occur, as a word in ``text``."""
    for key, synonyms in table.items():
        if any(word_in(term, text) for term in (key, *synonyms)):
            return key
    return None


def canonical_city(value: str) -> str | None:
    """Canonical city name when ``value`` is exactly a known city or synonym."""
    text = normalize_term(value)
    for entry in CITY_TAXONOMY:
        if text == entry["canonical"].lower() or text in entry["synonyms"]:
            return entry["canonical"]
    return None


def city_in_text(text: str) -> str | None:
    """First canonical city whose synonyms occur in normalized ``text``."""
    for entry in CITY_TAXONOMY:
        if _contains_any(text, entry["synonyms"]):
            return entry["canonical"]
    return None


def resolve_function(value: str) -> str | None:
    """Map a role word ("developer") to its function key ("engineering")."""
    text = normalize_term(value)
    if not text:
        return None
    if text in JOB_FUNCTION_PATTERNS:
        return text
    return _match_table(text, JOB_FUNCTION_PATTERNS)


def resolve_interest(value: str) -> str | None:
    """Map an activity ("tennis") to its interest category ("sports")."""
    text = normalize_term(value)
    if text in INTEREST_PATTERNS:
        return text
    return _match_table(text, INTEREST_PATTERNS)


def _is_vocabulary_word(value: str) -> bool:
    """True for captures made only of role, city or filler words, not a name."""
    text = normalize_term(value)
    if not text or canonical_city(text):
        return True
    return all(
        word in _FILLER_WORDS or canonical_city(word) or resolve_function(word)
        for word in text.split()
    )


def _extract_location(raw: str, text: str, travel: bool) -> str | None:
    city = city_in_text(text)
    if city:
        return city
    pattern = _TRAVEL_LOCATION_PATTERN if travel else _LOCATION_PATTERN
    for match in pattern.finditer(raw):
        candidate = match.group(1).strip(" .'-")
        if candidate and not _is_vocabulary_word(candidate):
            return candidate
    return None


def _extract_company(raw: str, text: str) -> str | None:
    for match in _COMPANY_PATTERN.finditer(raw):
        candidate = match.group(1).strip(" .'-")
        if candidate and not _is_vocabulary_word(candidate):
            return candidate
    match = _EMPLOYMENT_PATTERN.search(text)
    if match:
        candidate = match.group(1).strip(" .'-")
        if candidate and not _is_vocabulary_word(candidate):
            return candidate
    return None


def _extract_skill(text: str) -> tuple[str | None, bool]:
    """Return (skill, phrased) where phrased means an explicit help phrase."""
    match = _SKILL_PATTERN.search(text)
    if match:
        candidate = match.group(1).strip(" .'-")
        if candidate and candidate.split()[0] not in _NOT_A_SKILL:
            return candidate, True
    for keyword in SKILL_KEYWORDS:
        if term_in(keyword, text):
            return keyword, False
    return None, False


def _networking_type(text: str) -> str:
    return _match_table(text, NETWORKING_TYPES) or "general"


def parse_intent(query: Any) -> SearchIntent:
    """Classify a free-text query and extract its slot values.

    Args:
        query: Free-text search query

    Returns:
        SearchIntent; GENERAL with empty slots for empty or non-string input
    """
    if not isinstance(query, str) or not query.strip():
        return SearchIntent()

    raw = " ".join(query.split())
    text = raw.lower()

    travel = _contains_any(text, TRAVEL_KEYWORDS)
    function = _match_table(text, JOB_FUNCTION_PATTERNS)
    location = _extract_location(raw, text, travel)
    company = _extract_company(raw, text)
    interest = _match_table(text, INTEREST_PATTERNS)
    skill, skill_phrased = _extract_skill(text)

    modifiers = set()
    if _contains_any(text, PROXIMITY_PHRASES):
        modifiers.add(Modifier.PROXIMITY)
    if _contains_any(text, HISTORICAL_PHRASES):
        modifiers.add(Modifier.HISTORICAL)

    networking = _contains_any(text, NETWORKING_KEYWORDS)

    if company and _contains_any(text, JOB_SEARCH_KEYWORDS):
        intent_type = IntentType.JOB_SEARCH
    elif travel:
        intent_type = IntentType.TRAVEL
    elif company:
        intent_type = IntentType.COMPANY
    elif skill_phrased:
        intent_type = IntentType.SKILL_HELP
    elif function and location:
        intent_type = IntentType.FUNCTION_LOCATION
    elif function:
        intent_type = IntentType.FUNCTION
    elif location:
        intent_type = IntentType.LOCATION
    elif interest:
        intent_type = IntentType.INTEREST
    elif networking:
        intent_type = IntentType.NETWORKING
    elif skill:
        intent_type = IntentType.SKILL_HELP
    else:
        intent_type = IntentType.GENERAL

    # A bare role keyword ("marketing") is already the function slot.
    if not skill_phrased and intent_type != IntentType.SKILL_HELP:
        skill = None

    intent = SearchIntent(
        type=intent_type,
        query=raw,
        location=location,
        company=company,
        function=function,
        skill=skill,
        interest=interest,
        networking_type=_networking_type(text) if networking else None,
        modifiers=frozenset(modifiers),
    )
    logger.debug(f"Parsed query {raw!r} as {intent_type.value}")
    return intent


def intent_for_scenario(scenario: str, value: str, *, location: str | None = None) -> SearchIntent:
    """Build an intent for a structured search scenario.

    Args:
        scenario: One of ``SCENARIOS``
        value: Scenario value (company, city, skill, role, industry or interest)
        location: Optional location to combine with the scenario

    Returns:
        SearchIntent for the scenario

    Raises:
        ValueError: If the scenario is unknown or the value is empty
    """
    value = " ".join((value or "").split())
    if not value:
        raise ValueError("Scenario value is required")
    location = (canonical_city(location) or location.strip()) if location else None

    if scenario == "job-search":
        return SearchIntent(
            type=IntentType.JOB_SEARCH, query=value, company=value, location=location
        )
    if scenario == "travel":
        return SearchIntent(
            type=IntentType.TRAVEL, query=value, location=canonical_city(value) or value
        )
    if scenario == "skill-help":
        return SearchIntent(
            type=IntentType.SKILL_HELP, query=value, skill=value.lower(), location=location
        )
    if scenario == "function-referral":
        function = resolve_function(value) or value.lower()
        return SearchIntent(
            type=IntentType.FUNCTION_LOCATION if location else IntentType.FUNCTION,
            query=value,
            function=function,
            location=location,
        )
    if scenario == "industry-networking":
        return SearchIntent(
            type=IntentType.NETWORKING,
            query=value,
            industry=value,
            networking_type="industry",
            location=location,
        )
    if scenario == "interest":
        return SearchIntent(
            type=IntentType.INTEREST,
            query=value,
            interest=resolve_interest(value) or value.lower(),
            location=location,
        )
    raise ValueError(f"Unknown search scenario: {scenario}")


def describe_intent(intent: SearchIntent, count: int) -> str:
    """Human-readable summary of what a search found."""
    if count == 0:
        return f"No contacts found matching '{intent.query}'" if intent.query else "No contacts found"

    noun = "contact" if count == 1 else "contacts"
    parts = [f"Found {count} {noun}"]
    clauses = []
    if intent.function:
        clauses.append(f"work in {intent.function}")
    if intent.company:
        clauses.append(f"work at {intent.company}")
    if intent.skill and intent.type == IntentType.SKILL_HELP:
        clauses.append(f"know about {intent.skill}")
    if intent.location:
        clauses.append(f"are located in {intent.location}")
    if intent.interest:
        clauses.append(f"are into {intent.interest}")
    if intent.industry:
        clauses.append(f"work in the {intent.industry} industry")
    if clauses:
        parts.append("who " + " and ".join(clauses))
    if intent.historical:
        parts.append("(including past positions)")
    if intent.proximity:
        parts.append("near you")
    return " ".join(parts)


def suggest_refinements(intent: SearchIntent) -> list[str]:
    """Follow-up queries that would narrow or widen the search."""
    suggestions = []
    if intent.function and not intent.location:
        suggestions.append(f"Add a location, e.g. '{intent.function} in San Francisco'")
    if intent.location and not intent.function:
        suggestions.append(f"Narrow by role, e.g. 'engineers in {intent.location}'")
    if intent.company and not intent.historical:
        suggestions.append(f"Include former employees: 'used to work at {intent.company}'")
    if intent.interest and not intent.location:
        suggestions.append(f"Find {intent.interest} fans nearby: '{intent.interest} near me'")
    if intent.type == IntentType.GENERAL:
        suggestions.append("Try a role, company or city, e.g. 'designers in Austin'")
    return suggestions
