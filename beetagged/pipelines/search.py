"""Search orchestration: load a user's contacts, parse, rank and explain."""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable

from relevance.contacts import Contact, normalize_term
from relevance.intent import SearchIntent, describe_intent, intent_for_scenario, parse_intent, suggest_refinements
from relevance.ranking import MatchResult, rank

from ..config import settings
from ..store import ContactStore

logger = logging.getLogger(__name__)


@dataclass
class SearchResponse:
    """Ranked results for one query with explanation."""
    intent: SearchIntent
    results: list[MatchResult]
    explanation: str
    suggestions: list[str] = field(default_factory=list)

    def to_dict(self, include_trace: bool = False) -> dict[str, Any]:
        return {
            "intent": self.intent.to_dict(),
            "results": [r.to_dict(include_trace=include_trace) for r in self.results],
            "totalResults": len(self.results),
            "explanation": self.explanation,
            "suggestions": list(self.suggestions),
        }


def _respond(
    contacts: list[Contact],
    intent: SearchIntent,
    near: str | None,
    limit: int | None,
    now: datetime | None,
) -> SearchResponse:
    results = rank(contacts, intent, near=near, now=now, limit=limit)
    return SearchResponse(
        intent=intent,
        results=results,
        explanation=describe_intent(intent, len(results)),
        suggestions=suggest_refinements(intent),
    )


async def search_contacts(
    store: ContactStore,
    user_id: str,
    query: str,
    *,
    near: str | None = None,
    limit: int | None = None,
    now: datetime | None = None,
) -> SearchResponse:
    """Run a natural-language search over a user's contacts.

    Args:
        store: Contact store
        user_id: Owner of the contacts
        query: Free-text query
        near: Caller's location for "near me" queries
        limit: Maximum results (default from config)
        now: Reference time for recency boosts

    Returns:
        SearchResponse with ranked results and an explanation

    Raises:
        StoreError: If contacts cannot be loaded
    """
    intent = parse_intent(query)
    contacts = await store.find(user_id)
    logger.info(f"Searching {len(contacts)} contacts for user {user_id}: {intent.type.value}")
    return _respond(contacts, intent, near, limit, now)


async def search_by_scenario(
    store: ContactStore,
    user_id: str,
    scenario: str,
    value: str,
    *,
    location: str | None = None,
    limit: int | None = None,
    now: datetime | None = None,
) -> SearchResponse:
    """Run a structured scenario search (job-search, travel, ...).

    Raises:
        ValueError: If the scenario is unknown or the value is empty
        StoreError: If contacts cannot be loaded
    """
    intent = intent_for_scenario(scenario, value, location=location)
    contacts = await store.find(user_id)
    logger.info(f"Scenario search {scenario!r} over {len(contacts)} contacts for user {user_id}")
    return _respond(contacts, intent, None, limit, now)


def _top(values: Iterable[str], limit: int) -> list[str]:
    """Most common values, counted case-insensitively, first spelling kept."""
    counts: Counter[str] = Counter()
    spelling: dict[str, str] = {}
    for value in values:
        key = normalize_term(value)
        if not key:
            continue
        counts[key] += 1
        spelling.setdefault(key, value.strip())
    return [spelling[key] for key, _ in counts.most_common(limit)]


def collect_suggestions(contacts: Iterable[Contact], limit: int | None = None) -> dict[str, list[str]]:
    """Search suggestions from the values that occur across a network."""
    contacts = list(contacts)
    limit = limit or settings.search.suggestion_limit
    return {
        "companies": _top((c.company for c in contacts), limit),
        "locations": _top((c.current_location for c in contacts), limit),
        "titles": _top((c.position for c in contacts), limit),
        "skills": _top((s for c in contacts for s in c.skills), limit),
        "tags": _top((t.value for c in contacts for t in c.tags), limit),
    }


async def get_suggestions(store: ContactStore, user_id: str, limit: int | None = None) -> dict[str, list[str]]:
    contacts = await store.find(user_id)
    return collect_suggestions(contacts, limit)
