"""Duplicate contact detection and resolution for bulk imports.

Detection is O(n^2) pairwise; callers cap batch size (see
``settings.imports.max_batch_size``).

Grouping is greedy and NOT transitive: each unprocessed contact anchors a
group of the later contacts that match *it*. If A~B and B~C but not A~C,
then C stays out of A's group and may anchor its own. This mirrors how
imports have always behaved; switching to transitive (union-find) grouping
would change which contacts get merged and needs product sign-off.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from beetagged.config import settings

from .contacts import Contact, Education, Employment, Locations, Position, Social, dedupe_values, normalize_term
from .fuzzy import name_overlap_ratio
from .tags import apply_tags, merge_tags

logger = logging.getLogger(__name__)

CONSOLIDATED_SOURCE = "import_consolidated"


class DuplicateCriterion(str, Enum):
    """Why two contacts were considered the same person."""
    EXACT_NAME = "exact_name"
    EXACT_EMAIL = "exact_email"
    SIMILAR_NAME_SAME_COMPANY = "similar_name_same_company"


class Resolution(str, Enum):
    """How a duplicate group is resolved."""
    CONSOLIDATE = "consolidate"
    SEPARATE = "separate"
    REVIEW = "review"  # pending; resolves like SEPARATE


@dataclass
class DuplicateGroup:
    """Two or more contacts believed to be one person."""
    contacts: list[Contact]
    reasons: list[DuplicateCriterion] = field(default_factory=list)  # one per non-anchor member
    resolution: Resolution = Resolution.REVIEW

    @property
    def anchor(self) -> Contact:
        return self.contacts[0]

    def to_dict(self) -> dict[str, Any]:
        return {
            "resolution": self.resolution.value,
            "contacts": [c.to_record() for c in self.contacts],
            "reasons": [r.value for r in self.reasons],
        }


def duplicate_criterion(a: Contact, b: Contact) -> DuplicateCriterion | None:
    """First duplicate criterion that holds for a pair, if any."""
    name_a = normalize_term(a.name)
    name_b = normalize_term(b.name)
    if name_a and name_a == name_b:
        return DuplicateCriterion.EXACT_NAME

    email_a = normalize_term(a.email)
    if email_a and email_a == normalize_term(b.email):
        return DuplicateCriterion.EXACT_EMAIL

    company_a = normalize_term(a.company)
    if (
        company_a
        and company_a == normalize_term(b.company)
        and name_overlap_ratio(a.name, b.name) > settings.fuzzy.name_overlap_threshold
    ):
        return DuplicateCriterion.SIMILAR_NAME_SAME_COMPANY

    return None


def is_duplicate(a: Contact, b: Contact) -> bool:
    return duplicate_criterion(a, b) is not None


def detect_duplicates(contacts: Iterable[Contact]) -> list[DuplicateGroup]:
    """Group contacts that appear to be the same person.

    Args:
        contacts: Contacts in import order

    Returns:
        Groups of two or more contacts; no contact appears in two groups.
        Contacts without a name are skipped and logged.
    """
    candidates = []
    for contact in contacts:
        if not contact.name.strip():
            logger.warning(f"Skipping nameless contact {contact.id} in duplicate detection")
            continue
        candidates.append(contact)

    processed: set[int] = set()
    groups = []

    for i, anchor in enumerate(candidates):
        if i in processed:
            continue

        members = [anchor]
        reasons = []
        for j in range(i + 1, len(candidates)):
            if j in processed:
                continue
            criterion = duplicate_criterion(anchor, candidates[j])
            if criterion is not None:
                members.append(candidates[j])
                reasons.append(criterion)
                processed.add(j)

        if len(members) > 1:
            processed.add(i)
            groups.append(DuplicateGroup(contacts=members, reasons=reasons))

    logger.info(f"Found {len(groups)} duplicate groups among {len(candidates)} contacts")
    return groups


def _first_non_empty(values: Iterable[Any], default: Any = "") -> Any:
    for value in values:
        if value:
            return value
    return default


def _longest(values: Iterable[str]) -> str:
    # max() keeps the first of equally long values.
    return max((v for v in values if v), key=len, default="")


def merge_contacts(contacts: list[Contact]) -> Contact:
    """Merge a duplicate group into one contact.

    Scalars take the first non-empty value in group order, except company,
    position and location which prefer the longest value. List fields are
    unioned. The merged contact keeps the anchor's id and is re-tagged.

    Raises:
        ValueError: If ``contacts`` is empty
    """
    if not contacts:
        raise ValueError("Cannot merge an empty duplicate group")

    currents = [c.employment.current for c in contacts]
    history: list[Position] = []
    seen_history = set()
    for contact in contacts:
        for past in contact.employment.history:
            key = (normalize_term(past.employer), normalize_term(past.job_function))
            if key not in seen_history:
                seen_history.add(key)
                history.append(past)

    merged = Contact(
        id=contacts[0].id,
        name=_first_non_empty(c.name for c in contacts),
        email=_first_non_empty(c.email for c in contacts),
        phone=_first_non_empty(c.phone for c in contacts),
        employment=Employment(
            current=Position(
                employer=_longest(p.employer for p in currents),
                job_function=_longest(p.job_function for p in currents),
                location=_first_non_empty(p.location for p in currents),
                start_year=_first_non_empty((p.start_year for p in currents), None),
                end_year=_first_non_empty((p.end_year for p in currents), None),
                tenure=_first_non_empty(p.tenure for p in currents),
            ),
            history=history,
        ),
        location=Locations(
            current=_longest(c.location.current for c in contacts),
            hometown=_first_non_empty(c.location.hometown for c in contacts),
            work_locations=dedupe_values(v for c in contacts for v in c.location.work_locations),
        ),
        education=Education(
            schools=dedupe_values(v for c in contacts for v in c.education.schools),
            degrees=dedupe_values(v for c in contacts for v in c.education.degrees),
            certifications=dedupe_values(v for c in contacts for v in c.education.certifications),
        ),
        social=Social(
            interests=dedupe_values(v for c in contacts for v in c.social.interests),
            hobbies=dedupe_values(v for c in contacts for v in c.social.hobbies),
            facebook_friends=max(c.social.facebook_friends for c in contacts),
            mutual_friends=max(c.social.mutual_friends for c in contacts),
            linkedin_connections=max(c.social.linkedin_connections for c in contacts),
        ),
        skills=dedupe_values(v for c in contacts for v in c.skills),
        source=CONSOLIDATED_SOURCE,
        facebook_id=_first_non_empty(c.facebook_id for c in contacts),
        linkedin_id=_first_non_empty(c.linkedin_id for c in contacts),
        profile_url=_first_non_empty(c.profile_url for c in contacts),
        connected_on=_first_non_empty(c.connected_on for c in contacts),
        notes=_first_non_empty(c.notes for c in contacts),
        last_interaction=max(
            (c.last_interaction for c in contacts if c.last_interaction), default=None
        ),
        interaction_count=max(c.interaction_count for c in contacts),
        match_confidence=max(c.match_confidence for c in contacts),
    )

    # Keep user-assigned tags; auto tags are regenerated from merged fields.
    manual = [t for c in contacts for t in c.tags if t.type != "auto"]
    merged.tags = merge_tags([], manual)
    return apply_tags(merged)


def resolve_duplicates(
    groups: list[DuplicateGroup],
    action: Resolution | str,
) -> list[Contact]:
    """Apply one resolution to every group.

    Args:
        groups: Groups from ``detect_duplicates``
        action: consolidate, separate or review

    Returns:
        Contacts to persist: one merged contact per group for consolidate,
        every member unmodified otherwise

    Raises:
        ValueError: If ``action`` is not a known resolution
    """
    action = Resolution(action)
    resolved: list[Contact] = []
    for group in groups:
        group.resolution = action
        if action == Resolution.CONSOLIDATE:
            resolved.append(merge_contacts(group.contacts))
        else:
            resolved.extend(group.contacts)

    logger.info(f"Resolved {len(groups)} duplicate groups with {action.value}: {len(resolved)} contacts")
    return resolved
