"""Tag generation from raw contact fields.

Two flavours:
- ``generate_tags``: flat string tags (raw values plus derived categories),
  deterministic and pure.
- ``generate_searchable_tags``: structured ``Tag`` objects with category and
  confidence, merged onto the contact by ``apply_tags`` at ingestion time.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping

from .contacts import Contact, Tag, TagCategory, clean_text, normalize_term, term_in
from .taxonomy import CITY_TAXONOMY, INDUSTRY_TAXONOMY, POSITION_TAXONOMY

logger = logging.getLogger(__name__)

AUTO_SOURCE = "auto_tagger"

# Confidence per structured tag kind
CONFIDENCE = {
    "current_location": 0.9,
    "hometown": 0.8,
    "current_employer": 0.95,
    "current_function": 0.95,
    "past_position": 0.85,
    "education": 0.9,
    "certification": 0.85,
    "skill": 0.8,
    "interest": 0.7,
    "derived": 0.75,
}


def _lookup(value: str, table: list[dict], key: str = "keywords", label: str = "category") -> str | None:
    """Return the first table entry whose keywords occur in ``value``."""
    text = normalize_term(value)
    if not text:
        return None
    for entry in table:
        if any(term_in(normalize_term(k), text) for k in entry[key]):
            return entry[label]
    return None


def industry_for(company: str) -> str | None:
    """Industry category for a company name, if known."""
    return _lookup(company, INDUSTRY_TAXONOMY)


def function_for(position: str) -> str | None:
    """Job function category for a position title, if known."""
    return _lookup(position, POSITION_TAXONOMY)


def city_for(location: str) -> str | None:
    """Canonical city for a free-text location, if known."""
    return _lookup(location, CITY_TAXONOMY, key="synonyms", label="canonical")


def generate_tags(contact: Contact | Mapping[str, Any]) -> list[str]:
    """Derive canonical tags from company, position and location.

    Args:
        contact: Contact or raw record with company/position/location fields

    Returns:
        Raw field values followed by their derived categories, de-duplicated
        with insertion order kept. Absent fields are skipped.
    """
    contact = Contact.from_record(contact)
    tags: list[str] = []

    company = clean_text(contact.company)
    if company:
        tags.append(company)
        industry = industry_for(company)
        if industry:
            tags.append(industry)

    position = clean_text(contact.position)
    if position:
        tags.append(position)
        function = function_for(position)
        if function:
            tags.append(function)

    location = clean_text(contact.current_location)
    if location:
        tags.append(location)
        city = city_for(location)
        if city:
            tags.append(city)

    return list(dict.fromkeys(tags))


def _tag(value: str, category: TagCategory, kind: str) -> Tag:
    return Tag(
        value=value,
        category=category,
        confidence=CONFIDENCE[kind],
        source=AUTO_SOURCE,
        type="auto",
    )


def generate_searchable_tags(contact: Contact) -> list[Tag]:
    """Structured tags across location, employment, education and interests."""
    tags: list[Tag] = []
    current = contact.employment.current

    if contact.location.current:
        tags.append(_tag(contact.location.current, TagCategory.LOCATION, "current_location"))
        city = city_for(contact.location.current)
        if city:
            tags.append(_tag(city, TagCategory.LOCATION, "derived"))
    if contact.location.hometown:
        tags.append(_tag(contact.location.hometown, TagCategory.LOCATION, "hometown"))

    if current.employer:
        tags.append(_tag(current.employer, TagCategory.PROFESSIONAL, "current_employer"))
        industry = industry_for(current.employer)
        if industry:
            tags.append(_tag(industry, TagCategory.PROFESSIONAL, "derived"))
    if current.job_function:
        tags.append(_tag(current.job_function, TagCategory.PROFESSIONAL, "current_function"))
        function = function_for(current.job_function)
        if function:
            tags.append(_tag(function, TagCategory.PROFESSIONAL, "derived"))

    for past in contact.employment.history:
        if past.employer:
            tags.append(_tag(past.employer, TagCategory.PROFESSIONAL, "past_position"))
        if past.job_function:
            tags.append(_tag(past.job_function, TagCategory.PROFESSIONAL, "past_position"))

    for value in [*contact.education.schools, *contact.education.degrees]:
        tags.append(_tag(value, TagCategory.EDUCATION, "education"))
    for value in contact.education.certifications:
        tags.append(_tag(value, TagCategory.SKILLS, "certification"))

    for value in contact.skills:
        tags.append(_tag(value, TagCategory.SKILLS, "skill"))

    for value in [*contact.social.interests, *contact.social.hobbies]:
        tags.append(_tag(value, TagCategory.INTERESTS, "interest"))

    return merge_tags([], tags)


def merge_tags(existing: list[Tag], new: list[Tag]) -> list[Tag]:
    """Append ``new`` tags not already present by (value, category)."""
    merged = list(existing)
    seen = {t.key for t in merged}
    for tag in new:
        if tag.key[0] and tag.key not in seen:
            seen.add(tag.key)
            merged.append(tag)
    return merged


def apply_tags(contact: Contact, now: datetime | None = None) -> Contact:
    """Merge generated tags onto ``contact`` in place and refresh its index."""
    generated = generate_searchable_tags(contact)
    before = len(contact.tags)
    contact.tags = merge_tags(contact.tags, generated)
    contact.last_auto_tagged = now or datetime.now(timezone.utc)
    contact.refresh_index()
    logger.debug(f"Tagged contact {contact.id}: {len(contact.tags) - before} new tags")
    return contact
