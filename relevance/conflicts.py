"""Cross-source conflict detection for a single contact.

Compares two source profiles of the same person (typically Facebook and
LinkedIn) and emits "which is correct?" questions for fields where both
sources have a value and the fuzzy matcher says the values differ.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from .contacts import Contact, clean_text, dedupe_values
from .fuzzy import (
    is_similar_company_name,
    is_similar_job_title,
    is_similar_location,
    is_similar_name,
    is_similar_school_name,
)

logger = logging.getLogger(__name__)


class SourceKind(str, Enum):
    """What kind of network a source is."""
    PROFESSIONAL = "professional"
    SOCIAL = "social"
    OTHER = "other"


class ConflictType(str, Enum):
    """Conflict types."""
    EMPLOYMENT_COMPANY = "employment_company"
    EMPLOYMENT_TITLE = "employment_title"
    LOCATION_CURRENT = "location_current"
    LOCATION_HOMETOWN = "location_hometown"
    EDUCATION_SCHOOL = "education_school"
    CONTACT_INFO = "contact_info"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


PRIORITY_RANK = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}

SOURCE_KINDS = {
    "linkedin": SourceKind.PROFESSIONAL,
    "facebook": SourceKind.SOCIAL,
}

SOURCE_LABELS = {"facebook": "FB", "linkedin": "LI", "both": "FB+LI"}

COMBINED_SOURCE = "both"

# Confidence prior per (conflict type, source kind). Professional networks
# are trusted for job data, social networks for where someone lives.
SOURCE_PRIORS: dict[tuple[ConflictType, SourceKind], float] = {
    (ConflictType.EMPLOYMENT_COMPANY, SourceKind.SOCIAL): 0.7,
    (ConflictType.EMPLOYMENT_COMPANY, SourceKind.PROFESSIONAL): 0.8,
    (ConflictType.EMPLOYMENT_TITLE, SourceKind.SOCIAL): 0.6,
    (ConflictType.EMPLOYMENT_TITLE, SourceKind.PROFESSIONAL): 0.9,
    (ConflictType.LOCATION_CURRENT, SourceKind.SOCIAL): 0.8,
    (ConflictType.LOCATION_CURRENT, SourceKind.PROFESSIONAL): 0.7,
    (ConflictType.LOCATION_HOMETOWN, SourceKind.SOCIAL): 0.6,
    (ConflictType.EDUCATION_SCHOOL, SourceKind.SOCIAL): 0.7,
    (ConflictType.EDUCATION_SCHOOL, SourceKind.PROFESSIONAL): 0.8,
    (ConflictType.CONTACT_INFO, SourceKind.SOCIAL): 0.8,
    (ConflictType.CONTACT_INFO, SourceKind.PROFESSIONAL): 0.9,
}
COMBINED_PRIORS = {
    ConflictType.LOCATION_HOMETOWN: 0.8,
    ConflictType.EDUCATION_SCHOOL: 0.9,
}
DEFAULT_PRIOR = 0.5


def source_prior(conflict_type: ConflictType, kind: SourceKind) -> float:
    return SOURCE_PRIORS.get((conflict_type, kind), DEFAULT_PRIOR)


@dataclass
class ConflictOption:
    value: str
    source: str
    confidence: float
    context: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "value": self.value,
            "source": self.source,
            "sourceLabel": SOURCE_LABELS.get(self.source, self.source),
            "confidence": self.confidence,
            "context": self.context,
        }


@dataclass
class ConflictQuestion:
    """A "which is correct?" question about one field."""
    type: ConflictType
    field: str
    question: str
    options: list[ConflictOption]
    priority: Priority
    category: str
    reward: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "field": self.field,
            "question": self.question,
            "options": [o.to_dict() for o in self.options],
            "priority": self.priority.value,
            "category": self.category,
            "reward": self.reward,
        }


def _name_of(value: Any) -> str:
    if isinstance(value, Mapping):
        return clean_text(value.get("name"))
    return clean_text(value)


def _entries(value: Any, key: str = "data") -> list[Mapping[str, Any]]:
    """Graph API lists come either bare or wrapped in {"data": [...]}."""
    if isinstance(value, Mapping):
        value = value.get(key) or []
    return [v for v in value or [] if isinstance(v, Mapping)]


@dataclass
class SourceProfile:
    """One source's view of a person."""
    source: str
    kind: SourceKind = SourceKind.OTHER
    first_name: str = ""
    last_name: str = ""
    full_name: str = ""
    employer: str = ""
    job_title: str = ""
    location: str = ""
    hometown: str = ""
    schools: list[str] = field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.full_name or f"{self.first_name} {self.last_name}".strip()

    @staticmethod
    def kind_for(source: str) -> SourceKind:
        return SOURCE_KINDS.get(source.lower(), SourceKind.OTHER)

    @classmethod
    def from_facebook(cls, payload: Mapping[str, Any]) -> SourceProfile:
        """Build from a Facebook Graph API user payload."""
        jobs = _entries(payload.get("work"))
        current = next((job for job in jobs if not job.get("end_date")), jobs[0] if jobs else {})
        schools = [_name_of(entry.get("school")) for entry in _entries(payload.get("education"))]
        return cls(
            source="facebook",
            kind=SourceKind.SOCIAL,
            first_name=clean_text(payload.get("first_name")),
            last_name=clean_text(payload.get("last_name")),
            full_name=clean_text(payload.get("name")),
            employer=_name_of(current.get("employer")),
            job_title=_name_of(current.get("position")),
            location=_name_of(payload.get("location")),
            hometown=_name_of(payload.get("hometown")),
            schools=dedupe_values(schools),
        )

    @classmethod
    def from_linkedin(cls, payload: Mapping[str, Any]) -> SourceProfile:
        """Build from a LinkedIn profile payload."""
        positions = _entries(payload.get("positions"), key="values")
        current = next((p for p in positions if p.get("isCurrent")), positions[0] if positions else {})
        schools = [
            clean_text(entry.get("schoolName")) or _name_of(entry.get("school"))
            for entry in _entries(payload.get("educations"), key="values")
        ]
        return cls(
            source="linkedin",
            kind=SourceKind.PROFESSIONAL,
            first_name=clean_text(payload.get("localizedFirstName") or payload.get("firstName")),
            last_name=clean_text(payload.get("localizedLastName") or payload.get("lastName")),
            full_name=clean_text(payload.get("formattedName")),
            employer=_name_of(current.get("company")) or clean_text(payload.get("company")),
            job_title=clean_text(current.get("title")) or clean_text(payload.get("headline")),
            location=_name_of(payload.get("location")),
            schools=dedupe_values(schools),
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], source: str) -> SourceProfile:
        """Build from a flat mapping (currentEmployer, currentTitle, ...)."""
        schools = data.get("schools") or []
        if isinstance(schools, str):
            schools = [schools]
        return cls(
            source=source,
            kind=cls.kind_for(source),
            first_name=clean_text(data.get("firstName") or data.get("first_name")),
            last_name=clean_text(data.get("lastName") or data.get("last_name")),
            full_name=clean_text(data.get("fullName") or data.get("name")),
            employer=clean_text(
                data.get("currentEmployer") or data.get("employer") or data.get("company")
            ),
            job_title=clean_text(
                data.get("currentTitle") or data.get("jobTitle") or data.get("title") or data.get("position")
            ),
            location=_name_of(data.get("currentLocation") or data.get("location")),
            hometown=_name_of(data.get("hometown")),
            schools=dedupe_values(_name_of(s) for s in schools),
        )

    @classmethod
    def from_payload(cls, source: str, payload: Mapping[str, Any]) -> SourceProfile:
        """Dispatch on source name: raw API payloads for known networks."""
        source = source.lower()
        if source == "facebook" and ("work" in payload or "first_name" in payload):
            return cls.from_facebook(payload)
        if source == "linkedin" and (
            "positions" in payload or "localizedFirstName" in payload or "educations" in payload
        ):
            return cls.from_linkedin(payload)
        return cls.from_mapping(payload, source)

    @classmethod
    def from_contact(cls, contact: Contact, source: str | None = None) -> SourceProfile:
        source = source or contact.source or "contact"
        return cls(
            source=source,
            kind=cls.kind_for(source),
            full_name=contact.name,
            employer=contact.company,
            job_title=contact.position,
            location=contact.location.current,
            hometown=contact.location.hometown,
            schools=list(contact.education.schools),
        )


def _option(conflict_type: ConflictType, profile: SourceProfile, value: str, context: str | None = None):
    return ConflictOption(
        value=value,
        source=profile.source,
        confidence=source_prior(conflict_type, profile.kind),
        context=context,
    )


def detect_company_conflict(a: SourceProfile, b: SourceProfile, name: str) -> ConflictQuestion | None:
    if not a.employer or not b.employer or is_similar_company_name(a.employer, b.employer):
        return None
    kind = ConflictType.EMPLOYMENT_COMPANY
    return ConflictQuestion(
        type=kind,
        field="current_employer",
        question=f"Where does {name} currently work?",
        options=[
            _option(kind, p, p.employer, f"as {p.job_title}" if p.job_title else None)
            for p in (a, b)
        ],
        priority=Priority.HIGH,
        category="employment",
        reward=10,
    )


def detect_title_conflict(a: SourceProfile, b: SourceProfile, name: str) -> ConflictQuestion | None:
    if not a.job_title or not b.job_title or is_similar_job_title(a.job_title, b.job_title):
        return None
    kind = ConflictType.EMPLOYMENT_TITLE
    return ConflictQuestion(
        type=kind,
        field="current_title",
        question=f"What is {name}'s current job title?",
        options=[
            _option(kind, p, p.job_title, f"at {p.employer}" if p.employer else None) for p in (a, b)
        ],
        priority=Priority.HIGH,
        category="employment",
        reward=8,
    )


def detect_location_conflict(a: SourceProfile, b: SourceProfile, name: str) -> ConflictQuestion | None:
    if not a.location or not b.location or is_similar_location(a.location, b.location):
        return None
    kind = ConflictType.LOCATION_CURRENT
    return ConflictQuestion(
        type=kind,
        field="current_location",
        question=f"Where does {name} currently live?",
        options=[_option(kind, p, p.location) for p in (a, b)],
        priority=Priority.MEDIUM,
        category="location",
        reward=5,
    )


def detect_hometown_conflict(a: SourceProfile, b: SourceProfile, name: str) -> ConflictQuestion | None:
    """Social hometown vs the other source's current location."""
    for social, other in ((a, b), (b, a)):
        if social.kind != SourceKind.SOCIAL or not social.hometown or not other.location:
            continue
        if is_similar_location(social.hometown, other.location):
            return None
        kind = ConflictType.LOCATION_HOMETOWN
        return ConflictQuestion(
            type=kind,
            field="hometown_vs_current",
            question=f"Is {name} originally from {social.hometown}?",
            options=[
                ConflictOption(
                    value=f"Originally from {social.hometown}, now in {other.location}",
                    source=COMBINED_SOURCE,
                    confidence=COMBINED_PRIORS[kind],
                ),
                _option(kind, social, f"Lives in {social.hometown}"),
            ],
            priority=Priority.LOW,
            category="location",
            reward=3,
        )
    return None


def _has_counterpart(school: str, others: list[str]) -> bool:
    return any(is_similar_school_name(school, other) for other in others)


def detect_school_conflict(a: SourceProfile, b: SourceProfile, name: str) -> ConflictQuestion | None:
    if not a.schools or not b.schools:
        return None
    if all(_has_counterpart(s, b.schools) for s in a.schools) and all(
        _has_counterpart(s, a.schools) for s in b.schools
    ):
        return None
    kind = ConflictType.EDUCATION_SCHOOL
    combined = dedupe_values([*a.schools, *b.schools])
    return ConflictQuestion(
        type=kind,
        field="education_schools",
        question=f"Where did {name} go to school?",
        options=[
            _option(kind, a, ", ".join(a.schools)),
            _option(kind, b, ", ".join(b.schools)),
            ConflictOption(
                value=", ".join(combined),
                source=COMBINED_SOURCE,
                confidence=COMBINED_PRIORS[kind],
                context="All schools from both profiles",
            ),
        ],
        priority=Priority.MEDIUM,
        category="education",
        reward=6,
    )


def detect_name_conflict(a: SourceProfile, b: SourceProfile, name: str) -> ConflictQuestion | None:
    name_a, name_b = a.display_name, b.display_name
    if not name_a or not name_b or is_similar_name(name_a, name_b):
        return None
    kind = ConflictType.CONTACT_INFO
    return ConflictQuestion(
        type=kind,
        field="full_name",
        question=f"What is {name}'s full name?",
        options=[_option(kind, a, name_a), _option(kind, b, name_b)],
        priority=Priority.HIGH,
        category="contact_info",
        reward=12,
    )


DETECTORS = (
    detect_company_conflict,
    detect_title_conflict,
    detect_location_conflict,
    detect_hometown_conflict,
    detect_school_conflict,
    detect_name_conflict,
)


def detect_all_conflicts(
    profile_a: SourceProfile,
    profile_b: SourceProfile,
    contact_name: str = "Contact",
) -> list[ConflictQuestion]:
    """Compare two source profiles of one person.

    Args:
        profile_a: First source profile
        profile_b: Second source profile
        contact_name: Name used in question text

    Returns:
        Conflict questions ordered by priority, then reward (both descending)
    """
    name = contact_name or "Contact"
    conflicts = []
    for detector in DETECTORS:
        question = detector(profile_a, profile_b, name)
        if question is not None:
            conflicts.append(question)

    conflicts.sort(key=lambda q: (-PRIORITY_RANK[q.priority], -q.reward))
    logger.info(
        f"Detected {len(conflicts)} conflicts for {name} "
        f"({profile_a.source} vs {profile_b.source})"
    )
    return conflicts
