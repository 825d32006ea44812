"""Typed contact model with a precomputed, lower-cased search index.

Raw contact payloads arrive in several shapes: flat CSV rows, camelCase API
documents, and nested enrichment records. ``Contact.from_record`` resolves
all of them once, at ingestion, into explicit fields with empty defaults so
that scoring code never walks optional paths.
"""
from __future__ import annotations

import math
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from functools import lru_cache
from typing import Any, Iterable, Mapping

# Terms this short match on word boundaries only ("la", "sf", "ux").
SHORT_TERM_LENGTH = 3


class TagCategory(str, Enum):
    """Tag categories."""
    LOCATION = "location"
    PROFESSIONAL = "professional"
    EDUCATION = "education"
    SKILLS = "skills"
    INTERESTS = "interests"
    SOCIAL = "social"
    CUSTOM = "custom"


def normalize_term(value: Any) -> str:
    """Lowercase and collapse whitespace."""
    text = clean_text(value)
    return " ".join(text.lower().split())


def clean_text(value: Any) -> str:
    """Coerce a raw field value to a stripped string ("" for null/NaN)."""
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value).strip()


@lru_cache(maxsize=2048)
def _boundary_pattern(term: str) -> re.Pattern:
    return re.compile(rf"(?<![a-z0-9]){re.escape(term)}(?![a-z0-9])")


def term_in(term: str, text: str) -> bool:
    """Check whether a normalized term occurs in normalized text.

    Short terms require word boundaries so that "la" does not hit "Dallas".
    Longer terms are plain substring lookups.
    """
    if not term or not text:
        return False
    if len(term) <= SHORT_TERM_LENGTH:
        return _boundary_pattern(term).search(text) is not None
    return term in text


@lru_cache(maxsize=2048)
def _word_pattern(term: str) -> re.Pattern:
    return re.compile(rf"(?<![a-z0-9]){re.escape(term)}(?:e?s)?(?![a-z0-9])")


def word_in(term: str, text: str) -> bool:
    """Whole-word lookup that also accepts a plural ("engineers").

    Unlike ``term_in`` this never matches inside a longer word, so
    "account" does not hit "accounting" and "band" does not hit "husband".
    """
    if not term or not text:
        return False
    return _word_pattern(term).search(text) is not None


def _as_list(value: Any) -> list[str]:
    """Coerce list-ish raw values to a list of non-empty strings."""
    if value is None:
        return []
    if isinstance(value, str):
        parts = re.split(r"[,;|]", value)
        return [p.strip() for p in parts if p.strip()]
    # A mapping or a bare scalar is a single item.
    if not isinstance(value, (list, tuple, set, frozenset)):
        value = [value]
    items = []
    for item in value:
        if isinstance(item, Mapping):
            item = _first(item, "name", "value", "schoolName", "school")
            if isinstance(item, Mapping):
                item = item.get("name")
        text = clean_text(item)
        if text:
            items.append(text)
    return items


def _first(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present, non-empty value among ``keys``."""
    for key in keys:
        value = data.get(key)
        if value is None or value == "" or value == [] or value == {}:
            continue
        if isinstance(value, float) and math.isnan(value):
            continue
        return value
    return default


def _as_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return int(number)


def _as_float(value: Any, default: float = 0.0) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def _year_of(value: Any) -> int | None:
    """Extract a year from an int, a datetime or a date-like string."""
    if isinstance(value, datetime):
        return value.year
    if isinstance(value, (int, float)):
        return _as_int(value)
    match = re.search(r"(19|20)\d{2}", clean_text(value))
    return int(match.group(0)) if match else None


def parse_datetime(value: Any) -> datetime | None:
    """Parse ISO timestamps into aware UTC datetimes."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(clean_text(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def dedupe_values(values: Iterable[str]) -> list[str]:
    """Drop blanks and case-insensitive repeats, keeping the first spelling."""
    seen: set[str] = set()
    result = []
    for value in values:
        key = normalize_term(value)
        if key and key not in seen:
            seen.add(key)
            result.append(value)
    return result


@dataclass
class Tag:
    """A derived or user-assigned label on a contact."""
    value: str
    category: TagCategory = TagCategory.CUSTOM
    confidence: float = 1.0
    source: str = "manual"
    type: str = "manual"  # auto or manual

    @classmethod
    def from_value(cls, raw: Any) -> Tag | None:
        if isinstance(raw, Tag):
            return raw
        if isinstance(raw, Mapping):
            value = clean_text(_first(raw, "value", "name", "tag"))
            if not value:
                return None
            try:
                category = TagCategory(clean_text(raw.get("category")).lower())
            except ValueError:
                category = TagCategory.CUSTOM
            return cls(
                value=value,
                category=category,
                confidence=_as_float(raw.get("confidence"), 1.0),
                source=clean_text(raw.get("source")) or "manual",
                type=clean_text(raw.get("type")) or "manual",
            )
        value = clean_text(raw)
        return cls(value=value) if value else None

    @property
    def key(self) -> tuple[str, str]:
        return normalize_term(self.value), self.category.value

    def to_dict(self) -> dict[str, Any]:
        return {
            "value": self.value,
            "category": self.category.value,
            "confidence": self.confidence,
            "source": self.source,
            "type": self.type,
        }


@dataclass
class Position:
    """One employment record, current or past."""
    employer: str = ""
    job_function: str = ""
    location: str = ""
    start_year: int | None = None
    end_year: int | None = None
    tenure: str = ""

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> Position:
        if not data or not isinstance(data, Mapping):
            return cls()
        employer = _first(data, "employer", "company", "companyName", "organization")
        if isinstance(employer, Mapping):
            employer = employer.get("name")
        job_function = _first(data, "job_function", "jobFunction", "title", "position", "jobTitle")
        if isinstance(job_function, Mapping):
            job_function = job_function.get("name")
        location = _first(data, "location", "city")
        if isinstance(location, Mapping):
            location = location.get("name")
        return cls(
            employer=clean_text(employer),
            job_function=clean_text(job_function),
            location=clean_text(location),
            start_year=_year_of(_first(data, "start_year", "startYear", "start_date", "startDate")),
            end_year=_year_of(_first(data, "end_year", "endYear", "end_date", "endDate")),
            tenure=clean_text(data.get("tenure")),
        )

    def is_empty(self) -> bool:
        return not (self.employer or self.job_function)

    def to_dict(self) -> dict[str, Any]:
        return {
            "employer": self.employer,
            "job_function": self.job_function,
            "location": self.location,
            "start_year": self.start_year,
            "end_year": self.end_year,
            "tenure": self.tenure,
        }


@dataclass
class Employment:
    current: Position = field(default_factory=Position)
    history: list[Position] = field(default_factory=list)


@dataclass
class Locations:
    current: str = ""
    hometown: str = ""
    work_locations: list[str] = field(default_factory=list)


@dataclass
class Education:
    schools: list[str] = field(default_factory=list)
    degrees: list[str] = field(default_factory=list)
    certifications: list[str] = field(default_factory=list)


@dataclass
class Social:
    interests: list[str] = field(default_factory=list)
    hobbies: list[str] = field(default_factory=list)
    facebook_friends: int = 0
    mutual_friends: int = 0
    linkedin_connections: int = 0


@dataclass(frozen=True)
class ContactIndex:
    """Lower-cased, whitespace-collapsed view of every searchable field."""
    name: str
    email: str
    company: str
    position: str
    location: str
    hometown: str
    work_locations: tuple[str, ...]
    past_employers: tuple[str, ...]
    past_functions: tuple[str, ...]
    skills: tuple[str, ...]
    interests: tuple[str, ...]
    tags: tuple[tuple[str, str], ...]

    @classmethod
    def build(cls, contact: Contact) -> ContactIndex:
        history = contact.employment.history
        return cls(
            name=normalize_term(contact.name),
            email=normalize_term(contact.email),
            company=normalize_term(contact.company),
            position=normalize_term(contact.position),
            location=normalize_term(contact.location.current),
            hometown=normalize_term(contact.location.hometown),
            work_locations=tuple(
                normalize_term(v)
                for v in [*contact.location.work_locations, *(p.location for p in history)]
                if clean_text(v)
            ),
            past_employers=tuple(normalize_term(p.employer) for p in history if p.employer),
            past_functions=tuple(normalize_term(p.job_function) for p in history if p.job_function),
            skills=tuple(normalize_term(s) for s in contact.skills),
            interests=tuple(
                normalize_term(v) for v in [*contact.social.interests, *contact.social.hobbies]
            ),
            tags=tuple((normalize_term(t.value), t.category.value) for t in contact.tags),
        )

    def tags_in(self, *categories: TagCategory) -> list[str]:
        """Tag values, optionally restricted to some categories."""
        wanted = {c.value for c in categories}
        return [value for value, category in self.tags if not wanted or category in wanted]


@dataclass
class Contact:
    """A person in a user's network."""
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    name: str = ""
    email: str = ""
    phone: str = ""
    employment: Employment = field(default_factory=Employment)
    location: Locations = field(default_factory=Locations)
    education: Education = field(default_factory=Education)
    social: Social = field(default_factory=Social)
    skills: list[str] = field(default_factory=list)
    tags: list[Tag] = field(default_factory=list)
    source: str = ""
    facebook_id: str = ""
    linkedin_id: str = ""
    profile_url: str = ""
    connected_on: str = ""
    notes: str = ""
    last_interaction: datetime | None = None
    interaction_count: int = 0
    match_confidence: float = 0.0
    last_auto_tagged: datetime | None = None
    _index: ContactIndex | None = field(default=None, init=False, repr=False, compare=False)

    @property
    def company(self) -> str:
        return self.employment.current.employer

    @property
    def position(self) -> str:
        return self.employment.current.job_function

    @property
    def current_location(self) -> str:
        return self.location.current

    @property
    def index(self) -> ContactIndex:
        if self._index is None:
            self._index = ContactIndex.build(self)
        return self._index

    def refresh_index(self) -> ContactIndex:
        """Rebuild the search index after mutating fields."""
        self._index = ContactIndex.build(self)
        return self._index

    @classmethod
    def from_record(cls, record: Mapping[str, Any] | Contact) -> Contact:
        """Build a contact from any supported raw record shape.

        Args:
            record: Flat CSV row, camelCase API document or nested record

        Returns:
            Contact with every optional field resolved to a typed default
        """
        if isinstance(record, Contact):
            return record

        name = clean_text(_first(record, "name", "fullName", "full_name", "displayName"))
        if not name:
            first = clean_text(_first(record, "firstName", "first_name", "First Name"))
            last = clean_text(_first(record, "lastName", "last_name", "Last Name"))
            name = f"{first} {last}".strip()

        return cls(
            id=clean_text(_first(record, "id", "_id", "contactId")) or uuid.uuid4().hex,
            name=name,
            email=clean_text(_first(record, "email", "emailAddress", "Email Address")),
            phone=clean_text(_first(record, "phone", "phoneNumber", "Phone Number")),
            employment=_employment_from(record),
            location=_locations_from(record),
            education=_education_from(record),
            social=_social_from(record),
            skills=dedupe_values(_as_list(record.get("skills"))),
            tags=[t for t in (Tag.from_value(raw) for raw in _as_list_raw(record.get("tags"))) if t],
            source=clean_text(record.get("source")),
            facebook_id=clean_text(_first(record, "facebook_id", "facebookId")),
            linkedin_id=clean_text(_first(record, "linkedin_id", "linkedinId")),
            profile_url=clean_text(_first(record, "profile_url", "profileUrl", "linkedinUrl", "url")),
            connected_on=clean_text(_first(record, "connected_on", "connectedOn")),
            notes=clean_text(record.get("notes")),
            last_interaction=parse_datetime(_first(record, "last_interaction", "lastInteraction")),
            interaction_count=_as_int(_first(record, "interaction_count", "interactionCount")) or 0,
            match_confidence=_as_float(_first(record, "match_confidence", "matchConfidence")),
            last_auto_tagged=parse_datetime(_first(record, "last_auto_tagged", "lastAutoTagged")),
        )

    def to_record(self) -> dict[str, Any]:
        """JSON-serializable record, readable back by ``from_record``."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "employment": {
                "current": self.employment.current.to_dict(),
                "history": [p.to_dict() for p in self.employment.history],
            },
            "location": {
                "current": self.location.current,
                "hometown": self.location.hometown,
                "work_locations": list(self.location.work_locations),
            },
            "education": {
                "schools": list(self.education.schools),
                "degrees": list(self.education.degrees),
                "certifications": list(self.education.certifications),
            },
            "social": {
                "interests": list(self.social.interests),
                "hobbies": list(self.social.hobbies),
                "facebook_friends": self.social.facebook_friends,
                "mutual_friends": self.social.mutual_friends,
                "linkedin_connections": self.social.linkedin_connections,
            },
            "skills": list(self.skills),
            "tags": [t.to_dict() for t in self.tags],
            "source": self.source,
            "facebook_id": self.facebook_id,
            "linkedin_id": self.linkedin_id,
            "profile_url": self.profile_url,
            "connected_on": self.connected_on,
            "notes": self.notes,
            "last_interaction": self.last_interaction.isoformat() if self.last_interaction else None,
            "interaction_count": self.interaction_count,
            "match_confidence": self.match_confidence,
            "last_auto_tagged": self.last_auto_tagged.isoformat() if self.last_auto_tagged else None,
        }


def _as_list_raw(value: Any) -> list[Any]:
    """Like ``_as_list`` but keeps mapping items intact."""
    if value is None:
        return []
    if isinstance(value, str):
        return _as_list(value)
    if not isinstance(value, (list, tuple, set, frozenset)):
        return [value]
    return list(value)


def _employment_from(record: Mapping[str, Any]) -> Employment:
    nested = record.get("employment")
    if isinstance(nested, Mapping):
        current = Position.from_mapping(nested.get("current"))
        history = [Position.from_mapping(p) for p in _as_list_raw(nested.get("history"))]
    else:
        current = Position(
            employer=clean_text(_first(record, "company", "employer", "currentEmployer", "Company")),
            job_function=clean_text(
                _first(record, "position", "title", "jobTitle", "jobFunction", "Position")
            ),
        )
        history = [
            Position.from_mapping(p)
            for p in _as_list_raw(_first(record, "workHistory", "work_history", "history"))
            if isinstance(p, Mapping)
        ]
        # Work history lists the current role first when no flat fields exist.
        if current.is_empty() and history:
            current = history.pop(0)
    return Employment(current=current, history=[p for p in history if not p.is_empty()])


def _locations_from(record: Mapping[str, Any]) -> Locations:
    nested = record.get("location")
    if isinstance(nested, Mapping) and "name" not in nested:
        return Locations(
            current=clean_text(_first(nested, "current", "city")),
            hometown=clean_text(nested.get("hometown")),
            work_locations=dedupe_values(_as_list(_first(nested, "work_locations", "workLocations"))),
        )
    if isinstance(nested, Mapping):
        nested = nested.get("name")
    hometown = record.get("hometown")
    if isinstance(hometown, Mapping):
        hometown = hometown.get("name")
    return Locations(
        current=clean_text(nested) or clean_text(_first(record, "currentLocation", "Location")),
        hometown=clean_text(hometown),
        work_locations=dedupe_values(_as_list(_first(record, "workLocations", "work_locations"))),
    )


def _education_from(record: Mapping[str, Any]) -> Education:
    nested = record.get("education")
    if isinstance(nested, Mapping):
        return Education(
            schools=dedupe_values(_as_list(nested.get("schools"))),
            degrees=dedupe_values(_as_list(nested.get("degrees"))),
            certifications=dedupe_values(_as_list(nested.get("certifications"))),
        )
    return Education(
        schools=dedupe_values(_as_list(nested if nested is not None else record.get("schools"))),
        degrees=dedupe_values(_as_list(record.get("degrees"))),
        certifications=dedupe_values(_as_list(record.get("certifications"))),
    )


def _social_from(record: Mapping[str, Any]) -> Social:
    nested = record.get("social")
    data = nested if isinstance(nested, Mapping) else record
    return Social(
        interests=dedupe_values(_as_list(data.get("interests"))),
        hobbies=dedupe_values(_as_list(data.get("hobbies"))),
        facebook_friends=_as_int(_first(data, "facebook_friends", "facebookFriends")) or 0,
        mutual_friends=_as_int(_first(data, "mutual_friends", "mutualFriends")) or 0,
        linkedin_connections=_as_int(
            _first(data, "linkedin_connections", "linkedinConnections", "numConnections")
        ) or 0,
    )
