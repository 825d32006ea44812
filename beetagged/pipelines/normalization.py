"""Field cleaning for imported contact records.

Handles whitespace, punctuation variants, and email/phone/URL validation.
Invalid optional values become empty strings rather than errors.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Mapping
from urllib.parse import urlparse

from relevance.contacts import clean_text, term_in
from relevance.taxonomy import TECH_SKILLS

logger = logging.getLogger(__name__)

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_MIN_PHONE_DIGITS = 10

# Free-text fields cleaned with clean_string
_TEXT_FIELDS = ("name", "company", "position", "title", "location", "notes", "hometown")


def normalize_whitespace(text: str) -> str:
    """Normalize whitespace: collapse multiple spaces, remove leading/trailing."""
    text = re.sub(r'\s+', ' ', text)
    return text.strip()


def normalize_punctuation(text: str) -> str:
    """Normalize common punctuation variations."""
    # Replace smart quotes
    text = text.replace('“', '"').replace('”', '"')
    text = text.replace('‘', "'").replace('’', "'")

    # Normalize dashes
    text = text.replace('–', '-').replace('—', '-')

    return text


def clean_string(value: Any) -> str:
    """Trim, collapse whitespace and normalize punctuation; "" for non-text."""
    text = clean_text(value)
    if not text:
        return ""
    return normalize_whitespace(normalize_punctuation(text))


def clean_email(value: Any) -> str:
    """Lower-cased email, or "" when it does not look like an address."""
    email = clean_text(value).lower()
    if not email or not _EMAIL_PATTERN.match(email):
        return ""
    return email


def clean_phone(value: Any) -> str:
    """Digits and a leading +, or "" when shorter than a full number."""
    text = clean_text(value)
    if text.endswith(".0"):
        # pandas reads numeric phone columns as floats
        text = text[:-2]
    phone = re.sub(r"[^\d+]", "", text)
    if len(phone) < _MIN_PHONE_DIGITS:
        return ""
    return phone


def clean_url(value: Any) -> str:
    """Absolute http(s) URL, adding https:// when the scheme is missing."""
    url = clean_text(value)
    if not url or " " in url:
        return ""
    parsed = urlparse(url)
    if parsed.scheme in ("http", "https") and parsed.netloc:
        return url
    if not parsed.scheme or not parsed.netloc:
        candidate = f"https://{url}"
        if "." in urlparse(candidate).netloc:
            return candidate
    return ""


def extract_skills(position: str, company: str = "") -> list[str]:
    """Infer well-known tech skills mentioned in a title or company."""
    text = f"{clean_text(position)} {clean_text(company)}".lower()
    return [skill for skill in TECH_SKILLS if term_in(skill, text)]


def clean_contact_record(record: Mapping[str, Any]) -> dict[str, Any]:
    """Clean the flat fields of a raw contact record.

    Nested structures are passed through untouched; ``Contact.from_record``
    resolves them.

    Args:
        record: Raw record from an upload or API payload

    Returns:
        New dict with cleaned text, email, phone and URL fields
    """
    cleaned = dict(record)
    for key in _TEXT_FIELDS:
        if isinstance(cleaned.get(key), (str, float)):
            cleaned[key] = clean_string(cleaned[key])
    if "email" in cleaned:
        cleaned["email"] = clean_email(cleaned["email"])
    if "phone" in cleaned:
        cleaned["phone"] = clean_phone(cleaned["phone"])
    for key in ("profileUrl", "profile_url"):
        if key in cleaned:
            cleaned[key] = clean_url(cleaned[key])
    return cleaned
