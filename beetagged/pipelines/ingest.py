"""Contact import pipeline.

Steps:
1. Clean each raw record and build a typed Contact
2. Infer skills from the title and auto-tag
3. Group likely duplicates within the batch
4. Persist contacts outside any group; hand the groups back for resolution
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from relevance.contacts import Contact, dedupe_values
from relevance.duplicates import DuplicateGroup, Resolution, detect_duplicates, resolve_duplicates
from relevance.tags import apply_tags

from ..config import settings
from ..store import ContactStore
from .normalization import clean_contact_record, extract_skills

logger = logging.getLogger(__name__)


class InvalidContactError(ValueError):
    """Raised when a record cannot become a contact (e.g. no name)."""
    pass


class ContactImportError(Exception):
    """Raised when a whole import batch is rejected."""
    pass


@dataclass
class ImportBatch:
    """Prepared contacts plus the rows that were dropped."""
    contacts: list[Contact] = field(default_factory=list)
    skipped: list[dict[str, Any]] = field(default_factory=list)
    duplicates: list[DuplicateGroup] = field(default_factory=list)


@dataclass
class ImportResult:
    """Outcome of an import call."""
    saved: list[Contact]
    skipped: list[dict[str, Any]]
    duplicates: list[DuplicateGroup]

    def to_dict(self) -> dict[str, Any]:
        return {
            "imported": len(self.saved),
            "skipped": self.skipped,
            "duplicateGroups": [g.to_dict() for g in self.duplicates],
            "pendingDuplicates": sum(len(g.contacts) for g in self.duplicates),
        }


def prepare_contact(record: Mapping[str, Any]) -> Contact:
    """Turn one raw record into a tagged contact.

    Args:
        record: Raw import row or API document

    Returns:
        Contact with inferred skills and auto tags

    Raises:
        InvalidContactError: If the record is not a mapping or has no name
    """
    if not isinstance(record, Mapping):
        raise InvalidContactError(f"Contact record must be an object, got {type(record).__name__}")

    contact = Contact.from_record(clean_contact_record(record))
    if not contact.name:
        raise InvalidContactError("Contact record has no name")

    inferred = extract_skills(contact.position, contact.company)
    if inferred:
        contact.skills = dedupe_values([*contact.skills, *inferred])
    return apply_tags(contact)


def prepare_batch(records: Iterable[Mapping[str, Any]]) -> ImportBatch:
    """Prepare every record and detect duplicates within the batch.

    Raises:
        ContactImportError: If the batch is empty or exceeds the size limit
    """
    records = list(records)
    if not records:
        raise ContactImportError("Import batch is empty")
    limit = settings.imports.max_batch_size
    if len(records) > limit:
        raise ContactImportError(f"Import batch of {len(records)} contacts exceeds limit of {limit}")

    batch = ImportBatch()
    for row, record in enumerate(records):
        try:
            batch.contacts.append(prepare_contact(record))
        except InvalidContactError as e:
            logger.warning(f"Skipping import row {row}: {e}")
            batch.skipped.append({"row": row, "reason": str(e)})

    batch.duplicates = detect_duplicates(batch.contacts)
    logger.info(
        f"Prepared {len(batch.contacts)} contacts "
        f"({len(batch.skipped)} skipped, {len(batch.duplicates)} duplicate groups)"
    )
    return batch


async def import_contacts(
    store: ContactStore,
    user_id: str,
    records: Iterable[Mapping[str, Any]],
) -> ImportResult:
    """Import a batch of contacts for a user.

    Contacts that belong to a duplicate group are not saved; they are
    returned for the caller to resolve with ``resolve_and_save``.

    Args:
        store: Contact store
        user_id: Owner of the contacts
        records: Raw contact records

    Returns:
        ImportResult with saved contacts, skipped rows and pending groups

    Raises:
        ContactImportError: If the batch is rejected
        StoreError: If persistence fails
    """
    batch = prepare_batch(records)

    grouped = {id(c) for group in batch.duplicates for c in group.contacts}
    unique = [c for c in batch.contacts if id(c) not in grouped]
    saved = await store.save_many(user_id, unique) if unique else []

    logger.info(f"Imported {len(saved)} contacts for user {user_id}")
    return ImportResult(saved=saved, skipped=batch.skipped, duplicates=batch.duplicates)


async def resolve_and_save(
    store: ContactStore,
    user_id: str,
    groups: list[DuplicateGroup],
    action: Resolution | str,
) -> list[Contact]:
    """Resolve pending duplicate groups and persist the outcome.

    Raises:
        ValueError: If ``action`` is not a known resolution
        StoreError: If persistence fails
    """
    resolved = resolve_duplicates(groups, action)
    if not resolved:
        return []
    return await store.save_many(user_id, resolved)
