"""Contact store: the persistence collaborator of the search core.

The core never queries storage itself; pipelines fetch a user's contacts
here and hand the materialized list to the ranker or detectors.
"""
from __future__ import annotations

import logging
from typing import Callable, Iterable, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from relevance.contacts import Contact

from . import models

logger = logging.getLogger(__name__)

ContactPredicate = Callable[[Contact], bool]

# Columns that support substring filters in ``find``
FILTERABLE_COLUMNS = ("name", "email", "company", "position", "location", "source")


class StoreError(Exception):
    """Raised when contact persistence fails."""
    pass


class ContactStore(Protocol):
    """Async contact storage interface."""

    async def find(
        self,
        user_id: str,
        predicate: ContactPredicate | None = None,
        **filters: str,
    ) -> list[Contact]:
        ...

    async def get(self, user_id: str, contact_id: str) -> Contact | None:
        ...

    async def save(self, user_id: str, contact: Contact) -> Contact:
        ...

    async def save_many(self, user_id: str, contacts: Iterable[Contact]) -> list[Contact]:
        ...


def _to_record(user_id: str, contact: Contact) -> models.ContactRecord:
    return models.ContactRecord(
        id=contact.id,
        user_id=user_id,
        name=contact.name,
        email=contact.email or None,
        company=contact.company or None,
        position=contact.position or None,
        location=contact.location.current or None,
        source=contact.source or None,
        payload=contact.to_record(),
    )


class SqlContactStore:
    """ContactStore over the SQLAlchemy ``contacts`` table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find(
        self,
        user_id: str,
        predicate: ContactPredicate | None = None,
        **filters: str,
    ) -> list[Contact]:
        """Load a user's contacts.

        Args:
            user_id: Owner of the contacts
            predicate: Optional in-memory filter on typed contacts
            **filters: Case-insensitive substring filters on indexed columns

        Returns:
            Contacts ordered by name

        Raises:
            ValueError: If a filter names an unsupported column
            StoreError: If the query fails
        """
        query = select(models.ContactRecord).where(models.ContactRecord.user_id == user_id)
        for column, value in filters.items():
            if column not in FILTERABLE_COLUMNS:
                raise ValueError(f"Cannot filter contacts by {column}")
            query = query.where(getattr(models.ContactRecord, column).ilike(f"%{value}%"))
        query = query.order_by(models.ContactRecord.name)

        try:
            result = await self.session.execute(query)
            rows = result.scalars().all()
        except Exception as e:
            logger.error(f"Contact lookup failed for user {user_id}: {e}")
            raise StoreError(f"Failed to load contacts: {e}") from e

        contacts = [Contact.from_record(row.payload) for row in rows]
        if predicate is not None:
            contacts = [c for c in contacts if predicate(c)]
        logger.debug(f"Loaded {len(contacts)} contacts for user {user_id}")
        return contacts

    async def get(self, user_id: str, contact_id: str) -> Contact | None:
        try:
            record = await self.session.get(models.ContactRecord, (contact_id, user_id))
        except Exception as e:
            logger.error(f"Contact {contact_id} lookup failed: {e}")
            raise StoreError(f"Failed to load contact {contact_id}: {e}") from e
        return Contact.from_record(record.payload) if record else None

    async def save(self, user_id: str, contact: Contact) -> Contact:
        saved = await self.save_many(user_id, [contact])
        return saved[0]

    async def save_many(self, user_id: str, contacts: Iterable[Contact]) -> list[Contact]:
        """Insert or update contacts in one transaction.

        Raises:
            StoreError: If the write fails (the session is rolled back)
        """
        contacts = list(contacts)
        try:
            for contact in contacts:
                await self.session.merge(_to_record(user_id, contact))
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Failed to save {len(contacts)} contacts for user {user_id}: {e}")
            raise StoreError(f"Contact persistence failed: {e}") from e

        logger.info(f"Saved {len(contacts)} contacts for user {user_id}")
        return contacts


def _column_value(contact: Contact, column: str) -> str:
    if column == "location":
        return contact.location.current
    return getattr(contact, column)


class InMemoryContactStore:
    """ContactStore kept in process memory (tests, scripts)."""

    def __init__(self):
        self._contacts: dict[str, dict[str, dict]] = {}

    async def find(
        self,
        user_id: str,
        predicate: ContactPredicate | None = None,
        **filters: str,
    ) -> list[Contact]:
        for column in filters:
            if column not in FILTERABLE_COLUMNS:
                raise ValueError(f"Cannot filter contacts by {column}")

        contacts = [Contact.from_record(r) for r in self._contacts.get(user_id, {}).values()]
        for column, value in filters.items():
            contacts = [c for c in contacts if value.lower() in _column_value(c, column).lower()]
        if predicate is not None:
            contacts = [c for c in contacts if predicate(c)]
        return sorted(contacts, key=lambda c: c.name)

    async def get(self, user_id: str, contact_id: str) -> Contact | None:
        record = self._contacts.get(user_id, {}).get(contact_id)
        return Contact.from_record(record) if record else None

    async def save(self, user_id: str, contact: Contact) -> Contact:
        saved = await self.save_many(user_id, [contact])
        return saved[0]

    async def save_many(self, user_id: str, contacts: Iterable[Contact]) -> list[Contact]:
        contacts = list(contacts)
        bucket = self._contacts.setdefault(user_id, {})
        for contact in contacts:
            bucket[contact.id] = contact.to_record()
        return contacts
