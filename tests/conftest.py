"""Shared fixtures. The database URL is pointed at SQLite before any
beetagged module builds its engine."""
import os

os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")

import pytest

from beetagged.store import InMemoryContactStore
from relevance.contacts import Contact


@pytest.fixture
def store():
    return InMemoryContactStore()


@pytest.fixture
def network():
    """A small, varied contact network."""
    records = [
        {
            "id": "c1",
            "name": "Jane Doe",
            "email": "jane@x.com",
            "company": "Google Inc.",
            "position": "Senior Software Engineer",
            "location": "Seattle, WA",
            "skills": ["Python", "Go"],
        },
        {
            "id": "c2",
            "name": "Marcus Lee",
            "company": "Stripe",
            "position": "Marketing Manager",
            "location": "Seattle",
            "interests": ["tennis", "coffee"],
        },
        {
            "id": "c3",
            "name": "Priya Shah",
            "company": "Goldman Sachs",
            "position": "Analyst",
            "location": "New York",
            "hometown": "Seattle",
        },
        {
            "id": "c4",
            "name": "Tom Brady",
            "company": "Acme",
            "position": "Product Designer",
            "location": "Austin, TX",
            "workHistory": [{"company": "Stripe", "title": "UX Designer", "location": "San Francisco"}],
        },
    ]
    return [Contact.from_record(r) for r in records]
