"""Tests for duplicate detection and resolution."""

import pytest

from relevance.contacts import Contact, Tag
from relevance.duplicates import (
    CONSOLIDATED_SOURCE,
    DuplicateCriterion,
    DuplicateGroup,
    Resolution,
    detect_duplicates,
    duplicate_criterion,
    is_duplicate,
    merge_contacts,
    resolve_duplicates,
)


def _contacts(*records):
    return [Contact.from_record(r) for r in records]


class TestDetectDuplicates:
    """Greedy pairwise grouping."""

    def test_case_insensitive_name_and_email(self):
        contacts = _contacts(
            {"name": "Jane Doe", "email": "jane@x.com"},
            {"name": "jane doe", "email": "JANE@X.COM"},
        )
        groups = detect_duplicates(contacts)

        assert len(groups) == 1
        assert len(groups[0].contacts) == 2
        assert groups[0].reasons == [DuplicateCriterion.EXACT_NAME]
        assert groups[0].resolution == Resolution.REVIEW

    def test_email_match_with_different_names(self):
        a, b = _contacts(
            {"name": "Jane Doe", "email": "jd@x.com"},
            {"name": "Janet D.", "email": "JD@x.com"},
        )
        assert duplicate_criterion(a, b) == DuplicateCriterion.EXACT_EMAIL

    def test_similar_name_at_same_company(self):
        a, b = _contacts(
            {"name": "Robert Smith", "company": "Acme"},
            {"name": "Robert J Smith", "company": "acme"},
        )
        assert duplicate_criterion(a, b) == DuplicateCriterion.SIMILAR_NAME_SAME_COMPANY

    def test_similar_name_needs_same_company(self):
        a, b = _contacts(
            {"name": "Robert Smith", "company": "Acme"},
            {"name": "Robert J Smith", "company": "Initech"},
        )
        assert duplicate_criterion(a, b) is None
        assert not is_duplicate(a, b)

    def test_grouping_is_not_transitive(self):
        contacts = _contacts(
            {"name": "Alex Kim", "email": "alex@x.com"},
            {"name": "Alex Kim", "email": "ak@y.com"},
            {"name": "Sam Lee", "email": "ak@y.com"},
        )
        groups = detect_duplicates(contacts)

        assert len(groups) == 1
        assert [c.email for c in groups[0].contacts] == ["alex@x.com", "ak@y.com"]

    def test_no_contact_in_two_groups(self):
        contacts = _contacts(
            {"name": "Jane Doe"},
            {"name": "Jane Doe"},
            {"name": "Bob Ray", "email": "b@x.com"},
            {"name": "Jane Doe"},
            {"name": "Robert Ray", "email": "b@x.com"},
        )
        groups = detect_duplicates(contacts)
        ids = [c.id for g in groups for c in g.contacts]

        assert len(ids) == len(set(ids))
        assert [len(g.contacts) for g in groups] == [3, 2]
        for group in groups:
            for member in group.contacts[1:]:
                assert duplicate_criterion(group.anchor, member) is not None

    def test_nameless_contacts_skipped(self):
        contacts = _contacts({"email": "a@x.com"}, {"email": "a@x.com"})
        assert detect_duplicates(contacts) == []

    def test_no_duplicates(self):
        contacts = _contacts({"name": "A One"}, {"name": "B Two"})
        assert detect_duplicates(contacts) == []


class TestMergeContacts:
    """Consolidating a group into one contact."""

    def setup_method(self):
        """Set up test fixtures."""
        self.first, self.second = _contacts(
            {
                "id": "anchor",
                "name": "Jane Doe",
                "company": "Google",
                "position": "Engineer",
                "skills": ["Python"],
                "tags": [{"value": "Friend", "category": "social"}],
            },
            {
                "id": "other",
                "name": "Jane Doe",
                "email": "jane@x.com",
                "company": "Google Inc.",
                "position": "Senior Engineer",
                "location": "Seattle, WA",
                "skills": ["python", "Go"],
                "interactionCount": 7,
            },
        )

    def test_merge_prefers_longest_and_first_non_empty(self):
        merged = merge_contacts([self.first, self.second])

        assert merged.id == "anchor"
        assert merged.email == "jane@x.com"
        assert merged.company == "Google Inc."
        assert merged.position == "Senior Engineer"
        assert merged.location.current == "Seattle, WA"
        assert merged.skills == ["Python", "Go"]
        assert merged.interaction_count == 7
        assert merged.source == CONSOLIDATED_SOURCE

    def test_merge_keeps_manual_tags_and_retags(self):
        self.first.tags.append(Tag("stale", type="auto"))
        merged = merge_contacts([self.first, self.second])
        values = [t.value for t in merged.tags]

        assert values[0] == "Friend"
        assert "stale" not in values
        assert "Google Inc." in values
        assert merged.last_auto_tagged is not None

    def test_merge_empty_group(self):
        with pytest.raises(ValueError):
            merge_contacts([])


class TestResolveDuplicates:
    """Applying a resolution to every group."""

    def setup_method(self):
        """Set up test fixtures."""
        contacts = _contacts(
            {"name": "Jane Doe"}, {"name": "jane doe"}, {"name": "Al Bo"}, {"name": "al bo"}
        )
        self.groups = [
            DuplicateGroup(contacts=contacts[:2]),
            DuplicateGroup(contacts=contacts[2:]),
        ]

    def test_consolidate(self):
        resolved = resolve_duplicates(self.groups, "consolidate")

        assert len(resolved) == 2
        assert all(g.resolution == Resolution.CONSOLIDATE for g in self.groups)

    def test_separate_keeps_every_member(self):
        assert len(resolve_duplicates(self.groups, Resolution.SEPARATE)) == 4

    def test_review_behaves_like_separate(self):
        assert len(resolve_duplicates(self.groups, "review")) == 4

    def test_unknown_action(self):
        with pytest.raises(ValueError):
            resolve_duplicates(self.groups, "delete")
