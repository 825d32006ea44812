"""Tests for cross-source conflict detection."""

from relevance.conflicts import (
    COMBINED_SOURCE,
    ConflictType,
    Priority,
    SourceKind,
    SourceProfile,
    detect_all_conflicts,
    detect_school_conflict,
)
from relevance.contacts import Contact


class TestDetectAllConflicts:
    """Questions raised when two sources disagree."""

    def test_single_company_conflict(self):
        a = SourceProfile.from_mapping({"currentEmployer": "Meta"}, "facebook")
        b = SourceProfile.from_mapping({"currentEmployer": "Facebook"}, "linkedin")

        conflicts = detect_all_conflicts(a, b, "Jane")

        assert len(conflicts) == 1
        question = conflicts[0]
        assert question.type == ConflictType.EMPLOYMENT_COMPANY
        assert question.priority == Priority.HIGH
        assert [o.value for o in question.options] == ["Meta", "Facebook"]
        assert [o.source for o in question.options] == ["facebook", "linkedin"]
        assert [o.confidence for o in question.options] == [0.7, 0.8]
        assert question.question == "Where does Jane currently work?"

    def test_similar_values_do_not_conflict(self):
        a = SourceProfile.from_mapping(
            {"currentEmployer": "Google Inc.", "currentTitle": "Sr. Engineer", "location": "Austin"},
            "facebook",
        )
        b = SourceProfile.from_mapping(
            {"currentEmployer": "Google", "currentTitle": "Engineer", "location": "Austin, TX"},
            "linkedin",
        )
        assert detect_all_conflicts(a, b) == []

    def test_missing_fields_do_not_conflict(self):
        a = SourceProfile.from_mapping({"currentEmployer": "Meta"}, "facebook")
        b = SourceProfile.from_mapping({"location": "Austin"}, "linkedin")
        assert detect_all_conflicts(a, b) == []

    def test_ordered_by_priority_then_reward(self):
        facebook = SourceProfile.from_facebook({
            "name": "Jonathan Smith",
            "work": [{"employer": {"name": "Meta"}, "position": {"name": "Engineer"}}],
            "location": {"name": "Seattle, WA"},
            "hometown": {"name": "Portland, Oregon"},
        })
        linkedin = SourceProfile.from_linkedin({
            "localizedFirstName": "Jon",
            "localizedLastName": "Smith",
            "positions": {"values": [
                {"isCurrent": True, "company": {"name": "Google"}, "title": "Product Manager"},
            ]},
            "location": {"name": "Austin, TX"},
        })

        conflicts = detect_all_conflicts(facebook, linkedin, "Jon")

        assert [q.field for q in conflicts] == [
            "full_name",
            "current_employer",
            "current_title",
            "current_location",
            "hometown_vs_current",
        ]
        hometown = conflicts[-1]
        assert hometown.options[0].source == COMBINED_SOURCE
        assert hometown.options[0].value == "Originally from Portland, Oregon, now in Austin, TX"

    def test_to_dict_labels_sources(self):
        a = SourceProfile.from_mapping({"currentEmployer": "Meta"}, "facebook")
        b = SourceProfile.from_mapping({"currentEmployer": "Stripe"}, "linkedin")
        data = detect_all_conflicts(a, b)[0].to_dict()

        assert data["type"] == "employment_company"
        assert [o["sourceLabel"] for o in data["options"]] == ["FB", "LI"]


class TestSourceProfiles:
    """Building profiles from payloads and contacts."""

    def test_kind_for_source(self):
        assert SourceProfile.kind_for("LinkedIn") == SourceKind.PROFESSIONAL
        assert SourceProfile.kind_for("gmail") == SourceKind.OTHER

    def test_from_payload_dispatch(self):
        profile = SourceProfile.from_payload("facebook", {"first_name": "Ann", "last_name": "Lee"})
        assert profile.display_name == "Ann Lee"
        assert profile.kind == SourceKind.SOCIAL

        flat = SourceProfile.from_payload("linkedin", {"company": "Stripe", "title": "PM"})
        assert flat.employer == "Stripe"
        assert flat.job_title == "PM"

    def test_from_contact(self):
        contact = Contact.from_record({"name": "Ann Lee", "company": "Stripe", "source": "linkedin"})
        profile = SourceProfile.from_contact(contact)

        assert profile.source == "linkedin"
        assert profile.employer == "Stripe"

    def test_school_conflict_offers_combined_option(self):
        a = SourceProfile(source="facebook", kind=SourceKind.SOCIAL, schools=["Stanford University"])
        b = SourceProfile(
            source="linkedin",
            kind=SourceKind.PROFESSIONAL,
            schools=["Stanford", "MIT"],
        )
        question = detect_school_conflict(a, b, "Ann")

        assert question is not None
        assert question.options[-1].value == "Stanford University, Stanford, MIT"
        assert question.options[-1].source == COMBINED_SOURCE
