"""Tests for tag generation."""

from datetime import datetime, timezone

from relevance.contacts import Contact, Tag, TagCategory
from relevance.tags import (
    AUTO_SOURCE,
    apply_tags,
    city_for,
    function_for,
    generate_searchable_tags,
    generate_tags,
    industry_for,
    merge_tags,
)


class TestGenerateTags:
    """Flat tag generation from company, position and location."""

    def test_raw_values_and_derived_categories(self):
        tags = generate_tags({"position": "Senior Software Engineer", "company": "Stripe"})

        assert "Senior Software Engineer" in tags
        assert "Stripe" in tags
        assert "Engineering" in tags
        assert "Technology" in tags

    def test_order_is_company_then_position_then_location(self):
        tags = generate_tags({"company": "Stripe", "position": "Engineer", "location": "SF"})
        assert tags == ["Stripe", "Technology", "Engineer", "Engineering", "SF", "San Francisco"]

    def test_empty_record(self):
        assert generate_tags({}) == []
        assert generate_tags({"company": None, "position": "  "}) == []

    def test_unknown_values_have_no_category(self):
        assert generate_tags({"company": "Acme", "location": "Dallas"}) == ["Acme", "Dallas"]

    def test_no_repeats(self):
        tags = generate_tags({"position": "Data", "company": "Data"})
        assert len(tags) == len(set(tags))

    def test_deterministic(self):
        record = {"company": "Goldman Sachs", "position": "VP Sales", "location": "NYC"}
        assert generate_tags(record) == generate_tags(dict(record))


class TestLookups:
    """Keyword table lookups."""

    def test_industry(self):
        assert industry_for("Morgan Stanley") == "Finance"
        assert industry_for("Acme") is None

    def test_function_first_match_wins(self):
        # Engineering precedes Management in the table
        assert function_for("Engineering Manager") == "Engineering"
        assert function_for("") is None

    def test_short_city_synonyms_need_word_boundaries(self):
        assert city_for("LA") == "Los Angeles"
        assert city_for("Dallas") is None


class TestSearchableTags:
    """Structured tags merged onto contacts."""

    def setup_method(self):
        """Set up test fixtures."""
        self.contact = Contact.from_record({
            "name": "Jane Doe",
            "company": "Google",
            "position": "Software Engineer",
            "location": "Seattle",
            "skills": ["Python"],
            "interests": ["tennis"],
            "tags": [{"value": "Climber", "category": "interests"}],
        })

    def test_categories_and_confidence(self):
        tags = generate_searchable_tags(self.contact)
        by_value = {(t.value, t.category) for t in tags}

        assert ("Seattle", TagCategory.LOCATION) in by_value
        assert ("Google", TagCategory.PROFESSIONAL) in by_value
        assert ("Technology", TagCategory.PROFESSIONAL) in by_value
        assert ("Python", TagCategory.SKILLS) in by_value
        assert ("tennis", TagCategory.INTERESTS) in by_value
        assert all(t.source == AUTO_SOURCE and t.type == "auto" for t in tags)
        assert all(0 < t.confidence <= 1 for t in tags)

    def test_derived_city_not_duplicated(self):
        tags = generate_searchable_tags(self.contact)
        seattle = [t for t in tags if t.value.lower() == "seattle"]
        assert len(seattle) == 1

    def test_apply_tags_keeps_manual_tags_first(self):
        now = datetime(2024, 5, 1, tzinfo=timezone.utc)
        apply_tags(self.contact, now=now)

        assert self.contact.tags[0].value == "Climber"
        assert self.contact.tags[0].type == "manual"
        assert self.contact.last_auto_tagged == now
        assert ("google", "professional") in self.contact.index.tags

    def test_apply_tags_is_idempotent(self):
        apply_tags(self.contact)
        first = [t.key for t in self.contact.tags]
        apply_tags(self.contact)
        assert [t.key for t in self.contact.tags] == first

    def test_merge_tags_by_value_and_category(self):
        existing = [Tag("Seattle", TagCategory.LOCATION)]
        new = [Tag("seattle", TagCategory.LOCATION), Tag("Seattle", TagCategory.CUSTOM)]
        merged = merge_tags(existing, new)

        assert [(t.value, t.category) for t in merged] == [
            ("Seattle", TagCategory.LOCATION),
            ("Seattle", TagCategory.CUSTOM),
        ]
