"""Tests for natural-language query parsing."""

import pytest

from relevance.intent import (
    IntentType,
    Modifier,
    SearchIntent,
    describe_intent,
    intent_for_scenario,
    parse_intent,
    suggest_refinements,
)


class TestParseIntent:
    """Intent classification and slot extraction."""

    def test_company_query(self):
        intent = parse_intent("who works at Google")

        assert intent.type == IntentType.COMPANY
        assert intent.company == "Google"
        assert intent.query == "who works at Google"

    def test_function_and_location(self):
        intent = parse_intent("marketing people in Seattle")

        assert intent.type == IntentType.FUNCTION_LOCATION
        assert intent.function == "marketing"
        assert intent.location == "Seattle"
        assert intent.skill is None

    def test_city_synonym_resolves_to_canonical(self):
        intent = parse_intent("engineers in NYC")
        assert intent.location == "New York"
        assert intent.function == "engineering"

    def test_travel(self):
        intent = parse_intent("I'm traveling to Denver next week")

        assert intent.type == IntentType.TRAVEL
        assert intent.location == "Denver"

    def test_job_search(self):
        intent = parse_intent("anyone hiring at Stripe?")

        assert intent.type == IntentType.JOB_SEARCH
        assert intent.company == "Stripe"

    def test_skill_help(self):
        intent = parse_intent("who can help with python")

        assert intent.type == IntentType.SKILL_HELP
        assert intent.skill == "python"
        assert intent.company is None

    def test_historical_modifier(self):
        intent = parse_intent("who worked at Stripe")

        assert intent.type == IntentType.COMPANY
        assert intent.company == "Stripe"
        assert intent.historical
        assert Modifier.HISTORICAL in intent.modifiers

    def test_proximity_modifier(self):
        intent = parse_intent("designers near me")

        assert intent.type == IntentType.FUNCTION
        assert intent.function == "design"
        assert intent.location is None
        assert intent.proximity

    def test_interest(self):
        intent = parse_intent("friends who play tennis")

        assert intent.type == IntentType.INTEREST
        assert intent.interest == "sports"

    def test_longer_synonym_not_shadowed_by_prefix(self):
        intent = parse_intent("accounting people in New York")

        assert intent.type == IntentType.FUNCTION_LOCATION
        assert intent.function == "finance"
        assert intent.location == "New York"

    def test_synonyms_match_whole_words(self):
        intent = parse_intent("friends of my husband")

        assert intent.interest is None
        assert intent.type == IntentType.GENERAL

    def test_capitalized_role_is_not_a_company(self):
        intent = parse_intent("Looking for Engineers in Austin")

        assert intent.type == IntentType.FUNCTION_LOCATION
        assert intent.company is None
        assert intent.function == "engineering"
        assert intent.location == "Austin"

    def test_company_with_role_word_kept(self):
        assert parse_intent("anyone at Acme Software").company == "Acme Software"

    @pytest.mark.parametrize("query", ["", "   ", None, 42])
    def test_unusable_input_is_general(self, query):
        assert parse_intent(query) == SearchIntent()

    def test_plain_name_is_general(self):
        intent = parse_intent("Jane")

        assert intent.type == IntentType.GENERAL
        assert intent.query == "Jane"

    def test_whitespace_collapsed(self):
        assert parse_intent("  who   works at   Google ").query == "who works at Google"

    def test_to_dict(self):
        data = parse_intent("designers near me").to_dict()

        assert data["type"] == "function"
        assert data["modifiers"] == ["proximity"]


class TestScenarios:
    """Structured scenario intents."""

    def test_travel_canonicalizes_city(self):
        intent = intent_for_scenario("travel", "sf")

        assert intent.type == IntentType.TRAVEL
        assert intent.location == "San Francisco"

    def test_function_referral_with_location(self):
        intent = intent_for_scenario("function-referral", "developer", location="Austin")

        assert intent.type == IntentType.FUNCTION_LOCATION
        assert intent.function == "engineering"
        assert intent.location == "Austin"

    def test_industry_networking(self):
        intent = intent_for_scenario("industry-networking", "Finance")

        assert intent.type == IntentType.NETWORKING
        assert intent.industry == "Finance"
        assert intent.networking_type == "industry"

    def test_interest_resolves_category(self):
        assert intent_for_scenario("interest", "guitar").interest == "music"

    def test_unknown_scenario(self):
        with pytest.raises(ValueError):
            intent_for_scenario("dating", "anyone")

    def test_empty_value(self):
        with pytest.raises(ValueError):
            intent_for_scenario("travel", "  ")


class TestDescriptions:
    """Human-readable explanations and refinements."""

    def test_no_results(self):
        intent = parse_intent("who works at Google")
        assert describe_intent(intent, 0) == "No contacts found matching 'who works at Google'"

    def test_results(self):
        intent = parse_intent("marketing people in Seattle")
        assert describe_intent(intent, 2) == (
            "Found 2 contacts who work in marketing and are located in Seattle"
        )

    def test_refinements(self):
        suggestions = suggest_refinements(parse_intent("who works at Google"))
        assert "Include former employees: 'used to work at Google'" in suggestions
        assert suggest_refinements(parse_intent("Jane"))
