"""Tests for search orchestration over a contact store."""

import pytest

from beetagged.pipelines.search import collect_suggestions, get_suggestions, search_by_scenario, search_contacts
from relevance.intent import IntentType


class TestSearchContacts:
    """Natural-language and scenario searches."""

    @pytest.mark.asyncio
    async def test_search_explains_results(self, store, network):
        await store.save_many("user-1", network)

        response = await search_contacts(store, "user-1", "marketing people in Seattle")

        assert response.intent.type == IntentType.FUNCTION_LOCATION
        assert response.results[0].contact.name == "Marcus Lee"
        assert response.explanation.startswith(f"Found {len(response.results)} contact")

        data = response.to_dict()
        assert data["totalResults"] == len(response.results)
        assert data["results"][0]["name"] == "Marcus Lee"

    @pytest.mark.asyncio
    async def test_no_results(self, store):
        response = await search_contacts(store, "user-1", "who works at Google")

        assert response.results == []
        assert response.explanation == "No contacts found matching 'who works at Google'"

    @pytest.mark.asyncio
    async def test_scenario(self, store, network):
        await store.save_many("user-1", network)

        response = await search_by_scenario(store, "user-1", "job-search", "Stripe")

        assert [r.contact.name for r in response.results] == ["Marcus Lee", "Tom Brady"]

    @pytest.mark.asyncio
    async def test_unknown_scenario(self, store):
        with pytest.raises(ValueError):
            await search_by_scenario(store, "user-1", "horoscope", "leo")


class TestSuggestions:
    """Network-wide suggestion lists."""

    def test_most_common_values_first(self, network):
        suggestions = collect_suggestions(network)

        assert suggestions["locations"][0] in ("Seattle, WA", "Seattle")
        assert "Stripe" in suggestions["companies"]
        assert suggestions["skills"] == ["Python", "Go"]

    def test_case_insensitive_counts(self, network):
        network[0].employment.current.employer = "stripe"
        suggestions = collect_suggestions(network, limit=1)
        assert suggestions["companies"] == ["stripe"]

    @pytest.mark.asyncio
    async def test_from_store(self, store, network):
        await store.save_many("user-1", network)
        suggestions = await get_suggestions(store, "user-1", limit=2)
        assert len(suggestions["titles"]) == 2
