"""Tests for the HTTP API with an in-memory contact store."""

from io import BytesIO

import pytest
from fastapi.testclient import TestClient

from beetagged.api import app, get_contact_store
from beetagged.store import InMemoryContactStore


class TestApi:
    """Endpoint behaviour and error mapping."""

    def setup_method(self):
        """Set up test fixtures."""
        self.store = InMemoryContactStore()
        app.dependency_overrides[get_contact_store] = lambda: self.store
        self.client = TestClient(app)

    def teardown_method(self):
        app.dependency_overrides.clear()

    def _import(self, contacts):
        return self.client.post("/users/u1/contacts/import", json={"contacts": contacts})

    def test_health(self):
        response = self.client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_import_and_search(self):
        response = self._import([
            {"name": "Jane Doe", "company": "Google Inc.", "location": "Seattle"},
            {"name": "Sam Lee", "company": "Acme"},
        ])
        assert response.status_code == 201
        assert response.json()["imported"] == 2

        response = self.client.post("/users/u1/search", json={"query": "who works at Google"})
        body = response.json()

        assert response.status_code == 200
        assert body["intent"]["type"] == "company"
        assert [r["name"] for r in body["results"]] == ["Jane Doe"]
        assert "ruleTrace" not in body["results"][0]

    def test_search_with_trace(self):
        self._import([{"name": "Jane Doe", "location": "Seattle"}])

        response = self.client.post(
            "/users/u1/search", json={"query": "people in Seattle", "include_trace": True}
        )

        assert response.json()["results"][0]["ruleTrace"]

    def test_duplicates_then_resolve(self):
        response = self._import([
            {"name": "Jane Doe", "email": "jane@x.com"},
            {"name": "jane doe", "email": "JANE@X.COM"},
        ])
        groups = response.json()["duplicate_groups"]
        assert response.json()["imported"] == 0
        assert len(groups) == 1

        response = self.client.post(
            "/users/u1/contacts/resolve-duplicates",
            json={"action": "consolidate", "groups": groups},
        )

        assert response.status_code == 200
        assert response.json()["saved"] == 1

    def test_invalid_resolution_action(self):
        response = self.client.post(
            "/users/u1/contacts/resolve-duplicates",
            json={"action": "explode", "groups": [{"contacts": [{"name": "A"}, {"name": "A"}]}]},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_request"

    def test_batch_too_large(self, monkeypatch):
        from beetagged.config import settings

        monkeypatch.setattr(settings.imports, "max_batch_size", 1)
        response = self._import([{"name": "A"}, {"name": "B"}])

        assert response.status_code == 400
        assert response.json()["error"] == "import_error"

    def test_upload_csv(self):
        content = b"First Name,Last Name,Company,Position\nJane,Doe,Stripe,Engineer\n"
        response = self.client.post(
            "/users/u1/contacts/upload",
            files={"file": ("Connections.csv", BytesIO(content), "text/csv")},
        )

        assert response.status_code == 201
        assert response.json()["imported"] == 1

    def test_upload_unsupported_type(self):
        response = self.client.post(
            "/users/u1/contacts/upload",
            files={"file": ("resume.pdf", BytesIO(b"%PDF"), "application/pdf")},
        )
        assert response.status_code == 400

    def test_upload_legacy_xls_rejected(self):
        response = self.client.post(
            "/users/u1/contacts/upload",
            files={"file": ("contacts.xls", BytesIO(b"\xd0\xcf\x11\xe0"), "application/vnd.ms-excel")},
        )
        assert response.status_code == 400
        assert "Unsupported file type" in response.json()["detail"]

    def test_upload_unreadable_csv(self):
        response = self.client.post(
            "/users/u1/contacts/upload",
            files={"file": ("empty.csv", BytesIO(b""), "text/csv")},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "parse_error"

    def test_scenario_search(self):
        self._import([{"name": "Ann", "company": "Goldman Sachs"}])

        response = self.client.post(
            "/users/u1/search/scenario",
            json={"scenario": "industry-networking", "value": "Finance"},
        )

        assert response.status_code == 200
        assert [r["name"] for r in response.json()["results"]] == ["Ann"]

    def test_unknown_scenario(self):
        response = self.client.post(
            "/users/u1/search/scenario", json={"scenario": "astrology", "value": "leo"}
        )
        assert response.status_code == 400

    def test_suggestions(self):
        self._import([{"name": "Ann", "company": "Stripe"}, {"name": "Bo", "company": "Stripe"}])

        response = self.client.get("/users/u1/search/suggestions")

        assert response.json()["companies"] == ["Stripe"]

    def test_detect_conflicts(self):
        response = self.client.post(
            "/conflicts/detect",
            json={
                "contact_name": "Jane",
                "source_a": {"source": "facebook", "profile": {"currentEmployer": "Meta"}},
                "source_b": {"source": "linkedin", "profile": {"currentEmployer": "Facebook"}},
            },
        )
        body = response.json()

        assert response.status_code == 200
        assert body["total"] == 1
        assert body["conflicts"][0]["type"] == "employment_company"

    @pytest.mark.parametrize("record,expected", [
        ({"position": "Senior Software Engineer", "company": "Stripe"}, "Engineering"),
        ({"location": "NYC"}, "New York"),
    ])
    def test_generate_tags(self, record, expected):
        response = self.client.post("/tags/generate", json={"contact": record})

        assert response.status_code == 200
        assert expected in response.json()["tags"]

    def test_root_lists_scenarios(self):
        body = self.client.get("/").json()

        assert body["taxonomy_version"] == "beetagged-taxo-v1"
        assert "industry-networking" in body["scenarios"]
