"""Tests for import record cleaning."""

from beetagged.pipelines.normalization import (
    clean_contact_record,
    clean_email,
    clean_phone,
    clean_string,
    clean_url,
    extract_skills,
)


class TestCleaners:
    """Field-level cleaning."""

    def test_clean_string(self):
        assert clean_string("  Jane   Doe ") == "Jane Doe"
        assert clean_string("Ops – Lead") == "Ops - Lead"
        assert clean_string(float("nan")) == ""
        assert clean_string(None) == ""

    def test_clean_email(self):
        assert clean_email(" Jane@X.com ") == "jane@x.com"
        assert clean_email("not-an-email") == ""

    def test_clean_phone(self):
        assert clean_phone("(555) 123-4567") == "5551234567"
        assert clean_phone(5551234567.0) == "5551234567"
        assert clean_phone("123") == ""

    def test_clean_url(self):
        assert clean_url("linkedin.com/in/jane") == "https://linkedin.com/in/jane"
        assert clean_url("https://example.com/x") == "https://example.com/x"
        assert clean_url("not a url") == ""

    def test_extract_skills(self):
        assert extract_skills("Python Developer") == ["python"]
        assert extract_skills("Sales Lead", "Salesforce") == ["salesforce"]
        assert extract_skills("") == []


class TestCleanContactRecord:
    """Whole-record cleaning."""

    def test_cleans_known_fields_only(self):
        record = {
            "name": "  Jane  Doe",
            "email": "JANE@X.COM",
            "phone": "555-123-4567",
            "profileUrl": "linkedin.com/in/jane",
            "skills": ["Python"],
        }
        cleaned = clean_contact_record(record)

        assert cleaned["name"] == "Jane Doe"
        assert cleaned["email"] == "jane@x.com"
        assert cleaned["phone"] == "5551234567"
        assert cleaned["profileUrl"] == "https://linkedin.com/in/jane"
        assert cleaned["skills"] == ["Python"]
        assert record["name"] == "  Jane  Doe"
