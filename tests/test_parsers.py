"""Tests for contact export parsing."""

from io import BytesIO

import pandas as pd
import pytest

from beetagged.parsers import (
    LINKEDIN_SOURCE,
    FileType,
    ParseError,
    detect_file_type,
    map_linkedin_row,
    parse_file,
)

LINKEDIN_EXPORT = (
    "Notes:\n"
    "\"When exporting your connection data, you may notice that some of the email addresses are missing.\"\n"
    "\n"
    "First Name,Last Name,URL,Email Address,Company,Position,Connected On\n"
    "Jane,Doe,https://www.linkedin.com/in/janedoe,jane@x.com,Stripe,Software Engineer,12 Mar 2021\n"
    "Sam,Lee,https://www.linkedin.com/in/samlee,,Acme,,01 Jan 2020\n"
)


class TestDetectFileType:
    """File type detection."""

    def test_by_extension(self):
        assert detect_file_type("contacts.csv") == FileType.CSV
        assert detect_file_type("Contacts.XLSX") == FileType.EXCEL
        assert detect_file_type("resume.pdf") == FileType.UNKNOWN

    def test_legacy_xls_not_supported(self):
        assert detect_file_type("contacts.xls") == FileType.UNKNOWN
        with pytest.raises(ParseError):
            parse_file(BytesIO(b"\xd0\xcf\x11\xe0"), "contacts.xls")

    def test_by_magic_number(self):
        assert detect_file_type("upload", b"PK\x03\x04rest") == FileType.EXCEL


class TestParseFile:
    """CSV and Excel parsing."""

    def test_linkedin_export_with_preamble(self):
        records = parse_file(BytesIO(LINKEDIN_EXPORT.encode("utf-8")), "Connections.csv")

        assert len(records) == 2
        jane = records[0]
        assert jane["firstName"] == "Jane"
        assert jane["lastName"] == "Doe"
        assert jane["email"] == "jane@x.com"
        assert jane["company"] == "Stripe"
        assert jane["position"] == "Software Engineer"
        assert jane["profileUrl"] == "https://www.linkedin.com/in/janedoe"
        assert jane["source"] == LINKEDIN_SOURCE
        assert {"value": "Connected 2021", "category": "social", "source": "linkedin"} in jane["tags"]
        assert "email" not in records[1]

    def test_generic_csv(self):
        content = b"name,company,location\nJane Doe,Google,Seattle\n"
        records = parse_file(BytesIO(content), "contacts.csv")
        assert records == [{"name": "Jane Doe", "company": "Google", "location": "Seattle"}]

    def test_excel(self):
        buffer = BytesIO()
        pd.DataFrame([{"name": "Jane Doe", "company": "Google", "phone": None}]).to_excel(
            buffer, index=False, engine="openpyxl"
        )
        buffer.seek(0)

        records = parse_file(buffer, "contacts.xlsx")

        assert records[0]["name"] == "Jane Doe"
        assert records[0]["phone"] == ""

    def test_empty_csv(self):
        with pytest.raises(ParseError):
            parse_file(BytesIO(b""), "contacts.csv")

    def test_header_only_csv(self):
        with pytest.raises(ParseError):
            parse_file(BytesIO(b"name,company\n"), "contacts.csv")

    def test_unsupported_type(self):
        with pytest.raises(ParseError):
            parse_file(BytesIO(b"%PDF"), "resume.pdf")


class TestLinkedInRows:
    """Column mapping for LinkedIn exports."""

    def test_tags_and_industry(self):
        record = map_linkedin_row({
            "First Name": "Ann",
            "Last Name": "Lee",
            "Tags": "mentor, climbing",
            "Industry": "Financial Services",
        })

        assert [t["value"] for t in record["tags"]] == ["Financial Services", "mentor", "climbing"]
        assert "linkedinTags" not in record
