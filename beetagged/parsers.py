"""Contact export parsing for CSV and Excel uploads.

Recognizes LinkedIn "Connections" exports (including the notes preamble
LinkedIn puts above the header) and maps their columns onto contact
record keys. Other spreadsheets pass through column-for-column.
"""
from __future__ import annotations

import io
import logging
import re
from enum import Enum
from typing import Any, BinaryIO

import pandas as pd

logger = logging.getLogger(__name__)

LINKEDIN_SOURCE = "linkedin_import"

LINKEDIN_COLUMNS = {
    "First Name": "firstName",
    "Last Name": "lastName",
    "Email Address": "email",
    "Company": "company",
    "Position": "position",
    "Connected On": "connectedOn",
    "Tags": "linkedinTags",
    "Profile URL": "profileUrl",
    "URL": "profileUrl",
    "Location": "location",
    "Industry": "industry",
    "Phone Number": "phone",
}

# LinkedIn prepends a few lines of notes before the real header.
_HEADER_SCAN_LINES = 10


class FileType(str, Enum):
    """Supported file types."""
    CSV = "csv"
    EXCEL = "excel"
    UNKNOWN = "unknown"


class ParseError(Exception):
    """Raised when an upload cannot be parsed."""
    pass


def detect_file_type(filename: str, content: bytes | None = None) -> FileType:
    """Detect file type from filename or content.

    Args:
        filename: Original filename
        content: Optional file content for magic number detection

    Returns:
        Detected FileType
    """
    filename_lower = filename.lower()

    if filename_lower.endswith('.csv'):
        return FileType.CSV
    elif filename_lower.endswith(('.xlsx', '.xlsm')):
        return FileType.EXCEL

    # Magic number detection if content provided
    if content and content.startswith(b'PK\x03\x04'):  # ZIP/Office
        return FileType.EXCEL

    return FileType.UNKNOWN


def _strip_preamble(text: str) -> str:
    """Drop any notes LinkedIn writes above the header row."""
    lines = text.splitlines()
    for idx, line in enumerate(lines[:_HEADER_SCAN_LINES]):
        if "First Name" in line and "Last Name" in line:
            return "\n".join(lines[idx:])
    return text


def is_linkedin_export(columns: list[str]) -> bool:
    return {"First Name", "Last Name"}.issubset(set(columns))


def map_linkedin_row(row: dict[str, Any]) -> dict[str, Any]:
    """Map one LinkedIn export row onto contact record keys."""
    record: dict[str, Any] = {"source": LINKEDIN_SOURCE}
    for column, key in LINKEDIN_COLUMNS.items():
        value = str(row.get(column) or "").strip()
        if value and key not in record:
            record[key] = value

    tags = []
    if record.get("industry"):
        tags.append({"value": record["industry"], "category": "professional", "source": "linkedin"})
    for tag in (record.pop("linkedinTags", "") or "").split(","):
        if tag.strip():
            tags.append({"value": tag.strip(), "category": "custom", "source": "linkedin"})
    year = re.search(r"(19|20)\d{2}", record.get("connectedOn", ""))
    if year:
        tags.append({"value": f"Connected {year.group(0)}", "category": "social", "source": "linkedin"})
    record["tags"] = tags
    return record


def _to_records(df: pd.DataFrame) -> list[dict[str, Any]]:
    df = df.fillna("")
    df.columns = [str(c).strip() for c in df.columns]
    records = df.to_dict('records')
    if is_linkedin_export(list(df.columns)):
        logger.info("Detected LinkedIn connections export")
        return [map_linkedin_row(r) for r in records]
    return records


def parse_csv(file_obj: BinaryIO, filename: str) -> list[dict[str, Any]]:
    """Parse CSV file into contact records.

    Args:
        file_obj: Binary file object
        filename: Original filename

    Returns:
        List of dictionaries (one per row)

    Raises:
        ParseError: If CSV parsing fails
    """
    try:
        text = file_obj.read().decode('utf-8-sig')
        df = pd.read_csv(
            io.StringIO(_strip_preamble(text)),
            dtype=str,
            keep_default_na=False,
        )
    except Exception as e:
        logger.error(f"CSV parsing failed for {filename}: {e}")
        raise ParseError(f"Failed to parse CSV: {e}") from e

    if df.empty:
        raise ParseError("CSV file is empty")

    logger.info(f"Parsed CSV with {len(df)} rows and {len(df.columns)} columns")
    return _to_records(df)


def parse_excel(file_obj: BinaryIO, filename: str, sheet_name: str | int = 0) -> list[dict[str, Any]]:
    """Parse Excel file into contact records.

    Args:
        file_obj: Binary file object
        filename: Original filename
        sheet_name: Sheet name or index (default: first sheet)

    Returns:
        List of dictionaries (one per row)

    Raises:
        ParseError: If Excel parsing fails
    """
    try:
        df = pd.read_excel(file_obj, sheet_name=sheet_name, engine='openpyxl', dtype=str)
    except Exception as e:
        logger.error(f"Excel parsing failed for {filename}: {e}")
        raise ParseError(f"Failed to parse Excel: {e}") from e

    if df.empty:
        raise ParseError("Excel sheet is empty")

    logger.info(f"Parsed Excel with {len(df)} rows and {len(df.columns)} columns")
    return _to_records(df)


def parse_file(file_obj: BinaryIO, filename: str) -> list[dict[str, Any]]:
    """Parse an uploaded contact export based on type.

    Raises:
        ParseError: If file type unsupported or parsing fails
    """
    file_type = detect_file_type(filename)

    if file_type == FileType.CSV:
        return parse_csv(file_obj, filename)
    elif file_type == FileType.EXCEL:
        return parse_excel(file_obj, filename)
    else:
        raise ParseError(f"Unsupported file type: {filename}")
