# app/core/tabular.py

"""
Tabular parsing for lookup files.

Turns delimited text or a spreadsheet into a list of row dicts keyed by the
header row, then maps alternate column spellings onto the canonical
Name / Address / City / Zip schema.
"""

import csv
import io
import logging
from typing import Any, Iterable

from openpyxl import load_workbook

from app.core.exceptions import LookupFileError
from app.core.normalizers import coerce_text

logger = logging.getLogger(__name__)

# Name parts joined in this order when no Name column exists
NAME_PART_COLUMNS = [
    ("FirstName", "First_Name", "first_name"),
    ("MiddleInitial", "Middle_Initial", "MiddleName", "middle_name"),
    ("LastName", "Last_Name", "last_name"),
]

# canonical column -> alternate spellings, first present one wins
COLUMN_ALIASES = {
    "Name": ["Printed_Name", "Full_Name", "VoterName", "voter_name"],
    "Address": ["StreetAddress", "Street_Address", "street_address", "ResAddress", "res_address"],
    "City": ["ResCity", "res_city"],
    "Zip": ["ZipCode", "Zip_Code", "zip_code", "zipcode", "ResZip", "res_zip"],
}


# ============================================
# Row construction
# ============================================

def rows_from_table(table: Iterable[list[Any]]) -> list[dict[str, str]]:
    """
    Build row dicts from a two-dimensional table whose first row is the header.

    Rows missing more than one field are dropped. A row missing exactly
    one trailing field is kept with that field set to "".
    """
    rows = iter(table)
    header = None

    for candidate in rows:
        cells = [coerce_text(c) for c in candidate]
        if any(cells):
            header = cells
            break

    if header is None:
        return []

    # Trailing blank header cells come from sheet padding, not real columns
    while header and not header[-1]:
        header.pop()

    data: list[dict[str, str]] = []
    dropped = 0

    for raw in rows:
        values = [coerce_text(c) for c in raw]
        if not any(values):
            continue

        if len(values) < len(header) - 1:
            dropped += 1
            continue

        data.append({
            column: values[index] if index < len(values) else ""
            for index, column in enumerate(header)
        })

    if dropped:
        logger.debug(f"Dropped {dropped} short rows")

    return data


def parse_delimited(text: str, delimiter: str = ",") -> list[dict[str, str]]:
    """
    Parse delimited text with a header row.

    Quoted fields may contain the delimiter and doubled quotes ("")
    inside them are un-escaped.
    """
    if not text or not text.strip():
        return []

    # Excel CSV exports often start with a BOM
    text = text.lstrip("\ufeff")

    reader = csv.reader(
        io.StringIO(text.strip()),
        delimiter=delimiter,
        quotechar='"',
        doublequote=True,
        skipinitialspace=True,
    )
    return rows_from_table(reader)


def parse_spreadsheet(content: bytes) -> list[dict[str, str]]:
    """Parse the first worksheet of an .xlsx workbook."""
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except Exception as e:
        raise LookupFileError(f"Could not open spreadsheet: {e}") from e

    try:
        worksheet = workbook.worksheets[0]
        return rows_from_table(worksheet.iter_rows(values_only=True))
    finally:
        workbook.close()


def parse_lookup_file(content: bytes, filename: str) -> list[dict[str, str]]:
    """Dispatch on file extension and return canonicalized rows."""
    lowered = (filename or "").lower()

    if lowered.endswith((".csv", ".txt")):
        rows = parse_delimited(content.decode("utf-8", errors="replace"))
    elif lowered.endswith(".tsv"):
        rows = parse_delimited(content.decode("utf-8", errors="replace"), delimiter="\t")
    else:
        rows = parse_spreadsheet(content)

    return [canonicalize_columns(row) for row in rows]


# ============================================
# Column canonicalization
# ============================================

def canonicalize_columns(row: dict[str, Any]) -> dict[str, Any]:
    """
    Map alternate column spellings onto the canonical schema.

    - FirstName / MiddleInitial / LastName -> Name
    - StreetAddress -> Address
    - ZipCode -> Zip

    Existing non-empty canonical values are never overwritten.
    """
    result = dict(row)

    if not _has_value(result, "Name"):
        parts = []
        found_part_column = False
        for aliases in NAME_PART_COLUMNS:
            column = _first_present(result, aliases)
            if column is None:
                continue
            found_part_column = True
            part = coerce_text(result[column])
            if part:
                parts.append(part)

        if found_part_column:
            result["Name"] = " ".join(parts)

    for canonical, aliases in COLUMN_ALIASES.items():
        if _has_value(result, canonical):
            continue
        column = _first_present(result, aliases)
        if column is not None:
            result[canonical] = result[column]

    return result


def _has_value(row: dict[str, Any], column: str) -> bool:
    return column in row and coerce_text(row[column]) != ""


def _first_present(row: dict[str, Any], columns: Iterable[str]) -> str | None:
    for column in columns:
        if column in row:
            return column
    return None
