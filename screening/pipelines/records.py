"""Header-alias normalization of raw spreadsheet rows into candidate records.

Column access is data-driven: ``HEADER_ALIASES`` maps each canonical field to
the header spellings it accepts, in priority order. Adding a field is a
table edit plus a model field.
"""
from __future__ import annotations

import logging
import math
import re
from typing import Any, Mapping, Sequence

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

MISSING = "NA"

HEADER_ALIASES: dict[str, tuple[str, ...]] = {
    "name": ("name", "candidate name", "full name"),
    "age": ("age", "candidate age"),
    "current_job_title": ("job title", "current title", "position"),
    "current_company": ("current company", "company", "employer"),
    "industry": ("industry", "sector", "field"),
    "matching_score": ("matching score", "score", "match score"),
    "years_experience": ("years experience", "experience"),
    "qualification": ("qualification", "education", "degree"),
    "key_skills": ("key skills", "skills"),
    "gdrivelink": ("gdrivelink", "resume link", "cv link"),
    "linkedin_snippet": ("linkedin snippet", "snippet", "profile summary"),
    "marital_status": ("marital status", "marriage status"),
    "cert_and_license": ("cert and license", "certifications", "licenses"),
    "language": ("language", "languages"),
    "loyalty": ("loyalty", "retention"),
    "expected_salary": ("expected salary", "salary expectation"),
    "phone": ("phone", "phone number", "contact number", "mobile"),
    "questions": ("questions", "screening questions"),
    "score_breakdown": ("score breakdown", "breakdown"),
}

NUMERIC_FIELDS = frozenset({"matching_score"})

_LEADING_FLOAT = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class CandidateRecord(BaseModel):
    """Canonical candidate schema; every field is always populated."""
    model_config = ConfigDict(frozen=True)

    name: str = MISSING
    age: str = MISSING
    current_job_title: str = MISSING
    current_company: str = MISSING
    industry: str = MISSING
    matching_score: float = 0
    years_experience: str = MISSING
    qualification: str = MISSING
    key_skills: str = MISSING
    gdrivelink: str = MISSING
    linkedin_snippet: str = MISSING
    marital_status: str = MISSING
    cert_and_license: str = MISSING
    language: str = MISSING
    loyalty: str = MISSING
    expected_salary: str = MISSING
    phone: str = MISSING
    questions: str = MISSING
    score_breakdown: str = MISSING


def parse_score(value: str | None) -> float:
    """Parse the leading number of a cell, 0 when there is none.

    "85" -> 85.0, "85.5%" -> 85.5, "NA" -> 0.0
    """
    if not value:
        return 0.0
    match = _LEADING_FLOAT.match(value.strip())
    if not match:
        return 0.0
    number = float(match.group(0))
    return number if math.isfinite(number) else 0.0


def _header_index(header_row: Sequence[Any]) -> dict[str, int]:
    index: dict[str, int] = {}
    for position, cell in enumerate(header_row):
        label = "" if cell is None else str(cell).strip().lower()
        # First occurrence wins for duplicated headers
        index.setdefault(label, position)
    return index


def resolve_columns(
    header_row: Sequence[Any],
    aliases: Mapping[str, Sequence[str]] = HEADER_ALIASES,
) -> dict[str, int | None]:
    """Map each canonical field to a column index via its alias list.

    Returns:
        Dictionary canonical field -> column index, or None when no alias
        matches a header
    """
    index = _header_index(header_row)
    columns: dict[str, int | None] = {}
    for field_name, names in aliases.items():
        columns[field_name] = next(
            (index[n.strip().lower()] for n in names if n.strip().lower() in index),
            None,
        )
    return columns


def _cell(row: Sequence[Any], column: int | None) -> str | None:
    if column is None or column >= len(row):
        return None
    value = row[column]
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_row(row: Sequence[Any], columns: Mapping[str, int | None]) -> CandidateRecord:
    """Convert one data row into a CandidateRecord using resolved columns."""
    values: dict[str, Any] = {}
    for field_name, column in columns.items():
        cell = _cell(row, column)
        if field_name in NUMERIC_FIELDS:
            values[field_name] = parse_score(cell)
        else:
            values[field_name] = cell if cell is not None else MISSING
    return CandidateRecord(**values)


def normalize_records(
    grid: Sequence[Sequence[Any]] | None,
    aliases: Mapping[str, Sequence[str]] = HEADER_ALIASES,
) -> list[CandidateRecord]:
    """Normalize a RawGrid into candidate records, preserving row order.

    Grids with fewer than two rows (no header or no data) yield an empty
    list. Rows shorter than the header read missing trailing cells as absent.
    """
    if not grid or len(grid) < 2:
        return []

    columns = resolve_columns(grid[0] or [], aliases)
    unresolved = [f for f, c in columns.items() if c is None]
    if unresolved:
        logger.debug(f"No header matched for fields: {', '.join(unresolved)}")

    records = [normalize_row(row or [], columns) for row in grid[1:]]
    logger.info(f"Normalized {len(records)} candidate records")
    return records
