"""In-memory candidate query engine: filter -> sort -> paginate.

Every function is a pure transformation over an immutable record sequence;
the whole pipeline is simply re-run whenever records or criteria change.
"""
from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from enum import Enum
from functools import cmp_to_key
from typing import Any, Callable, Generic, Sequence, TypeVar

from .records import CandidateRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

QUALIFICATION_ALL = "All"
DEGREE_OR_ABOVE = "Degree or above"

QUALIFICATION_TIERS: dict[str, frozenset[str]] = {
    DEGREE_OR_ABOVE: frozenset({"Doctor", "Master", "Degree"}),
}

QUALIFICATION_OPTIONS = (QUALIFICATION_ALL, DEGREE_OR_ABOVE, "Doctor", "Master", "Degree", "Below Degree")

SEARCHABLE_FIELDS = (
    "name",
    "current_job_title",
    "current_company",
    "industry",
    "key_skills",
    "linkedin_snippet",
)

SORTABLE_FIELDS = (
    "name",
    "age",
    "current_job_title",
    "current_company",
    "industry",
    "matching_score",
    "years_experience",
    "qualification",
)

NUMERIC_SORT_FIELDS = frozenset({"matching_score", "years_experience", "age"})

DEFAULT_PAGE_SIZE = 10


class SortDirection(str, Enum):
    """Sort direction."""
    ASC = "asc"
    DESC = "desc"

    def flipped(self) -> SortDirection:
        return SortDirection.ASC if self is SortDirection.DESC else SortDirection.DESC


@dataclass(frozen=True)
class FilterCriteria:
    """User-supplied filter values. Ranges are inclusive."""
    experience_range: tuple[float, float] = (0, 30)
    score_range: tuple[float, float] = (0, 100)
    qualification: str = QUALIFICATION_ALL
    keyword: str = ""


@dataclass(frozen=True)
class SortSpec:
    """Sort field and direction; ties always go to ascending name."""
    field: str = "matching_score"
    direction: SortDirection = SortDirection.DESC

    def __post_init__(self):
        if self.field not in SORTABLE_FIELDS:
            raise ValueError(f"Unsortable field: {self.field}. Allowed: {', '.join(SORTABLE_FIELDS)}")


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of results."""
    items: list[T]
    page: int
    page_count: int
    total: int
    page_size: int

    @property
    def start_index(self) -> int:
        """1-based position of the first item, 0 when empty."""
        return (self.page - 1) * self.page_size + 1 if self.items else 0

    @property
    def end_index(self) -> int:
        return min(self.page * self.page_size, self.total)

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.page_count


@dataclass(frozen=True)
class Metrics:
    """Key metrics over a record set. Averages are None for an empty set."""
    total: int
    avg_matching_score: int | None
    avg_years_experience: int | None


def to_number(value: Any) -> float:
    """Lenient numeric conversion: blanks, "NA" and junk become 0."""
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip() or 0)
        except ValueError:
            return 0.0
    return number if not math.isnan(number) else 0.0


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def searchable_text(record: CandidateRecord) -> str:
    return " ".join(str(getattr(record, f)) for f in SEARCHABLE_FIELDS).lower()


def matches_qualification(qualification: str, selector: str) -> bool:
    if not selector or selector == QUALIFICATION_ALL:
        return True
    tier = QUALIFICATION_TIERS.get(selector)
    if tier is not None:
        return qualification in tier
    return qualification == selector


def matches(record: CandidateRecord, criteria: FilterCriteria) -> bool:
    """Whether a record passes every filter (AND semantics)."""
    exp_lo, exp_hi = criteria.experience_range
    experience = to_number(record.years_experience)
    if experience < exp_lo or experience > exp_hi:
        return False

    score_lo, score_hi = criteria.score_range
    score = record.matching_score or 0
    if score < score_lo or score > score_hi:
        return False

    if not matches_qualification(record.qualification, criteria.qualification):
        return False

    tokens = criteria.keyword.lower().split()
    if tokens:
        text = searchable_text(record)
        if not all(token in text for token in tokens):
            return False

    return True


def filter_records(records: Sequence[CandidateRecord], criteria: FilterCriteria) -> list[CandidateRecord]:
    return [r for r in records if matches(r, criteria)]


def _sort_key(record: CandidateRecord, field_name: str) -> float | str:
    value = getattr(record, field_name)
    if field_name in NUMERIC_SORT_FIELDS:
        return to_number(value)
    return str(value or "").lower()


def sort_records(records: Sequence[CandidateRecord], sort_spec: SortSpec) -> list[CandidateRecord]:
    """Stable sort on the chosen field, ties broken by ascending lower-cased name."""
    descending = sort_spec.direction is SortDirection.DESC

    def compare(a: CandidateRecord, b: CandidateRecord) -> int:
        ka, kb = _sort_key(a, sort_spec.field), _sort_key(b, sort_spec.field)
        if ka < kb:
            return 1 if descending else -1
        if ka > kb:
            return -1 if descending else 1
        na, nb = a.name.lower(), b.name.lower()
        return (na > nb) - (na < nb)

    return sorted(records, key=cmp_to_key(compare))


def page_count(total: int, page_size: int = DEFAULT_PAGE_SIZE) -> int:
    return math.ceil(total / page_size) if total > 0 else 0


def clamp_page(page: int, pages: int) -> int:
    return min(max(page, 1), max(pages, 1))


def paginate(records: Sequence[T], page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> Page[T]:
    """Slice one page; out-of-range page numbers clamp to [1, page_count]."""
    if page_size < 1:
        raise ValueError("page_size must be >= 1")
    pages = page_count(len(records), page_size)
    current = clamp_page(page, pages)
    start = (current - 1) * page_size
    return Page(
        items=list(records[start:start + page_size]),
        page=current,
        page_count=pages,
        total=len(records),
        page_size=page_size,
    )


def run_query(
    records: Sequence[CandidateRecord],
    criteria: FilterCriteria,
    sort_spec: SortSpec,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> Page[CandidateRecord]:
    """Full pipeline: filter, sort, paginate."""
    filtered = filter_records(records, criteria)
    logger.debug(f"Filter kept {len(filtered)}/{len(records)} records")
    return paginate(sort_records(filtered, sort_spec), page, page_size)


def summarize(records: Sequence[CandidateRecord]) -> Metrics:
    """Count plus rounded average score and experience."""
    total = len(records)
    if total == 0:
        return Metrics(total=0, avg_matching_score=None, avg_years_experience=None)
    avg_score = sum(r.matching_score for r in records) / total
    avg_exp = sum(to_number(r.years_experience) for r in records) / total
    return Metrics(
        total=total,
        avg_matching_score=_round_half_up(avg_score),
        avg_years_experience=_round_half_up(avg_exp),
    )


def data_maxima(
    records: Sequence[CandidateRecord],
    experience_floor: float = 30,
    score_floor: float = 100,
) -> tuple[float, float]:
    """Upper bounds for the experience and score range controls."""
    max_exp = max([to_number(r.years_experience) for r in records] + [experience_floor])
    max_score = max([r.matching_score or 0 for r in records] + [score_floor])
    return max_exp, max_score


@dataclass
class Debouncer(Generic[T]):
    """Holds back a rapidly changing value until it has been quiet for ``delay``.

    ``push()`` records a pending value; ``value`` returns the last value that
    stayed unchanged for at least ``delay`` seconds.
    """
    settled: T
    delay: float = 0.3
    clock: Callable[[], float] = time.monotonic
    _pending: T | None = field(default=None, init=False, repr=False)
    _pushed_at: float | None = field(default=None, init=False, repr=False)

    def push(self, value: T) -> None:
        self._pending = value
        self._pushed_at = self.clock()

    def flush(self) -> T:
        """Settle any pending value immediately."""
        if self._pushed_at is not None:
            self.settled = self._pending  # type: ignore[assignment]
            self._pending = None
            self._pushed_at = None
        return self.settled

    def reset(self, value: T) -> None:
        self.settled = value
        self._pending = None
        self._pushed_at = None

    @property
    def is_pending(self) -> bool:
        return self._pushed_at is not None

    @property
    def value(self) -> T:
        if self._pushed_at is not None and self.clock() - self._pushed_at >= self.delay:
            return self.flush()
        return self.settled
