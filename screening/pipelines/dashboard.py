"""Dashboard view state over the normalized candidate set.

Owns the current record set and the user's criteria, and recomputes the
filtered, sorted page on demand. Records are replaced wholesale on load and
never mutated in place.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Sequence

from ..config import DashboardSettings
from .query import (
    DEFAULT_PAGE_SIZE,
    QUALIFICATION_ALL,
    Debouncer,
    FilterCriteria,
    Metrics,
    Page,
    SortDirection,
    SortSpec,
    data_maxima,
    filter_records,
    paginate,
    sort_records,
    summarize,
)
from .records import CandidateRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardView:
    """Everything the dashboard renders for the current state."""
    page: Page[CandidateRecord]
    metrics: Metrics
    criteria: FilterCriteria
    sort: SortSpec
    max_experience: float
    max_score: float
    total_records: int

    @property
    def no_matches(self) -> bool:
        """Records are loaded but the filters exclude all of them."""
        return self.total_records > 0 and self.metrics.total == 0


class DashboardState:
    """Filter, sort and page state for one dashboard session."""

    def __init__(
        self,
        page_size: int = DEFAULT_PAGE_SIZE,
        keyword_delay: float = 0.3,
        experience_floor: float = 30,
        score_floor: float = 100,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.page_size = page_size
        self.experience_floor = experience_floor
        self.score_floor = score_floor
        self._records: tuple[CandidateRecord, ...] = ()
        self._experience_range: tuple[float, float] = (0, experience_floor)
        self._score_range: tuple[float, float] = (0, score_floor)
        self._qualification = QUALIFICATION_ALL
        self._keyword = Debouncer("", delay=keyword_delay, clock=clock)
        self._applied_keyword = ""
        self._sort = SortSpec()
        self._page = 1

    @classmethod
    def from_settings(cls, config: DashboardSettings, **overrides) -> DashboardState:
        params = {
            "page_size": config.page_size,
            "keyword_delay": config.keyword_debounce_seconds,
            "experience_floor": config.default_max_experience,
            "score_floor": config.default_max_score,
        }
        params.update(overrides)
        return cls(**params)

    @property
    def records(self) -> tuple[CandidateRecord, ...]:
        return self._records

    @property
    def sort(self) -> SortSpec:
        return self._sort

    @property
    def criteria(self) -> FilterCriteria:
        """Criteria in effect; the keyword only counts once debounced."""
        return FilterCriteria(
            experience_range=self._experience_range,
            score_range=self._score_range,
            qualification=self._qualification,
            keyword=self._keyword.value,
        )

    def load(self, records: Sequence[CandidateRecord]) -> None:
        """Replace the record set and reset filters to the data's bounds."""
        self._records = tuple(records)
        self.clear_filters()
        max_exp, _ = data_maxima(self._records, self.experience_floor, self.score_floor)
        self._experience_range = (0, min(self.experience_floor, max_exp))
        logger.info(f"Dashboard loaded {len(self._records)} records")

    def clear_filters(self) -> None:
        max_exp, max_score = data_maxima(self._records, self.experience_floor, self.score_floor)
        self._experience_range = (0, max_exp)
        self._score_range = (0, max_score)
        self._qualification = QUALIFICATION_ALL
        self._keyword.reset("")
        self._page = 1

    def set_experience_range(self, low: float, high: float) -> None:
        self._experience_range = (low, high)
        self._page = 1

    def set_score_range(self, low: float, high: float) -> None:
        self._score_range = (low, high)
        self._page = 1

    def set_qualification(self, selector: str) -> None:
        self._qualification = selector or QUALIFICATION_ALL
        self._page = 1

    def set_keyword(self, keyword: str, settle: bool = False) -> None:
        """Queue keyword input; it applies after the debounce delay.

        ``settle`` applies it at once, for callers that submit a finished
        keyword rather than keystrokes.
        """
        self._keyword.push(keyword)
        if settle:
            self._applied_keyword = self._keyword.flush()
            self._page = 1

    def narrow(
        self,
        min_experience: float | None = None,
        max_experience: float | None = None,
        min_score: float | None = None,
        max_score: float | None = None,
        qualification: str | None = None,
    ) -> None:
        """Override individual bounds; None keeps the loaded default."""
        exp_lo, exp_hi = self._experience_range
        self.set_experience_range(
            exp_lo if min_experience is None else min_experience,
            exp_hi if max_experience is None else max_experience,
        )
        score_lo, score_hi = self._score_range
        self.set_score_range(
            score_lo if min_score is None else min_score,
            score_hi if max_score is None else max_score,
        )
        if qualification is not None:
            self.set_qualification(qualification)

    def set_sort(self, sort_spec: SortSpec) -> None:
        self._sort = sort_spec
        self._page = 1

    def toggle_sort(self, field_name: str) -> None:
        """Same field flips direction; a new field starts descending."""
        if field_name == self._sort.field:
            self._sort = SortSpec(field_name, self._sort.direction.flipped())
        else:
            self._sort = SortSpec(field_name, SortDirection.DESC)
        self._page = 1

    def go_to_page(self, page: int) -> None:
        self._page = page

    def next_page(self) -> None:
        self._page = self.view().page.page + 1

    def previous_page(self) -> None:
        self._page = max(1, self.view().page.page - 1)

    def view(self) -> DashboardView:
        """Re-run filter, sort and paginate over the full record set."""
        criteria = self.criteria
        if criteria.keyword != self._applied_keyword:
            # Settled keyword changed the result set
            self._applied_keyword = criteria.keyword
            self._page = 1
        filtered = filter_records(self._records, criteria)
        page = paginate(sort_records(filtered, self._sort), self._page, self.page_size)
        self._page = page.page
        max_exp, max_score = data_maxima(self._records, self.experience_floor, self.score_floor)
        return DashboardView(
            page=page,
            metrics=summarize(filtered),
            criteria=criteria,
            sort=self._sort,
            max_experience=max_exp,
            max_score=max_score,
            total_records=len(self._records),
        )
