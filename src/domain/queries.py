from __future__ import annotations

import math
from dataclasses import dataclass, replace

from .finance import ExpenseRecord
from .tax_year import TaxYearRange, resolve_tax_year

DEFAULT_PAGE_SIZE = 50


@dataclass(frozen=True)
class ExpenseQuery:
    """Filter and pagination state of the searchable expense log.

    Changing the search text or page size always returns to the first page.
    """

    tax_year_start: int
    search: str | None = None
    page_size: int = DEFAULT_PAGE_SIZE
    page: int = 0

    def __post_init__(self) -> None:
        if self.page_size <= 0:
            msg = "page_size must be > 0"
            raise ValueError(msg)
        if self.page < 0:
            msg = "page must be >= 0"
            raise ValueError(msg)
        normalized = (self.search or "").strip() or None
        object.__setattr__(self, "search", normalized)

    @property
    def range(self) -> TaxYearRange:
        return resolve_tax_year(self.tax_year_start)

    @property
    def offset(self) -> int:
        return self.page * self.page_size

    def with_tax_year(self, tax_year_start: int) -> ExpenseQuery:
        return replace(self, tax_year_start=tax_year_start, page=0)

    def with_search(self, search: str | None) -> ExpenseQuery:
        return replace(self, search=search, page=0)

    def with_page_size(self, page_size: int) -> ExpenseQuery:
        return replace(self, page_size=page_size, page=0)

    def next_page(self) -> ExpenseQuery:
        return replace(self, page=self.page + 1)

    def previous_page(self) -> ExpenseQuery:
        return replace(self, page=max(0, self.page - 1))


@dataclass(frozen=True)
class ExpensePage:
    query: ExpenseQuery
    records: list[ExpenseRecord]
    total_count: int

    @property
    def page_count(self) -> int:
        return max(1, math.ceil(self.total_count / max(1, self.query.page_size)))

    @property
    def has_next(self) -> bool:
        return self.query.page + 1 < self.page_count

    @property
    def has_previous(self) -> bool:
        return self.query.page > 0

    def after_delete(self) -> ExpenseQuery:
        """Query to reload once one row of this page has been deleted."""
        if len(self.records) == 1 and self.query.page > 0:
            return self.query.previous_page()
        return self.query


__all__ = ["DEFAULT_PAGE_SIZE", "ExpensePage", "ExpenseQuery"]
