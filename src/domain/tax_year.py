from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone

TAX_YEAR_START_MONTH = 4
TAX_YEAR_START_DAY = 6
# The range ends in the following calendar year, which must still be a valid date.
MIN_TAX_YEAR = 1
MAX_TAX_YEAR = 9998


@dataclass(frozen=True)
class TaxYearRange:
    """UK tax year as a half-open interval: 6 April to the next 6 April (exclusive)."""

    start_year: int
    start: date
    end_exclusive: date

    @property
    def label(self) -> str:
        return tax_year_label(self.start_year)

    @property
    def start_iso(self) -> str:
        return self.start.isoformat()

    @property
    def end_exclusive_iso(self) -> str:
        return self.end_exclusive.isoformat()

    def contains(self, day: date) -> bool:
        return self.start <= day < self.end_exclusive


def _tax_year_start(year: int) -> date:
    return date(year, TAX_YEAR_START_MONTH, TAX_YEAR_START_DAY)


def resolve_tax_year(start_year: int) -> TaxYearRange:
    if not MIN_TAX_YEAR <= start_year <= MAX_TAX_YEAR:
        msg = f"tax year start must be between {MIN_TAX_YEAR} and {MAX_TAX_YEAR}, got {start_year}"
        raise ValueError(msg)
    return TaxYearRange(
        start_year=start_year,
        start=_tax_year_start(start_year),
        end_exclusive=_tax_year_start(start_year + 1),
    )


def current_tax_year_start(today: date | None = None) -> int:
    """Start year of the tax year containing ``today`` (UTC date when omitted)."""
    day = today or datetime.now(timezone.utc).date()
    if day >= _tax_year_start(day.year):
        return day.year
    return day.year - 1


def tax_year_label(start_year: int) -> str:
    return f"{start_year}-{(start_year + 1) % 100:02d}"


def selectable_tax_years(current_start_year: int) -> list[int]:
    return list(range(current_start_year - 3, current_start_year + 2))


__all__ = [
    "MAX_TAX_YEAR",
    "MIN_TAX_YEAR",
    "TaxYearRange",
    "current_tax_year_start",
    "resolve_tax_year",
    "selectable_tax_years",
    "tax_year_label",
]
