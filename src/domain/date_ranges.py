from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from enum import StrEnum


class Timeframe(StrEnum):
    MTD = "mtd"
    LAST_MONTH = "last_month"
    CUSTOM = "custom"


@dataclass(frozen=True)
class DateRange:
    start: date
    end_exclusive: date

    def contains(self, day: date) -> bool:
        return self.start <= day < self.end_exclusive


def _first_of_month(day: date) -> date:
    return day.replace(day=1)


def range_for_timeframe(
    timeframe: Timeframe,
    today: date,
    *,
    custom_from: date | None = None,
    custom_to: date | None = None,
) -> DateRange:
    if timeframe == Timeframe.MTD:
        return DateRange(start=_first_of_month(today), end_exclusive=today + timedelta(days=1))

    if timeframe == Timeframe.LAST_MONTH:
        first_this_month = _first_of_month(today)
        first_last_month = _first_of_month(first_this_month - timedelta(days=1))
        return DateRange(start=first_last_month, end_exclusive=first_this_month)

    start = custom_from or today
    inclusive_end = custom_to or today
    if inclusive_end < start:
        msg = f"custom range ends before it starts: {start} > {inclusive_end}"
        raise ValueError(msg)
    # Custom ranges are picked inclusively in the UI.
    return DateRange(start=start, end_exclusive=inclusive_end + timedelta(days=1))


def calendar_year_range(year: int) -> DateRange:
    return DateRange(start=date(year, 1, 1), end_exclusive=date(year + 1, 1, 1))


__all__ = ["DateRange", "Timeframe", "calendar_year_range", "range_for_timeframe"]
