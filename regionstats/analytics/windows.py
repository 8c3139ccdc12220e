"""Per-year time windows (full year, single month, or season)."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Optional


def _first_of_next_month(year: int, month: int) -> date:
    return date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)


@dataclass(frozen=True)
class TimeWindow:
    """
    Half-open date interval ``[start, end)`` for one processing period.

    ``month`` and ``season`` record how the window was derived so the result
    records can carry them.
    """

    year: int
    start: date
    end: date
    label: str
    month: Optional[int] = None
    season: Optional[tuple[int, int]] = None

    @classmethod
    def for_year(cls, year: int, composite: str = "median") -> "TimeWindow":
        """Jan 1 of *year* to Jan 1 of the following year."""
        return cls(
            year=year,
            start=date(year, 1, 1),
            end=date(year + 1, 1, 1),
            label=f"{year} (year {composite})",
        )

    @classmethod
    def for_month(cls, year: int, month: int) -> "TimeWindow":
        """Day 1 of *month* to day 1 of the following month."""
        return cls(
            year=year,
            start=date(year, month, 1),
            end=_first_of_next_month(year, month),
            label=f"{year}-{month:02d}",
            month=month,
        )

    @classmethod
    def for_season(cls, year: int, start_month: int, end_month: int) -> "TimeWindow":
        """Day 1 of *start_month* through the last day of *end_month*."""
        return cls(
            year=year,
            start=date(year, start_month, 1),
            end=_first_of_next_month(year, end_month),
            label=f"{year} (season {start_month}-{end_month})",
            season=(start_month, end_month),
        )

    @property
    def last_day(self) -> date:
        return self.end - timedelta(days=1)

    @property
    def is_empty(self) -> bool:
        return self.start >= self.end

    def clamp(self, lower: date, upper: date) -> "TimeWindow":
        """Intersect with the search range ``[lower, upper)``."""
        return replace(self, start=max(self.start, lower), end=min(self.end, upper))

    def ee_range(self) -> tuple[str, str]:
        """ISO strings suitable for ``filterDate`` (end exclusive)."""
        return self.start.isoformat(), self.end.isoformat()
