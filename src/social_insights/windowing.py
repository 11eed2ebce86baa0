"""Trailing time-window filter.

The reference instant is captured once per report and handed to every
filtering call, so all sub-queries of one report share the same boundary.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, TypeVar

from .store import as_utc


T = TypeVar("T")


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TimeWindow:
    """Trailing window ending at a fixed reference instant."""
    reference_instant: datetime
    duration: timedelta

    @classmethod
    def trailing_days(cls, reference_instant: datetime, days: int) -> "TimeWindow":
        return cls(reference_instant=as_utc(reference_instant), duration=timedelta(days=days))

    @property
    def start(self) -> datetime:
        return as_utc(self.reference_instant) - self.duration

    def contains(self, timestamp: Optional[datetime]) -> bool:
        """Rows without a timestamp never fall inside a window."""
        if timestamp is None:
            return False
        return as_utc(timestamp) >= self.start


def filter_window(rows: Iterable[T], window: Optional[TimeWindow]) -> List[T]:
    """Keep rows whose ``created_at`` is inside the window (all rows when None)."""
    if window is None:
        return list(rows)
    return [row for row in rows if window.contains(row.created_at)]
