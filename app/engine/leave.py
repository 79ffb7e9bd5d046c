"""
Approved-leave lookup for a single employee and day.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from zoneinfo import ZoneInfo

from app.engine.workdays import local_date

APPROVED = "APPROVED"


@dataclass(frozen=True)
class LeaveInterval:
    user_id: int
    start: date | datetime
    end: date | datetime
    leave_type: str | None = None
    status: str = APPROVED
    is_half_day: bool = False
    half_day_session: str | None = None

    @property
    def approved(self) -> bool:
        return self.status == APPROVED

    @property
    def half_taken(self) -> str | None:
        """Session type taken off on a half-day leave, else ``None``."""
        if not self.is_half_day:
            return None
        # Anything but MORNING is the afternoon half.
        return "MORNING" if (self.half_day_session or "").upper() == "MORNING" else "AFTERNOON"

    def covers(self, day: date, tz: ZoneInfo) -> bool:
        # start 00:00:00 <= day <= end 23:59:59, both taken as local days
        return local_date(self.start, tz) <= day <= local_date(self.end, tz)


def approved_only(intervals: Iterable[LeaveInterval]) -> list[LeaveInterval]:
    return [iv for iv in intervals if iv.approved]


def find_leave(intervals: Iterable[LeaveInterval], day: date, tz: ZoneInfo) -> LeaveInterval | None:
    """First approved interval covering *day*, or ``None``."""
    for interval in intervals:
        if interval.approved and interval.covers(day, tz):
            return interval
    return None
