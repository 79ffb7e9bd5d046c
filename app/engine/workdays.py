"""
Calendar resolution and time-zone-explicit date math.

Every day boundary is computed in one explicit zone.  Stored timestamps
are UTC (naive values coming back from the DB are treated as UTC), and
calendar dates never pass through the host's local time.
"""

from __future__ import annotations

import calendar as cal_mod
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from zoneinfo import ZoneInfo

from app.core.exceptions import InvalidPeriodError


class CalendarKind(str, Enum):
    WEEKEND = "WEEKEND"
    HOLIDAY = "HOLIDAY"
    WORKDAY = "WORKDAY"


@dataclass(frozen=True)
class CalendarDay:
    date: date
    day_of_week: int  # 0=Sunday .. 6=Saturday
    kind: CalendarKind

    @property
    def is_workday(self) -> bool:
        return self.kind is CalendarKind.WORKDAY


# ── Validation ──────────────────────────────────────────────────────
# First and last years keep one spare day on each side for UTC bounds.
MIN_YEAR = date.min.year + 1
MAX_YEAR = date.max.year - 1


def validate_period(year: int, month: int) -> None:
    if month < 1 or month > 12:
        raise InvalidPeriodError("Month must be 1-12")
    if year < MIN_YEAR or year > MAX_YEAR:
        raise InvalidPeriodError(f"Year must be {MIN_YEAR}-{MAX_YEAR}")


def validate_range(date_from: date, date_to: date) -> None:
    if date_to < date_from:
        raise InvalidPeriodError("End date must not be before start date")


def parse_day(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` string, rejecting anything else."""
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise InvalidPeriodError(f"Invalid date: {value!r} (expected YYYY-MM-DD)") from exc


# ── Month layout ────────────────────────────────────────────────────
def month_days(year: int, month: int) -> tuple[date, date]:
    validate_period(year, month)
    _, days_in_month = cal_mod.monthrange(year, month)
    return date(year, month, 1), date(year, month, days_in_month)


def _day_of_week(d: date) -> int:
    # date.weekday() is Mon=0 .. Sun=6; reports use Sun=0 .. Sat=6
    return (d.weekday() + 1) % 7


def classify_calendar_day(d: date, holidays: set[date]) -> CalendarDay:
    if d.weekday() >= 5:
        kind = CalendarKind.WEEKEND
    elif d in holidays:
        kind = CalendarKind.HOLIDAY
    else:
        kind = CalendarKind.WORKDAY
    return CalendarDay(date=d, day_of_week=_day_of_week(d), kind=kind)


def resolve_month(year: int, month: int, holidays: Iterable[date]) -> list[CalendarDay]:
    """Classify every day 1..days_in_month as weekend, holiday or workday."""
    first, last = month_days(year, month)
    holiday_set = set(holidays)
    return [
        classify_calendar_day(first + timedelta(days=i), holiday_set)
        for i in range((last - first).days + 1)
    ]


# ── Time zone helpers ───────────────────────────────────────────────
def get_zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def ensure_utc(dt: datetime) -> datetime:
    """Normalise a potentially-naive timestamp to UTC-aware."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def to_local(dt: datetime, tz: ZoneInfo) -> datetime:
    return ensure_utc(dt).astimezone(tz)


def local_date(value: date | datetime, tz: ZoneInfo) -> date:
    """Calendar date of *value* in *tz*; plain dates are returned as-is."""
    if isinstance(value, datetime):
        return to_local(value, tz).date()
    return value


def local_today(tz: ZoneInfo, now: datetime | None = None) -> date:
    return to_local(now or datetime.now(timezone.utc), tz).date()


def range_bounds(first: date, last: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """UTC ``[start, end)`` of the local days ``first..last`` (a DST day is 23h or 25h)."""
    try:
        start_local = datetime.combine(first, time.min, tzinfo=tz)
        end_local = datetime.combine(last + timedelta(days=1), time.min, tzinfo=tz)
        return start_local.astimezone(timezone.utc), end_local.astimezone(timezone.utc)
    except OverflowError as exc:
        raise InvalidPeriodError(f"Date range {first}..{last} is out of range") from exc
