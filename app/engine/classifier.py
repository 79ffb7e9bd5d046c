"""
Per-day presence classification.

Order matters: calendar first (weekend/holiday bypasses everything),
then approved leave, then session completeness.  A workday without any
check-in is ABSENT only once it is due (``date <= today``); later days
stay unresolved (``presence_state is None``).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from enum import Enum
from zoneinfo import ZoneInfo

from app.engine.leave import LeaveInterval, approved_only, find_leave
from app.engine.sessions import DaySessions, SessionSlice
from app.engine.workdays import CalendarDay, CalendarKind


# Payroll time credit: a workday is expected to hold 7h; paid leave is
# credited as worked time (3h for a morning off, 4h for an afternoon off).
EXPECTED_DAY_MINUTES = 420
HALF_DAY_LEAVE_CREDIT = {"MORNING": 180, "AFTERNOON": 240}


class PresenceState(str, Enum):
    FULL = "FULL"
    PARTIAL = "PARTIAL"
    ABSENT = "ABSENT"
    LEAVE = "LEAVE"
    NON_WORKDAY = "NON_WORKDAY"


@dataclass(frozen=True)
class DayRecord:
    date: date
    day_of_week: int
    calendar_kind: CalendarKind
    presence_state: PresenceState | None
    morning: SessionSlice | None = None
    afternoon: SessionSlice | None = None
    leave_type: str | None = None
    leave_half: str | None = None  # MORNING | AFTERNOON on a half-day leave
    anomaly_count: int = 0
    total_minutes: int = 0
    worked_minutes: int = 0
    expected_minutes: int = 0

    @property
    def is_workday(self) -> bool:
        return self.calendar_kind is CalendarKind.WORKDAY

    @property
    def anomaly_reasons(self) -> tuple[str, ...]:
        reasons: tuple[str, ...] = ()
        for part in (self.morning, self.afternoon):
            if part is not None:
                reasons += part.anomaly_reasons
        return reasons


def presence_from_sessions(sessions: DaySessions | None, day: date, today: date) -> PresenceState | None:
    if sessions is not None:
        if sessions.complete:
            return PresenceState.FULL
        if sessions.has_check_in:
            return PresenceState.PARTIAL
    if day <= today:
        return PresenceState.ABSENT
    return None


def _leave_day(day: CalendarDay, leave: LeaveInterval, sessions: DaySessions | None) -> DayRecord:
    """LEAVE record; a half-day leave keeps the session of the half worked."""
    half = leave.half_taken
    if half is None:
        return DayRecord(
            date=day.date,
            day_of_week=day.day_of_week,
            calendar_kind=day.kind,
            presence_state=PresenceState.LEAVE,
            leave_type=leave.leave_type,
            worked_minutes=EXPECTED_DAY_MINUTES,
            expected_minutes=EXPECTED_DAY_MINUTES,
        )

    morning = sessions.morning if sessions and half == "AFTERNOON" else None
    afternoon = sessions.afternoon if sessions and half == "MORNING" else None
    kept = morning or afternoon
    worked = (kept.duration_minutes or 0) if kept else 0
    return DayRecord(
        date=day.date,
        day_of_week=day.day_of_week,
        calendar_kind=day.kind,
        presence_state=PresenceState.LEAVE,
        morning=morning,
        afternoon=afternoon,
        leave_type=leave.leave_type,
        leave_half=half,
        total_minutes=worked,
        worked_minutes=worked + HALF_DAY_LEAVE_CREDIT[half],
        expected_minutes=EXPECTED_DAY_MINUTES,
    )


def classify_day(
    day: CalendarDay,
    sessions: DaySessions | None,
    leaves: Iterable[LeaveInterval],
    today: date,
    tz: ZoneInfo,
) -> DayRecord:
    if not day.is_workday:
        return DayRecord(
            date=day.date,
            day_of_week=day.day_of_week,
            calendar_kind=day.kind,
            presence_state=PresenceState.NON_WORKDAY,
        )

    leave = find_leave(leaves, day.date, tz)
    if leave is not None:
        return _leave_day(day, leave, sessions)

    minutes = sessions.total_minutes if sessions else 0
    return DayRecord(
        date=day.date,
        day_of_week=day.day_of_week,
        calendar_kind=day.kind,
        presence_state=presence_from_sessions(sessions, day.date, today),
        morning=sessions.morning if sessions else None,
        afternoon=sessions.afternoon if sessions else None,
        anomaly_count=sessions.anomaly_count if sessions else 0,
        total_minutes=minutes,
        worked_minutes=minutes,
        expected_minutes=EXPECTED_DAY_MINUTES,
    )


def classify_days(
    calendar_days: Iterable[CalendarDay],
    sessions_by_day: Mapping[date, DaySessions],
    leaves: Iterable[LeaveInterval],
    today: date,
    tz: ZoneInfo,
) -> list[DayRecord]:
    """Classify an ordered run of calendar days for one employee."""
    leaves = approved_only(leaves)
    return [
        classify_day(day, sessions_by_day.get(day.date), leaves, today, tz)
        for day in calendar_days
    ]
