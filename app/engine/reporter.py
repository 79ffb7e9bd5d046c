"""
View builders over classified days.

All builders are pure: the caller fetches the raw rows (one read per
collaborator) and passes them in.  Team views group rows per employee in
one pass and classify each employee's days once, so memory stays
O(days) per employee.
"""

from __future__ import annotations

import csv
import io
import logging
from collections import defaultdict
from collections.abc import Collection, Iterable, Iterator, Mapping
from dataclasses import dataclass
from datetime import date
from enum import Enum
from zoneinfo import ZoneInfo

from app.engine.anomalies import AnomalyEntry, AnomalyThresholds
from app.engine.classifier import DayRecord, PresenceState, classify_days
from app.engine.leave import LeaveInterval
from app.engine.scoring import MonthlyScore, ScoringPolicy, build_monthly_score, round_half_up
from app.engine.sessions import DaySessions, SessionRecord, SessionSlice, aggregate_sessions
from app.engine.workdays import CalendarDay, CalendarKind, resolve_month

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmployeeRef:
    id: int
    name: str
    email: str | None = None
    role: str | None = None
    department: str | None = None


def filter_roles(employees: Iterable[EmployeeRef], excluded_roles: Collection[str]) -> list[EmployeeRef]:
    excluded = {r.upper() for r in excluded_roles}
    return [e for e in employees if (e.role or "").upper() not in excluded]


def _group_by_user(rows: Iterable) -> dict[int, list]:
    grouped: dict[int, list] = defaultdict(list)
    for row in rows:
        grouped[row.user_id].append(row)
    return grouped


# ── Single employee ─────────────────────────────────────────────────
def employee_month_days(
    year: int,
    month: int,
    sessions: Iterable[SessionRecord],
    leaves: Iterable[LeaveInterval],
    holidays: Iterable[date],
    today: date,
    tz: ZoneInfo,
    thresholds: AnomalyThresholds,
) -> list[DayRecord]:
    """Every day of the month classified for one employee."""
    calendar_days = resolve_month(year, month, holidays)
    by_day = aggregate_sessions(sessions, tz, thresholds)
    return classify_days(calendar_days, by_day, leaves, today, tz)


def monthly_score(
    user_id: int,
    year: int,
    month: int,
    sessions: Iterable[SessionRecord],
    leaves: Iterable[LeaveInterval],
    holidays: Iterable[date],
    today: date,
    tz: ZoneInfo,
    policy: ScoringPolicy,
    thresholds: AnomalyThresholds,
) -> MonthlyScore:
    """Score one employee's month, counting days up to ``today`` only."""
    days = employee_month_days(year, month, sessions, leaves, holidays, today, tz, thresholds)
    due = [d for d in days if d.date <= today]
    score = build_monthly_score(user_id, year, month, due, policy)
    logger.info(
        "Scored user %s for %04d-%02d: %d/%d pts (%d%%)",
        user_id, year, month, score.total_points, score.max_possible_points, score.score_percent,
    )
    return score


def collect_anomalies(user_id: int, by_day: Mapping[date, DaySessions]) -> list[AnomalyEntry]:
    entries: list[AnomalyEntry] = []
    for day in sorted(by_day):
        pair = by_day[day]
        for session_type, part in (("MORNING", pair.morning), ("AFTERNOON", pair.afternoon)):
            if part is not None and part.anomaly:
                entries.append(
                    AnomalyEntry(
                        user_id=user_id,
                        date=day,
                        session_type=session_type,
                        check_in=part.check_in,
                        reasons=part.anomaly_reasons,
                    )
                )
    return entries


def anomalies_in_range(
    sessions: Iterable[SessionRecord],
    tz: ZoneInfo,
    thresholds: AnomalyThresholds,
) -> list[AnomalyEntry]:
    """Anomalous sessions of every user, ordered by date then user.

    Weekend, holiday and leave days are included: an anomaly is reported
    whatever the day's presence state.
    """
    entries: list[AnomalyEntry] = []
    for user_id, rows in _group_by_user(sessions).items():
        entries.extend(collect_anomalies(user_id, aggregate_sessions(rows, tz, thresholds)))
    entries.sort(key=lambda e: (e.date, e.user_id, e.session_type != "MORNING"))
    return entries


# ── Team day snapshot ───────────────────────────────────────────────
class DayStatus(str, Enum):
    ABSENT = "absent"
    PARTIAL = "partial"
    PRESENT = "present"
    COMPLETE = "complete"


@dataclass(frozen=True)
class TeamMemberDay:
    employee: EmployeeRef
    morning: SessionSlice | None
    afternoon: SessionSlice | None
    total_minutes: int
    day_status: DayStatus


@dataclass(frozen=True)
class TeamDaySnapshot:
    date: date
    total_employees: int
    present: int
    absent: int
    complete: int
    employees: tuple[TeamMemberDay, ...]


def day_status(morning: SessionSlice | None, afternoon: SessionSlice | None) -> DayStatus:
    parts = [p for p in (morning, afternoon) if p is not None]
    if not any(p.started for p in parts):
        return DayStatus.ABSENT
    if morning and morning.complete and afternoon and afternoon.complete:
        return DayStatus.COMPLETE
    if any(p.check_out is not None for p in parts):
        return DayStatus.PRESENT
    return DayStatus.PARTIAL


def team_day_snapshot(
    day: date,
    employees: Iterable[EmployeeRef],
    sessions: Iterable[SessionRecord],
    tz: ZoneInfo,
    thresholds: AnomalyThresholds,
    excluded_roles: Collection[str] = (),
) -> TeamDaySnapshot:
    members = filter_roles(employees, excluded_roles)
    by_user = _group_by_user(s for s in sessions if s.date == day)

    rows: list[TeamMemberDay] = []
    for emp in members:
        pair = aggregate_sessions(by_user.get(emp.id, []), tz, thresholds).get(day)
        morning = pair.morning if pair else None
        afternoon = pair.afternoon if pair else None
        rows.append(
            TeamMemberDay(
                employee=emp,
                morning=morning,
                afternoon=afternoon,
                total_minutes=pair.total_minutes if pair else 0,
                day_status=day_status(morning, afternoon),
            )
        )

    absent = sum(1 for r in rows if r.day_status is DayStatus.ABSENT)
    return TeamDaySnapshot(
        date=day,
        total_employees=len(rows),
        present=len(rows) - absent,
        absent=absent,
        complete=sum(1 for r in rows if r.day_status is DayStatus.COMPLETE),
        employees=tuple(rows),
    )


# ── Team monthly grid ───────────────────────────────────────────────
_CELL_STATUS = {
    PresenceState.FULL: "present",
    PresenceState.PARTIAL: "partial",
    PresenceState.ABSENT: "absent",
    PresenceState.LEAVE: "leave",
}


def cell_status(day: DayRecord) -> str:
    if day.calendar_kind is CalendarKind.WEEKEND:
        return "weekend"
    if day.calendar_kind is CalendarKind.HOLIDAY:
        return "holiday"
    if day.presence_state is None:
        return "upcoming"
    if day.leave_half == "MORNING":
        return "leave_half_am"
    if day.leave_half == "AFTERNOON":
        return "leave_half_pm"
    return _CELL_STATUS[day.presence_state]


@dataclass(frozen=True)
class EmployeeMonthSummary:
    employee: EmployeeRef
    worked_days: float
    absent_days: int
    leave_days: int
    total_minutes: int
    total_hours: float
    anomalies: int
    attendance_rate: int
    expected_days: int
    worked_minutes: int
    expected_minutes: int
    daily: dict[date, DayRecord]


@dataclass(frozen=True)
class TeamMonthGrid:
    year: int
    month: int
    days_in_month: int
    working_days_count: int
    days: tuple[CalendarDay, ...]
    employees: tuple[EmployeeMonthSummary, ...]


def summarize_month(employee: EmployeeRef, days: Iterable[DayRecord], working_days: int) -> EmployeeMonthSummary:
    worked = 0.0
    absent = leave = minutes = anomalies = 0
    credited = expected = 0
    daily: dict[date, DayRecord] = {}
    for day in days:
        daily[day.date] = day
        state = day.presence_state
        if state is PresenceState.FULL:
            worked += 1
        elif state is PresenceState.PARTIAL:
            worked += 0.5
        elif state is PresenceState.ABSENT:
            absent += 1
        elif state is PresenceState.LEAVE:
            leave += 1
        minutes += day.total_minutes
        credited += day.worked_minutes
        expected += day.expected_minutes
        if day.anomaly_count:
            anomalies += 1

    rate = round_half_up((worked + leave) / working_days * 100) if working_days else 0
    return EmployeeMonthSummary(
        employee=employee,
        worked_days=worked,
        absent_days=absent,
        leave_days=leave,
        total_minutes=minutes,
        total_hours=round(minutes / 60, 2),
        anomalies=anomalies,
        attendance_rate=rate,
        expected_days=working_days,
        worked_minutes=credited,
        expected_minutes=expected,
        daily=daily,
    )


def team_month_grid(
    year: int,
    month: int,
    employees: Iterable[EmployeeRef],
    sessions: Iterable[SessionRecord],
    leaves: Iterable[LeaveInterval],
    holidays: Iterable[date],
    today: date,
    tz: ZoneInfo,
    thresholds: AnomalyThresholds,
    excluded_roles: Collection[str] = (),
) -> TeamMonthGrid:
    calendar_days = resolve_month(year, month, holidays)
    working_days = sum(1 for d in calendar_days if d.is_workday)
    sessions_by_user = _group_by_user(sessions)
    leaves_by_user = _group_by_user(leaves)

    summaries = []
    for emp in filter_roles(employees, excluded_roles):
        by_day = aggregate_sessions(sessions_by_user.get(emp.id, []), tz, thresholds)
        records = classify_days(calendar_days, by_day, leaves_by_user.get(emp.id, []), today, tz)
        summaries.append(summarize_month(emp, records, working_days))

    logger.info(
        "Built %04d-%02d grid for %d employees (%d working days)",
        year, month, len(summaries), working_days,
    )
    return TeamMonthGrid(
        year=year,
        month=month,
        days_in_month=len(calendar_days),
        working_days_count=working_days,
        days=tuple(calendar_days),
        employees=tuple(summaries),
    )


def grid_csv_lines(grid: TeamMonthGrid) -> Iterator[str]:
    """Yield the grid as CSV, one employee per row, one column per day."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")

    def _flush() -> str:
        line = buf.getvalue()
        buf.seek(0)
        buf.truncate(0)
        return line

    writer.writerow(
        [
            "employee_id", "name", "worked_days", "absent_days", "leave_days",
            "total_hours", "anomalies", "attendance_rate",
            *(d.date.isoformat() for d in grid.days),
        ]
    )
    yield _flush()
    for summary in grid.employees:
        writer.writerow(
            [
                summary.employee.id, summary.employee.name, summary.worked_days,
                summary.absent_days, summary.leave_days, summary.total_hours,
                summary.anomalies, summary.attendance_rate,
                *(cell_status(summary.daily[d.date]) for d in grid.days),
            ]
        )
        yield _flush()
