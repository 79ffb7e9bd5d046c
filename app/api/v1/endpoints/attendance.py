"""
Attendance reconciliation endpoints — scores, team views and anomalies.

Every endpoint validates its period first, then reads each collaborator
store **once** for the whole scope and hands the rows to the pure engine.
"""

from __future__ import annotations

import logging
from datetime import date
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import (get_db, get_scoring_policy, get_thresholds,
                             get_timezone, get_today)
from app.core.config import settings
from app.core.result import unwrap
from app.db import stores
from app.engine.anomalies import AnomalyThresholds
from app.engine.classifier import DayRecord
from app.engine.reporter import (EmployeeMonthSummary, EmployeeRef,
                                 TeamMemberDay, anomalies_in_range,
                                 cell_status, employee_month_days,
                                 grid_csv_lines, monthly_score,
                                 team_day_snapshot, team_month_grid)
from app.engine.scoring import ScoringPolicy
from app.engine.sessions import SessionSlice
from app.engine.workdays import (month_days, parse_day, validate_period,
                                 validate_range)
from app.schemas.attendance import (AnomalyListResponse, AnomalyRead,
                                    DayPointsRead, DayRecordRead,
                                    EmployeeMonthDaysResponse, GridCellRead,
                                    GridDayRead, GridEmployeeRead,
                                    HealthResponse, MonthlyScoreResponse,
                                    ScoreBreakdown, ScoreStats, ScoringRules,
                                    SessionSliceRead, TeamDayResponse,
                                    TeamMemberRead, TeamMonthResponse)

router = APIRouter(tags=["attendance"])
logger = logging.getLogger(__name__)


# ── Converters ──────────────────────────────────────────────────────
def _slice_read(part: SessionSlice | None) -> SessionSliceRead | None:
    if part is None:
        return None
    return SessionSliceRead(
        check_in=part.check_in,
        check_out=part.check_out,
        duration_minutes=part.duration_minutes,
        anomaly=part.anomaly,
        in_progress=part.in_progress,
        anomaly_reasons=list(part.anomaly_reasons),
    )


def _day_read(day: DayRecord) -> DayRecordRead:
    return DayRecordRead(
        date=day.date,
        day_of_week=day.day_of_week,
        calendar_kind=day.calendar_kind.value,
        presence_state=day.presence_state.value if day.presence_state else None,
        morning=_slice_read(day.morning),
        afternoon=_slice_read(day.afternoon),
        leave_type=day.leave_type,
        leave_half=day.leave_half,
        anomaly_count=day.anomaly_count,
        total_minutes=day.total_minutes,
        worked_minutes=day.worked_minutes,
        expected_minutes=day.expected_minutes,
    )


def _member_read(row: TeamMemberDay) -> TeamMemberRead:
    emp = row.employee
    return TeamMemberRead(
        id=emp.id,
        name=emp.name,
        email=emp.email,
        role=emp.role,
        department=emp.department,
        morning=_slice_read(row.morning),
        afternoon=_slice_read(row.afternoon),
        total_minutes=row.total_minutes,
        day_status=row.day_status.value,
    )


def _cell_read(day: DayRecord) -> GridCellRead:
    morning, afternoon = day.morning, day.afternoon
    return GridCellRead(
        status=cell_status(day),
        morning_in=morning.check_in if morning else None,
        morning_out=morning.check_out if morning else None,
        afternoon_in=afternoon.check_in if afternoon else None,
        afternoon_out=afternoon.check_out if afternoon else None,
        total_minutes=day.total_minutes,
        has_anomaly=day.anomaly_count > 0,
        leave_type=day.leave_type,
        leave_half=day.leave_half,
    )


def _grid_employee_read(summary: EmployeeMonthSummary) -> GridEmployeeRead:
    emp = summary.employee
    return GridEmployeeRead(
        id=emp.id,
        name=emp.name,
        email=emp.email,
        department=emp.department,
        worked_days=summary.worked_days,
        absent_days=summary.absent_days,
        leave_days=summary.leave_days,
        total_minutes=summary.total_minutes,
        total_hours=summary.total_hours,
        anomalies=summary.anomalies,
        attendance_rate=summary.attendance_rate,
        expected_days=summary.expected_days,
        worked_minutes=summary.worked_minutes,
        expected_minutes=summary.expected_minutes,
        daily={d.isoformat(): _cell_read(rec) for d, rec in summary.daily.items()},
    )


# ── Helpers ─────────────────────────────────────────────────────────
async def _require_employee(db: AsyncSession, user_id: int) -> EmployeeRef:
    employee = unwrap(await stores.get_employee(db, user_id))
    if employee is None:
        raise HTTPException(status_code=404, detail="Employee not found")
    return employee


async def _month_inputs(
    db: AsyncSession,
    user_ids: list[int] | None,
    year: int,
    month: int,
    tz: ZoneInfo,
):
    """Sessions, approved leave and holidays for one month, one read each."""
    first, last = month_days(year, month)
    sessions = unwrap(await stores.list_sessions(db, user_ids, first, last))
    leaves = unwrap(await stores.list_approved_leaves(db, user_ids, first, last, tz))
    holidays = unwrap(await stores.list_holidays(db, [year]))
    return sessions, leaves, holidays


async def _build_grid(
    db: AsyncSession,
    year: int,
    month: int,
    today: date,
    tz: ZoneInfo,
    thresholds: AnomalyThresholds,
):
    validate_period(year, month)
    excluded = settings.EXCLUDED_ROLES
    employees = unwrap(await stores.list_active_employees(db, excluded))
    user_ids = [e.id for e in employees]
    sessions, leaves, holidays = await _month_inputs(db, user_ids, year, month, tz)
    return team_month_grid(
        year, month, employees, sessions, leaves, holidays, today, tz, thresholds, excluded
    )


# ── Monthly score (single employee) ────────────────────────────────
@router.get("/attendance/points/{user_id}", response_model=MonthlyScoreResponse)
async def points(
    user_id: int,
    year: int | None = Query(None),
    month: int | None = Query(None),
    db: AsyncSession = Depends(get_db),
    tz: ZoneInfo = Depends(get_timezone),
    today: date = Depends(get_today),
    thresholds: AnomalyThresholds = Depends(get_thresholds),
    policy: ScoringPolicy = Depends(get_scoring_policy),
) -> MonthlyScoreResponse:
    """Points, percentage and level for one employee's month (defaults to the current month)."""
    year = year if year is not None else today.year
    month = month if month is not None else today.month
    validate_period(year, month)

    await _require_employee(db, user_id)
    sessions, leaves, holidays = await _month_inputs(db, [user_id], year, month, tz)
    score = monthly_score(
        user_id, year, month, sessions, leaves, holidays, today, tz, policy, thresholds
    )

    return MonthlyScoreResponse(
        user_id=score.user_id,
        year=score.year,
        month=score.month,
        total_points=score.total_points,
        max_possible_points=score.max_possible_points,
        score_percent=score.score_percent,
        level=score.level,
        level_color=score.level_color,
        breakdown=ScoreBreakdown(**score.breakdown),
        stats=ScoreStats(**score.stats),
        rules=ScoringRules(**score.rules),
        daily_breakdown=[_day_read(d) for d in score.daily_breakdown],
        daily_points=[
            DayPointsRead(
                date=p.date,
                presence_state=p.presence_state.value,
                points=p.points,
                late_count=p.late_count,
                streak_bonus=p.streak_bonus,
                streak=p.streak,
            )
            for p in score.daily_points
        ],
    )


# ── Month days (single employee) ────────────────────────────────────
@router.get(
    "/attendance/days/{user_id}/{year}/{month}",
    response_model=EmployeeMonthDaysResponse,
)
async def month_detail(
    user_id: int,
    year: int,
    month: int,
    db: AsyncSession = Depends(get_db),
    tz: ZoneInfo = Depends(get_timezone),
    today: date = Depends(get_today),
    thresholds: AnomalyThresholds = Depends(get_thresholds),
) -> EmployeeMonthDaysResponse:
    """Every day of the month classified for one employee."""
    validate_period(year, month)
    employee = await _require_employee(db, user_id)
    sessions, leaves, holidays = await _month_inputs(db, [user_id], year, month, tz)
    days = employee_month_days(year, month, sessions, leaves, holidays, today, tz, thresholds)

    return EmployeeMonthDaysResponse(
        user_id=employee.id,
        name=employee.name,
        year=year,
        month=month,
        worked_minutes=sum(d.worked_minutes for d in days),
        expected_minutes=sum(d.expected_minutes for d in days),
        days=[_day_read(d) for d in days],
    )


# ── Team day snapshot ──────────────────────────────────────────────
@router.get("/attendance/team", response_model=TeamDayResponse)
async def team_day(
    date_str: str | None = Query(None, alias="date", description="YYYY-MM-DD"),
    db: AsyncSession = Depends(get_db),
    tz: ZoneInfo = Depends(get_timezone),
    today: date = Depends(get_today),
    thresholds: AnomalyThresholds = Depends(get_thresholds),
) -> TeamDayResponse:
    """Who is in today (or on ``date``): one row per non-excluded employee."""
    day = parse_day(date_str) if date_str else today

    excluded = settings.EXCLUDED_ROLES
    employees = unwrap(await stores.list_active_employees(db, excluded))
    sessions = unwrap(await stores.list_sessions(db, [e.id for e in employees], day, day))
    snap = team_day_snapshot(day, employees, sessions, tz, thresholds, excluded)

    return TeamDayResponse(
        date=snap.date,
        total_employees=snap.total_employees,
        present=snap.present,
        absent=snap.absent,
        complete=snap.complete,
        employees=[_member_read(r) for r in snap.employees],
    )


# ── Team monthly grid ──────────────────────────────────────────────
@router.get("/attendance/overview/{year}/{month}", response_model=TeamMonthResponse)
async def team_month(
    year: int,
    month: int,
    db: AsyncSession = Depends(get_db),
    tz: ZoneInfo = Depends(get_timezone),
    today: date = Depends(get_today),
    thresholds: AnomalyThresholds = Depends(get_thresholds),
) -> TeamMonthResponse:
    """Month grid: per-employee totals plus one cell per calendar day."""
    grid = await _build_grid(db, year, month, today, tz, thresholds)
    return TeamMonthResponse(
        year=grid.year,
        month=grid.month,
        days_in_month=grid.days_in_month,
        working_days_count=grid.working_days_count,
        total_employees=len(grid.employees),
        days=[
            GridDayRead(date=d.date, day_of_week=d.day_of_week, kind=d.kind.value)
            for d in grid.days
        ],
        employees=[_grid_employee_read(s) for s in grid.employees],
    )


@router.get("/attendance/overview/{year}/{month}/csv")
async def team_month_csv(
    year: int,
    month: int,
    db: AsyncSession = Depends(get_db),
    tz: ZoneInfo = Depends(get_timezone),
    today: date = Depends(get_today),
    thresholds: AnomalyThresholds = Depends(get_thresholds),
) -> StreamingResponse:
    """Export the month grid as a CSV file download."""
    grid = await _build_grid(db, year, month, today, tz, thresholds)
    return StreamingResponse(
        grid_csv_lines(grid),
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename=attendance_{year:04d}_{month:02d}.csv"
        },
    )


# ── Anomalies (RH review) ──────────────────────────────────────────
@router.get("/attendance/anomalies", response_model=AnomalyListResponse)
async def anomalies(
    date_from: str | None = Query(None, description="YYYY-MM-DD, defaults to the 1st of this month"),
    date_to: str | None = Query(None, description="YYYY-MM-DD, defaults to today"),
    user_id: int | None = Query(None),
    db: AsyncSession = Depends(get_db),
    tz: ZoneInfo = Depends(get_timezone),
    today: date = Depends(get_today),
    thresholds: AnomalyThresholds = Depends(get_thresholds),
) -> AnomalyListResponse:
    """Every anomalous session in a date range, optionally for one employee."""
    first = parse_day(date_from) if date_from else today.replace(day=1)
    last = parse_day(date_to) if date_to else today
    validate_range(first, last)

    if user_id is not None:
        employees = [await _require_employee(db, user_id)]
    else:
        employees = unwrap(await stores.list_active_employees(db, settings.EXCLUDED_ROLES))
    names = {e.id: e.name for e in employees}

    sessions = unwrap(await stores.list_sessions(db, list(names), first, last))
    entries = anomalies_in_range(sessions, tz, thresholds)

    return AnomalyListResponse(
        date_from=first,
        date_to=last,
        total=len(entries),
        anomalies=[
            AnomalyRead(
                user_id=e.user_id,
                name=names.get(e.user_id),
                date=e.date,
                session_type=e.session_type,
                check_in=e.check_in,
                reasons=list(e.reasons),
            )
            for e in entries
        ],
    )


# ── Health ──────────────────────────────────────────────────────────
@router.get("/health", response_model=HealthResponse)
async def health(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    """Public health check — DB connectivity."""
    result = HealthResponse(db=False)
    try:
        await db.execute(select(1))
        result.db = True
    except SQLAlchemyError as e:
        logger.error("Health check DB failure: %s", e)
    return result
