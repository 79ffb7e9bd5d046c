"""Pydantic schemas for attendance scores, team views and anomalies."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field


# ── Sessions / days ────────────────────────────────────────────────
class SessionSliceRead(BaseModel):
    check_in: datetime | None
    check_out: datetime | None
    duration_minutes: int | None
    anomaly: bool
    in_progress: bool = False  # checked in, not yet checked out
    anomaly_reasons: list[str] = Field(default_factory=list)


class DayRecordRead(BaseModel):
    date: date
    day_of_week: int  # 0=Sunday .. 6=Saturday
    calendar_kind: str  # WEEKEND | HOLIDAY | WORKDAY
    presence_state: str | None  # FULL | PARTIAL | ABSENT | LEAVE | NON_WORKDAY
    morning: SessionSliceRead | None = None
    afternoon: SessionSliceRead | None = None
    leave_type: str | None = None
    leave_half: str | None = None  # MORNING | AFTERNOON on a half-day leave
    anomaly_count: int = 0
    total_minutes: int = 0
    worked_minutes: int = 0  # recorded time plus paid-leave credit
    expected_minutes: int = 0


class EmployeeMonthDaysResponse(BaseModel):
    user_id: int
    name: str
    year: int
    month: int
    worked_minutes: int
    expected_minutes: int
    days: list[DayRecordRead]


# ── Monthly score ──────────────────────────────────────────────────
class ScoreBreakdown(BaseModel):
    presence: int
    absence: int
    late: int
    streak_bonus: int


class ScoreStats(BaseModel):
    work_days: int
    days_present: float
    days_absent: int
    days_late: int
    current_streak: int
    best_streak: int


class ScoringRules(BaseModel):
    full_day: int
    half_day: int
    absent: int
    late: int
    streak_bonus: int


class DayPointsRead(BaseModel):
    date: date
    presence_state: str
    points: int
    late_count: int
    streak_bonus: int
    streak: int


class MonthlyScoreResponse(BaseModel):
    user_id: int
    year: int
    month: int
    total_points: int
    max_possible_points: int
    score_percent: int
    level: str
    level_color: str
    breakdown: ScoreBreakdown
    stats: ScoreStats
    rules: ScoringRules
    daily_breakdown: list[DayRecordRead]
    daily_points: list[DayPointsRead]


# ── Team day snapshot ──────────────────────────────────────────────
class TeamMemberRead(BaseModel):
    id: int
    name: str
    email: str | None
    role: str | None
    department: str | None
    morning: SessionSliceRead | None
    afternoon: SessionSliceRead | None
    total_minutes: int
    day_status: str  # absent | partial | present | complete


class TeamDayResponse(BaseModel):
    date: date
    total_employees: int
    present: int
    absent: int
    complete: int
    employees: list[TeamMemberRead]


# ── Team monthly grid ──────────────────────────────────────────────
class GridDayRead(BaseModel):
    date: date
    day_of_week: int
    kind: str


class GridCellRead(BaseModel):
    status: str
    # present | partial | absent | leave | leave_half_am | leave_half_pm
    # | weekend | holiday | upcoming
    morning_in: datetime | None = None
    morning_out: datetime | None = None
    afternoon_in: datetime | None = None
    afternoon_out: datetime | None = None
    total_minutes: int = 0
    has_anomaly: bool = False
    leave_type: str | None = None
    leave_half: str | None = None


class GridEmployeeRead(BaseModel):
    id: int
    name: str
    email: str | None
    department: str | None
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
    daily: dict[str, GridCellRead]  # YYYY-MM-DD -> cell


class TeamMonthResponse(BaseModel):
    year: int
    month: int
    days_in_month: int
    working_days_count: int
    total_employees: int
    days: list[GridDayRead]
    employees: list[GridEmployeeRead]


# ── Anomalies (RH review) ──────────────────────────────────────────
class AnomalyRead(BaseModel):
    user_id: int
    name: str | None = None
    date: date
    session_type: str
    check_in: datetime | None
    reasons: list[str]


class AnomalyListResponse(BaseModel):
    date_from: date
    date_to: date
    total: int
    anomalies: list[AnomalyRead]


# ── Health ─────────────────────────────────────────────────────────
class HealthResponse(BaseModel):
    db: bool
