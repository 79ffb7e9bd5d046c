"""Tests for the report builders (single employee, team day, team month)."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from app.engine.anomalies import AnomalyThresholds
from app.engine.classifier import PresenceState
from app.engine.leave import LeaveInterval
from app.engine.reporter import (DayStatus, EmployeeRef, anomalies_in_range,
                                 cell_status, employee_month_days,
                                 filter_roles, grid_csv_lines, monthly_score,
                                 team_day_snapshot, team_month_grid)
from app.engine.scoring import ScoringPolicy
from app.engine.sessions import SessionRecord

TUNIS = ZoneInfo("Africa/Tunis")
TH = AnomalyThresholds()
POLICY = ScoringPolicy()

ALICE = EmployeeRef(id=1, name="Alice", role="EMPLOYE")
BOB = EmployeeRef(id=2, name="Bob", role="MANAGER")
ROOT = EmployeeRef(id=3, name="Root", role="SUPER_ADMIN")
HR = EmployeeRef(id=4, name="Hana", role="rh")


def _at(d: date, hour: int, minute: int = 0) -> datetime:
    """Tunis wall-clock time as UTC."""
    return datetime(d.year, d.month, d.day, hour, minute, tzinfo=TUNIS).astimezone(timezone.utc)


def _session(user_id, d, session_type, start, end=None, **kw):
    check_in = _at(d, *start)
    check_out = _at(d, *end) if end else None
    return SessionRecord(
        user_id=user_id,
        date=d,
        session_type=session_type,
        check_in=check_in,
        check_out=check_out,
        duration_minutes=int((check_out - check_in).total_seconds() // 60) if check_out else None,
        **kw,
    )


def _full_day(user_id, d, morning_in=(8, 0)):
    return [
        _session(user_id, d, "MORNING", morning_in, (12, 0)),
        _session(user_id, d, "AFTERNOON", (13, 0), (17, 0)),
    ]


def test_filter_roles_is_case_insensitive():
    kept = filter_roles([ALICE, BOB, ROOT, HR], ["SUPER_ADMIN", "RH"])
    assert kept == [ALICE, BOB]


def test_filter_roles_without_exclusions_keeps_everyone():
    assert filter_roles([ALICE, ROOT], []) == [ALICE, ROOT]


# ── Monthly score ───────────────────────────────────────────────────
def test_monthly_score_counts_only_days_up_to_today():
    sessions = [s for day in range(3, 8) for s in _full_day(1, date(2025, 3, day))]
    score = monthly_score(1, 2025, 3, sessions, [], [], date(2025, 3, 10), TUNIS, POLICY, TH)

    assert score.total_points == 55  # 65 for the clean week, -10 for Monday 10th
    assert score.stats["work_days"] == 6
    assert score.max_possible_points == 81
    assert score.stats["current_streak"] == 0
    assert all(d.date <= date(2025, 3, 10) for d in score.daily_breakdown)


def test_monthly_score_late_arrival_costs_points():
    d = date(2025, 3, 3)
    score = monthly_score(1, 2025, 3, _full_day(1, d, morning_in=(9, 7)), [], [], d, TUNIS, POLICY, TH)
    [points] = score.daily_points
    assert points.presence_state is PresenceState.FULL
    assert points.points == 10 - 2
    assert points.streak_bonus == 0
    reasons = score.daily_breakdown[-1].anomaly_reasons
    assert any("+2 min" in r for r in reasons)


def test_monthly_score_is_idempotent():
    sessions = [s for day in (3, 4, 6) for s in _full_day(1, date(2025, 3, day))]
    args = (1, 2025, 3, sessions, [], [date(2025, 3, 20)], date(2025, 3, 31), TUNIS, POLICY, TH)
    assert monthly_score(*args) == monthly_score(*args)


def test_employee_month_days_marks_future_days_upcoming():
    days = employee_month_days(2025, 3, [], [], [], date(2025, 3, 10), TUNIS, TH)
    assert len(days) == 31
    by_date = {d.date: d for d in days}
    assert by_date[date(2025, 3, 10)].presence_state is PresenceState.ABSENT
    assert by_date[date(2025, 3, 11)].presence_state is None
    assert cell_status(by_date[date(2025, 3, 11)]) == "upcoming"
    assert cell_status(by_date[date(2025, 3, 8)]) == "weekend"


def test_anomalies_in_range_lists_each_session():
    d = date(2025, 3, 4)
    sessions = [
        _session(1, d, "MORNING", (9, 30), (12, 0)),
        _session(1, d, "AFTERNOON", (13, 30), (17, 0)),
        *_full_day(2, d),
        _session(2, date(2025, 3, 8), "MORNING", (8, 0), (8, 10), anomaly_detected=True),
    ]
    entries = anomalies_in_range(sessions, TUNIS, TH)
    assert [(e.user_id, e.date, e.session_type) for e in entries] == [
        (1, d, "MORNING"),
        (1, d, "AFTERNOON"),
        (2, date(2025, 3, 8), "MORNING"),
    ]
    assert entries[2].reasons == ("Session très courte (10 min)",)


# ── Team day snapshot ───────────────────────────────────────────────
def test_team_day_snapshot_statuses():
    d = date(2025, 3, 4)
    sessions = [
        *_full_day(1, d),
        _session(2, d, "MORNING", (8, 0)),
        *_full_day(3, d),
    ]
    snap = team_day_snapshot(
        d, [ALICE, BOB, ROOT, EmployeeRef(id=5, name="Zed")], sessions, TUNIS, TH,
        excluded_roles=["SUPER_ADMIN"],
    )
    statuses = {m.employee.id: m.day_status for m in snap.employees}
    assert statuses == {1: DayStatus.COMPLETE, 2: DayStatus.PARTIAL, 5: DayStatus.ABSENT}
    assert snap.total_employees == 3
    assert snap.present == 2
    assert snap.absent == 1
    assert snap.complete == 1


def test_team_day_present_after_one_closed_session():
    d = date(2025, 3, 4)
    snap = team_day_snapshot(d, [ALICE], [_session(1, d, "MORNING", (8, 0), (12, 0))], TUNIS, TH)
    assert snap.employees[0].day_status is DayStatus.PRESENT
    assert snap.employees[0].total_minutes == 240


# ── Team monthly grid ───────────────────────────────────────────────
def test_team_month_grid_working_days_and_summary():
    holidays = [date(2025, 9, 1), date(2025, 9, 2), date(2025, 9, 3), date(2025, 9, 4)]
    sessions = [
        *_full_day(1, date(2025, 9, 5)),
        _session(1, date(2025, 9, 8), "MORNING", (8, 0), (12, 0)),
    ]
    leaves = [LeaveInterval(user_id=1, start=date(2025, 9, 9), end=date(2025, 9, 10), leave_type="ANNUAL")]

    grid = team_month_grid(
        2025, 9, [ALICE, ROOT], sessions, leaves, holidays, date(2025, 9, 11), TUNIS, TH,
        excluded_roles=["SUPER_ADMIN", "RH"],
    )

    assert grid.days_in_month == 30
    assert grid.working_days_count == 18
    [alice] = grid.employees
    assert alice.employee == ALICE
    assert alice.worked_days == 1.5
    assert alice.leave_days == 2
    assert alice.absent_days == 1  # Thursday 11th
    assert alice.total_minutes == 720
    assert alice.attendance_rate == 19  # (1.5 + 2) / 18
    assert cell_status(alice.daily[date(2025, 9, 1)]) == "holiday"
    assert cell_status(alice.daily[date(2025, 9, 9)]) == "leave"
    assert cell_status(alice.daily[date(2025, 9, 12)]) == "upcoming"


def test_grid_csv_has_one_row_per_employee():
    grid = team_month_grid(2025, 2, [ALICE, BOB], [], [], [], date(2025, 1, 31), TUNIS, TH)
    lines = list(grid_csv_lines(grid))
    assert len(lines) == 3
    header = lines[0].rstrip("\n").split(",")
    assert header[:2] == ["employee_id", "name"]
    assert len(header) == 8 + 28
    assert lines[1].startswith("1,Alice,")


def test_team_month_grid_half_day_leave_and_payroll_minutes():
    d = date(2025, 9, 5)
    sessions = [_session(1, d, "AFTERNOON", (13, 0), (17, 0))]
    leaves = [
        LeaveInterval(user_id=1, start=d, end=d, leave_type="PAID",
                      is_half_day=True, half_day_session="MORNING"),
        LeaveInterval(user_id=1, start=date(2025, 9, 8), end=date(2025, 9, 8), leave_type="PAID"),
    ]
    grid = team_month_grid(2025, 9, [ALICE], sessions, leaves, [], date(2025, 9, 8), TUNIS, TH)

    [alice] = grid.employees
    half = alice.daily[d]
    assert cell_status(half) == "leave_half_am"
    assert half.afternoon is not None
    assert cell_status(alice.daily[date(2025, 9, 8)]) == "leave"
    # 240 worked + 180 credit, then a full-day leave credit of 420.
    assert alice.worked_minutes == 240 + 180 + 420
    assert alice.expected_minutes == 22 * 420
    assert alice.total_minutes == 240
    assert alice.leave_days == 2


def test_employee_month_days_carries_expected_minutes():
    days = employee_month_days(2025, 3, [], [], [date(2025, 3, 20)], date(2025, 3, 10), TUNIS, TH)
    assert sum(d.expected_minutes for d in days) == 20 * 420
