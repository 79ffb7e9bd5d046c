"""Tests for the approved-leave overlay."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from app.engine.leave import LeaveInterval, approved_only, find_leave

TUNIS = ZoneInfo("Africa/Tunis")


def _interval(start, end, status="APPROVED", leave_type="ANNUAL"):
    return LeaveInterval(user_id=1, start=start, end=end, leave_type=leave_type, status=status)


def test_covers_inclusive_bounds():
    iv = _interval(date(2025, 3, 3), date(2025, 3, 5))
    assert iv.covers(date(2025, 3, 3), TUNIS)
    assert iv.covers(date(2025, 3, 5), TUNIS)
    assert not iv.covers(date(2025, 3, 6), TUNIS)
    assert not iv.covers(date(2025, 3, 2), TUNIS)


def test_timestamps_are_read_as_local_days():
    # Stored as UTC: 23:00 on the 2nd is midnight on the 3rd in Tunis.
    iv = _interval(
        datetime(2025, 3, 2, 23, 0, tzinfo=timezone.utc),
        datetime(2025, 3, 3, 22, 59, tzinfo=timezone.utc),
    )
    assert not iv.covers(date(2025, 3, 2), TUNIS)
    assert iv.covers(date(2025, 3, 3), TUNIS)
    assert not iv.covers(date(2025, 3, 4), TUNIS)


def test_pending_and_rejected_leave_ignored():
    intervals = [
        _interval(date(2025, 3, 3), date(2025, 3, 7), status="PENDING"),
        _interval(date(2025, 3, 3), date(2025, 3, 7), status="REJECTED"),
    ]
    assert find_leave(intervals, date(2025, 3, 4), TUNIS) is None
    assert approved_only(intervals) == []


def test_find_leave_returns_first_covering_interval():
    sick = _interval(date(2025, 3, 4), date(2025, 3, 4), leave_type="SICK")
    annual = _interval(date(2025, 3, 3), date(2025, 3, 7))
    assert find_leave([sick, annual], date(2025, 3, 4), TUNIS) is sick
    assert find_leave([sick, annual], date(2025, 3, 5), TUNIS) is annual


def test_half_taken():
    assert _interval(date(2025, 3, 3), date(2025, 3, 3)).half_taken is None
    morning = LeaveInterval(user_id=1, start=date(2025, 3, 3), end=date(2025, 3, 3),
                            is_half_day=True, half_day_session="morning")
    afternoon = LeaveInterval(user_id=1, start=date(2025, 3, 3), end=date(2025, 3, 3),
                              is_half_day=True, half_day_session="AFTERNOON")
    assert morning.half_taken == "MORNING"
    assert afternoon.half_taken == "AFTERNOON"
