"""Tests for session aggregation and duplicate handling."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from app.engine.anomalies import AnomalyThresholds
from app.engine.sessions import SessionRecord, aggregate_sessions, pick_authoritative

TUNIS = ZoneInfo("Africa/Tunis")
TH = AnomalyThresholds()
DAY = date(2025, 3, 4)


def _utc(hour, minute=0, day=DAY):
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)


def _row(session_type="MORNING", check_in=None, check_out=None, updated_at=None, **kw):
    duration = None
    if check_in and check_out:
        duration = int((check_out - check_in).total_seconds() // 60)
    return SessionRecord(
        user_id=1,
        date=kw.pop("day", DAY),
        session_type=session_type,
        check_in=check_in,
        check_out=check_out,
        duration_minutes=duration,
        anomaly_detected=kw.pop("anomaly_detected", False),
        anomaly_reason=kw.pop("anomaly_reason", None),
        updated_at=updated_at,
    )


def test_full_day_aggregates_both_halves():
    rows = [
        _row("MORNING", _utc(7), _utc(11)),
        _row("AFTERNOON", _utc(12), _utc(16)),
    ]
    day = aggregate_sessions(rows, TUNIS, TH)[DAY]
    assert day.complete
    assert day.total_minutes == 480
    assert day.anomaly_count == 0


def test_open_session_is_in_progress_not_complete():
    day = aggregate_sessions([_row("MORNING", _utc(7))], TUNIS, TH)[DAY]
    assert day.has_check_in
    assert not day.complete
    assert day.morning.in_progress
    assert day.total_minutes == 0


def test_complete_duplicate_beats_incomplete():
    incomplete = _row("MORNING", _utc(7), updated_at=_utc(15))
    complete = _row("MORNING", _utc(7), _utc(11), updated_at=_utc(11))
    chosen = pick_authoritative([incomplete, complete])
    assert chosen[(DAY, "MORNING")] is complete


def test_newest_duplicate_wins_when_equally_complete():
    older = _row("MORNING", _utc(7), _utc(11), updated_at=_utc(11))
    newer = _row("MORNING", _utc(7, 30), _utc(11), updated_at=_utc(12))
    chosen = pick_authoritative([newer, older])
    assert chosen[(DAY, "MORNING")] is newer


def test_duplicates_never_double_count():
    rows = [
        _row("MORNING", _utc(7), _utc(11), updated_at=_utc(11)),
        _row("MORNING", _utc(7), _utc(11), updated_at=_utc(11, 1)),
        _row("AFTERNOON", _utc(12), _utc(16)),
    ]
    day = aggregate_sessions(rows, TUNIS, TH)[DAY]
    assert day.total_minutes == 480


def test_unknown_session_type_is_skipped():
    rows = [_row("EVENING", _utc(18), _utc(20)), _row("MORNING", _utc(7), _utc(11))]
    chosen = pick_authoritative(rows)
    assert list(chosen) == [(DAY, "MORNING")]


def test_late_morning_is_one_anomaly():
    # 08:07 UTC is 09:07 in Tunis.
    rows = [
        _row("MORNING", _utc(8, 7), _utc(11)),
        _row("AFTERNOON", _utc(12), _utc(16)),
    ]
    day = aggregate_sessions(rows, TUNIS, TH)[DAY]
    assert day.complete
    assert day.anomaly_count == 1
    assert "+2 min" in day.morning.anomaly_reasons[0]
