"""
Per-session anomaly detection.

Late arrivals are detected here against local wall-clock thresholds.
Duration anomalies (too short / too long) are decided by the session
recorder at check-out time; its flag is consumed unchanged and only
labelled here when it arrives without a reason.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from app.engine.workdays import to_local

SESSION_LABELS = {"MORNING": "Matin", "AFTERNOON": "Après-midi"}

_FLAGGED_WITHOUT_REASON = "Anomalie signalée au pointage"


@dataclass(frozen=True)
class AnomalyThresholds:
    morning_late_after: time = time(9, 5)
    afternoon_late_after: time = time(13, 10)
    short_session_minutes: int = 30
    long_session_minutes: int = 720

    @classmethod
    def from_settings(cls, settings) -> AnomalyThresholds:
        return cls(
            morning_late_after=settings.MORNING_LATE_AFTER,
            afternoon_late_after=settings.AFTERNOON_LATE_AFTER,
            short_session_minutes=settings.SHORT_SESSION_MINUTES,
            long_session_minutes=settings.LONG_SESSION_MINUTES,
        )

    def late_after(self, session_type: str) -> time:
        if session_type == "MORNING":
            return self.morning_late_after
        return self.afternoon_late_after


@dataclass(frozen=True)
class AnomalyEntry:
    """One anomalous session, as listed for RH review."""

    user_id: int
    date: date
    session_type: str
    check_in: datetime | None
    reasons: tuple[str, ...]


def late_reason(
    session_type: str,
    check_in: datetime,
    tz: ZoneInfo,
    thresholds: AnomalyThresholds,
) -> str | None:
    """Return ``"<Session> retard: arrivée à HH:MM (+N min)"`` or ``None``."""
    local = to_local(check_in, tz)
    limit = thresholds.late_after(session_type)
    if local.time() <= limit:
        return None

    wall = local.replace(tzinfo=None)
    delay = (wall - datetime.combine(wall.date(), limit)).total_seconds()
    minutes = math.ceil(delay / 60)
    label = SESSION_LABELS.get(session_type, session_type)
    return f"{label} retard: arrivée à {local:%H:%M} (+{minutes} min)"


def duration_reason(minutes: int | None, thresholds: AnomalyThresholds) -> str | None:
    if minutes is None:
        return None
    if minutes < thresholds.short_session_minutes:
        return f"Session très courte ({minutes} min)"
    if minutes > thresholds.long_session_minutes:
        return f"Session très longue ({minutes} min)"
    return None


def detect(
    session_type: str,
    check_in: datetime | None,
    duration_minutes: int | None,
    recorder_flag: bool,
    recorder_reason: str | None,
    tz: ZoneInfo,
    thresholds: AnomalyThresholds,
) -> tuple[str, ...]:
    """All anomaly reasons for one session; empty means no anomaly."""
    if check_in is None:
        return ()

    reasons: list[str] = []
    late = late_reason(session_type, check_in, tz, thresholds)
    if late:
        reasons.append(late)

    if recorder_flag:
        flagged = (
            recorder_reason
            or duration_reason(duration_minutes, thresholds)
            or _FLAGGED_WITHOUT_REASON
        )
        if flagged not in reasons:
            reasons.append(flagged)

    return tuple(reasons)
