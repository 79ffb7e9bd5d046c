"""
Groups raw half-day session rows into one morning/afternoon pair per day.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from zoneinfo import ZoneInfo

from app.engine.anomalies import AnomalyThresholds, detect
from app.engine.workdays import ensure_utc

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class SessionType(str, Enum):
    MORNING = "MORNING"
    AFTERNOON = "AFTERNOON"


@dataclass(frozen=True)
class SessionRecord:
    """One row as written by the session recorder."""

    user_id: int
    date: date
    session_type: str
    check_in: datetime | None = None
    check_out: datetime | None = None
    duration_minutes: int | None = None
    anomaly_detected: bool = False
    anomaly_reason: str | None = None
    updated_at: datetime | None = None

    @property
    def complete(self) -> bool:
        return self.check_in is not None and self.check_out is not None


@dataclass(frozen=True)
class SessionSlice:
    check_in: datetime | None
    check_out: datetime | None
    duration_minutes: int | None
    anomaly_reasons: tuple[str, ...] = ()

    @property
    def anomaly(self) -> bool:
        return bool(self.anomaly_reasons)

    @property
    def started(self) -> bool:
        return self.check_in is not None

    @property
    def complete(self) -> bool:
        return self.check_in is not None and self.check_out is not None

    @property
    def in_progress(self) -> bool:
        return self.check_in is not None and self.check_out is None


@dataclass(frozen=True)
class DaySessions:
    morning: SessionSlice | None = None
    afternoon: SessionSlice | None = None

    @property
    def slices(self) -> tuple[SessionSlice, ...]:
        return tuple(s for s in (self.morning, self.afternoon) if s is not None)

    @property
    def has_check_in(self) -> bool:
        return any(s.started for s in self.slices)

    @property
    def complete(self) -> bool:
        return bool(
            self.morning and self.morning.complete
            and self.afternoon and self.afternoon.complete
        )

    @property
    def total_minutes(self) -> int:
        return sum(s.duration_minutes or 0 for s in self.slices)

    @property
    def anomaly_count(self) -> int:
        return sum(1 for s in self.slices if s.anomaly)


def _authority(row: SessionRecord) -> tuple[bool, datetime, datetime]:
    """Sort key: a complete row beats an incomplete one, then the newest."""
    updated = ensure_utc(row.updated_at) if row.updated_at else _EPOCH
    checked_in = ensure_utc(row.check_in) if row.check_in else _EPOCH
    return row.complete, updated, checked_in


def pick_authoritative(rows: Iterable[SessionRecord]) -> dict[tuple[date, str], SessionRecord]:
    """Keep one row per ``(date, session_type)``; duplicates are tolerated."""
    chosen: dict[tuple[date, str], SessionRecord] = {}
    for row in rows:
        session_type = str(getattr(row.session_type, "value", row.session_type)).upper()
        if session_type not in SessionType.__members__:
            logger.warning(
                "Ignoring session with unknown type %r (user %s, %s)",
                row.session_type, row.user_id, row.date,
            )
            continue
        key = (row.date, session_type)
        current = chosen.get(key)
        if current is None:
            chosen[key] = row
            continue
        logger.debug("Duplicate %s session for user %s on %s", session_type, row.user_id, row.date)
        if _authority(row) > _authority(current):
            chosen[key] = row
    return chosen


def to_slice(
    row: SessionRecord,
    session_type: str,
    tz: ZoneInfo,
    thresholds: AnomalyThresholds,
) -> SessionSlice:
    return SessionSlice(
        check_in=ensure_utc(row.check_in) if row.check_in else None,
        check_out=ensure_utc(row.check_out) if row.check_out else None,
        duration_minutes=row.duration_minutes,
        anomaly_reasons=detect(
            session_type,
            row.check_in,
            row.duration_minutes,
            bool(row.anomaly_detected),
            row.anomaly_reason,
            tz,
            thresholds,
        ),
    )


def aggregate_sessions(
    rows: Iterable[SessionRecord],
    tz: ZoneInfo,
    thresholds: AnomalyThresholds,
) -> dict[date, DaySessions]:
    """Map each date to its morning/afternoon slices for one employee."""
    by_day: dict[date, dict[str, SessionSlice]] = {}
    for (day, session_type), row in pick_authoritative(rows).items():
        by_day.setdefault(day, {})[session_type] = to_slice(row, session_type, tz, thresholds)

    return {
        day: DaySessions(morning=slices.get("MORNING"), afternoon=slices.get("AFTERNOON"))
        for day, slices in by_day.items()
    }
