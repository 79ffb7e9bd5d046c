"""
Gamified monthly attendance score.

The score is a fold over the ordered day sequence.  ``step`` is the pure
per-day transition; ``fold_days`` reduces a month with it.  Only resolved
workdays count: non-workdays and not-yet-due days leave the accumulator
untouched.

Rules (defaults, tunable through ``ScoringPolicy``):

- FULL day: +10; if anomaly-free the streak grows and the day earns a
  bonus equal to the new streak length, otherwise the streak resets.
- PARTIAL day: +5, streak resets.
- ABSENT day: -10, streak resets.
- LEAVE day: nothing, streak unchanged.
- Each anomalous session: -2.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import date
from functools import reduce

from app.engine.classifier import DayRecord, PresenceState

LEVELS: tuple[tuple[int, str, str], ...] = (
    (90, "Excellent", "emerald"),
    (75, "Très bien", "blue"),
    (60, "Bien", "amber"),
    (40, "Moyen", "orange"),
)
LOWEST_LEVEL = ("À améliorer", "red")


@dataclass(frozen=True)
class ScoringPolicy:
    full_day: int = 10
    half_day: int = 5
    absent: int = -10
    late: int = -2
    streak_bonus: int = 1
    levels: tuple[tuple[int, str, str], ...] = LEVELS
    lowest_level: tuple[str, str] = LOWEST_LEVEL

    @classmethod
    def from_settings(cls, settings) -> ScoringPolicy:
        return cls(
            full_day=settings.POINTS_FULL_DAY,
            half_day=settings.POINTS_HALF_DAY,
            absent=settings.POINTS_ABSENT,
            late=settings.POINTS_LATE,
            streak_bonus=settings.POINTS_STREAK_BONUS,
        )

    def as_rules(self) -> dict[str, int]:
        return {
            "full_day": self.full_day,
            "half_day": self.half_day,
            "absent": self.absent,
            "late": self.late,
            "streak_bonus": self.streak_bonus,
        }


@dataclass(frozen=True)
class DayScore:
    date: date
    presence_state: PresenceState
    points: int
    late_count: int
    streak_bonus: int
    streak: int


@dataclass(frozen=True)
class ScoreAccumulator:
    presence: int = 0
    absence: int = 0
    late: int = 0
    streak_bonus: int = 0
    current_streak: int = 0
    best_streak: int = 0
    work_days: int = 0
    days_present: float = 0.0
    days_absent: int = 0
    days_late: int = 0
    days: tuple[DayScore, ...] = field(default=())

    @property
    def total(self) -> int:
        return self.presence + self.absence + self.late + self.streak_bonus


def step(acc: ScoreAccumulator, day: DayRecord, policy: ScoringPolicy) -> ScoreAccumulator:
    """Apply one day to the accumulator and return the new accumulator."""
    if not day.is_workday or day.presence_state is None:
        return acc

    state = day.presence_state
    presence = absence = bonus = 0
    present = 0.0
    absent = 0
    streak = 0

    if state is PresenceState.FULL:
        presence = policy.full_day
        present = 1.0
        if day.anomaly_count == 0:
            streak = acc.current_streak + 1
            bonus = streak * policy.streak_bonus
    elif state is PresenceState.PARTIAL:
        presence = policy.half_day
        present = 0.5
    elif state is PresenceState.ABSENT:
        absence = policy.absent
        absent = 1
    elif state is PresenceState.LEAVE:
        streak = acc.current_streak

    late = day.anomaly_count * policy.late
    scored = DayScore(
        date=day.date,
        presence_state=state,
        points=presence + absence + late + bonus,
        late_count=day.anomaly_count,
        streak_bonus=bonus,
        streak=streak,
    )
    return replace(
        acc,
        presence=acc.presence + presence,
        absence=acc.absence + absence,
        late=acc.late + late,
        streak_bonus=acc.streak_bonus + bonus,
        current_streak=streak,
        best_streak=max(acc.best_streak, streak),
        work_days=acc.work_days + 1,
        days_present=acc.days_present + present,
        days_absent=acc.days_absent + absent,
        days_late=acc.days_late + day.anomaly_count,
        days=acc.days + (scored,),
    )


def fold_days(days: Iterable[DayRecord], policy: ScoringPolicy) -> ScoreAccumulator:
    ordered = sorted(days, key=lambda d: d.date)
    return reduce(lambda acc, day: step(acc, day, policy), ordered, ScoreAccumulator())


def max_possible_points(work_days: int, policy: ScoringPolicy) -> int:
    """Perfect month: every workday FULL, clean, streak growing from day 1."""
    n = work_days
    return n * policy.full_day + policy.streak_bonus * n * (n + 1) // 2


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def score_percent(total: int, maximum: int) -> int:
    if maximum <= 0:
        return 0
    return min(100, max(0, round_half_up(total / maximum * 100)))


def level_for(
    percent: int,
    levels: tuple[tuple[int, str, str], ...] = LEVELS,
    lowest: tuple[str, str] = LOWEST_LEVEL,
) -> tuple[str, str]:
    """Return ``(label, colour)`` for a score percentage; bands are checked highest first."""
    for threshold, label, colour in sorted(levels, reverse=True):
        if percent >= threshold:
            return label, colour
    return lowest


@dataclass(frozen=True)
class MonthlyScore:
    user_id: int
    year: int
    month: int
    total_points: int
    max_possible_points: int
    score_percent: int
    level: str
    level_color: str
    breakdown: dict[str, int]
    stats: dict[str, float]
    rules: dict[str, int]
    daily_breakdown: tuple[DayRecord, ...]
    daily_points: tuple[DayScore, ...]


def build_monthly_score(
    user_id: int,
    year: int,
    month: int,
    days: Iterable[DayRecord],
    policy: ScoringPolicy,
) -> MonthlyScore:
    days = tuple(sorted(days, key=lambda d: d.date))
    acc = fold_days(days, policy)
    maximum = max_possible_points(acc.work_days, policy)
    percent = score_percent(acc.total, maximum)
    level, colour = level_for(percent, policy.levels, policy.lowest_level)
    return MonthlyScore(
        user_id=user_id,
        year=year,
        month=month,
        total_points=acc.total,
        max_possible_points=maximum,
        score_percent=percent,
        level=level,
        level_color=colour,
        breakdown={
            "presence": acc.presence,
            "absence": acc.absence,
            "late": acc.late,
            "streak_bonus": acc.streak_bonus,
        },
        stats={
            "work_days": acc.work_days,
            "days_present": acc.days_present,
            "days_absent": acc.days_absent,
            "days_late": acc.days_late,
            "current_streak": acc.current_streak,
            "best_streak": acc.best_streak,
        },
        rules=policy.as_rules(),
        daily_breakdown=days,
        daily_points=acc.days,
    )
