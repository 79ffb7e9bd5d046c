"""
FastAPI dependencies — database session and engine policy objects.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import date
from zoneinfo import ZoneInfo

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.db.session import async_session_factory
from app.engine.anomalies import AnomalyThresholds
from app.engine.scoring import ScoringPolicy
from app.engine.workdays import get_zone, local_today


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── Engine policy (read from settings on every request) ─────────────
def get_timezone() -> ZoneInfo:
    return get_zone(settings.TIMEZONE)


def get_thresholds() -> AnomalyThresholds:
    return AnomalyThresholds.from_settings(settings)


def get_scoring_policy() -> ScoringPolicy:
    return ScoringPolicy.from_settings(settings)


def get_today(tz: ZoneInfo = Depends(get_timezone)) -> date:
    """Current calendar date in the configured zone."""
    return local_today(tz)
