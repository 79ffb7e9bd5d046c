"""
Centralised application settings loaded from environment / .env file.

Uses pydantic-settings so every value can be overridden via env vars
or the .env file at the project root.  Scoring constants and anomaly
thresholds live here too: they are policy and expected to be tuned.
"""

from __future__ import annotations

from datetime import time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Project ──────────────────────────────────────────────────────
    PROJECT_NAME: str = "HR Presence Engine"
    VERSION: str = "1.0.0"
    API_V1_PREFIX: str = "/api/v1"

    # ── Database (async PostgreSQL via asyncpg) ─────────────────────
    DATABASE_URL: str = "postgresql+asyncpg://hr:hr@localhost:5432/hr_db"

    # ── CORS ─────────────────────────────────────────────────────────
    CORS_ORIGINS: list[str] = [
        "http://localhost",
        "http://localhost:3000",
        "http://127.0.0.1",
        "http://127.0.0.1:3000",
    ]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors(cls, v: object) -> list[str]:
        if isinstance(v, str):
            return [o.strip() for o in v.split(",") if o.strip()]
        return v  # type: ignore[return-value]

    # ── Logging ──────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"

    # ── Calendar ─────────────────────────────────────────────────────
    # Every day boundary (today, leave spans, late thresholds) is computed
    # in this zone, never in the host's local time.
    TIMEZONE: str = "Africa/Tunis"

    @field_validator("TIMEZONE")
    @classmethod
    def _check_zone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown time zone: {v}") from exc
        return v

    # ── Anomaly thresholds ───────────────────────────────────────────
    MORNING_LATE_AFTER: time = time(9, 5)
    AFTERNOON_LATE_AFTER: time = time(13, 10)
    SHORT_SESSION_MINUTES: int = 30
    LONG_SESSION_MINUTES: int = 720

    # ── Scoring ──────────────────────────────────────────────────────
    POINTS_FULL_DAY: int = 10
    POINTS_HALF_DAY: int = 5
    POINTS_ABSENT: int = -10
    POINTS_LATE: int = -2
    POINTS_STREAK_BONUS: int = 1

    # ── Team views ───────────────────────────────────────────────────
    # Roles left out of "employee" lists (team snapshot, monthly grid).
    EXCLUDED_ROLES: list[str] = ["SUPER_ADMIN", "RH"]

    @field_validator("EXCLUDED_ROLES", mode="before")
    @classmethod
    def _parse_roles(cls, v: object) -> list[str]:
        if isinstance(v, str):
            return [r.strip().upper() for r in v.split(",") if r.strip()]
        return v  # type: ignore[return-value]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }


settings = Settings()
