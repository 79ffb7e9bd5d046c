"""
Employee & AttendanceSession models.

Both tables are owned by collaborators (employee directory, session
recorder); this service maps them read-only.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import (Boolean, Column, Date, DateTime, ForeignKey, Index,
                        Integer, String)

from app.db.base import Base


class Employee(Base):
    __tablename__ = "employees"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    email: str | None = Column(String(320), nullable=True)  # type: ignore[assignment]
    department: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]
    role: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default="EMPLOYE",
        server_default="EMPLOYE",
    )  # EMPLOYE | MANAGER | RH | SUPER_ADMIN
    is_active: bool = Column(Boolean, default=True, server_default="true")  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )


class AttendanceSession(Base):
    # No unique constraint on (user_id, date, session_type): concurrent
    # check-ins can race, readers must cope with duplicates.
    __tablename__ = "attendance_sessions"
    __table_args__ = (
        Index("ix_session_user_date", "user_id", "date", "session_type"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_id: int = Column(Integer, ForeignKey("employees.id"), nullable=False)  # type: ignore[assignment]
    date: date = Column(Date, nullable=False, index=True)  # type: ignore[assignment]
    session_type: str = Column(String(10), nullable=False)  # type: ignore[assignment]
    # MORNING | AFTERNOON
    check_in: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    check_out: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    duration_minutes: int | None = Column(Integer, nullable=True)  # type: ignore[assignment]
    anomaly_detected: bool = Column(Boolean, default=False, server_default="false")  # type: ignore[assignment]
    anomaly_reason: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
