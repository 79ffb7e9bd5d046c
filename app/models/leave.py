"""
LeaveRequest model — written by the leave ledger.

Only APPROVED rows take part in attendance reconciliation.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (Boolean, Column, DateTime, ForeignKey, Index, Integer,
                        String)

from app.db.base import Base


class LeaveRequest(Base):
    __tablename__ = "leave_requests"
    __table_args__ = (Index("ix_leave_user_span", "user_id", "start_date", "end_date"),)

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_id: int = Column(Integer, ForeignKey("employees.id"), nullable=False)  # type: ignore[assignment]
    start_date: datetime = Column(DateTime(timezone=True), nullable=False)  # type: ignore[assignment]
    end_date: datetime = Column(DateTime(timezone=True), nullable=False)  # type: ignore[assignment]
    leave_type: str | None = Column(String(30), nullable=True)  # type: ignore[assignment]
    # PAID | UNPAID | MALADIE | MATERNITE | ...
    is_half_day: bool = Column(Boolean, default=False, server_default="false")  # type: ignore[assignment]
    half_day_session: str | None = Column(String(10), nullable=True)  # type: ignore[assignment]
    # MORNING | AFTERNOON: the half taken off when is_half_day
    status: str = Column(String(20), nullable=False, default="PENDING")  # type: ignore[assignment]
    # PENDING | APPROVED | REJECTED
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
