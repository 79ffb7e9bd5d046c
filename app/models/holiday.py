"""
Holiday model — declared non-working days, independent of weekday.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import Column, Date, Integer, String, UniqueConstraint

from app.db.base import Base


class Holiday(Base):
    __tablename__ = "holidays"
    __table_args__ = (UniqueConstraint("date", name="uq_holiday_date"),)

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    date: date = Column(Date, nullable=False)  # type: ignore[assignment]
    year: int = Column(Integer, nullable=False, index=True)  # type: ignore[assignment]
    name: str | None = Column(String(200), nullable=True)  # type: ignore[assignment]
