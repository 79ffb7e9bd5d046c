"""
Read-only access to the collaborator stores.

Each reader runs **one** query for the whole requested scope (all users,
all days) and returns ``Ok(records)`` or ``Err(reason)``.  A failed read
is never turned into an empty list: callers decide via ``unwrap``.
"""

from __future__ import annotations

import logging
from collections.abc import Collection
from datetime import date
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.result import Err, Ok, Result
from app.engine.leave import APPROVED, LeaveInterval
from app.engine.reporter import EmployeeRef
from app.engine.sessions import SessionRecord
from app.engine.workdays import range_bounds
from app.models.employee import AttendanceSession, Employee
from app.models.holiday import Holiday
from app.models.leave import LeaveRequest

logger = logging.getLogger(__name__)


def _failed(source: str, exc: SQLAlchemyError) -> Err:
    logger.error("Failed to read %s: %s", source, exc, exc_info=True)
    return Err(source=source, reason=exc.__class__.__name__)


def _to_employee(row: Employee) -> EmployeeRef:
    return EmployeeRef(
        id=row.id,
        name=row.name,
        email=row.email,
        role=row.role,
        department=row.department,
    )


async def list_sessions(
    db: AsyncSession,
    user_ids: Collection[int] | None,
    date_from: date,
    date_to: date,
) -> Result[list[SessionRecord]]:
    """Session rows for ``user_ids`` (all users when ``None``) in a date range."""
    stmt = (
        select(AttendanceSession)
        .where(AttendanceSession.date >= date_from, AttendanceSession.date <= date_to)
        .order_by(AttendanceSession.user_id, AttendanceSession.date)
    )
    if user_ids is not None:
        if not user_ids:
            return Ok([])
        stmt = stmt.where(AttendanceSession.user_id.in_(list(user_ids)))

    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as exc:
        return _failed("sessions", exc)

    return Ok(
        [
            SessionRecord(
                user_id=s.user_id,
                date=s.date,
                session_type=s.session_type,
                check_in=s.check_in,
                check_out=s.check_out,
                duration_minutes=s.duration_minutes,
                anomaly_detected=bool(s.anomaly_detected),
                anomaly_reason=s.anomaly_reason,
                updated_at=s.updated_at,
            )
            for s in result.scalars().all()
        ]
    )


async def list_approved_leaves(
    db: AsyncSession,
    user_ids: Collection[int] | None,
    date_from: date,
    date_to: date,
    tz: ZoneInfo,
) -> Result[list[LeaveInterval]]:
    """Approved leave overlapping the local days ``date_from..date_to``."""
    start, end = range_bounds(date_from, date_to, tz)
    stmt = select(LeaveRequest).where(
        LeaveRequest.status == APPROVED,
        LeaveRequest.start_date < end,
        LeaveRequest.end_date >= start,
    )
    if user_ids is not None:
        if not user_ids:
            return Ok([])
        stmt = stmt.where(LeaveRequest.user_id.in_(list(user_ids)))

    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as exc:
        return _failed("leaves", exc)

    return Ok(
        [
            LeaveInterval(
                user_id=lv.user_id,
                start=lv.start_date,
                end=lv.end_date,
                leave_type=lv.leave_type,
                status=lv.status,
                is_half_day=bool(lv.is_half_day),
                half_day_session=lv.half_day_session,
            )
            for lv in result.scalars().all()
        ]
    )


async def list_holidays(db: AsyncSession, years: Collection[int]) -> Result[list[date]]:
    try:
        result = await db.execute(select(Holiday.date).where(Holiday.year.in_(list(years))))
    except SQLAlchemyError as exc:
        return _failed("holidays", exc)
    return Ok(list(result.scalars().all()))


async def list_active_employees(
    db: AsyncSession,
    excluded_roles: Collection[str] = (),
) -> Result[list[EmployeeRef]]:
    stmt = select(Employee).where(Employee.is_active.is_(True)).order_by(Employee.name)
    if excluded_roles:
        stmt = stmt.where(Employee.role.not_in(list(excluded_roles)))

    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as exc:
        return _failed("employees", exc)
    return Ok([_to_employee(e) for e in result.scalars().all()])


async def get_employee(db: AsyncSession, user_id: int) -> Result[EmployeeRef | None]:
    try:
        result = await db.execute(select(Employee).where(Employee.id == user_id))
    except SQLAlchemyError as exc:
        return _failed("employees", exc)
    row = result.scalar_one_or_none()
    return Ok(_to_employee(row) if row is not None else None)
