"""
Domain errors and global exception handlers — prevents stack-trace leakage
to clients.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class InvalidPeriodError(ValueError):
    """A month, date or date range that cannot be classified."""


class StoreUnavailableError(RuntimeError):
    """A collaborator store could not be read."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"{source} unavailable: {reason}")
        self.source = source
        self.reason = reason


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "success": False},
    )


async def _invalid_period_handler(_request: Request, exc: InvalidPeriodError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc), "success": False},
    )


async def _store_unavailable_handler(
    _request: Request, exc: StoreUnavailableError
) -> JSONResponse:
    logger.error("Store read failed (%s): %s", exc.source, exc.reason)
    return JSONResponse(
        status_code=503,
        content={"detail": f"{exc.source} store unavailable", "success": False},
    )


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal database error", "success": False},
    )


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "success": False},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(InvalidPeriodError, _invalid_period_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StoreUnavailableError, _store_unavailable_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
