"""
Error responses for the Solaris API.

Every failure leaves as ``{"detail": ..., "success": false}``. Endpoints
raise ``HTTPException`` for rule violations (403 ownership, 404, 409
illegal transitions); the handlers below cover what escapes them.
A store error aborts the request before its commit, so no write is
half-applied.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)


def _error(status_code: int, detail: object, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail, "success": False},
        headers=headers,
    )


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return _error(exc.status_code, exc.detail, getattr(exc, "headers", None))


async def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("Rate limit hit on %s: %s", request.url.path, exc.detail)
    return _error(429, f"Too many attempts, limit is {exc.detail}")


async def _integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    # Unique or foreign-key clash the endpoint did not pre-check
    logger.error("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return _error(409, "Database constraint violation")


async def _sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Store failure on %s %s", request.method, request.url.path, exc_info=exc)
    return _error(500, "Internal database error")


async def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s: %s", request.method, request.url.path, exc)
    return _error(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
