"""
Error taxonomy and global exception handlers.

Every failure leaves the API as ``{"success": false, "kind": ..., "message": ...}``
so callers can branch on ``kind`` instead of parsing messages. Stack traces
never reach the client.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


# ── Taxonomy ────────────────────────────────────────────────────────
class StorefrontError(Exception):
    """Base class for failures raised by services and endpoints."""

    kind = "internal"
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(StorefrontError):
    kind = "unauthenticated"
    status_code = 401
    default_message = "Authentication required"


class Forbidden(StorefrontError):
    kind = "forbidden"
    status_code = 403
    default_message = "You are not allowed to perform this action"


class NotFound(StorefrontError):
    kind = "not_found"
    status_code = 404
    default_message = "Resource not found"


class Conflict(StorefrontError):
    kind = "conflict"
    status_code = 409
    default_message = "Resource already exists"


class ValidationFailed(StorefrontError):
    kind = "validation"
    status_code = 422
    default_message = "Invalid input"


class ExternalServiceFailure(StorefrontError):
    kind = "external_service"
    status_code = 502
    default_message = "Upstream service unavailable"


def _failure(status_code: int, kind: str, message: str, **extra: object) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "kind": kind, "message": message, **extra},
    )


# ── Handlers ────────────────────────────────────────────────────────
async def _storefront_error_handler(_request: Request, exc: StorefrontError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s: %s", exc.kind, exc.message)
    return _failure(exc.status_code, exc.kind, exc.message)


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "kind": "http_error",
            "message": str(exc.detail),
            "detail": exc.detail,
        },
        headers=getattr(exc, "headers", None),
    )


async def _validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = jsonable_encoder(exc.errors())
    first = errors[0]["msg"] if errors else ValidationFailed.default_message
    return _failure(422, ValidationFailed.kind, first, detail=errors)


async def _integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.error("Database integrity error: %s", exc, exc_info=True)
    return _failure(409, Conflict.kind, "Database constraint violation")


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return _failure(503, ExternalServiceFailure.kind, "Data store unavailable")


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return _failure(500, "internal", "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(StorefrontError, _storefront_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
