"""
Centralized error handling for API failures.
Constants and small helpers so routes stay thin and new error types are easy to add.
"""
from __future__ import annotations

import logging

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants: status codes and user-facing messages
# ---------------------------------------------------------------------------

STATUS_BAD_REQUEST = 400
STATUS_UNAUTHORIZED = 401
STATUS_FORBIDDEN = 403
STATUS_NOT_FOUND = 404
STATUS_CONFLICT = 409
STATUS_UNPROCESSABLE = 422
STATUS_INTERNAL_ERROR = 500

MSG_NOT_LOGGED_IN = "You must be logged in."
MSG_STORE_ERROR = "An unexpected database error occurred"


# ---------------------------------------------------------------------------
# Push gateway errors (raised by the Expo client, handled by the dispatcher)
# ---------------------------------------------------------------------------


class PushGatewayError(Exception):
    """Gateway answered but the batch cannot be used (4xx, malformed body). Not retried."""


class PushTransportError(PushGatewayError):
    """Timeout, connection error or 5xx. Retried by the dispatcher."""


# ---------------------------------------------------------------------------
# HTTP helpers
# ---------------------------------------------------------------------------


def bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=STATUS_BAD_REQUEST, detail=detail)


def unauthorized(detail: str = MSG_NOT_LOGGED_IN) -> HTTPException:
    return HTTPException(
        status_code=STATUS_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def forbidden(detail: str) -> HTTPException:
    return HTTPException(status_code=STATUS_FORBIDDEN, detail=detail)


def not_found(what: str) -> HTTPException:
    return HTTPException(status_code=STATUS_NOT_FOUND, detail=f"{what} not found")


def conflict(detail: str) -> HTTPException:
    return HTTPException(status_code=STATUS_CONFLICT, detail=detail)


def unprocessable(detail: str) -> HTTPException:
    return HTTPException(status_code=STATUS_UNPROCESSABLE, detail=detail)


async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Registered on the app: any store error that escapes a route becomes a 500."""
    logger.error("Store error on %s %s: %s", request.method, request.url.path, exc, exc_info=True)
    return JSONResponse(status_code=STATUS_INTERNAL_ERROR, content={"detail": MSG_STORE_ERROR})
