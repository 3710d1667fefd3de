# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Warrant Contributors

"""Standardized REST error responses for the Warrant API.

Every error body has the same shape:
{
    "success": false,
    "error": {
        "code": "ERROR_CODE",
        "message": "Human readable message"
    }
}
"""

from __future__ import annotations

import logging
import uuid

from starlette.responses import JSONResponse

from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationException,
    WarrantException,
)

logger = logging.getLogger(__name__)

# Validation errors (400)
VALIDATION_INVALID_VALUE = "VALIDATION_INVALID_VALUE"

# Authorization errors (403)
FORBIDDEN_INSUFFICIENT_PERMISSION = "FORBIDDEN_INSUFFICIENT_PERMISSION"

# Not found errors (404)
NOT_FOUND_RESOURCE = "NOT_FOUND_RESOURCE"

# Conflict errors (409)
CONFLICT_ALREADY_EXISTS = "CONFLICT_ALREADY_EXISTS"

# Server errors (500)
INTERNAL_ERROR = "INTERNAL_ERROR"

_CODES: list[tuple[type[WarrantException], str]] = [
    (ValidationException, VALIDATION_INVALID_VALUE),
    (AuthorizationError, FORBIDDEN_INSUFFICIENT_PERMISSION),
    (NotFoundError, NOT_FOUND_RESOURCE),
    (ConflictError, CONFLICT_ALREADY_EXISTS),
]


def error_response(code: str, message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse(
        {"success": False, "error": {"code": code, "message": message}},
        status_code=status_code,
    )


def validation_error(message: str) -> JSONResponse:
    """Create a 400 validation error response."""
    return error_response(VALIDATION_INVALID_VALUE, message, status_code=400)


def internal_error(exc: BaseException, hide_details: bool = False) -> JSONResponse:
    """Create a 500 response, always logging the full exception.

    With ``hide_details`` the message is replaced by a generic one; the
    request_id still ties the response to the log line.
    """
    request_id = uuid.uuid4().hex[:12]
    logger.error("request_id=%s %s: %s", request_id, type(exc).__name__, exc, exc_info=exc)

    message = "Internal server error" if hide_details else f"{type(exc).__name__}: {exc}"
    return JSONResponse(
        {"success": False, "error": {"code": INTERNAL_ERROR, "message": message, "request_id": request_id}},
        status_code=500,
    )


def exception_response(exc: Exception, hide_details: bool = False) -> JSONResponse:
    """Map any exception raised by a handler onto the error envelope."""
    if isinstance(exc, WarrantException) and exc.status_code < 500:
        for exc_type, code in _CODES:
            if isinstance(exc, exc_type):
                return error_response(code, exc.message, status_code=exc.status_code)
        return error_response(VALIDATION_INVALID_VALUE, exc.message, status_code=exc.status_code)
    return internal_error(exc, hide_details=hide_details)
