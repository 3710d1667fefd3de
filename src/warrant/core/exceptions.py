# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Warrant Contributors

"""Custom exception hierarchy for Warrant.

Each exception carries the HTTP-equivalent status its caller should map it
to. The pure assessors never raise; everything else propagates these.
"""

from __future__ import annotations

from typing import Any


class WarrantException(Exception):  # noqa: N818
    """Base exception for all Warrant errors.

    All Warrant-specific exceptions should inherit from this class.
    """

    status_code: int = 500

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(WarrantException):
    """Malformed input to a mutating operation.

    Raised when:
    - An unknown event type, label type or severity is supplied
    - A billing period is malformed or still open
    - Required fields are missing
    """

    status_code = 400

    def __init__(self, message: str, field: str | None = None, value: Any = None):
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        super().__init__(message, details)
        self.field = field
        self.value = value


class AuthorizationError(WarrantException):
    """The acting user lacks permission for the operation."""

    status_code = 403

    def __init__(self, message: str = "Not authorized", actor_id: str | None = None):
        details = {}
        if actor_id:
            details["actor_id"] = actor_id
        super().__init__(message, details)
        self.actor_id = actor_id


class NotFoundError(WarrantException):
    """A referenced article, profile, label, flag or dispute does not exist."""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        message = f"{resource_type} not found: {resource_id}"
        details = {
            "resource_type": resource_type,
            "resource_id": resource_id,
        }
        super().__init__(message, details)
        self.resource_type = resource_type
        self.resource_id = resource_id


class ConflictError(WarrantException):
    """A state conflict, e.g. revenue entries already generated for a period.

    Revenue callers treat this as a recoverable no-op.
    """

    status_code = 409

    def __init__(self, message: str, existing_id: str | None = None):
        details = {}
        if existing_id:
            details["existing_id"] = existing_id
        super().__init__(message, details)
        self.existing_id = existing_id


class InternalError(WarrantException):
    """Store, cache or collaborator failure."""

    status_code = 500


class DatabaseException(InternalError):
    """Exception for database-related errors.

    Raised when:
    - Database connection fails
    - Query execution fails
    - Transaction errors occur
    """

    pass


class ConfigException(WarrantException):
    """Exception for configuration errors.

    Raised when:
    - Required environment variables are missing
    - Configuration values are inconsistent
    """

    def __init__(self, message: str, missing_vars: list[str] | None = None):
        details = {}
        if missing_vars:
            details["missing_vars"] = missing_vars
        super().__init__(message, details)
        self.missing_vars = missing_vars or []
