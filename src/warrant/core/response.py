# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Warrant Contributors

"""Standard response envelope for Warrant workflow and HTTP results.

Workflows raise typed exceptions; the HTTP layer and CLI convert outcomes
into a ``WarrantResponse`` so callers always receive a consistent
``{success, data, error}`` structure.

Usage::

    from warrant.core.response import ok, err, from_exception

    return ok(data={"status": "PUBLISHED"})
    return err("Article not found", status_code=404)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .exceptions import WarrantException


@dataclass
class WarrantResponse:
    """Unified response envelope.

    Attributes:
        success:     True when the operation completed without error.
        data:        Payload returned on success. None for void operations.
        error:       Human-readable error message on failure. None on success.
        status_code: HTTP-equivalent status for the outcome.
    """

    success: bool
    data: Any = None
    error: str | None = None
    status_code: int = 200

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a plain dict, omitting keys that carry no information."""
        d: dict[str, Any] = {"success": self.success}
        if self.data is not None:
            d["data"] = self.data
        if self.error:
            d["error"] = self.error
        return d


def ok(data: Any = None, status_code: int = 200) -> WarrantResponse:
    return WarrantResponse(success=True, data=data, status_code=status_code)


def err(error: str, status_code: int = 400) -> WarrantResponse:
    return WarrantResponse(success=False, error=error, status_code=status_code)


def from_exception(exc: WarrantException, hide_internal: bool = False) -> WarrantResponse:
    """Map a Warrant exception onto a failed response.

    With ``hide_internal`` set, 5xx messages are replaced by a generic one.
    """
    message = exc.message
    if hide_internal and exc.status_code >= 500:
        message = "Internal server error"
    return err(message, status_code=exc.status_code)
