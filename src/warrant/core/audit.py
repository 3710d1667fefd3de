"""Audit logging for moderation, reputation and payout operations.

Every state-changing operation creates an audit record. Audit logs are
append-only; there is no update or delete path.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from contextlib import AbstractContextManager
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)


class AuditAction(StrEnum):
    """Actions that create audit records."""

    # Integrity labels
    LABEL_APPLIED = "label_applied"
    LABEL_REMOVED = "label_removed"

    # Reputation
    REPUTATION_EVENT = "reputation_event"
    REPUTATION_REPLAYED = "reputation_replayed"

    # Publishing
    ARTICLE_PUBLISHED = "article_published"
    ARTICLE_HELD = "article_held"
    CORRECTION_ISSUED = "correction_issued"

    # Moderation
    FLAG_REVIEWED = "flag_reviewed"
    DISPUTE_RESOLVED = "dispute_resolved"

    # Revenue
    REVENUE_GENERATED = "revenue_generated"
    PAYOUT_RUN = "payout_run"



class AuditLogger:
    """Append-only audit logger backed by the ``audit_log`` table.

    Usage:
        ctx.audit.log(
            action=AuditAction.LABEL_APPLIED,
            entity="Article",
            entity_id=article_id,
            details={"label_type": "DISPUTED"},
            user_id=moderator_id,
        )
    """

    def __init__(self, cursor_factory: Callable[[], AbstractContextManager[Any]]):
        self._cursor = cursor_factory

    def log(
        self,
        action: AuditAction,
        entity: str,
        entity_id: str | None = None,
        details: dict[str, Any] | None = None,
        user_id: str | None = None,
    ) -> None:
        """Write an audit log entry. Non-fatal on error."""
        try:
            with self._cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO audit_log (user_id, action, entity, entity_id, details)
                    VALUES (%s, %s, %s, %s, %s::jsonb)
                    """,
                    (
                        user_id,
                        AuditAction(action).value,
                        entity,
                        entity_id,
                        json.dumps(details or {}, default=str),
                    ),
                )
        except Exception as e:
            # The primary state transition has already committed
            logger.warning("Failed to write audit log (%s %s/%s): %s", action, entity, entity_id, e)
