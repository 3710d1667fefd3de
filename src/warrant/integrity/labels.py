# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Warrant Contributors

"""Integrity label registry.

Labels are soft-deleted: removal flips ``active`` and stamps who removed it
and when. The full history of an article's labels stays queryable.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from ..core.audit import AuditAction
from ..core.cache import FEED_KEY_PREFIX
from ..core.context import TrustContext
from ..core.exceptions import NotFoundError, ValidationException
from ..core.models import IntegrityLabel, LabelType

logger = logging.getLogger(__name__)

# Ranking penalty contributed by each active label
LABEL_PENALTIES: dict[LabelType, float] = {
    LabelType.DISPUTED: 10.0,
    LabelType.UNDER_REVIEW: 8.0,
    LabelType.NEEDS_SOURCE: 5.0,
}

AUDIT_ENTITY = "Article"


def label_penalty(label_types: Iterable[str]) -> float:
    """Sum the ranking penalties of a collection of active label types."""
    total = 0.0
    for label_type in label_types:
        try:
            total += LABEL_PENALTIES.get(LabelType(label_type), 0.0)
        except ValueError:
            logger.debug("Ignoring unknown label type %r", label_type)
    return total


def _coerce_label_type(label_type: str) -> LabelType:
    try:
        return LabelType(label_type)
    except ValueError:
        raise ValidationException(f"Unknown label type: {label_type}", field="label_type", value=label_type) from None


class IntegrityLabelRegistry:
    """Lifecycle store for article-level trust labels.

    Every applied or removed label drops the cached feed pages, since labels
    change distribution scores.
    """

    def __init__(self, ctx: TrustContext):
        self.ctx = ctx

    async def apply_label(
        self,
        article_id: str,
        label_type: str,
        applied_by: str,
        reason: str | None = None,
    ) -> IntegrityLabel:
        """Attach a new active label to an article.

        Same-type labels are not deduplicated; each application is its own row.
        """
        kind = _coerce_label_type(label_type)
        return await asyncio.to_thread(self._apply_label_sync, article_id, kind, applied_by, reason)

    def _apply_label_sync(
        self, article_id: str, kind: LabelType, applied_by: str, reason: str | None
    ) -> IntegrityLabel:
        with self.ctx.cursor() as cur:
            cur.execute(
                """
                INSERT INTO integrity_labels (article_id, label_type, applied_by, reason, active, created_at)
                VALUES (%s, %s, %s, %s, TRUE, %s)
                RETURNING *
                """,
                (article_id, kind.value, applied_by, reason, self.ctx.now()),
            )
            label = IntegrityLabel.from_row(cur.fetchone())

        self.ctx.cache.delete_prefix(FEED_KEY_PREFIX)
        logger.info("Applied %s label %s to article %s", kind.value, label.id, article_id)
        self.ctx.audit.log(
            action=AuditAction.LABEL_APPLIED,
            entity=AUDIT_ENTITY,
            entity_id=article_id,
            details={"label_id": label.id, "label_type": kind.value, "reason": reason},
            user_id=applied_by,
        )
        return label

    async def remove_label(self, label_id: str, removed_by: str) -> IntegrityLabel:
        """Deactivate a label.

        Raises:
            NotFoundError: If no label with ``label_id`` exists.
        """
        return await asyncio.to_thread(self._remove_label_sync, label_id, removed_by)

    def _remove_label_sync(self, label_id: str, removed_by: str) -> IntegrityLabel:
        with self.ctx.cursor() as cur:
            cur.execute("SELECT * FROM integrity_labels WHERE id = %s FOR UPDATE", (label_id,))
            row = cur.fetchone()
            if not row:
                raise NotFoundError("IntegrityLabel", label_id)
            if not row["active"]:
                return IntegrityLabel.from_row(row)

            cur.execute(
                """
                UPDATE integrity_labels
                SET active = FALSE, removed_by = %s, removed_at = %s
                WHERE id = %s
                RETURNING *
                """,
                (removed_by, self.ctx.now(), label_id),
            )
            label = IntegrityLabel.from_row(cur.fetchone())

        self.ctx.cache.delete_prefix(FEED_KEY_PREFIX)
        logger.info("Removed %s label %s from article %s", label.label_type.value, label_id, label.article_id)
        self.ctx.audit.log(
            action=AuditAction.LABEL_REMOVED,
            entity=AUDIT_ENTITY,
            entity_id=label.article_id,
            details={"label_id": label_id, "label_type": label.label_type.value},
            user_id=removed_by,
        )
        return label

    async def get_active_labels(self, article_id: str) -> list[IntegrityLabel]:
        """Active labels for an article, newest first."""
        return await asyncio.to_thread(self._get_active_labels_sync, article_id)

    def _get_active_labels_sync(self, article_id: str) -> list[IntegrityLabel]:
        with self.ctx.cursor() as cur:
            cur.execute(
                """
                SELECT * FROM integrity_labels
                WHERE article_id = %s AND active = TRUE
                ORDER BY created_at DESC
                """,
                (article_id,),
            )
            rows = cur.fetchall()
        return [IntegrityLabel.from_row(r) for r in rows]

    async def get_label_history(self, article_id: str) -> list[IntegrityLabel]:
        return await asyncio.to_thread(self._get_label_history_sync, article_id)

    def _get_label_history_sync(self, article_id: str) -> list[IntegrityLabel]:
        with self.ctx.cursor() as cur:
            cur.execute(
                "SELECT * FROM integrity_labels WHERE article_id = %s ORDER BY created_at DESC",
                (article_id,),
            )
            rows = cur.fetchall()
        return [IntegrityLabel.from_row(r) for r in rows]

    async def remove_active(self, article_id: str, label_type: str, removed_by: str) -> list[IntegrityLabel]:
        """Deactivate every active label of one type on an article."""
        return await asyncio.to_thread(self._remove_active_sync, article_id, label_type, removed_by)

    def _remove_active_sync(self, article_id: str, label_type: str, removed_by: str) -> list[IntegrityLabel]:
        return [
            self._remove_label_sync(label.id, removed_by)
            for label in self._get_active_labels_sync(article_id)
            if label.label_type == label_type
        ]
