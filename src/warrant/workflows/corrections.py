"""Correction issuance workflow."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from ..core.audit import AuditAction
from ..core.cache import FEED_KEY_PREFIX
from ..core.collaborators import best_effort
from ..core.context import TrustContext
from ..core.exceptions import ValidationException
from ..core.models import Actor, ArticleStatus, CorrectionSeverity
from ..integrity.reputation import ReputationLedger
from .access import load_article, require_author_or_admin

logger = logging.getLogger(__name__)


def _insert_correction(ctx: TrustContext, article_id: str, issued_by: str, content: str, severity: str) -> str:
    now = ctx.now()
    with ctx.cursor() as cur:
        cur.execute(
            """
            INSERT INTO corrections (article_id, author_id, content, severity, status, created_at)
            VALUES (%s, %s, %s, %s, 'PUBLISHED', %s)
            RETURNING id
            """,
            (article_id, issued_by, content, severity, now),
        )
        correction_id = str(cur.fetchone()["id"])
        cur.execute(
            "UPDATE articles SET last_corrected_at = %s, updated_at = %s WHERE id = %s",
            (now, now, article_id),
        )
    ctx.cache.delete_prefix(FEED_KEY_PREFIX)
    return correction_id


async def issue_correction(
    ctx: TrustContext,
    article_id: str,
    actor: Actor,
    content: str,
    severity: str,
) -> dict[str, Any]:
    """Publish a correction on a published article.

    The article author bears the reputation cost, whoever issues it. The
    article's ``last_corrected_at`` is bumped so it resurfaces in the feed.

    Returns:
        Dict with ``correction_id`` and the author's new ``reputation_score``.
    """
    if not content or not content.strip():
        raise ValidationException("Correction content is required", field="content")
    try:
        level = CorrectionSeverity(severity)
    except ValueError:
        raise ValidationException(
            f"Unknown correction severity: {severity}", field="severity", value=severity
        ) from None

    article = await asyncio.to_thread(load_article, ctx, article_id)
    require_author_or_admin(actor, article, "Only the author or admins can issue corrections")
    if article["status"] != ArticleStatus.PUBLISHED:
        raise ValidationException(
            "Corrections can only be issued for published articles", field="status", value=article["status"]
        )

    correction_id = await asyncio.to_thread(
        _insert_correction, ctx, article_id, actor.id, content.strip(), level.value
    )

    ledger = ReputationLedger(ctx)
    score = await ledger.process_correction(article["author_id"], level, article_id, applied_by=actor.id)

    await best_effort(ctx.indexer.sync_article(article_id), f"search sync for article {article_id}")

    await asyncio.to_thread(
        ctx.audit.log,
        action=AuditAction.CORRECTION_ISSUED,
        entity="Correction",
        entity_id=correction_id,
        details={"article_id": article_id, "severity": level.value},
        user_id=actor.id,
    )
    return {"correction_id": correction_id, "reputation_score": score}
