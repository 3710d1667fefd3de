# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Warrant Contributors

"""Flag review and dispute resolution.

Both are admin-only and each moderation input can be resolved once; a
second resolution raises ``ConflictError`` so the author is never
penalized twice for the same flag or dispute.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from ..core.audit import AuditAction
from ..core.context import TrustContext
from ..core.exceptions import ConflictError, NotFoundError, ValidationException
from ..core.models import Actor, LabelType, ModerationOutcome
from ..integrity.labels import IntegrityLabelRegistry
from ..integrity.reputation import ReputationEventType, ReputationLedger
from .access import require_admin

logger = logging.getLogger(__name__)

FLAG_OUTCOMES = frozenset({ModerationOutcome.UPHELD, ModerationOutcome.DISMISSED})

# Label applied when a flag with this reason is upheld
FLAG_REASON_LABELS: dict[str, LabelType] = {
    "MISSING_SOURCE": LabelType.NEEDS_SOURCE,
    "INACCURATE": LabelType.DISPUTED,
    "MISLEADING": LabelType.DISPUTED,
}

MAX_REASON_EXCERPT = 100


def _outcome(status: str, allowed: frozenset[ModerationOutcome] | None = None) -> ModerationOutcome:
    try:
        outcome = ModerationOutcome(status)
    except ValueError:
        outcome = None
    if outcome is None or (allowed is not None and outcome not in allowed):
        raise ValidationException(f"Invalid resolution status: {status}", field="status", value=status)
    return outcome


def _close_flag(
    ctx: TrustContext, flag_id: str, reviewer_id: str, outcome: ModerationOutcome, review_note: str | None
) -> dict[str, Any]:
    with ctx.cursor() as cur:
        cur.execute(
            """
            SELECT f.*, a.author_id
            FROM flags f
            JOIN articles a ON a.id = f.article_id
            WHERE f.id = %s
            FOR UPDATE OF f
            """,
            (flag_id,),
        )
        flag = cur.fetchone()
        if not flag:
            raise NotFoundError("Flag", flag_id)
        if flag["status"] in set(ModerationOutcome):
            raise ConflictError(f"Flag {flag_id} has already been reviewed", existing_id=flag_id)

        cur.execute(
            """
            UPDATE flags SET status = %s, reviewed_by = %s, review_note = %s, reviewed_at = %s
            WHERE id = %s
            """,
            (outcome.value, reviewer_id, review_note, ctx.now(), flag_id),
        )
    return flag


def _close_dispute(
    ctx: TrustContext, dispute_id: str, reviewer_id: str, outcome: ModerationOutcome, resolution: str
) -> dict[str, Any]:
    with ctx.cursor() as cur:
        cur.execute(
            """
            SELECT d.*, a.author_id
            FROM disputes d
            JOIN articles a ON a.id = d.article_id
            WHERE d.id = %s
            FOR UPDATE OF d
            """,
            (dispute_id,),
        )
        dispute = cur.fetchone()
        if not dispute:
            raise NotFoundError("Dispute", dispute_id)
        if dispute["status"] in set(ModerationOutcome):
            raise ConflictError(f"Dispute {dispute_id} has already been resolved", existing_id=dispute_id)

        cur.execute(
            """
            UPDATE disputes SET status = %s, reviewed_by = %s, resolution = %s, resolved_at = %s
            WHERE id = %s
            """,
            (outcome.value, reviewer_id, resolution, ctx.now(), dispute_id),
        )
    return dispute


async def review_flag(
    ctx: TrustContext,
    flag_id: str,
    actor: Actor,
    status: str,
    review_note: str | None = None,
) -> dict[str, Any]:
    """Mark a flag UPHELD or DISMISSED.

    An upheld flag costs the article author FLAG_UPHELD_AGAINST and, for
    sourcing or accuracy reasons, labels the article.
    """
    require_admin(actor)
    outcome = _outcome(status, FLAG_OUTCOMES)

    flag = await asyncio.to_thread(_close_flag, ctx, flag_id, actor.id, outcome, review_note)

    article_id = str(flag["article_id"])
    label = None
    if outcome == ModerationOutcome.UPHELD:
        ledger = ReputationLedger(ctx)
        await ledger.record_event(
            flag["author_id"],
            ReputationEventType.FLAG_UPHELD_AGAINST,
            reason=f"Flag upheld: {flag['reason']}",
            article_id=article_id,
        )
        label = FLAG_REASON_LABELS.get(flag["reason"])
        if label is not None:
            await ledger.labels.apply_label(article_id, label, actor.id, review_note)

    await asyncio.to_thread(
        ctx.audit.log,
        action=AuditAction.FLAG_REVIEWED,
        entity="Flag",
        entity_id=flag_id,
        details={"status": outcome.value, "review_note": review_note, "label": label.value if label else None},
        user_id=actor.id,
    )
    return {"flag_id": flag_id, "status": outcome.value, "label": label.value if label else None}


async def resolve_dispute(
    ctx: TrustContext,
    dispute_id: str,
    actor: Actor,
    status: str,
    resolution: str,
) -> dict[str, Any]:
    """Resolve a dispute as UPHELD, OVERTURNED or DISMISSED.

    UPHELD penalizes the author. OVERTURNED deactivates the article's
    DISPUTED labels and credits the author.
    """
    require_admin(actor)
    outcome = _outcome(status)
    if not resolution or not resolution.strip():
        raise ValidationException("A resolution note is required", field="resolution")

    dispute = await asyncio.to_thread(_close_dispute, ctx, dispute_id, actor.id, outcome, resolution)

    article_id = str(dispute["article_id"])
    author_id = dispute["author_id"]
    removed: list[str] = []

    if outcome == ModerationOutcome.UPHELD:
        await ReputationLedger(ctx).record_event(
            author_id,
            ReputationEventType.DISPUTE_UPHELD_AGAINST,
            reason=f"Dispute upheld: {resolution[:MAX_REASON_EXCERPT]}",
            article_id=article_id,
        )
    elif outcome == ModerationOutcome.OVERTURNED:
        labels = IntegrityLabelRegistry(ctx)
        removed = [lbl.id for lbl in await labels.remove_active(article_id, LabelType.DISPUTED, actor.id)]
        await ReputationLedger(ctx, labels).record_event(
            author_id,
            ReputationEventType.DISPUTE_OVERTURNED_FOR,
            reason="Dispute overturned in author's favor",
            article_id=article_id,
        )

    logger.info("Dispute %s resolved as %s (%d labels removed)", dispute_id, outcome.value, len(removed))
    await asyncio.to_thread(
        ctx.audit.log,
        action=AuditAction.DISPUTE_RESOLVED,
        entity="Dispute",
        entity_id=dispute_id,
        details={"status": outcome.value, "resolution": resolution, "removed_labels": removed},
        user_id=actor.id,
    )
    return {"dispute_id": dispute_id, "status": outcome.value, "removed_labels": removed}
