# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Warrant Contributors

"""Article publish workflow.

Runs both assessors, then either holds the article for review or publishes
it and credits the author. Search indexing is a secondary effect.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from ..core.audit import AuditAction
from ..core.cache import FEED_KEY_PREFIX
from ..core.collaborators import best_effort
from ..core.context import TrustContext
from ..core.exceptions import ConflictError, ValidationException
from ..core.models import Actor, ArticleStatus, LabelType
from ..integrity.labels import IntegrityLabelRegistry
from ..integrity.reputation import ReputationEventType, ReputationLedger
from ..integrity.risk import RiskAssessment, RiskClassifier, assess_content_risk, classifier_from_settings
from ..integrity.sources import SourceAssessment, assess_source_completeness
from .access import load_article, require_author_or_admin

logger = logging.getLogger(__name__)

HELD_MESSAGE = (
    "Your article has been held for review due to content that requires additional scrutiny. "
    "Our team will review it within 72 hours."
)

_UNPUBLISHABLE = {
    ArticleStatus.PUBLISHED: "Article is already published",
    ArticleStatus.REMOVED: "Removed articles cannot be republished",
}


@dataclass
class PublishOutcome:
    article_id: str
    status: ArticleStatus
    slug: str
    sources: SourceAssessment
    risk: RiskAssessment
    labels: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "article_id": self.article_id,
            "status": self.status.value,
            "slug": self.slug,
            "source_assessment": self.sources.to_dict(),
            "risk_assessment": self.risk.to_dict(),
            "labels": list(self.labels),
        }
        if self.status == ArticleStatus.HELD:
            data["message"] = HELD_MESSAGE
        return data


def _transition(ctx: TrustContext, article_id: str, status: ArticleStatus, source_complete: bool) -> None:
    """Move the article out of a publishable state exactly once."""
    published_at = ctx.now() if status == ArticleStatus.PUBLISHED else None
    with ctx.cursor() as cur:
        cur.execute(
            """
            UPDATE articles
            SET status = %s, source_complete = %s,
                published_at = COALESCE(%s, published_at), updated_at = %s
            WHERE id = %s AND status NOT IN ('PUBLISHED', 'REMOVED')
            RETURNING id
            """,
            (status.value, source_complete, published_at, ctx.now(), article_id),
        )
        if cur.fetchone() is None:
            raise ConflictError(f"Article {article_id} changed state while publishing", existing_id=article_id)
    if status == ArticleStatus.PUBLISHED:
        ctx.cache.delete_prefix(FEED_KEY_PREFIX)


def _load_sources(ctx: TrustContext, article_id: str) -> list[dict[str, Any]]:
    with ctx.cursor() as cur:
        cur.execute(
            "SELECT source_type, quality, url, is_anonymous FROM article_sources WHERE article_id = %s",
            (article_id,),
        )
        return cur.fetchall()


def _count_article(ctx: TrustContext, author_id: str) -> None:
    with ctx.cursor() as cur:
        cur.execute(
            "UPDATE journalist_profiles SET article_count = article_count + 1, updated_at = %s WHERE user_id = %s",
            (ctx.now(), author_id),
        )


async def publish_article(
    ctx: TrustContext,
    article_id: str,
    actor: Actor,
    classifier: RiskClassifier | None = None,
) -> PublishOutcome:
    """Publish an article, or hold it when the content risk demands review.

    Raises:
        NotFoundError: Unknown article.
        AuthorizationError: Actor is neither the author nor an admin.
        ValidationException: Article is already PUBLISHED or REMOVED.
    """
    article = await asyncio.to_thread(load_article, ctx, article_id)
    require_author_or_admin(actor, article)

    current = ArticleStatus(article["status"])
    if current in _UNPUBLISHABLE:
        raise ValidationException(_UNPUBLISHABLE[current], field="status", value=current.value)

    source_rows = await asyncio.to_thread(_load_sources, ctx, article_id)

    settings = ctx.settings
    sources = assess_source_completeness(source_rows)
    risk = assess_content_risk(
        article["title"],
        article.get("content_text") or "",
        sources.score,
        classifier=classifier or classifier_from_settings(settings),
        very_weak_threshold=settings.very_weak_source_threshold,
        insufficient_threshold=settings.insufficient_source_threshold,
    )

    author_id = article["author_id"]
    labels = IntegrityLabelRegistry(ctx)

    if risk.should_hold:
        await asyncio.to_thread(_transition, ctx, article_id, ArticleStatus.HELD, sources.complete)
        await labels.apply_label(article_id, LabelType.UNDER_REVIEW, actor.id, "Automatically held for review")
        logger.info("Held article %s for review: %s", article_id, ", ".join(risk.triggers))
        await asyncio.to_thread(
            ctx.audit.log,
            action=AuditAction.ARTICLE_HELD,
            entity="Article",
            entity_id=article_id,
            details={"risk_level": risk.risk_level.value, "triggers": risk.triggers, "matches": risk.matches},
            user_id=actor.id,
        )
        return PublishOutcome(
            article_id, ArticleStatus.HELD, article["slug"], sources, risk, [LabelType.UNDER_REVIEW.value]
        )

    await asyncio.to_thread(_transition, ctx, article_id, ArticleStatus.PUBLISHED, sources.complete)

    applied: list[str] = []
    if not sources.complete:
        await labels.apply_label(article_id, LabelType.NEEDS_SOURCE, actor.id, "; ".join(sources.issues))
        applied.append(LabelType.NEEDS_SOURCE.value)

    ledger = ReputationLedger(ctx, labels)
    await ledger.record_event(author_id, ReputationEventType.ARTICLE_PUBLISHED, article_id=article_id)
    if sources.complete:
        await ledger.record_event(author_id, ReputationEventType.SOURCE_COMPLETE, article_id=article_id)

    await asyncio.to_thread(_count_article, ctx, author_id)

    await best_effort(ctx.indexer.sync_article(article_id), f"search sync for article {article_id}")

    logger.info("Published article %s (source score %d, risk %s)", article_id, sources.score, risk.risk_level)
    await asyncio.to_thread(
        ctx.audit.log,
        action=AuditAction.ARTICLE_PUBLISHED,
        entity="Article",
        entity_id=article_id,
        details={"source_score": sources.score, "risk_level": risk.risk_level.value},
        user_id=actor.id,
    )
    return PublishOutcome(article_id, ArticleStatus.PUBLISHED, article["slug"], sources, risk, applied)
