# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Warrant Contributors

"""Reputation ledger: append-only event log with a clamped score projection.

The score on ``journalist_profiles`` is a materialized projection of the
``reputation_events`` log. Every event is applied in a single transaction
that locks the profile row, so concurrent events for the same author
serialize instead of losing updates. ``replay`` rebuilds the projection
from the log.

The cached score is invalidated after the transaction commits; a reader may
see the previous value for that short window.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from enum import StrEnum

from ..core.audit import AuditAction
from ..core.cache import reputation_cache_key
from ..core.context import TrustContext
from ..core.exceptions import NotFoundError, ValidationException
from ..core.models import CorrectionSeverity, JournalistProfile, LabelType, ReputationEvent
from .labels import IntegrityLabelRegistry

logger = logging.getLogger(__name__)

DEFAULT_SCORE = 50.0
MIN_SCORE = 0.0
MAX_SCORE = 100.0


class ReputationEventType(StrEnum):
    ARTICLE_PUBLISHED = "ARTICLE_PUBLISHED"
    SOURCE_COMPLETE = "SOURCE_COMPLETE"
    CITED_BY_OTHERS = "CITED_BY_OTHERS"
    DISPUTE_OVERTURNED_FOR = "DISPUTE_OVERTURNED_FOR"
    TENURE_BONUS = "TENURE_BONUS"
    DISPUTE_UPHELD_AGAINST = "DISPUTE_UPHELD_AGAINST"
    FLAG_UPHELD_AGAINST = "FLAG_UPHELD_AGAINST"
    CORRECTION_ISSUED_MAJOR = "CORRECTION_ISSUED_MAJOR"
    CORRECTION_ISSUED_MINOR = "CORRECTION_ISSUED_MINOR"
    MANUAL_ADJUSTMENT = "MANUAL_ADJUSTMENT"


REPUTATION_DELTAS: dict[ReputationEventType, float] = {
    ReputationEventType.ARTICLE_PUBLISHED: 2.0,
    ReputationEventType.SOURCE_COMPLETE: 1.0,
    ReputationEventType.CITED_BY_OTHERS: 1.5,
    ReputationEventType.DISPUTE_OVERTURNED_FOR: 2.0,
    ReputationEventType.TENURE_BONUS: 0.5,
    ReputationEventType.DISPUTE_UPHELD_AGAINST: -5.0,
    ReputationEventType.FLAG_UPHELD_AGAINST: -2.0,
    ReputationEventType.CORRECTION_ISSUED_MAJOR: -3.0,
    ReputationEventType.CORRECTION_ISSUED_MINOR: -0.5,
}

MINOR_SEVERITIES = frozenset({CorrectionSeverity.TYPO, CorrectionSeverity.CLARIFICATION})


def clamp_score(score: float) -> float:
    return max(MIN_SCORE, min(MAX_SCORE, score))


def fold_reputation(deltas: Iterable[float], start: float = DEFAULT_SCORE) -> float:
    """Apply deltas in order, clamping after every step.

    This is the same arithmetic ``record_event`` performs incrementally, so
    folding the full log reproduces the stored projection.
    """
    score = clamp_score(start)
    for delta in deltas:
        score = clamp_score(score + float(delta))
    return score


def resolve_delta(event_type: str, delta: float | None = None) -> tuple[ReputationEventType, float]:
    """Validate an event type and return it with the delta to apply.

    Raises:
        ValidationException: Unknown type, a manual adjustment without a
            delta, or a delta override on a fixed-delta type.
    """
    try:
        kind = ReputationEventType(event_type)
    except ValueError:
        raise ValidationException(
            f"Unknown reputation event type: {event_type}", field="event_type", value=event_type
        ) from None

    if kind == ReputationEventType.MANUAL_ADJUSTMENT:
        if delta is None:
            raise ValidationException("MANUAL_ADJUSTMENT requires an explicit delta", field="delta")
        return kind, float(delta)

    if delta is not None:
        raise ValidationException(
            f"{kind.value} has a fixed delta and cannot be overridden", field="delta", value=delta
        )
    return kind, REPUTATION_DELTAS[kind]


def correction_event_type(severity: str) -> ReputationEventType:
    try:
        level = CorrectionSeverity(severity)
    except ValueError:
        raise ValidationException(
            f"Unknown correction severity: {severity}", field="severity", value=severity
        ) from None
    if level in MINOR_SEVERITIES:
        return ReputationEventType.CORRECTION_ISSUED_MINOR
    return ReputationEventType.CORRECTION_ISSUED_MAJOR


class ReputationLedger:
    """Records reputation events and serves cached scores.

    Public methods are coroutines; the psycopg2 and cache work runs in a
    worker thread through ``asyncio.to_thread``.
    """

    def __init__(self, ctx: TrustContext, labels: IntegrityLabelRegistry | None = None):
        self.ctx = ctx
        self.labels = labels or IntegrityLabelRegistry(ctx)

    async def record_event(
        self,
        user_id: str,
        event_type: str,
        *,
        delta: float | None = None,
        reason: str | None = None,
        article_id: str | None = None,
    ) -> float:
        """Append an event and update the author's score.

        Args:
            user_id: Author the event applies to.
            event_type: A ``ReputationEventType`` value.
            delta: Required for MANUAL_ADJUSTMENT, rejected otherwise.
            reason: Free-text explanation stored with the event.
            article_id: Article the event relates to, if any.

        Returns:
            The new score. When the author has no profile the event is still
            logged and the default score is returned.
        """
        kind, applied = resolve_delta(event_type, delta)
        return await asyncio.to_thread(self._record_event_sync, user_id, kind, applied, reason, article_id)

    def _record_event_sync(
        self,
        user_id: str,
        kind: ReputationEventType,
        applied: float,
        reason: str | None,
        article_id: str | None,
    ) -> float:
        with self.ctx.cursor() as cur:
            cur.execute(
                "SELECT reputation_score FROM journalist_profiles WHERE user_id = %s FOR UPDATE",
                (user_id,),
            )
            row = cur.fetchone()

            cur.execute(
                """
                INSERT INTO reputation_events (user_id, type, delta, reason, related_article_id, created_at)
                VALUES (%s, %s, %s, %s, %s, %s)
                RETURNING id
                """,
                (user_id, kind.value, applied, reason, article_id, self.ctx.now()),
            )
            event_row = cur.fetchone()

            if row is None:
                logger.warning("No journalist profile for %s; %s logged without a score update", user_id, kind.value)
                old_score = new_score = DEFAULT_SCORE
            else:
                old_score = float(row["reputation_score"])
                new_score = clamp_score(old_score + applied)
                cur.execute(
                    "UPDATE journalist_profiles SET reputation_score = %s, updated_at = %s WHERE user_id = %s",
                    (new_score, self.ctx.now(), user_id),
                )

        self.ctx.cache.delete(reputation_cache_key(user_id))
        logger.info("Reputation %s for %s: %.1f -> %.1f (%+.1f)", kind.value, user_id, old_score, new_score, applied)
        self.ctx.audit.log(
            action=AuditAction.REPUTATION_EVENT,
            entity="JournalistProfile",
            entity_id=user_id,
            details={
                "event_id": str(event_row["id"]) if event_row else None,
                "type": kind.value,
                "delta": applied,
                "old_score": old_score,
                "new_score": new_score,
                "article_id": article_id,
            },
            user_id=user_id,
        )
        return new_score

    async def get_score(self, user_id: str) -> float:
        """Current score, cache first."""
        return await asyncio.to_thread(self._get_score_sync, user_id)

    def _get_score_sync(self, user_id: str) -> float:
        key = reputation_cache_key(user_id)
        cached = self.ctx.cache.get(key)
        if cached is not None:
            return float(cached)

        with self.ctx.cursor() as cur:
            cur.execute("SELECT reputation_score FROM journalist_profiles WHERE user_id = %s", (user_id,))
            row = cur.fetchone()

        score = float(row["reputation_score"]) if row else DEFAULT_SCORE
        self.ctx.cache.set(key, score, self.ctx.settings.reputation_cache_ttl_seconds)
        return score

    async def get_profile(self, user_id: str) -> JournalistProfile:
        return await asyncio.to_thread(self._get_profile_sync, user_id)

    def _get_profile_sync(self, user_id: str) -> JournalistProfile:
        with self.ctx.cursor() as cur:
            cur.execute("SELECT * FROM journalist_profiles WHERE user_id = %s", (user_id,))
            row = cur.fetchone()
        if not row:
            raise NotFoundError("JournalistProfile", user_id)
        return JournalistProfile.from_row(row)

    async def process_correction(
        self,
        user_id: str,
        severity: str,
        article_id: str,
        applied_by: str | None = None,
    ) -> float:
        """Record the reputation cost of a correction and label the article."""
        kind = correction_event_type(severity)
        score = await self.record_event(
            user_id,
            kind,
            reason=f"Correction issued ({severity})",
            article_id=article_id,
        )
        await self.labels.apply_label(
            article_id,
            LabelType.CORRECTION_ISSUED,
            applied_by or user_id,
            reason=f"{severity} correction issued",
        )
        return score

    async def get_history(self, user_id: str, limit: int = 50) -> list[ReputationEvent]:
        """Events for an author, newest first."""
        return await asyncio.to_thread(self._get_history_sync, user_id, limit)

    def _get_history_sync(self, user_id: str, limit: int) -> list[ReputationEvent]:
        with self.ctx.cursor() as cur:
            cur.execute(
                """
                SELECT * FROM reputation_events
                WHERE user_id = %s
                ORDER BY created_at DESC, id DESC
                LIMIT %s
                """,
                (user_id, limit),
            )
            rows = cur.fetchall()
        return [ReputationEvent.from_row(r) for r in rows]

    async def replay(self, user_id: str) -> float:
        """Rebuild an author's score from the event log.

        Returns the folded score. The profile is rewritten only if it exists.
        """
        return await asyncio.to_thread(self._replay_sync, user_id)

    def _replay_sync(self, user_id: str) -> float:
        with self.ctx.cursor() as cur:
            cur.execute(
                "SELECT reputation_score FROM journalist_profiles WHERE user_id = %s FOR UPDATE",
                (user_id,),
            )
            profile = cur.fetchone()
            cur.execute(
                "SELECT delta FROM reputation_events WHERE user_id = %s ORDER BY created_at ASC, id ASC",
                (user_id,),
            )
            events = cur.fetchall()

            score = fold_reputation(r["delta"] for r in events)
            if profile is not None:
                cur.execute(
                    "UPDATE journalist_profiles SET reputation_score = %s, updated_at = %s WHERE user_id = %s",
                    (score, self.ctx.now(), user_id),
                )

        self.ctx.cache.delete(reputation_cache_key(user_id))
        previous = float(profile["reputation_score"]) if profile else None
        if previous is not None and previous != score:
            logger.warning("Reputation projection for %s drifted: stored %.2f, replayed %.2f", user_id, previous, score)
        self.ctx.audit.log(
            action=AuditAction.REPUTATION_REPLAYED,
            entity="JournalistProfile",
            entity_id=user_id,
            details={"events": len(events), "previous_score": previous, "score": score},
        )
        return score
