# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Warrant Contributors

"""Ranked and chronological article feeds."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

from ..core.cache import feed_cache_key
from ..core.context import TrustContext
from ..core.exceptions import ValidationException
from ..integrity.labels import label_penalty
from ..integrity.reputation import DEFAULT_SCORE
from .scoring import ScoringFactors, calculate_distribution_score, effective_age_hours

logger = logging.getLogger(__name__)

DEFAULT_FEED_LIMIT = 20

_FEED_COLUMNS = """
    a.id, a.title, a.slug, a.summary, a.author_id, a.source_complete,
    a.published_at, a.last_corrected_at,
    p.pseudonym, p.reputation_score, p.verification_status,
    (SELECT COUNT(*) FROM article_sources s WHERE s.article_id = a.id) AS source_count,
    COALESCE(
        (SELECT array_agg(l.label_type ORDER BY l.created_at DESC)
         FROM integrity_labels l WHERE l.article_id = a.id AND l.active),
        '{}'
    ) AS labels,
    (SELECT COUNT(*) FROM corrections c
     WHERE c.article_id = a.id AND c.status = 'PUBLISHED') AS correction_count,
    (SELECT COUNT(*) FROM flags f
     WHERE f.article_id = a.id AND f.status = 'PENDING') AS flag_count
"""


@dataclass
class RankedArticle:
    id: str
    title: str
    slug: str
    summary: str | None
    published_at: datetime | None
    author_id: str
    author_pseudonym: str
    author_reputation_score: float
    author_verified: bool
    source_count: int
    source_complete: bool
    integrity_labels: list[str] = field(default_factory=list)
    correction_count: int = 0
    flag_count: int = 0
    distribution_score: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "summary": self.summary,
            "published_at": self.published_at.isoformat() if self.published_at else None,
            "author_id": self.author_id,
            "author_pseudonym": self.author_pseudonym,
            "author_reputation_score": self.author_reputation_score,
            "author_verified": self.author_verified,
            "source_count": self.source_count,
            "source_complete": self.source_complete,
            "integrity_labels": list(self.integrity_labels),
            "correction_count": self.correction_count,
            "distribution_score": round(self.distribution_score, 2),
        }


@dataclass
class FeedPage:
    articles: list[RankedArticle]
    total: int

    def to_dict(self) -> dict[str, Any]:
        return {"articles": [a.to_dict() for a in self.articles], "total": self.total}

    def to_cache(self) -> dict[str, Any]:
        """JSON-safe form stored in the score cache."""
        articles = []
        for article in self.articles:
            data = asdict(article)
            data["published_at"] = article.published_at.isoformat() if article.published_at else None
            articles.append(data)
        return {"articles": articles, "total": self.total}

    @classmethod
    def from_cache(cls, data: dict[str, Any]) -> FeedPage:
        articles = []
        for item in data["articles"]:
            published_at = item.get("published_at")
            fields = {**item, "published_at": datetime.fromisoformat(published_at) if published_at else None}
            articles.append(RankedArticle(**fields))
        return cls(articles=articles, total=int(data["total"]))


def _article_from_row(row: dict[str, Any], score: float = 0.0) -> RankedArticle:
    reputation = row.get("reputation_score")
    return RankedArticle(
        id=str(row["id"]),
        title=row["title"],
        slug=row["slug"],
        summary=row.get("summary"),
        published_at=row.get("published_at"),
        author_id=row["author_id"],
        author_pseudonym=row.get("pseudonym") or "Unknown",
        author_reputation_score=float(reputation) if reputation is not None else DEFAULT_SCORE,
        author_verified=row.get("verification_status") == "VERIFIED",
        source_count=int(row.get("source_count") or 0),
        source_complete=bool(row.get("source_complete")),
        integrity_labels=list(row.get("labels") or []),
        correction_count=int(row.get("correction_count") or 0),
        flag_count=int(row.get("flag_count") or 0),
        distribution_score=score,
    )


def _check_paging(limit: int, offset: int) -> None:
    if limit < 1:
        raise ValidationException("limit must be positive", field="limit", value=limit)
    if offset < 0:
        raise ValidationException("offset cannot be negative", field="offset", value=offset)


class FeedService:
    """Builds feed pages of PUBLISHED articles."""

    def __init__(self, ctx: TrustContext):
        self.ctx = ctx

    def _where(self, author_id: str | None) -> tuple[str, list[Any]]:
        sql = "WHERE a.status = 'PUBLISHED' AND a.published_at IS NOT NULL"
        params: list[Any] = []
        if author_id:
            sql += " AND a.author_id = %s"
            params.append(author_id)
        return sql, params

    def _fetch(self, author_id: str | None, limit: int, offset: int = 0) -> tuple[list[dict[str, Any]], int]:
        where, params = self._where(author_id)
        with self.ctx.cursor() as cur:
            cur.execute(f"SELECT COUNT(*) AS total FROM articles a {where}", params)
            total = int(cur.fetchone()["total"])
            cur.execute(
                f"""
                SELECT {_FEED_COLUMNS}
                FROM articles a
                LEFT JOIN journalist_profiles p ON p.user_id = a.author_id
                {where}
                ORDER BY a.published_at DESC
                LIMIT %s OFFSET %s
                """,
                [*params, limit, offset],
            )
            rows = cur.fetchall()
        return rows, total

    def score_row(self, row: dict[str, Any], now: datetime) -> float:
        reputation = row.get("reputation_score")
        factors = ScoringFactors(
            reputation_score=float(reputation) if reputation is not None else DEFAULT_SCORE,
            source_complete=bool(row.get("source_complete")),
            source_count=int(row.get("source_count") or 0),
            label_penalties=label_penalty(row.get("labels") or []),
            correction_count=int(row.get("correction_count") or 0),
            age_hours=effective_age_hours(row.get("published_at"), row.get("last_corrected_at"), now),
            flag_count=int(row.get("flag_count") or 0),
        )
        return calculate_distribution_score(factors)

    async def get_feed(
        self,
        limit: int = DEFAULT_FEED_LIMIT,
        offset: int = 0,
        author_id: str | None = None,
    ) -> FeedPage:
        """Ranked feed page.

        Only the newest ``(offset + limit) * feed_candidate_multiplier``
        published articles are scored, so an old article cannot outrank
        recent ones on a deep page no matter its score.
        """
        _check_paging(limit, offset)
        return await asyncio.to_thread(self._get_feed_sync, limit, offset, author_id)

    def _get_feed_sync(self, limit: int, offset: int, author_id: str | None) -> FeedPage:
        key = feed_cache_key(author_id, offset, limit)
        ttl = self.ctx.settings.feed_cache_ttl_seconds
        if ttl > 0:
            cached = self.ctx.cache.get(key)
            if cached is not None:
                return FeedPage.from_cache(cached)

        window = (offset + limit) * self.ctx.settings.feed_candidate_multiplier
        rows, total = self._fetch(author_id, window)

        now = self.ctx.now()
        ranked = [_article_from_row(row, self.score_row(row, now)) for row in rows]
        ranked.sort(key=lambda a: (a.distribution_score, a.published_at or now), reverse=True)
        page = FeedPage(articles=ranked[offset : offset + limit], total=total)

        logger.debug("Ranked %d candidates for feed %s (total %d)", len(rows), key, total)
        if ttl > 0:
            self.ctx.cache.set(key, page.to_cache(), ttl)
        return page

    async def get_chronological_feed(
        self,
        limit: int = DEFAULT_FEED_LIMIT,
        offset: int = 0,
        author_id: str | None = None,
    ) -> FeedPage:
        """Newest-first feed that bypasses ranking; every score is 0."""
        _check_paging(limit, offset)
        rows, total = await asyncio.to_thread(self._fetch, author_id, limit, offset)
        return FeedPage(articles=[_article_from_row(row) for row in rows], total=total)
