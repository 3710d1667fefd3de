"""Read tracking feeding revenue attribution."""

from __future__ import annotations

import asyncio
import logging

from ..core.context import TrustContext
from ..core.exceptions import NotFoundError
from ..core.models import ArticleStatus

logger = logging.getLogger(__name__)


async def record_read(ctx: TrustContext, article_id: str, reader_id: str | None = None) -> bool:
    """Record a read of a published article.

    Signed-in readers count once per article per day; repeat reads are
    ignored. Anonymous reads are always stored but never attributed to
    revenue.

    Returns:
        True when a new read row was written.

    Raises:
        NotFoundError: If the article does not exist or is not published.
    """
    counted = await asyncio.to_thread(_insert_read, ctx, article_id, reader_id)
    if not counted:
        logger.debug("Duplicate read of %s by %s ignored", article_id, reader_id)
    return counted


def _insert_read(ctx: TrustContext, article_id: str, reader_id: str | None) -> bool:
    with ctx.cursor() as cur:
        cur.execute("SELECT status FROM articles WHERE id = %s", (article_id,))
        row = cur.fetchone()
        if not row or row["status"] != ArticleStatus.PUBLISHED:
            raise NotFoundError("Article", article_id)

        cur.execute(
            """
            INSERT INTO read_events (article_id, reader_id, read_on, created_at)
            VALUES (%s, %s, %s, %s)
            ON CONFLICT DO NOTHING
            """,
            (article_id, reader_id, ctx.now().date(), ctx.now()),
        )
        return cur.rowcount == 1
