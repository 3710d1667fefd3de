"""Shared lookups and permission checks for workflows."""

from __future__ import annotations

from typing import Any

from ..core.context import TrustContext
from ..core.exceptions import AuthorizationError, NotFoundError
from ..core.models import Actor


def require_admin(actor: Actor) -> None:
    if not actor.is_admin:
        raise AuthorizationError("Admin access required", actor_id=actor.id)


def require_author_or_admin(actor: Actor, article: dict[str, Any], message: str = "Not authorized") -> None:
    if article["author_id"] != actor.id and not actor.is_admin:
        raise AuthorizationError(message, actor_id=actor.id)


def load_article(ctx: TrustContext, article_id: str) -> dict[str, Any]:
    """Fetch an article row or raise NotFoundError."""
    with ctx.cursor() as cur:
        cur.execute("SELECT * FROM articles WHERE id = %s", (article_id,))
        row = cur.fetchone()
    if not row:
        raise NotFoundError("Article", article_id)
    return dict(row)
