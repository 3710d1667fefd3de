"""Explicit dependency container passed to every trust-engine service.

Services never reach for module-level store or cache handles; they read
them from the ``TrustContext`` they were constructed with. Tests build a
context around mocks, production code calls ``default_context()`` once.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from .audit import AuditLogger
from .cache import ScoreCache, build_cache
from .collaborators import DisabledPayoutProvider, NullSearchIndexer, PayoutProvider, SearchIndexer
from .config import CoreSettings, get_config

CursorFactory = Callable[[], AbstractContextManager[Any]]


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class TrustContext:
    """Handles to the store, cache, audit sink and external collaborators.

    Attributes:
        cursor:   Zero-argument callable returning a transactional cursor
                  context manager (``warrant.core.db.get_cursor`` in production).
        cache:    Score cache with get/set/delete semantics.
        audit:    Append-only audit sink.
        indexer:  Search indexer notified on article changes.
        payouts:  Payout provider used when executing revenue entries.
        settings: Resolved configuration.
        clock:    Returns the current timezone-aware time.
    """

    cursor: CursorFactory
    cache: ScoreCache
    audit: AuditLogger
    indexer: SearchIndexer = field(default_factory=NullSearchIndexer)
    payouts: PayoutProvider = field(default_factory=DisabledPayoutProvider)
    settings: CoreSettings = field(default_factory=get_config)
    clock: Callable[[], datetime] = _utcnow

    def now(self) -> datetime:
        return self.clock()


def default_context(
    indexer: SearchIndexer | None = None,
    payouts: PayoutProvider | None = None,
) -> TrustContext:
    """Build a context wired to the pooled database and the configured cache."""
    from .db import get_cursor

    settings = get_config()
    return TrustContext(
        cursor=get_cursor,
        cache=build_cache(settings),
        audit=AuditLogger(get_cursor),
        indexer=indexer or NullSearchIndexer(),
        payouts=payouts or DisabledPayoutProvider(),
        settings=settings,
    )
