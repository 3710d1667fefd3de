"""Interfaces for the external systems the trust engine notifies.

Search indexing and payout transfers are secondary effects: a failure is
logged and absorbed so the primary state transition still stands.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, TypeVar, runtime_checkable

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class PayoutResult:
    """Outcome of a single transfer attempt."""

    success: bool
    transfer_ref: str | None = None
    error: str | None = None


@runtime_checkable
class SearchIndexer(Protocol):
    """Notified when a published article's content or status changes."""

    async def sync_article(self, article_id: str) -> None: ...


@runtime_checkable
class PayoutProvider(Protocol):
    """Moves money to a journalist's external payout account."""

    async def transfer(self, account_ref: str, amount: Decimal, currency: str, description: str) -> PayoutResult: ...


class NullSearchIndexer:
    """Indexer used when no search backend is configured."""

    async def sync_article(self, article_id: str) -> None:
        logger.debug("Search indexing disabled; skipping article %s", article_id)


class DisabledPayoutProvider:
    """Payout provider used when no payment backend is configured.

    Every transfer fails, so executed entries are marked FAILED rather
    than silently left CALCULATED.
    """

    async def transfer(self, account_ref: str, amount: Decimal, currency: str, description: str) -> PayoutResult:
        logger.warning(
            "Payout provider not configured; transfer of %s %s to %s not attempted", amount, currency, account_ref
        )
        return PayoutResult(success=False, error="payout provider not configured")


async def best_effort(awaitable: Awaitable[T], what: str) -> T | None:
    """Await a secondary effect, logging and absorbing any failure.

    Returns the awaited value, or None when it raised.
    """
    try:
        return await awaitable
    except Exception:
        logger.exception("Secondary effect failed: %s", what)
        return None
