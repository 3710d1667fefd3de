"""Global test fixtures for the Warrant test suite."""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from warrant.core.audit import AuditLogger
from warrant.core.cache import TTLCache
from warrant.core.collaborators import PayoutResult
from warrant.core.config import CoreSettings, clear_config_cache
from warrant.core.context import TrustContext

FIXED_NOW = datetime(2026, 10, 15, 12, 0, 0, tzinfo=UTC)


# ============================================================================
# Environment
# ============================================================================


@pytest.fixture(autouse=True)
def reset_config():
    """Drop the config singleton around every test."""
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def clean_env(monkeypatch):
    """Remove all WARRANT_* environment variables."""
    for key in list(os.environ):
        if key.startswith("WARRANT_"):
            monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture
def settings(clean_env) -> CoreSettings:
    """Default settings, ignoring any local .env file."""
    return CoreSettings(_env_file=None)


# ============================================================================
# Database / context fixtures
# ============================================================================


@pytest.fixture
def mock_cursor():
    """Mock psycopg2 cursor."""
    cur = MagicMock()
    cur.fetchone.return_value = None
    cur.fetchall.return_value = []
    cur.rowcount = 1
    return cur


@pytest.fixture
def cursor_factory(mock_cursor):
    """Sync context manager factory yielding ``mock_cursor``, like ``get_cursor``."""

    @contextmanager
    def _factory() -> Generator:
        yield mock_cursor

    return _factory


@pytest.fixture
def mock_audit():
    return MagicMock(spec=AuditLogger)


@pytest.fixture
def mock_indexer():
    indexer = MagicMock()
    indexer.sync_article = AsyncMock(return_value=None)
    return indexer


@pytest.fixture
def mock_payouts():
    payouts = MagicMock()
    payouts.transfer = AsyncMock(return_value=PayoutResult(success=True, transfer_ref="tr_1"))
    return payouts


@pytest.fixture
def ctx(cursor_factory, mock_audit, mock_indexer, mock_payouts, settings) -> TrustContext:
    """A TrustContext wired entirely to mocks and a fixed clock."""
    return TrustContext(
        cursor=cursor_factory,
        cache=TTLCache(max_size=100),
        audit=mock_audit,
        indexer=mock_indexer,
        payouts=mock_payouts,
        settings=settings,
        clock=lambda: FIXED_NOW,
    )


# ============================================================================
# Helpers
# ============================================================================


def executed_sql(cur: MagicMock) -> list[str]:
    """All SQL strings passed to ``cur.execute``, in order."""
    return [c.args[0] for c in cur.execute.call_args_list]


def calls_matching(cur: MagicMock, fragment: str) -> list[Any]:
    """``execute`` calls whose SQL contains ``fragment``."""
    return [c for c in cur.execute.call_args_list if fragment in c.args[0]]


@pytest.fixture
def label_row_factory():
    """Factory for integrity_labels rows."""

    def factory(
        label_type: str = "DISPUTED",
        article_id: str = "article-1",
        active: bool = True,
        **overrides: Any,
    ) -> dict[str, Any]:
        row = {
            "id": uuid4(),
            "article_id": article_id,
            "label_type": label_type,
            "active": active,
            "applied_by": "admin-1",
            "reason": None,
            "created_at": FIXED_NOW,
            "removed_by": None,
            "removed_at": None,
        }
        row.update(overrides)
        return row

    return factory


@pytest.fixture
def article_row_factory():
    """Factory for articles rows."""

    def factory(**overrides: Any) -> dict[str, Any]:
        row = {
            "id": "article-1",
            "author_id": "author-1",
            "title": "City Council Approves Budget",
            "slug": "city-council-approves-budget",
            "summary": None,
            "content_text": "The council voted 7-2 on Tuesday.",
            "status": "DRAFT",
            "source_complete": False,
            "claim_count": 0,
            "published_at": None,
            "last_corrected_at": None,
        }
        row.update(overrides)
        return row

    return factory
