# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Warrant Contributors

"""Database connection management for Warrant.

Config via WARRANT_DB_* environment variables (see ``core.config``).
Each ``get_cursor()`` block is one transaction: committed when the block
exits cleanly, rolled back when it raises.
"""

from __future__ import annotations

import queue
import threading
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg2
from psycopg2 import pool as psycopg2_pool
from psycopg2.extras import RealDictCursor
from psycopg2.pool import PoolError

from .exceptions import DatabaseException

# Connection pool (lazy init, thread-safe)
_pool: psycopg2_pool.ThreadedConnectionPool | None = None
_pool_lock = threading.Lock()

SCHEMA_PATH = Path(__file__).resolve().parent.parent / "schema.sql"


def _get_pool() -> psycopg2_pool.ThreadedConnectionPool:
    """Get or create the connection pool."""
    from .config import get_config

    global _pool
    if _pool is None:
        with _pool_lock:
            if _pool is None:
                config = get_config()
                try:
                    _pool = psycopg2_pool.ThreadedConnectionPool(
                        **config.pool_config,
                        **config.connection_params,
                    )
                except psycopg2.Error as e:
                    raise DatabaseException(f"Failed to create connection pool: {e}") from e
    return _pool


def _get_conn_with_timeout(pool: psycopg2_pool.ThreadedConnectionPool, timeout: int) -> Any:
    """Get a connection from pool with timeout.

    Raises:
        PoolError: If timeout expires before connection is available
    """
    result_queue: queue.Queue = queue.Queue()

    def _get_conn():
        try:
            conn = pool.getconn()
            result_queue.put(("success", conn))
        except Exception as e:
            result_queue.put(("error", e))

    thread = threading.Thread(target=_get_conn, daemon=True)
    thread.start()

    try:
        result_type, result_value = result_queue.get(timeout=timeout)
        if result_type == "error":
            raise result_value
        return result_value
    except queue.Empty:
        raise PoolError(f"Connection pool timeout after {timeout} seconds")


def _validate_connection(conn: Any) -> bool:
    """Check if a pooled connection is still usable."""
    if conn.closed:
        return False

    try:
        with conn.cursor() as cur:
            cur.execute("SELECT 1")
            cur.fetchone()
        return True
    except psycopg2.Error:
        return False


def _get_healthy_connection(pool: psycopg2_pool.ThreadedConnectionPool, timeout: int) -> Any:
    """Get a healthy connection from pool, discarding stale ones."""
    max_attempts = 3
    for _ in range(max_attempts):
        conn = _get_conn_with_timeout(pool, timeout)
        if _validate_connection(conn):
            return conn
        pool.putconn(conn, close=True)

    raise PoolError("Failed to get healthy connection after multiple attempts")


@contextmanager
def get_cursor() -> Generator[Any, None, None]:
    """Get a dict cursor with auto-commit on success, rollback on error.

    psycopg2 errors surface as ``DatabaseException``; any other exception
    raised inside the block (e.g. a ``ConflictError``) rolls back and
    propagates unchanged.

    Usage:
        with get_cursor() as cur:
            cur.execute("SELECT * FROM articles WHERE id = %s", (article_id,))
            row = cur.fetchone()
    """
    from .config import get_config

    pool = _get_pool()
    try:
        conn = _get_healthy_connection(pool, get_config().db_pool_timeout)
    except (PoolError, psycopg2.Error) as e:
        raise DatabaseException(f"Database unavailable: {e}") from e
    try:
        with conn.cursor(cursor_factory=RealDictCursor) as cur:
            yield cur
        conn.commit()
    except psycopg2.Error as e:
        conn.rollback()
        raise DatabaseException(f"Query failed: {e}") from e
    except Exception:
        conn.rollback()
        raise
    finally:
        pool.putconn(conn)


@contextmanager
def get_connection() -> Generator[Any, None, None]:
    """Get a raw pooled connection, for schema management."""
    from .config import get_config

    pool = _get_pool()
    conn = _get_healthy_connection(pool, get_config().db_pool_timeout)
    try:
        yield conn
    finally:
        pool.putconn(conn)


def close_pool() -> None:
    """Close the connection pool."""
    global _pool
    if _pool is not None:
        _pool.closeall()
        _pool = None


def init_schema(schema_path: str | Path | None = None) -> None:
    """Create all tables from schema.sql (idempotent)."""
    path = Path(schema_path) if schema_path else SCHEMA_PATH
    if not path.exists():
        raise FileNotFoundError(f"schema.sql not found at {path}")

    schema_sql = path.read_text(encoding="utf-8")
    with get_connection() as conn:
        conn.autocommit = True
        try:
            with conn.cursor() as cur:
                cur.execute(schema_sql)
        finally:
            conn.autocommit = False
