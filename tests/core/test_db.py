"""Tests for warrant.core.db - pooled cursors and schema bootstrap."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import psycopg2
import pytest

from warrant.core import db
from warrant.core.exceptions import ConflictError, DatabaseException


@pytest.fixture
def pooled_conn():
    """Patch the pool so get_cursor hands out a mock connection."""
    pool = MagicMock()
    conn = MagicMock()
    with (
        patch("warrant.core.db._get_pool", return_value=pool),
        patch("warrant.core.db._get_healthy_connection", return_value=conn),
    ):
        yield pool, conn


class TestConnectionPool:
    @patch("warrant.core.db.psycopg2_pool.ThreadedConnectionPool")
    def test_pool_created_from_config(self, mock_pool_class, clean_env):
        db._pool = None
        mock_pool_class.return_value = MagicMock()
        try:
            assert db._get_pool() is mock_pool_class.return_value
            kwargs = mock_pool_class.call_args.kwargs
            assert kwargs["minconn"] == 2
            assert kwargs["maxconn"] == 20
            assert kwargs["dbname"] == "warrant"
        finally:
            db._pool = None

    @patch("warrant.core.db.psycopg2_pool.ThreadedConnectionPool")
    def test_pool_error_wrapped(self, mock_pool_class, clean_env):
        db._pool = None
        mock_pool_class.side_effect = psycopg2.OperationalError("refused")
        with pytest.raises(DatabaseException, match="Failed to create connection pool"):
            db._get_pool()

    def test_close_pool(self):
        pool = MagicMock()
        db._pool = pool
        db.close_pool()
        pool.closeall.assert_called_once()
        assert db._pool is None


class TestGetCursor:
    def test_commits_on_success(self, pooled_conn):
        pool, conn = pooled_conn
        with db.get_cursor() as cur:
            cur.execute("SELECT 1")

        conn.commit.assert_called_once()
        conn.rollback.assert_not_called()
        pool.putconn.assert_called_once_with(conn)

    def test_psycopg2_error_rolls_back(self, pooled_conn):
        pool, conn = pooled_conn
        with pytest.raises(DatabaseException, match="Query failed"):
            with db.get_cursor():
                raise psycopg2.IntegrityError("duplicate key")

        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()
        pool.putconn.assert_called_once_with(conn)

    def test_domain_error_propagates_unchanged(self, pooled_conn):
        _, conn = pooled_conn
        with pytest.raises(ConflictError):
            with db.get_cursor():
                raise ConflictError("Revenue entries already exist for period 2026-09")
        conn.rollback.assert_called_once()

    def test_unavailable_pool(self, clean_env):
        with (
            patch("warrant.core.db._get_pool", return_value=MagicMock()),
            patch("warrant.core.db._get_healthy_connection", side_effect=psycopg2.OperationalError("down")),
        ):
            with pytest.raises(DatabaseException, match="Database unavailable"):
                with db.get_cursor():
                    pass


class TestInitSchema:
    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            db.init_schema(tmp_path / "nope.sql")

    def test_executes_schema(self, tmp_path):
        schema = tmp_path / "schema.sql"
        schema.write_text("CREATE TABLE IF NOT EXISTS t (id int);")
        conn = MagicMock()

        with patch("warrant.core.db.get_connection") as mock_get_conn:
            mock_get_conn.return_value.__enter__.return_value = conn
            db.init_schema(schema)

        cur = conn.cursor.return_value.__enter__.return_value
        cur.execute.assert_called_once_with("CREATE TABLE IF NOT EXISTS t (id int);")
        assert conn.autocommit is False

    def test_bundled_schema_exists(self):
        text = db.SCHEMA_PATH.read_text()
        assert "CREATE TABLE IF NOT EXISTS revenue_entries" in text
        assert "UNIQUE (journalist_id, period)" in text
