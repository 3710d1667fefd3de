"""Tests for warrant.core.audit."""

from __future__ import annotations

import json
from contextlib import contextmanager

from warrant.core.audit import AuditAction, AuditLogger


def _logger_for(cur):
    @contextmanager
    def factory():
        yield cur

    return AuditLogger(factory)


class TestAuditLog:
    def test_log_inserts_row(self, mock_cursor):
        audit = _logger_for(mock_cursor)
        audit.log(
            action=AuditAction.LABEL_APPLIED,
            entity="Article",
            entity_id="article-1",
            details={"label_type": "DISPUTED"},
            user_id="admin-1",
        )

        sql, params = mock_cursor.execute.call_args.args
        assert "INSERT INTO audit_log" in sql
        assert params[0] == "admin-1"
        assert params[1] == "label_applied"
        assert params[2] == "Article"
        assert json.loads(params[4]) == {"label_type": "DISPUTED"}

    def test_log_accepts_string_action(self, mock_cursor):
        _logger_for(mock_cursor).log("payout_run", entity="RevenueEntry")
        assert mock_cursor.execute.call_args.args[1][1] == "payout_run"

    def test_log_failure_is_non_fatal(self, caplog):
        @contextmanager
        def broken():
            raise RuntimeError("database down")
            yield  # pragma: no cover

        AuditLogger(broken).log(AuditAction.REPUTATION_EVENT, entity="JournalistProfile", entity_id="u1")
        assert "Failed to write audit log" in caplog.text
