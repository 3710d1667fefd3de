"""Tests for warrant.core.logging."""

from __future__ import annotations

import json
import logging

from warrant.core.logging import (
    JSONFormatter,
    StandardFormatter,
    configure_logging,
    correlation_context,
    get_correlation_id,
)


def _record(msg: str = "hello", level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord("warrant.test", level, __file__, 10, msg, None, None)


class TestCorrelation:
    def test_context_sets_and_resets(self):
        assert get_correlation_id() is None
        with correlation_context("cid-123") as cid:
            assert cid == "cid-123"
            assert get_correlation_id() == "cid-123"
        assert get_correlation_id() is None

    def test_generates_id(self):
        with correlation_context() as cid:
            assert cid
            assert get_correlation_id() == cid


class TestFormatters:
    def test_json_formatter(self):
        with correlation_context("cid-1"):
            data = json.loads(JSONFormatter().format(_record("scored")))
        assert data["message"] == "scored"
        assert data["level"] == "INFO"
        assert data["correlation_id"] == "cid-1"
        assert "source" not in data

    def test_json_formatter_warning_has_source(self):
        data = json.loads(JSONFormatter().format(_record("careful", logging.WARNING)))
        assert data["source"]["line"] == 10

    def test_standard_formatter_prefixes_correlation(self):
        formatter = StandardFormatter(use_colors=False)
        with correlation_context("abcdef123456"):
            out = formatter.format(_record("hi"))
        assert "[abcdef12] hi" in out


class TestConfigureLogging:
    def test_configure_json(self, clean_env):
        configure_logging(level="DEBUG", json_format=True)
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_configure_text(self, clean_env):
        configure_logging(level="WARNING", json_format=False)
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert isinstance(root.handlers[0].formatter, StandardFormatter)
