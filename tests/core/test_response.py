"""Tests for warrant.core.response."""

from __future__ import annotations

from warrant.core.exceptions import DatabaseException, NotFoundError
from warrant.core.response import err, from_exception, ok


def test_ok_envelope():
    resp = ok({"status": "PUBLISHED"})
    assert resp.success is True
    assert resp.to_dict() == {"success": True, "data": {"status": "PUBLISHED"}}


def test_ok_without_data():
    assert ok().to_dict() == {"success": True}


def test_err_envelope():
    resp = err("Article not found", status_code=404)
    assert resp.status_code == 404
    assert resp.to_dict() == {"success": False, "error": "Article not found"}


def test_from_exception_keeps_client_errors():
    resp = from_exception(NotFoundError("Article", "a1"), hide_internal=True)
    assert resp.status_code == 404
    assert resp.error == "Article not found: a1"


def test_from_exception_hides_internal():
    resp = from_exception(DatabaseException("connection refused at 10.0.0.5"), hide_internal=True)
    assert resp.status_code == 500
    assert resp.error == "Internal server error"


def test_from_exception_shows_internal_outside_production():
    resp = from_exception(DatabaseException("connection refused"))
    assert resp.error == "connection refused"
