"""Tests for warrant.workflows.moderation."""

from __future__ import annotations

import pytest
from conftest import calls_matching

from warrant.core.audit import AuditAction
from warrant.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationException
from warrant.core.models import Actor, Role
from warrant.workflows.moderation import resolve_dispute, review_flag

ADMIN = Actor("admin-1", Role.ADMIN)
JOURNALIST = Actor("author-1", Role.JOURNALIST)


def flag_row(reason: str = "INACCURATE", status: str = "PENDING"):
    return {"id": "flag-1", "article_id": "article-1", "author_id": "author-1", "reason": reason, "status": status}


def dispute_row(status: str = "PENDING"):
    return {"id": "dispute-1", "article_id": "article-1", "author_id": "author-1", "status": status}


class TestReviewFlag:
    async def test_upheld_penalizes_and_labels(self, ctx, mock_cursor, mock_audit, label_row_factory):
        mock_cursor.fetchone.side_effect = [
            flag_row("INACCURATE"),
            {"reputation_score": 50.0},
            {"id": "evt-1"},
            label_row_factory(label_type="DISPUTED"),
        ]

        result = await review_flag(ctx, "flag-1", ADMIN, "UPHELD", review_note="Figures wrong")

        assert result == {"flag_id": "flag-1", "status": "UPHELD", "label": "DISPUTED"}
        assert "FOR UPDATE OF f" in mock_cursor.execute.call_args_list[0].args[0]
        event = calls_matching(mock_cursor, "INSERT INTO reputation_events")[0]
        assert event.args[1][:4] == ("author-1", "FLAG_UPHELD_AGAINST", -2.0, "Flag upheld: INACCURATE")
        label = calls_matching(mock_cursor, "INSERT INTO integrity_labels")[0]
        assert label.args[1][:4] == ("article-1", "DISPUTED", "admin-1", "Figures wrong")
        assert mock_audit.log.call_args.kwargs["action"] == AuditAction.FLAG_REVIEWED

    async def test_missing_source_flag_labels_needs_source(self, ctx, mock_cursor, label_row_factory):
        mock_cursor.fetchone.side_effect = [
            flag_row("MISSING_SOURCE"),
            {"reputation_score": 50.0},
            {"id": "evt-1"},
            label_row_factory(label_type="NEEDS_SOURCE"),
        ]
        result = await review_flag(ctx, "flag-1", ADMIN, "UPHELD")
        assert result["label"] == "NEEDS_SOURCE"

    async def test_upheld_without_label_mapping(self, ctx, mock_cursor):
        mock_cursor.fetchone.side_effect = [flag_row("SPAM"), {"reputation_score": 50.0}, {"id": "evt-1"}]
        result = await review_flag(ctx, "flag-1", ADMIN, "UPHELD")
        assert result["label"] is None
        assert not calls_matching(mock_cursor, "INSERT INTO integrity_labels")

    async def test_dismissed_has_no_effects(self, ctx, mock_cursor):
        mock_cursor.fetchone.return_value = flag_row()
        result = await review_flag(ctx, "flag-1", ADMIN, "DISMISSED")

        assert result["status"] == "DISMISSED"
        assert calls_matching(mock_cursor, "UPDATE flags")
        assert not calls_matching(mock_cursor, "INSERT INTO reputation_events")

    async def test_already_reviewed_conflicts(self, ctx, mock_cursor):
        mock_cursor.fetchone.return_value = flag_row(status="UPHELD")
        with pytest.raises(ConflictError):
            await review_flag(ctx, "flag-1", ADMIN, "DISMISSED")
        assert not calls_matching(mock_cursor, "UPDATE flags")

    async def test_missing_flag(self, ctx):
        with pytest.raises(NotFoundError):
            await review_flag(ctx, "flag-x", ADMIN, "UPHELD")

    async def test_requires_admin(self, ctx, mock_cursor):
        with pytest.raises(AuthorizationError, match="Admin access required"):
            await review_flag(ctx, "flag-1", JOURNALIST, "UPHELD")
        mock_cursor.execute.assert_not_called()

    async def test_overturned_not_valid_for_flags(self, ctx):
        with pytest.raises(ValidationException):
            await review_flag(ctx, "flag-1", ADMIN, "OVERTURNED")


class TestResolveDispute:
    async def test_upheld_penalizes_author(self, ctx, mock_cursor, mock_audit):
        mock_cursor.fetchone.side_effect = [dispute_row(), {"reputation_score": 50.0}, {"id": "evt-1"}]
        resolution = "The quoted figures were fabricated. " * 10

        result = await resolve_dispute(ctx, "dispute-1", ADMIN, "UPHELD", resolution)

        assert result == {"dispute_id": "dispute-1", "status": "UPHELD", "removed_labels": []}
        event = calls_matching(mock_cursor, "INSERT INTO reputation_events")[0]
        assert event.args[1][1] == "DISPUTE_UPHELD_AGAINST"
        assert event.args[1][3] == f"Dispute upheld: {resolution[:100]}"
        update = calls_matching(mock_cursor, "UPDATE journalist_profiles")[0]
        assert update.args[1][0] == 45.0
        assert mock_audit.log.call_args.kwargs["action"] == AuditAction.DISPUTE_RESOLVED

    async def test_overturned_removes_disputed_labels(self, ctx, mock_cursor, label_row_factory):
        disputed = label_row_factory(id="label-d", label_type="DISPUTED")
        other = label_row_factory(id="label-n", label_type="NEEDS_SOURCE")
        mock_cursor.fetchall.return_value = [disputed, other]
        mock_cursor.fetchone.side_effect = [
            dispute_row(),
            disputed,
            {**disputed, "active": False, "removed_by": "admin-1"},
            {"reputation_score": 50.0},
            {"id": "evt-1"},
        ]

        result = await resolve_dispute(ctx, "dispute-1", ADMIN, "OVERTURNED", "Reporting stands.")

        assert result["removed_labels"] == ["label-d"]
        event = calls_matching(mock_cursor, "INSERT INTO reputation_events")[0]
        assert event.args[1][:4] == (
            "author-1",
            "DISPUTE_OVERTURNED_FOR",
            2.0,
            "Dispute overturned in author's favor",
        )

    async def test_dismissed_no_reputation_change(self, ctx, mock_cursor):
        mock_cursor.fetchone.return_value = dispute_row()
        result = await resolve_dispute(ctx, "dispute-1", ADMIN, "DISMISSED", "Not actionable.")
        assert result["status"] == "DISMISSED"
        assert not calls_matching(mock_cursor, "INSERT INTO reputation_events")

    async def test_already_resolved(self, ctx, mock_cursor):
        mock_cursor.fetchone.return_value = dispute_row(status="OVERTURNED")
        with pytest.raises(ConflictError):
            await resolve_dispute(ctx, "dispute-1", ADMIN, "UPHELD", "Again")

    async def test_resolution_required(self, ctx, mock_cursor):
        with pytest.raises(ValidationException, match="resolution"):
            await resolve_dispute(ctx, "dispute-1", ADMIN, "UPHELD", "  ")
        mock_cursor.execute.assert_not_called()

    async def test_unknown_status(self, ctx):
        with pytest.raises(ValidationException, match="Invalid resolution status"):
            await resolve_dispute(ctx, "dispute-1", ADMIN, "MAYBE", "Hmm")

    async def test_requires_admin(self, ctx):
        with pytest.raises(AuthorizationError):
            await resolve_dispute(ctx, "dispute-1", JOURNALIST, "UPHELD", "Mine")
