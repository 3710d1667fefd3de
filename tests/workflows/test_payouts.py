"""Tests for warrant.workflows.payouts."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from warrant.core.exceptions import AuthorizationError
from warrant.core.models import Actor, Role
from warrant.revenue.allocator import PayoutSummary
from warrant.workflows.payouts import run_payouts

ADMIN = Actor("admin-1", Role.ADMIN)


@pytest.fixture
def allocator():
    with patch("warrant.workflows.payouts.RevenueAllocator") as cls:
        instance = cls.return_value
        instance.ensure_revenue_entries = AsyncMock(return_value=True)
        instance.execute_payouts = AsyncMock(return_value=PayoutSummary(period="2026-09", paid=4, failed=1))
        yield instance


class TestRunPayouts:
    async def test_prepare_only_defaults_to_previous_month(self, ctx, allocator):
        result = await run_payouts(ctx, ADMIN)

        allocator.ensure_revenue_entries.assert_awaited_once_with("2026-09", triggered_by="admin-1")
        allocator.execute_payouts.assert_not_called()
        assert result["period"] == "2026-09"
        assert result["generated"] is True
        assert result["executed"] is False
        assert "execute=true" in result["message"]

    async def test_execute(self, ctx, allocator):
        result = await run_payouts(ctx, ADMIN, period="2026-08", execute=True)

        allocator.execute_payouts.assert_awaited_once_with("2026-08", triggered_by="admin-1")
        assert result == {"period": "2026-08", "generated": True, "executed": True, "paid": 4, "failed": 1}

    async def test_rerun_skips_generation(self, ctx, allocator):
        allocator.ensure_revenue_entries.return_value = False
        result = await run_payouts(ctx, ADMIN, period="2026-09", execute=True)
        assert result["generated"] is False
        assert result["paid"] == 4

    async def test_requires_admin(self, ctx, allocator):
        with pytest.raises(AuthorizationError):
            await run_payouts(ctx, Actor("author-1", Role.JOURNALIST))
        allocator.ensure_revenue_entries.assert_not_called()
