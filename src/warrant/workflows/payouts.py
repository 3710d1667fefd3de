"""Admin-triggered revenue runs."""

from __future__ import annotations

from typing import Any

from ..core.context import TrustContext
from ..core.models import Actor
from ..revenue.allocator import RevenueAllocator, previous_period
from .access import require_admin


async def run_payouts(
    ctx: TrustContext,
    actor: Actor,
    period: str | None = None,
    execute: bool = False,
) -> dict[str, Any]:
    """Prepare revenue entries for a period and optionally pay them out.

    ``period`` defaults to the most recent closed month. Re-running for a
    period that already has entries is a no-op for generation.
    """
    require_admin(actor)
    period = period or previous_period(ctx.now())
    allocator = RevenueAllocator(ctx)

    generated = await allocator.ensure_revenue_entries(period, triggered_by=actor.id)
    result: dict[str, Any] = {"period": period, "generated": generated, "executed": execute}
    if not execute:
        result["message"] = "Revenue entries prepared. Re-run with execute=true to create transfers."
        return result

    summary = await allocator.execute_payouts(period, triggered_by=actor.id)
    result.update(paid=summary.paid, failed=summary.failed)
    return result
