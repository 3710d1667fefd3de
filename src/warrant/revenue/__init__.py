"""Revenue allocation weighted by integrity."""

from .allocator import (
    JournalistRevenue,
    PayoutSummary,
    RevenueAllocator,
    RevenueEntry,
    allocate_pool,
    parse_period,
    previous_period,
)
from .multiplier import IntegrityHistory, integrity_multiplier

__all__ = [
    "IntegrityHistory",
    "JournalistRevenue",
    "PayoutSummary",
    "RevenueAllocator",
    "RevenueEntry",
    "allocate_pool",
    "integrity_multiplier",
    "parse_period",
    "previous_period",
]
