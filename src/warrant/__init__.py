# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Warrant Contributors

"""Warrant - trust economy engine for an independent journalism platform.

Moderation outcomes (sourcing quality, disputes, corrections, flags) flow
into four interdependent computations:

  Assessors (sources, content risk; pure, run at publish time)
    → Reputation ledger (append-only events → per-author score)
    → Integrity labels (soft-deleted lifecycle per article)
    → Distribution score (feed ranking, read path)
    → Revenue allocation (period batch, integrity-weighted readership)

Every service receives an explicit ``TrustContext`` carrying its store,
cache, audit sink and external collaborators; nothing reaches for
process-wide handles except the default context factory.

CLI entry point: ``warrant``
"""

__version__ = "1.0.0"

from . import (
    core as core,
)
