# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Warrant Contributors

"""Integrity multiplier applied to an author's readership.

The base factor is piecewise linear in reputation:

    reputation    0  ->  0.1x
    reputation   50  ->  1.0x
    reputation  100  ->  1.5x

History within the billing period then subtracts a fixed amount per
incident, and the result is clamped to [0.1, 1.5].
"""

from __future__ import annotations

from dataclasses import dataclass

MIN_MULTIPLIER = 0.1
NEUTRAL_MULTIPLIER = 1.0
MAX_MULTIPLIER = 1.5
NEUTRAL_REPUTATION = 50.0

UPHELD_DISPUTE_PENALTY = 0.10
MAJOR_CORRECTION_PENALTY = 0.05
MINOR_CORRECTION_PENALTY = 0.01
DISPUTED_LABEL_PENALTY = 0.05
REVIEW_LABEL_PENALTY = 0.02


@dataclass
class IntegrityHistory:
    """Counts of integrity incidents for one author.

    ``review_labels`` counts active NEEDS_SOURCE and UNDER_REVIEW labels.
    """

    upheld_disputes: int = 0
    major_corrections: int = 0
    minor_corrections: int = 0
    disputed_labels: int = 0
    review_labels: int = 0

    @property
    def penalty(self) -> float:
        return (
            self.upheld_disputes * UPHELD_DISPUTE_PENALTY
            + self.major_corrections * MAJOR_CORRECTION_PENALTY
            + self.minor_corrections * MINOR_CORRECTION_PENALTY
            + self.disputed_labels * DISPUTED_LABEL_PENALTY
            + self.review_labels * REVIEW_LABEL_PENALTY
        )


def reputation_factor(reputation_score: float) -> float:
    score = max(0.0, min(100.0, reputation_score))
    if score <= NEUTRAL_REPUTATION:
        return MIN_MULTIPLIER + (score / NEUTRAL_REPUTATION) * (NEUTRAL_MULTIPLIER - MIN_MULTIPLIER)
    return NEUTRAL_MULTIPLIER + ((score - NEUTRAL_REPUTATION) / NEUTRAL_REPUTATION) * (
        MAX_MULTIPLIER - NEUTRAL_MULTIPLIER
    )


def integrity_multiplier(reputation_score: float, history: IntegrityHistory | None = None) -> float:
    factor = reputation_factor(reputation_score)
    if history is not None:
        factor -= history.penalty
    return round(max(MIN_MULTIPLIER, min(MAX_MULTIPLIER, factor)), 4)
