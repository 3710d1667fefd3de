# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Warrant Contributors

"""Distribution score for ranking published articles.

Combines author reputation, sourcing and recency, minus integrity
penalties, into a single value in [0, 100]:

    reputation  = reputation_score / 100 * 40
    sourcing    = (15 if source_complete else 0) + min(10, source_count * 2.5)
    recency     = max(0, 1 - age_hours / 72) * 20
    penalties   = label_penalties + correction_count * 2 + flag_count * 1.5

Pure and deterministic; safe to call from any number of requests at once.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

REPUTATION_WEIGHT = 40.0
SOURCE_COMPLETE_BONUS = 15.0
PER_SOURCE_BONUS = 2.5
MAX_SOURCE_COUNT_BONUS = 10.0
RECENCY_WEIGHT = 20.0
RECENCY_WINDOW_HOURS = 72.0
CORRECTION_PENALTY = 2.0
FLAG_PENALTY = 1.5


@dataclass
class ScoringFactors:
    """Inputs to the distribution score.

    ``label_penalties`` is the pre-summed penalty of the article's active
    labels (see ``warrant.integrity.labels.label_penalty``).
    """

    reputation_score: float = 50.0
    source_complete: bool = False
    source_count: int = 0
    label_penalties: float = 0.0
    correction_count: int = 0
    age_hours: float = 0.0
    flag_count: int = 0


def calculate_distribution_score(factors: ScoringFactors) -> float:
    reputation = (factors.reputation_score / 100) * REPUTATION_WEIGHT
    sourcing = (SOURCE_COMPLETE_BONUS if factors.source_complete else 0.0) + min(
        MAX_SOURCE_COUNT_BONUS, factors.source_count * PER_SOURCE_BONUS
    )
    recency = max(0.0, 1 - factors.age_hours / RECENCY_WINDOW_HOURS) * RECENCY_WEIGHT
    penalties = (
        factors.label_penalties + factors.correction_count * CORRECTION_PENALTY + factors.flag_count * FLAG_PENALTY
    )

    return max(0.0, min(100.0, reputation + sourcing + recency - penalties))


def effective_age_hours(
    published_at: datetime | None,
    last_corrected_at: datetime | None,
    now: datetime,
) -> float:
    """Hours since the later of publication and the last correction.

    A correction refreshes the article's recency. Future timestamps count as
    age zero, and so does an article with neither timestamp.
    """
    anchors = [t for t in (published_at, last_corrected_at) if t is not None]
    if not anchors:
        return 0.0
    age = (now - max(anchors)).total_seconds() / 3600
    return max(0.0, age)
