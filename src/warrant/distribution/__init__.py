"""Article ranking and feed generation."""

from .feed import FeedPage, FeedService, RankedArticle
from .scoring import ScoringFactors, calculate_distribution_score, effective_age_hours

__all__ = [
    "FeedPage",
    "FeedService",
    "RankedArticle",
    "ScoringFactors",
    "calculate_distribution_score",
    "effective_age_hours",
]
