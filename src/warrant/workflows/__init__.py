"""Publishing and moderation workflows built on the integrity services."""

from .corrections import issue_correction
from .moderation import resolve_dispute, review_flag
from .payouts import run_payouts
from .publishing import PublishOutcome, publish_article
from .reads import record_read

__all__ = [
    "PublishOutcome",
    "issue_correction",
    "publish_article",
    "record_read",
    "resolve_dispute",
    "review_flag",
    "run_payouts",
]
