"""Warrant Core - shared primitives for the trust engine."""

from .audit import AuditAction, AuditLogger
from .cache import RedisScoreCache, ScoreCache, TTLCache, build_cache, feed_cache_key, reputation_cache_key
from .collaborators import (
    DisabledPayoutProvider,
    NullSearchIndexer,
    PayoutProvider,
    PayoutResult,
    SearchIndexer,
    best_effort,
)
from .config import CoreSettings, clear_config_cache, get_config
from .context import TrustContext, default_context
from .exceptions import (
    AuthorizationError,
    ConfigException,
    ConflictError,
    DatabaseException,
    InternalError,
    NotFoundError,
    ValidationException,
    WarrantException,
)
from .logging import configure_logging, correlation_context
from .models import (
    Actor,
    ArticleStatus,
    CorrectionSeverity,
    IntegrityLabel,
    JournalistProfile,
    LabelType,
    ModerationOutcome,
    ReputationEvent,
    RevenueStatus,
    Role,
)
from .response import WarrantResponse, err, from_exception, ok

__all__ = [
    # Audit
    "AuditAction",
    "AuditLogger",
    # Cache
    "RedisScoreCache",
    "ScoreCache",
    "TTLCache",
    "build_cache",
    "feed_cache_key",
    "reputation_cache_key",
    # Collaborators
    "DisabledPayoutProvider",
    "NullSearchIndexer",
    "PayoutProvider",
    "PayoutResult",
    "SearchIndexer",
    "best_effort",
    # Config and context
    "CoreSettings",
    "clear_config_cache",
    "get_config",
    "TrustContext",
    "default_context",
    # Exceptions
    "AuthorizationError",
    "ConfigException",
    "ConflictError",
    "DatabaseException",
    "InternalError",
    "NotFoundError",
    "ValidationException",
    "WarrantException",
    # Logging
    "configure_logging",
    "correlation_context",
    # Models
    "Actor",
    "ArticleStatus",
    "CorrectionSeverity",
    "IntegrityLabel",
    "JournalistProfile",
    "LabelType",
    "ModerationOutcome",
    "ReputationEvent",
    "RevenueStatus",
    "Role",
    # Responses
    "WarrantResponse",
    "err",
    "from_exception",
    "ok",
]
