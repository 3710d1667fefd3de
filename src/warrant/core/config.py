"""Core configuration - centralized config for the warrant package.

All environment-based configuration should flow through this module.
This provides a single source of truth and consistent defaults.

Usage:
    from warrant.core.config import get_config
    config = get_config()

    ttl = config.reputation_cache_ttl_seconds
    pool_share = config.journalist_pool_share
"""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CoreSettings(BaseSettings):
    """Core configuration settings for Warrant.

    Settings can be configured via environment variables with the
    WARRANT_ prefix, or through a local ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # DATABASE SETTINGS
    # ==========================================================================

    db_host: str = Field(
        default="localhost",
        description="Database host",
        validation_alias="WARRANT_DB_HOST",
    )
    db_port: int = Field(
        default=5432,
        description="Database port",
        validation_alias="WARRANT_DB_PORT",
    )
    db_name: str = Field(
        default="warrant",
        description="Database name",
        validation_alias="WARRANT_DB_NAME",
    )
    db_user: str = Field(
        default="warrant",
        description="Database user",
        validation_alias="WARRANT_DB_USER",
    )
    db_password: str = Field(
        default="",
        description="Database password",
        validation_alias="WARRANT_DB_PASSWORD",
    )

    # Connection pool settings
    db_pool_min: int = Field(
        default=2,
        description="Minimum pool connections",
        validation_alias="WARRANT_DB_POOL_MIN",
    )
    db_pool_max: int = Field(
        default=20,
        description="Maximum pool connections",
        validation_alias="WARRANT_DB_POOL_MAX",
    )
    db_pool_timeout: int = Field(
        default=10,
        description="Seconds to wait for a pooled connection",
        validation_alias="WARRANT_DB_POOL_TIMEOUT",
    )

    # ==========================================================================
    # RUNTIME / LOGGING SETTINGS
    # ==========================================================================

    environment: str = Field(
        default="development",
        description="Deployment environment; 'production' hides internal error details",
        validation_alias="WARRANT_ENVIRONMENT",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
        validation_alias="WARRANT_LOG_LEVEL",
    )
    log_format: str = Field(
        default="",
        description="Log format: 'json', 'text', or '' (auto-detect)",
        validation_alias="WARRANT_LOG_FORMAT",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (optional)",
        validation_alias="WARRANT_LOG_FILE",
    )

    # ==========================================================================
    # CACHE SETTINGS
    # ==========================================================================

    cache_backend: str = Field(
        default="memory",
        description="Score cache backend: 'memory' (per process) or 'redis' (shared)",
        validation_alias="WARRANT_CACHE_BACKEND",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis URL used when cache_backend is 'redis'",
        validation_alias="WARRANT_REDIS_URL",
    )
    cache_max_size: int = Field(
        default=10000,
        description="Maximum entries held by the in-process (memory) score cache",
        validation_alias="WARRANT_CACHE_MAX_SIZE",
    )
    reputation_cache_ttl_seconds: int = Field(
        default=300,
        description="TTL for cached reputation scores",
        validation_alias="WARRANT_REPUTATION_CACHE_TTL",
    )
    feed_cache_ttl_seconds: int = Field(
        default=60,
        description="TTL for cached ranked feed pages (0 disables)",
        validation_alias="WARRANT_FEED_CACHE_TTL",
    )

    # ==========================================================================
    # CONTENT RISK SETTINGS
    # ==========================================================================

    very_weak_source_threshold: float = Field(
        default=20.0,
        description="Source score below which sourcing alone is a medium risk",
        validation_alias="WARRANT_RISK_VERY_WEAK_THRESHOLD",
    )
    insufficient_source_threshold: float = Field(
        default=50.0,
        description="Source score below which allegation language forces a hold",
        validation_alias="WARRANT_RISK_INSUFFICIENT_THRESHOLD",
    )
    extra_allegation_patterns: list[str] = Field(
        default_factory=list,
        description="Additional regex patterns treated as allegation language (JSON list)",
        validation_alias="WARRANT_EXTRA_ALLEGATION_PATTERNS",
    )

    # ==========================================================================
    # DISTRIBUTION SETTINGS
    # ==========================================================================

    feed_candidate_multiplier: int = Field(
        default=3,
        description="Newest (offset + limit) * N published articles are ranked per feed page",
        validation_alias="WARRANT_FEED_CANDIDATE_MULTIPLIER",
    )

    # ==========================================================================
    # HTTP SERVER SETTINGS
    # ==========================================================================

    host: str = Field(
        default="127.0.0.1",
        description="Bind address for the feed server",
        validation_alias="WARRANT_HOST",
    )
    port: int = Field(
        default=8420,
        description="Port for the feed server",
        validation_alias="WARRANT_PORT",
    )
    allowed_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="CORS origins allowed to call the feed API (JSON list)",
        validation_alias="WARRANT_ALLOWED_ORIGINS",
    )

    # ==========================================================================
    # REVENUE SETTINGS
    # ==========================================================================

    journalist_pool_share: float = Field(
        default=0.85,
        description="Share of subscription revenue distributed to journalists",
        validation_alias="WARRANT_JOURNALIST_POOL_SHARE",
    )
    payout_currency: str = Field(
        default="usd",
        description="Currency passed to the payout provider",
        validation_alias="WARRANT_PAYOUT_CURRENCY",
    )

    @model_validator(mode="after")
    def _check_ranges(self) -> CoreSettings:
        if not 0.0 < self.journalist_pool_share <= 1.0:
            raise ValueError("journalist_pool_share must be in (0, 1]")
        if self.very_weak_source_threshold > self.insufficient_source_threshold:
            raise ValueError("very_weak_source_threshold cannot exceed insufficient_source_threshold")
        if self.feed_candidate_multiplier < 1:
            raise ValueError("feed_candidate_multiplier must be at least 1")
        return self

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def database_url(self) -> str:
        """Construct database URL."""
        return f"postgresql://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    @property
    def connection_params(self) -> dict:
        """Get database connection parameters dict."""
        return {
            "host": self.db_host,
            "port": self.db_port,
            "dbname": self.db_name,
            "user": self.db_user,
            "password": self.db_password,
        }

    @property
    def pool_config(self) -> dict:
        """Get connection pool configuration."""
        return {
            "minconn": self.db_pool_min,
            "maxconn": self.db_pool_max,
        }


# ==========================================================================
# GLOBAL CONFIG INSTANCE (lazy loaded)
# ==========================================================================

_config: CoreSettings | None = None


def get_config() -> CoreSettings:
    """Get the global configuration instance.

    Returns:
        The singleton CoreSettings instance.
    """
    global _config
    if _config is None:
        _config = CoreSettings()
    return _config


def clear_config_cache() -> None:
    """Clear the config cache. Useful for testing."""
    global _config
    _config = None
