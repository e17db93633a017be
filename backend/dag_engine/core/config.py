"""Application configuration using Pydantic Settings.

Environment variables are loaded from .env files and system environment.
All sensitive values should be provided via environment variables.
"""

from functools import lru_cache

from pydantic import PostgresDsn, RedisDsn, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    All settings can be overridden via environment variables.
    Environment variables take precedence over .env file values.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    PROJECT_NAME: str = "DAG Execution Engine"
    DEBUG: bool = False
    API_V1_PREFIX: str = "/api/v1"

    # CORS
    ALLOWED_ORIGINS: list[str] = ["http://localhost:3000"]

    # Database (audit store)
    DATABASE_URL: PostgresDsn | None = None
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 30

    # Redis (optional shared result cache; in-memory when unset)
    REDIS_URL: RedisDsn | None = None

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str | None = None  # Defaults to logs/app.log
    LOG_JSON_FORMAT: bool = True  # Use JSON format for file logs

    # DAG engine
    DAG_BOTTLENECK_THRESHOLD_MS: float = 100.0
    DAG_MAX_PARALLEL_NODES: int = 10
    DAG_DEFAULT_NODE_TIMEOUT_MS: int = 30_000
    DAG_CACHE_MAX_ENTRIES: int = 10_000  # 0 disables the bound
    DAG_CACHE_TTL: int = 0  # Seconds, 0 keeps entries until evicted

    @field_validator("DAG_MAX_PARALLEL_NODES")
    @classmethod
    def validate_parallel_limit(cls, v: int) -> int:
        """Require at least one concurrent node slot."""
        if v < 1:
            raise ValueError("DAG_MAX_PARALLEL_NODES must be >= 1")
        return v

    @field_validator("DAG_CACHE_MAX_ENTRIES")
    @classmethod
    def validate_cache_bound(cls, v: int) -> int:
        """Reject negative cache bounds."""
        if v < 0:
            raise ValueError("DAG_CACHE_MAX_ENTRIES must be >= 0")
        return v

    @field_validator("DAG_CACHE_TTL")
    @classmethod
    def validate_cache_ttl(cls, v: int) -> int:
        if v < 0:
            raise ValueError("DAG_CACHE_TTL must be >= 0")
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are cached after first load for performance.
    """
    return Settings()


# Global settings instance
settings = get_settings()
