"""Ledger configuration with validation."""

from enum import Enum
from functools import lru_cache

from pydantic_settings import BaseSettings
from pydantic import Field, field_validator

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Environment(str, Enum):
    """Deployment environment."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """
    Ledger settings with validation.

    Values come from the environment (or a ``.env`` file) and are passed
    explicitly to the ledger, navigator and bootstrap code.
    """

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Where the ledger runs (development or production)"
    )

    # Storage
    database_url: str = Field(
        default="sqlite:///./revisable.db",
        description="SQLAlchemy URL of the database holding live and revision tables"
    )
    # Connection pool tuning (PostgreSQL only; ignored for SQLite).
    db_pool_size: int = Field(
        default=5,
        description="Pooled connections kept open"
    )
    db_max_overflow: int = Field(
        default=10,
        description="Connections allowed beyond the pool size"
    )
    db_pool_timeout: int = Field(
        default=30,
        description="Seconds to wait for a pooled connection"
    )
    db_pool_recycle: int = Field(
        default=1800,
        description="Connection lifetime in seconds"
    )
    sqlite_busy_timeout: float = Field(
        default=30.0,
        description="Seconds a SQLite transaction waits for the write lock"
    )

    # Ledger behaviour
    # APPEND_MAX_RETRIES: attempts made when a concurrent append takes the same number.
    append_max_retries: int = Field(
        default=3,
        description="Attempts per append before a number conflict surfaces"
    )
    # current_at is stamped this far after created_at so a new revision sorts
    # strictly after a predecessor created in the same instant.
    current_at_offset_seconds: float = Field(
        default=1.0,
        description="Offset added to the creation time to form current_at"
    )
    history_page_size: int = Field(
        default=50,
        description="Default page size for revision listings"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Root logger level"
    )
    log_format: str = Field(
        default="json",
        description="json (one object per line) or text"
    )

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @field_validator('append_max_retries', 'history_page_size')
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Must be at least 1")
        return v

    @field_validator('current_at_offset_seconds', 'sqlite_busy_timeout')
    @classmethod
    def validate_positive_seconds(cls, v: float) -> float:
        """Offsets and timeouts must be positive."""
        if v <= 0:
            raise ValueError("Must be positive")
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level {v!r}; expected one of {', '.join(_LOG_LEVELS)}")
        return level

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v_lower = v.lower()
        if v_lower not in ('json', 'text'):
            raise ValueError("Invalid log format. Must be 'json' or 'text'")
        return v_lower

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    """Default settings read once from the environment."""
    return Settings()
