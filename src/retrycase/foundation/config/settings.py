"""Environment-based configuration using pydantic-settings.

Provides type-safe, validated configuration from environment variables
with documented defaults. Supports .env files and nested configuration.

Example:
    >>> from retrycase.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.bucket.max_capacity
    500
    >>> settings.retry.max_attempts
    3

    # Or with environment variables:
    # RETRYCASE_BUCKET_REFILL_RATE=20
    # RETRYCASE_RETRY_MAX_ATTEMPTS=5
    # RETRYCASE_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING, Annotated, Literal

from pydantic import (
    Field,
    NonNegativeFloat,
    NonNegativeInt,
    PositiveInt,
    field_validator,
)
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from retrycase.foundation.errors import ErrorCategory

if TYPE_CHECKING:
    from retrycase.runtime.retry.backoff import BackoffConfig
    from retrycase.runtime.retry.bucket import BucketConfig


class BucketSettings(BaseSettings):
    """Token bucket defaults."""

    model_config = SettingsConfigDict(
        env_prefix="RETRYCASE_BUCKET_",
        extra="ignore",
    )

    initial_cost: NonNegativeInt = Field(default=0, description="Units deducted for the initial attempt")
    success_increment: NonNegativeInt = Field(default=1, description="Units credited back on success")
    max_capacity: PositiveInt = Field(default=500, description="Bucket size")
    retry_cost: NonNegativeInt = Field(default=5, description="Retry cost after server/client errors")
    timeout_retry_cost: NonNegativeInt = Field(default=10, description="Retry cost after transient/throttling errors")
    refill_rate: NonNegativeInt = Field(default=10, description="Units regained per second")
    circuit_breaker: bool = True
    scope: Literal["process", "partition"] = "partition"

    def to_config(self) -> BucketConfig:
        from retrycase.runtime.retry.bucket import BucketConfig
        return BucketConfig(**self.model_dump(exclude={"scope"}))


class BackoffSettings(BaseSettings):
    """Exponential backoff defaults."""

    model_config = SettingsConfigDict(
        env_prefix="RETRYCASE_BACKOFF_",
        extra="ignore",
    )

    initial_delay: NonNegativeFloat = Field(default=0.01, description="Delay for attempt 0 in seconds")
    jitter: Annotated[float, Field(ge=0.0, le=1.0)] = 1.0
    max_delay: NonNegativeFloat = Field(default=20.0, description="Maximum delay in seconds")
    scale_factor: Annotated[float, Field(gt=1.0)] = 1.5

    def to_config(self) -> BackoffConfig:
        from retrycase.runtime.retry.backoff import BackoffConfig
        return BackoffConfig(**self.model_dump())


class RetrySettings(BaseSettings):
    """Retry policy defaults."""

    model_config = SettingsConfigDict(
        env_prefix="RETRYCASE_RETRY_",
        extra="ignore",
    )

    max_attempts: NonNegativeInt = 3
    retryable: Annotated[frozenset[ErrorCategory], NoDecode] = frozenset({ErrorCategory.TRANSIENT, ErrorCategory.THROTTLING})
    default_partition: str = Field(default="default", description="Partition used when none is given")

    @field_validator("retryable", mode="before")
    @classmethod
    def _split_categories(cls, v: object) -> object:
        """Accept comma-separated strings (e.g. "transient,throttling")."""
        if isinstance(v, str):
            return frozenset(part.strip().lower() for part in v.split(",") if part.strip())
        return v


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="RETRYCASE_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    format: Literal["json", "text"] = "text"

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class RetrycaseSettings(BaseSettings):
    """Root settings for retrycase.

    Loads configuration from environment variables with RETRYCASE_ prefix.

    Example environment variables:
        RETRYCASE_BUCKET_MAX_CAPACITY=1000
        RETRYCASE_BUCKET_SCOPE=process
        RETRYCASE_BACKOFF_JITTER=0.5
        RETRYCASE_RETRY_RETRYABLE=transient,throttling,server
        RETRYCASE_LOG_FORMAT=json
    """

    model_config = SettingsConfigDict(
        env_prefix="RETRYCASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    bucket: BucketSettings = Field(default_factory=BucketSettings)
    backoff: BackoffSettings = Field(default_factory=BackoffSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# Singleton pattern for settings
@lru_cache(maxsize=1)
def get_settings() -> RetrycaseSettings:
    """Get the global settings instance (cached)."""
    return RetrycaseSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing).

    After calling this, the next get_settings() call will
    reload configuration from environment.
    """
    get_settings.cache_clear()
