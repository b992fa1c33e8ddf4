"""Configuration management using pydantic-settings.

Provides environment-based configuration with type safety and validation.
"""

from .settings import (
    BackoffSettings,
    BucketSettings,
    LoggingSettings,
    RetrycaseSettings,
    RetrySettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "BackoffSettings",
    "BucketSettings",
    "LoggingSettings",
    "RetrySettings",
    "RetrycaseSettings",
    "clear_settings_cache",
    "get_settings",
]
