"""Foundation layer: errors and value types, configuration, testing doubles."""

from .errors import (
    ClassifiedError,
    ErrorCategory,
    HTTPError,
    ResponseMetadata,
    RetryCapacityExceededError,
    RetryError,
    RetryInfo,
    RetryRejectedError,
    RetryToken,
)
from .config import RetrycaseSettings, clear_settings_cache, get_settings

__all__ = [
    "ErrorCategory",
    "ClassifiedError",
    "RetryToken",
    "RetryInfo",
    "ResponseMetadata",
    "RetryError",
    "RetryCapacityExceededError",
    "RetryRejectedError",
    "HTTPError",
    "RetrycaseSettings",
    "get_settings",
    "clear_settings_cache",
]
