"""Retrycase - Retry orchestration for fallible network operations.

Decides whether, when and how long to wait before retrying an async
operation, while a shared token bucket keeps retry volume from amplifying
an outage downstream.

Quick Start:
    >>> from retrycase import StandardRetryer, HTTPError, RetryInfo
    >>>
    >>> retryer = StandardRetryer(partition="inventory")
    >>>
    >>> async def fetch(info: RetryInfo) -> dict:
    ...     resp = await client.get("/items")
    ...     if resp.status_code >= 400:
    ...         raise HTTPError.from_status(resp.status_code, dict(resp.headers))
    ...     return resp.json()
    >>>
    >>> items = await retryer.execute(fetch)

From environment configuration:
    >>> retryer = StandardRetryer.from_settings()   # RETRYCASE_* variables

Decorator:
    >>> @retry(partition="inventory")
    ... async def fetch(info: RetryInfo, sku: str) -> dict: ...
"""

from __future__ import annotations

__version__ = "0.1.0"

# Errors & types
from .foundation.errors import (
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

# Settings
from .foundation.config import RetrycaseSettings, clear_settings_cache, get_settings

# Runtime
from .runtime.concurrency import AsyncioSleeper, Clock, MonotonicClock, Sleeper
from .runtime.observability import configure_logging
from .runtime.retry import (
    Backoff,
    BackoffConfig,
    BucketConfig,
    ErrorCategoryPolicy,
    ErrorClassifier,
    ExponentialBackoffWithJitter,
    MaxAttemptsPolicy,
    RetryPolicy,
    RetryPolicySet,
    Retryer,
    RetryStrategy,
    StandardErrorClassifier,
    StandardRetryer,
    StandardRetryStrategy,
    TokenBucket,
    TokenBucketPool,
    default_retryer,
    retry,
)

__all__ = [
    "__version__",
    # Errors & types
    "ErrorCategory", "ClassifiedError", "RetryToken", "RetryInfo", "ResponseMetadata",
    "RetryError", "RetryCapacityExceededError", "RetryRejectedError", "HTTPError",
    # Settings
    "RetrycaseSettings", "get_settings", "clear_settings_cache",
    # Concurrency
    "Clock", "Sleeper", "MonotonicClock", "AsyncioSleeper",
    # Observability
    "configure_logging",
    # Retry
    "Backoff", "BackoffConfig", "ExponentialBackoffWithJitter",
    "BucketConfig", "TokenBucket", "TokenBucketPool",
    "ErrorClassifier", "StandardErrorClassifier",
    "RetryPolicy", "RetryPolicySet", "MaxAttemptsPolicy", "ErrorCategoryPolicy",
    "RetryStrategy", "StandardRetryStrategy",
    "Retryer", "StandardRetryer", "retry", "default_retryer",
]
