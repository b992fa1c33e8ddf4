"""Runtime - Execution flow, control, and monitoring.

Contains: retry (bucket, backoff, policies, retryer), concurrency
(clock/sleeper capabilities), observability (logging setup).
"""

from __future__ import annotations

from .concurrency import AsyncioSleeper, Clock, MonotonicClock, Sleeper
from .observability import configure_logging
from .retry import (
    Backoff,
    BackoffConfig,
    BucketConfig,
    ErrorCategoryPolicy,
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
    retry,
)

__all__ = [
    # Concurrency
    "Clock", "Sleeper", "MonotonicClock", "AsyncioSleeper",
    # Observability
    "configure_logging",
    # Retry
    "Backoff", "BackoffConfig", "ExponentialBackoffWithJitter",
    "BucketConfig", "TokenBucket", "TokenBucketPool",
    "StandardErrorClassifier",
    "RetryPolicy", "RetryPolicySet", "MaxAttemptsPolicy", "ErrorCategoryPolicy",
    "RetryStrategy", "StandardRetryStrategy",
    "Retryer", "StandardRetryer", "retry",
]
