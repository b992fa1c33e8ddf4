"""Retry orchestration: token bucket, backoff, classification, policies.

Example:
    >>> from retrycase.runtime.retry import StandardRetryer, StandardRetryStrategy, TokenBucketPool, BucketConfig
    >>> from retrycase.runtime.retry import RetryPolicySet, ExponentialBackoffWithJitter, BackoffConfig
    >>>
    >>> retryer = StandardRetryer(
    ...     StandardRetryStrategy(
    ...         TokenBucketPool(BucketConfig(max_capacity=100, refill_rate=5)),
    ...         RetryPolicySet.standard(max_attempts=4),
    ...     ),
    ...     ExponentialBackoffWithJitter(BackoffConfig(initial_delay=0.1, max_delay=5.0)),
    ...     partition="payments",
    ... )
    >>> result = await retryer.execute(call_payments)
"""

from .backoff import Backoff, BackoffConfig, ExponentialBackoffWithJitter
from .bucket import BucketConfig, BucketScope, RetryTokenBucket, TokenBucket, TokenBucketPool
from .classifier import (
    ErrorClassifier,
    StandardErrorClassifier,
    category_for_status,
    parse_retry_after,
    response_of,
)
from .policy import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_RETRYABLE,
    ErrorCategoryPolicy,
    MaxAttemptsPolicy,
    RetryPolicy,
    RetryPolicySet,
)
from .retryer import Retryer, StandardRetryer, default_retryer, retry
from .strategy import RetryStrategy, StandardRetryStrategy

__all__ = [
    # Backoff
    "Backoff",
    "BackoffConfig",
    "ExponentialBackoffWithJitter",
    # Token bucket
    "BucketConfig",
    "BucketScope",
    "RetryTokenBucket",
    "TokenBucket",
    "TokenBucketPool",
    # Classification
    "ErrorClassifier",
    "StandardErrorClassifier",
    "category_for_status",
    "parse_retry_after",
    "response_of",
    # Policies
    "RetryPolicy",
    "RetryPolicySet",
    "MaxAttemptsPolicy",
    "ErrorCategoryPolicy",
    "DEFAULT_RETRYABLE",
    "DEFAULT_MAX_ATTEMPTS",
    # Strategy & execution
    "RetryStrategy",
    "StandardRetryStrategy",
    "Retryer",
    "StandardRetryer",
    "retry",
    "default_retryer",
]
