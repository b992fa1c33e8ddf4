"""Retry strategy owning the token lifecycle of a retry sequence.

State Machine (per sequence):
    FRESH → acquire_initial_token → ATTEMPTING
    ATTEMPTING → record_success → SUCCEEDED
    ATTEMPTING → refresh_retry_token (approved) → ATTEMPTING (attempt + 1)
    ATTEMPTING → refresh_retry_token (declined) → REJECTED

Rejection by policy raises RetryRejectedError. Capacity denial by the
bucket raises RetryCapacityExceededError. Both derive from RetryError, so
a caller can handle either or both.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from retrycase.foundation.errors import ClassifiedError, RetryRejectedError, RetryToken

from .bucket import RetryTokenBucket, TokenBucketPool
from .policy import RetryPolicySet

logger = logging.getLogger("retrycase.retry.strategy")


@runtime_checkable
class RetryStrategy(Protocol):
    """Token lifecycle operations used by the retryer."""

    @property
    def max_attempts(self) -> int: ...
    async def acquire_initial_token(self, partition: str) -> RetryToken: ...
    def record_success(self, token: RetryToken) -> None: ...
    async def refresh_retry_token(self, token: RetryToken, error: ClassifiedError) -> RetryToken: ...


class StandardRetryStrategy:
    """Policy-gated strategy drawing capacity from a token bucket.

    Args:
        bucket: Single bucket or TokenBucketPool (default: partition-scoped pool)
        policies: Retry policy set (default: RetryPolicySet.standard())

    Example:
        >>> strategy = StandardRetryStrategy(policies=RetryPolicySet.standard(max_attempts=5))
        >>> token = await strategy.acquire_initial_token("billing-api")
        >>> token = await strategy.refresh_retry_token(token, ClassifiedError(ErrorCategory.TRANSIENT))
        >>> token.attempt
        1
    """

    __slots__ = ("_bucket", "_policies")

    def __init__(self, bucket: RetryTokenBucket | None = None, policies: RetryPolicySet | None = None) -> None:
        self._bucket = bucket if bucket is not None else TokenBucketPool()
        self._policies = policies or RetryPolicySet.standard()

    @property
    def bucket(self) -> RetryTokenBucket:
        return self._bucket

    @property
    def policies(self) -> RetryPolicySet:
        return self._policies

    @property
    def max_attempts(self) -> int:
        limit = self._policies.max_attempts
        return limit if limit is not None else 0

    async def acquire_initial_token(self, partition: str) -> RetryToken:
        logger.info(f"[{partition}] Acquiring initial token")
        return await self._bucket.acquire_initial(partition)

    def record_success(self, token: RetryToken) -> None:
        logger.info(f"[{token.partition}] Recording success at attempt {token.attempt}")
        self._bucket.release(token)

    async def refresh_retry_token(self, token: RetryToken, error: ClassifiedError) -> RetryToken:
        logger.info(f"[{token.partition}] Refreshing token at attempt {token.attempt} (category: {error.category})")
        if not self._policies.should_retry(token, error):
            logger.warning(f"[{token.partition}] Retry rejected at attempt {token.attempt} (category: {error.category})")
            raise RetryRejectedError(token, error)
        return await self._bucket.acquire_refresh(token, error.category)

    def __repr__(self) -> str:
        return f"StandardRetryStrategy({self._bucket!r}, {self._policies!r})"
