"""Tests for the standard retry strategy."""

import pytest

from retrycase.foundation.errors import (
    ClassifiedError,
    ErrorCategory,
    RetryCapacityExceededError,
    RetryError,
    RetryRejectedError,
)
from retrycase.foundation.testing import VirtualClock, VirtualSleeper
from retrycase.runtime.retry import (
    BucketConfig,
    RetryPolicySet,
    RetryStrategy,
    StandardRetryStrategy,
    TokenBucket,
    TokenBucketPool,
)


def make_strategy(max_attempts: int = 3, **bucket: int | bool) -> tuple[StandardRetryStrategy, TokenBucketPool]:
    clock = VirtualClock()
    pool = TokenBucketPool(BucketConfig(**bucket), clock=clock, sleeper=VirtualSleeper(clock))
    return StandardRetryStrategy(pool, RetryPolicySet.standard(max_attempts)), pool


def test_defaults() -> None:
    strategy = StandardRetryStrategy()
    assert isinstance(strategy, RetryStrategy)
    assert isinstance(strategy.bucket, TokenBucketPool)
    assert strategy.max_attempts == 3


@pytest.mark.asyncio
async def test_full_lifecycle_success_after_retry() -> None:
    strategy, pool = make_strategy(max_capacity=50)
    token = await strategy.acquire_initial_token("orders")
    assert token.attempt == 0
    token = await strategy.refresh_retry_token(token, ClassifiedError(ErrorCategory.TRANSIENT))
    assert token.attempt == 1
    assert pool.get("orders").capacity == 40
    strategy.record_success(token)
    assert pool.get("orders").capacity == 50


@pytest.mark.asyncio
async def test_rejects_after_max_attempts() -> None:
    strategy, _ = make_strategy(max_attempts=2)
    token = await strategy.acquire_initial_token("p")
    token = await strategy.refresh_retry_token(token, ClassifiedError(ErrorCategory.THROTTLING))
    token = await strategy.refresh_retry_token(token, ClassifiedError(ErrorCategory.THROTTLING))
    with pytest.raises(RetryRejectedError) as info:
        await strategy.refresh_retry_token(token, ClassifiedError(ErrorCategory.THROTTLING))
    assert info.value.token.attempt == 2


@pytest.mark.asyncio
async def test_rejects_non_retryable_category_without_charging() -> None:
    strategy, pool = make_strategy()
    token = await strategy.acquire_initial_token("p")
    with pytest.raises(RetryRejectedError) as info:
        await strategy.refresh_retry_token(token, ClassifiedError(ErrorCategory.CLIENT))
    assert info.value.error.category is ErrorCategory.CLIENT
    assert pool.get("p").capacity == 500


@pytest.mark.asyncio
async def test_capacity_denial_is_distinct_from_rejection() -> None:
    strategy, _ = make_strategy(max_capacity=10, timeout_retry_cost=10)
    token = await strategy.acquire_initial_token("p")
    token = await strategy.refresh_retry_token(token, ClassifiedError(ErrorCategory.TRANSIENT))
    with pytest.raises(RetryCapacityExceededError) as info:
        await strategy.refresh_retry_token(token, ClassifiedError(ErrorCategory.TRANSIENT))
    assert not isinstance(info.value, RetryRejectedError)
    assert isinstance(info.value, RetryError)


@pytest.mark.asyncio
async def test_accepts_single_bucket() -> None:
    clock = VirtualClock()
    bucket = TokenBucket(BucketConfig(max_capacity=20, initial_cost=2), clock, VirtualSleeper(clock))
    strategy = StandardRetryStrategy(bucket)
    token = await strategy.acquire_initial_token("anything")
    assert token.partition == "anything"
    assert bucket.capacity == 18
