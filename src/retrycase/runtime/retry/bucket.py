"""Token bucket limiting retry volume per partition.

Every attempt draws units from a shared capacity that refills over time.
Successful attempts credit units back. When capacity runs short the bucket
either fails fast (circuit-breaker mode) or makes the caller wait until the
refill would cover the shortfall.

Concurrency:
    Capacity and refill mark are shared by every caller of a bucket.
    Refill+deduct and refill+credit each run as one critical section under
    a threading.Lock. The lock is never held across an await: the capacity
    delay is computed under the lock and slept after releasing it.

Partitions:
    TokenBucketPool hands out one bucket per partition ("partition" scope)
    or one bucket for the whole process ("process" scope).
"""

from __future__ import annotations

import logging
import math
import threading
from typing import Annotated, Literal, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, model_validator

from retrycase.foundation.errors import (
    TIMEOUT_CATEGORIES,
    ErrorCategory,
    RetryCapacityExceededError,
    RetryToken,
)
from retrycase.runtime.concurrency import AsyncioSleeper, Clock, MonotonicClock, Sleeper

logger = logging.getLogger("retrycase.retry.bucket")

BucketScope = Literal["process", "partition"]


class BucketConfig(BaseModel):
    """Token bucket costs, capacity and refill behavior.

    A refill rate of 0 can never pay off a shortfall, so it forces
    circuit-breaker mode. This holds at construction and on every later
    assignment (validate_assignment re-runs the model validator).

    Attributes:
        initial_cost: Units deducted for the initial attempt
        success_increment: Units credited back when the initial attempt succeeds
        max_capacity: Bucket size; the bucket starts full
        retry_cost: Units deducted for a retry after a server/client error
        timeout_retry_cost: Units deducted for a retry after a transient/throttling error
        refill_rate: Units regained per second
        circuit_breaker: Fail fast instead of waiting when capacity is short
    """

    model_config = ConfigDict(
        validate_assignment=True,
        validate_default=True,
        extra="forbid",
        json_schema_extra={
            "title": "Token Bucket Configuration",
            "examples": [{"max_capacity": 500, "retry_cost": 5, "refill_rate": 10}],
        },
    )

    initial_cost: Annotated[int, Field(ge=0)] = 0
    success_increment: Annotated[int, Field(ge=0)] = 1
    max_capacity: Annotated[int, Field(gt=0)] = 500
    retry_cost: Annotated[int, Field(ge=0)] = 5
    timeout_retry_cost: Annotated[int, Field(ge=0)] = 10
    refill_rate: Annotated[int, Field(ge=0)] = 10
    circuit_breaker: bool = True

    @model_validator(mode="after")
    def _zero_refill_forces_breaker(self) -> BucketConfig:
        if self.refill_rate == 0 and not self.circuit_breaker:
            object.__setattr__(self, "circuit_breaker", True)
        return self

    def cost_for(self, category: ErrorCategory) -> int:
        """Units a retry after an error of this category costs."""
        return self.timeout_retry_cost if category in TIMEOUT_CATEGORIES else self.retry_cost


@runtime_checkable
class RetryTokenBucket(Protocol):
    """Capacity accounting used by retry strategies."""

    async def acquire_initial(self, partition: str = "") -> RetryToken: ...
    async def acquire_refresh(self, token: RetryToken, category: ErrorCategory) -> RetryToken: ...
    def release(self, token: RetryToken) -> None: ...


class TokenBucket:
    """Standard retry token bucket.

    Args:
        config: Costs and refill behavior (default: BucketConfig())
        clock: Time source for refills (default: MonotonicClock)
        sleeper: Delay primitive for capacity waits (default: AsyncioSleeper)
        name: Label used in logs and errors

    Example:
        >>> bucket = TokenBucket(BucketConfig(max_capacity=10, initial_cost=5, success_increment=3))
        >>> token = await bucket.acquire_initial()
        >>> bucket.capacity
        5
        >>> bucket.release(token)
        >>> bucket.capacity
        8
    """

    __slots__ = ("_config", "_clock", "_sleeper", "_name", "_capacity", "_last_refill", "_lock")

    def __init__(
        self,
        config: BucketConfig | None = None,
        clock: Clock | None = None,
        sleeper: Sleeper | None = None,
        *,
        name: str = "",
    ) -> None:
        self._config = config or BucketConfig()
        self._clock = clock or MonotonicClock()
        self._sleeper = sleeper or AsyncioSleeper()
        self._name = name
        self._capacity = self._config.max_capacity
        self._last_refill = self._clock.now()
        self._lock = threading.Lock()

    @property
    def config(self) -> BucketConfig:
        return self._config

    @property
    def name(self) -> str:
        return self._name

    @property
    def capacity(self) -> int:
        """Current capacity as of the last refill (does not refill)."""
        with self._lock:
            return self._capacity

    # ─────────────────────────────────────────────────────────────────
    # Token API
    # ─────────────────────────────────────────────────────────────────

    async def acquire_initial(self, partition: str = "") -> RetryToken:
        """Draw capacity for the initial attempt."""
        partition = partition or self._name
        logger.debug(f"[{partition}] Acquiring initial token")
        await self._checkout(self._config.initial_cost, partition)
        return RetryToken(attempt=0, cost=self._config.success_increment, partition=partition)

    async def acquire_refresh(self, token: RetryToken, category: ErrorCategory) -> RetryToken:
        """Draw capacity for a retry following an error of the given category."""
        size = self._config.cost_for(category)
        logger.debug(f"[{token.partition}] Acquiring retry token after {category} at attempt {token.attempt}")
        await self._checkout(size, token.partition)
        return RetryToken(attempt=token.attempt + 1, cost=size, partition=token.partition)

    def release(self, token: RetryToken) -> None:
        """Credit a successful attempt's cost back to the bucket."""
        size = token.cost or 0
        with self._lock:
            self._refill_unlocked()
            self._capacity = min(self._config.max_capacity, self._capacity + size)
            logger.debug(f"[{token.partition}] Returned {size} units, capacity {self._capacity}")

    def refill(self) -> int:
        """Apply elapsed-time refill now. Returns resulting capacity."""
        with self._lock:
            self._refill_unlocked()
            return self._capacity

    def stats(self) -> dict[str, object]:
        """Snapshot for monitoring."""
        with self._lock:
            return {
                "name": self._name,
                "capacity": self._capacity,
                "max_capacity": self._config.max_capacity,
                "refill_rate": self._config.refill_rate,
                "circuit_breaker": self._config.circuit_breaker,
                "last_refill": self._last_refill,
            }

    # ─────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────

    async def _checkout(self, size: int, partition: str) -> None:
        delay = self._reserve(size, partition)
        if delay > 0:
            # Capacity is not re-checked after the wait; the wait stands in for availability
            logger.info(f"[{partition}] Capacity unavailable, delaying {delay:.0f}s")
            await self._sleeper.sleep(delay)
            with self._lock:
                # Waited time is never credited as refill
                self._last_refill = max(self._last_refill, self._clock.now())

    def _reserve(self, size: int, partition: str) -> float:
        """Deduct size or compute the wait covering the shortfall. Raises in breaker mode."""
        with self._lock:
            self._refill_unlocked()
            delay = 0.0
            if size <= self._capacity:
                self._capacity -= size
                logger.debug(f"[{partition}] Checked out {size} units, capacity {self._capacity}")
            elif self._config.circuit_breaker:
                logger.warning(f"[{partition}] Retry capacity exceeded: need {size}, have {self._capacity}")
                raise RetryCapacityExceededError(partition, size, self._capacity)
            else:
                delay = float(math.ceil((size - self._capacity) / self._config.refill_rate))
                self._capacity = 0
            return delay

    def _refill_unlocked(self) -> None:
        """Add floor(rate * elapsed) units, capped. Caller must hold lock."""
        now = self._clock.now()
        elapsed = max(0.0, now - self._last_refill)
        amount = math.floor(self._config.refill_rate * elapsed)
        self._capacity = min(self._config.max_capacity, self._capacity + amount)
        self._last_refill = now
        if amount > 0:
            logger.debug(f"[{self._name}] Refilled {amount} units, capacity {self._capacity}")

    def __repr__(self) -> str:
        return f"TokenBucket(name={self._name!r}, capacity={self._capacity}/{self._config.max_capacity})"


class TokenBucketPool:
    """Buckets keyed by partition, created lazily with shared config.

    Args:
        config: Configuration shared by every bucket
        scope: "partition" for one bucket per partition, "process" for one shared bucket
        clock: Time source handed to each bucket
        sleeper: Delay primitive handed to each bucket
    """

    __slots__ = ("_config", "_scope", "_clock", "_sleeper", "_buckets", "_lock")

    def __init__(
        self,
        config: BucketConfig | None = None,
        *,
        scope: BucketScope = "partition",
        clock: Clock | None = None,
        sleeper: Sleeper | None = None,
    ) -> None:
        self._config = config or BucketConfig()
        self._scope = scope
        self._clock = clock or MonotonicClock()
        self._sleeper = sleeper or AsyncioSleeper()
        self._buckets: dict[str, TokenBucket] = {}
        self._lock = threading.Lock()

    @property
    def scope(self) -> BucketScope:
        return self._scope

    def get(self, partition: str) -> TokenBucket:
        """Bucket serving the partition (created on first use)."""
        key = partition if self._scope == "partition" else ""
        with self._lock:
            if (bucket := self._buckets.get(key)) is None:
                bucket = TokenBucket(self._config, self._clock, self._sleeper, name=key)
                self._buckets[key] = bucket
                logger.debug(f"Created token bucket for partition {key!r}")
            return bucket

    def partitions(self) -> list[str]:
        with self._lock:
            return list(self._buckets)

    def stats(self) -> dict[str, dict[str, object]]:
        with self._lock:
            buckets = dict(self._buckets)
        return {key: bucket.stats() for key, bucket in buckets.items()}

    async def acquire_initial(self, partition: str = "") -> RetryToken:
        return await self.get(partition).acquire_initial(partition)

    async def acquire_refresh(self, token: RetryToken, category: ErrorCategory) -> RetryToken:
        return await self.get(token.partition).acquire_refresh(token, category)

    def release(self, token: RetryToken) -> None:
        self.get(token.partition).release(token)
