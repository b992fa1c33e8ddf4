"""Retryer execution loop around a caller-supplied async operation.

The retryer is the only component that invokes the operation. Per call:
1. Acquire the initial token and wait backoff(0) once.
2. Invoke the operation with RetryInfo(attempt, max_attempts).
3. Success → record success, return the result.
4. HTTP-shaped failure → classify; no classification → re-raise as is.
5. Refresh the token; a RetryError (policy or capacity) → re-raise the
   original operation error, not the rejection.
6. Wait max(backoff(new attempt), Retry-After hint), go to 2.
Any other exception propagates immediately without retry accounting.

Example:
    >>> retryer = StandardRetryer(partition="billing-api")
    >>> async def call(info: RetryInfo) -> httpx.Response:
    ...     resp = await client.get(url, headers={"X-Retry": f"{info.attempt}/{info.max_attempts}"})
    ...     if resp.status_code != 200:
    ...         raise HTTPError.from_status(resp.status_code, dict(resp.headers))
    ...     return resp
    >>> resp = await retryer.execute(call)
"""

from __future__ import annotations

import logging
from functools import lru_cache, wraps
from typing import TYPE_CHECKING, Awaitable, Callable, Concatenate, ParamSpec, Protocol, TypeVar, runtime_checkable

from retrycase.foundation.errors import ErrorCategory, RetryError, RetryInfo
from retrycase.runtime.concurrency import AsyncioSleeper, Clock, Sleeper

from .backoff import Backoff, ExponentialBackoffWithJitter
from .bucket import TokenBucketPool
from .classifier import ErrorClassifier, StandardErrorClassifier, response_of
from .policy import RetryPolicySet
from .strategy import RetryStrategy, StandardRetryStrategy

if TYPE_CHECKING:
    from retrycase.foundation.config import RetrycaseSettings

logger = logging.getLogger("retrycase.retry")

T = TypeVar("T")
P = ParamSpec("P")

Operation = Callable[[RetryInfo], Awaitable[T]]
OnRetry = Callable[[int, ErrorCategory, float], None]


@runtime_checkable
class Retryer(Protocol):
    """Executes an operation under a retry strategy."""

    async def execute(self, operation: Operation[T], partition: str | None = None) -> T: ...


class StandardRetryer:
    """Token-bucket-backed retryer with exponential backoff.

    Args:
        strategy: Token lifecycle and policies (default: StandardRetryStrategy())
        backoff: Delay calculator (default: ExponentialBackoffWithJitter())
        classifier: Failure classifier (default: StandardErrorClassifier())
        sleeper: Delay primitive (default: AsyncioSleeper)
        partition: Partition used when execute() gets none
        on_retry: Callback (attempt, category, delay) before each retry wait
    """

    __slots__ = ("_strategy", "_backoff", "_classifier", "_sleeper", "_partition", "_on_retry")

    def __init__(
        self,
        strategy: RetryStrategy | None = None,
        backoff: Backoff | None = None,
        classifier: ErrorClassifier | None = None,
        sleeper: Sleeper | None = None,
        *,
        partition: str = "default",
        on_retry: OnRetry | None = None,
    ) -> None:
        self._strategy = strategy or StandardRetryStrategy()
        self._backoff = backoff or ExponentialBackoffWithJitter()
        self._classifier = classifier or StandardErrorClassifier()
        self._sleeper = sleeper or AsyncioSleeper()
        self._partition = partition
        self._on_retry = on_retry

    @classmethod
    def from_settings(
        cls,
        settings: RetrycaseSettings | None = None,
        *,
        clock: Clock | None = None,
        sleeper: Sleeper | None = None,
        on_retry: OnRetry | None = None,
    ) -> StandardRetryer:
        """Build the full stack (pool, policies, backoff) from settings."""
        if settings is None:
            from retrycase.foundation.config import get_settings
            settings = get_settings()
        sleeper = sleeper or AsyncioSleeper()
        pool = TokenBucketPool(settings.bucket.to_config(), scope=settings.bucket.scope, clock=clock, sleeper=sleeper)
        policies = RetryPolicySet.standard(settings.retry.max_attempts, settings.retry.retryable)
        return cls(
            StandardRetryStrategy(pool, policies),
            ExponentialBackoffWithJitter(settings.backoff.to_config()),
            sleeper=sleeper,
            partition=settings.retry.default_partition,
            on_retry=on_retry,
        )

    @property
    def strategy(self) -> RetryStrategy:
        return self._strategy

    @property
    def partition(self) -> str:
        return self._partition

    async def execute(self, operation: Operation[T], partition: str | None = None) -> T:
        """Run operation until it succeeds or retrying stops.

        Raises:
            RetryCapacityExceededError: Initial token denied by the bucket
            Exception: The operation's own failure, verbatim
        """
        partition = partition or self._partition
        max_attempts = self._strategy.max_attempts
        token = await self._strategy.acquire_initial_token(partition)
        await self._sleeper.sleep(self._backoff.backoff(token.attempt))

        while True:
            logger.info(f"[{partition}] Executing attempt {token.attempt + 1} (max retries: {max_attempts})")
            try:
                result = await operation(RetryInfo(token.attempt, max_attempts))
            except Exception as exc:
                http_shaped, response = response_of(exc)
                if not http_shaped:
                    raise
                logger.warning(f"[{partition}] Attempt {token.attempt + 1} failed: {exc}")
                if (classified := self._classifier.classify(response, exc)) is None:
                    raise
                try:
                    token = await self._strategy.refresh_retry_token(token, classified)
                except RetryError as stop:
                    logger.warning(f"[{partition}] Not retrying: {stop}")
                    raise exc
                delay = max(self._backoff.backoff(token.attempt), classified.retry_after or 0.0)
                logger.info(
                    f"[{partition}] Retry {token.attempt}/{max_attempts} "
                    f"after {delay:.2f}s (category: {classified.category})"
                )
                if self._on_retry:
                    self._on_retry(token.attempt, classified.category, delay)
                await self._sleeper.sleep(delay)
                continue
            self._strategy.record_success(token)
            logger.info(f"[{partition}] Attempt {token.attempt + 1} succeeded")
            return result

    def __repr__(self) -> str:
        return f"StandardRetryer(partition={self._partition!r}, strategy={self._strategy!r})"


@lru_cache(maxsize=1)
def default_retryer() -> StandardRetryer:
    """Process-wide retryer built from settings (cached).

    Shared by every @retry-decorated function that names no retryer, so
    functions using the same partition draw from the same bucket.
    """
    return StandardRetryer.from_settings()


def retry(
    retryer: Retryer | None = None,
    *,
    partition: str | None = None,
) -> Callable[[Callable[Concatenate[RetryInfo, P], Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Decorate an async function so every call runs through a retryer.

    The wrapped function receives RetryInfo as its first argument; callers
    pass only the remaining arguments. Without an explicit retryer the
    shared default_retryer() is used, resolved on each call.

    Example:
        >>> @retry(partition="search")
        ... async def search(info: RetryInfo, query: str) -> str:
        ...     ...
        >>> await search("python")
    """
    def decorator(fn: Callable[Concatenate[RetryInfo, P], Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @wraps(fn)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            runner = retryer or default_retryer()
            return await runner.execute(lambda info: fn(info, *args, **kwargs), partition)

        return wrapper
    return decorator
