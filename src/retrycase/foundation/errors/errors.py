"""Exception taxonomy for the retry engine.

Two families live here:
- RetryError and subclasses: signals raised by the engine itself
  (local capacity denial, policy rejection)
- HTTPError: the HTTP-shaped failure an operation raises so the engine
  can classify it
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Self

import httpx

from .types import ResponseMetadata

if TYPE_CHECKING:
    from .types import ClassifiedError, RetryToken


class RetryError(Exception):
    """Base class for retry engine signals."""


class RetryCapacityExceededError(RetryError):
    """Token bucket lacks capacity and circuit-breaker mode is active.

    Distinguishes "rate limited locally" from a remote failure.
    """

    __slots__ = ("partition", "requested", "available")

    def __init__(self, partition: str, requested: int, available: int) -> None:
        self.partition = partition
        self.requested = requested
        self.available = available
        label = f"'{partition}'" if partition else "default partition"
        super().__init__(
            f"Retry capacity exceeded for {label}: requested {requested}, available {available}"
        )


class RetryRejectedError(RetryError):
    """Retry policy set declined another attempt."""

    __slots__ = ("token", "error")

    def __init__(self, token: RetryToken, error: ClassifiedError) -> None:
        self.token = token
        self.error = error
        super().__init__(f"Retry rejected at attempt {token.attempt} (category: {error.category})")


class HTTPError(Exception):
    """HTTP-shaped operation failure.

    Attributes:
        response: Status and headers, None when no response was received
        error: Underlying transport error, if any
    """

    __slots__ = ("response", "error")

    def __init__(self, response: ResponseMetadata | None = None, error: BaseException | None = None) -> None:
        self.response = response
        self.error = error
        if response is not None:
            message = f"HTTP {response.status_code}"
        else:
            message = f"No response: {error}" if error else "No response"
        super().__init__(message)

    @classmethod
    def from_status(cls, status_code: int, headers: dict[str, str] | None = None) -> Self:
        """Create from a bare status code and optional headers."""
        return cls(ResponseMetadata(status_code, headers or {}))

    @classmethod
    def from_httpx(cls, exc: httpx.HTTPError) -> Self:
        """Adapt an httpx failure.

        Status errors carry their response; transport errors have none and
        are therefore never retried.
        """
        if not isinstance(exc, httpx.HTTPStatusError):
            return cls(None, exc)
        return cls(ResponseMetadata(exc.response.status_code, dict(exc.response.headers)), exc)
