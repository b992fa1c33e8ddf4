"""Error classification for failed attempts.

Maps a response/error pair to an ErrorCategory plus an optional
server-suggested retry delay. No response means no classification: the
caller must propagate the original error without retrying.

Status mapping:
    429                  → THROTTLING
    500, 502, 503, 504   → TRANSIENT
    other 5xx            → SERVER
    anything else        → CLIENT
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import Callable, Protocol, runtime_checkable

import httpx

from retrycase.foundation.errors import ClassifiedError, ErrorCategory, HTTPError, ResponseMetadata

THROTTLING_STATUS = 429
TRANSIENT_STATUSES: frozenset[int] = frozenset({500, 502, 503, 504})


@runtime_checkable
class ErrorClassifier(Protocol):
    """Protocol for attempt failure classification."""

    def classify(self, response: ResponseMetadata | None, error: BaseException) -> ClassifiedError | None: ...


def category_for_status(status_code: int) -> ErrorCategory:
    """Fixed status → category lookup."""
    if status_code == THROTTLING_STATUS:
        return ErrorCategory.THROTTLING
    if status_code in TRANSIENT_STATUSES:
        return ErrorCategory.TRANSIENT
    if 500 <= status_code < 600:
        return ErrorCategory.SERVER
    return ErrorCategory.CLIENT


def parse_retry_after(value: str | None, now: Callable[[], datetime] | None = None) -> float | None:
    """Parse a Retry-After header into seconds.

    Accepts delta-seconds ("120", "1.5") or an HTTP date. Dates in the past
    yield 0. Missing or malformed values yield None.
    """
    if value is None or not (value := value.strip()):
        return None
    try:
        seconds = float(value)
    except ValueError:
        pass
    else:
        return max(0.0, seconds) if math.isfinite(seconds) else None
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=UTC)
    current = now() if now else datetime.now(UTC)
    return max(0.0, (when - current).total_seconds())


def response_of(exc: BaseException) -> tuple[bool, ResponseMetadata | None]:
    """Extract response metadata from an operation failure.

    Returns (http_shaped, response). Non HTTP-shaped failures are
    unclassifiable and must propagate without consulting the strategy.
    """
    if isinstance(exc, HTTPError):
        return True, exc.response
    if isinstance(exc, httpx.HTTPError):
        return True, HTTPError.from_httpx(exc).response
    return False, None


class StandardErrorClassifier:
    """Status-code based classifier honoring the Retry-After header.

    Example:
        >>> StandardErrorClassifier().classify(ResponseMetadata(503, {"Retry-After": "2"}), exc)
        ClassifiedError(category=<ErrorCategory.TRANSIENT: 'transient'>, retry_after=2.0)
    """

    __slots__ = ("_now",)

    def __init__(self, now: Callable[[], datetime] | None = None) -> None:
        self._now = now

    def classify(self, response: ResponseMetadata | None, error: BaseException) -> ClassifiedError | None:
        if response is None:
            return None
        return ClassifiedError(
            category=category_for_status(response.status_code),
            retry_after=parse_retry_after(response.header("Retry-After"), self._now),
        )
