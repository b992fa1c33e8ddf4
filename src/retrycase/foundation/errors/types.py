"""Value types exchanged between the retry components.

All types are immutable: a new instance is produced wherever the engine
needs a changed value (a refreshed token, a new classification).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum


class ErrorCategory(StrEnum):
    """Closed classification of a failed attempt.

    TRANSIENT and THROTTLING are retryable under the standard policy set;
    SERVER and CLIENT are not (policies are pluggable).
    """
    TRANSIENT = "transient"
    THROTTLING = "throttling"
    SERVER = "server"
    CLIENT = "client"


# Categories charged the timeout retry cost by the token bucket
TIMEOUT_CATEGORIES: frozenset[ErrorCategory] = frozenset({
    ErrorCategory.TRANSIENT,
    ErrorCategory.THROTTLING,
})


@dataclass(frozen=True, slots=True)
class ClassifiedError:
    """Classification of one failed attempt.

    Attributes:
        category: Error category driving policy and bucket cost
        retry_after: Server-suggested delay in seconds, if any
    """
    category: ErrorCategory
    retry_after: float | None = None


@dataclass(frozen=True, slots=True)
class RetryToken:
    """One attempt's claim on bucket capacity.

    Attributes:
        attempt: 0 for the initial attempt, +1 per refresh
        cost: Units credited back to the bucket on success
        partition: Bucket partition the token was drawn from
    """
    attempt: int = 0
    cost: int | None = None
    partition: str = ""


@dataclass(frozen=True, slots=True)
class RetryInfo:
    """Attempt metadata handed to the operation on every invocation.

    attempt is 0 for the initial call and counts retries after that.
    max_attempts bounds retries, not calls: a sequence makes up to
    max_attempts + 1 invocations, the last one with attempt == max_attempts.
    """
    attempt: int
    max_attempts: int


@dataclass(frozen=True, slots=True)
class ResponseMetadata:
    """Status line and headers of a completed HTTP exchange.

    Header lookup is case-insensitive.
    """
    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)

    def header(self, name: str) -> str | None:
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None
