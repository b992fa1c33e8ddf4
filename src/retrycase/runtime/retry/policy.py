"""Retry policies deciding whether a failed attempt may be retried.

A policy is any object with decide(token, error) -> bool. RetryPolicySet
combines two groups:
- guards: hard limits, every guard must approve
- policies: eligibility, combined with logical OR

Eligibility is an OR fold: the set approves as soon as one policy approves.
Evaluation order has no semantic effect, so policies must be pure (no side
effects that a short-circuit could skip).

The standard set guards on attempt count and approves TRANSIENT and
THROTTLING errors:
    >>> policies = RetryPolicySet.standard(max_attempts=3)
    >>> policies.should_retry(RetryToken(attempt=1), ClassifiedError(ErrorCategory.THROTTLING))
    True
    >>> policies.should_retry(RetryToken(attempt=3), ClassifiedError(ErrorCategory.TRANSIENT))
    False
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from retrycase.foundation.errors import (
    TIMEOUT_CATEGORIES,
    ClassifiedError,
    ErrorCategory,
    RetryToken,
)

logger = logging.getLogger("retrycase.retry.policy")

# Categories retried by the standard policy set
DEFAULT_RETRYABLE: frozenset[ErrorCategory] = TIMEOUT_CATEGORIES

DEFAULT_MAX_ATTEMPTS = 3


@runtime_checkable
class RetryPolicy(Protocol):
    """Single retry decision capability."""

    def decide(self, token: RetryToken, error: ClassifiedError) -> bool: ...


@dataclass(frozen=True, slots=True)
class MaxAttemptsPolicy:
    """Approves while the token's attempt count is below max_attempts."""

    max_attempts: int = DEFAULT_MAX_ATTEMPTS

    def __post_init__(self) -> None:
        if self.max_attempts < 0:
            raise ValueError(f"max_attempts must be >= 0, got {self.max_attempts}")

    def decide(self, token: RetryToken, error: ClassifiedError) -> bool:
        return token.attempt < self.max_attempts


@dataclass(frozen=True, slots=True)
class ErrorCategoryPolicy:
    """Approves errors whose category is in the allow-set."""

    categories: frozenset[ErrorCategory] = DEFAULT_RETRYABLE

    def decide(self, token: RetryToken, error: ClassifiedError) -> bool:
        return error.category in self.categories


class RetryPolicySet:
    """Guards (AND) in front of eligibility policies (OR).

    Args:
        policies: Eligibility policies; any approval authorizes a retry
        guards: Hard limits; a single refusal denies the retry
    """

    __slots__ = ("_policies", "_guards")

    def __init__(self, policies: Iterable[RetryPolicy] = (), *, guards: Iterable[RetryPolicy] = ()) -> None:
        self._policies = tuple(policies)
        self._guards = tuple(guards)

    @classmethod
    def standard(
        cls,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retryable: Iterable[ErrorCategory] = DEFAULT_RETRYABLE,
    ) -> RetryPolicySet:
        return cls((ErrorCategoryPolicy(frozenset(retryable)),), guards=(MaxAttemptsPolicy(max_attempts),))

    @property
    def policies(self) -> tuple[RetryPolicy, ...]:
        return self._policies

    @property
    def guards(self) -> tuple[RetryPolicy, ...]:
        return self._guards

    @property
    def max_attempts(self) -> int | None:
        """Tightest MaxAttemptsPolicy guard, if any."""
        limits = [g.max_attempts for g in self._guards if isinstance(g, MaxAttemptsPolicy)]
        return min(limits) if limits else None

    def with_policy(self, policy: RetryPolicy) -> RetryPolicySet:
        return RetryPolicySet((*self._policies, policy), guards=self._guards)

    def with_guard(self, guard: RetryPolicy) -> RetryPolicySet:
        return RetryPolicySet(self._policies, guards=(*self._guards, guard))

    def should_retry(self, token: RetryToken, error: ClassifiedError) -> bool:
        for guard in self._guards:
            if not guard.decide(token, error):
                logger.debug(f"[{token.partition}] {type(guard).__name__} refused attempt {token.attempt}")
                return False
        for policy in self._policies:
            if policy.decide(token, error):
                logger.debug(f"[{token.partition}] {type(policy).__name__} approved {error.category}")
                return True
        return False

    def __repr__(self) -> str:
        names = lambda ps: ", ".join(type(p).__name__ for p in ps)  # noqa: E731
        return f"RetryPolicySet(guards=[{names(self._guards)}], policies=[{names(self._policies)}])"
