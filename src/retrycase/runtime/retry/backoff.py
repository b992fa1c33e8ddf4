"""Backoff delay calculation for retry attempts.

Provides pluggable delay calculation:
- Backoff: protocol the retryer depends on
- ExponentialBackoffWithJitter: capped exponential growth with a random
  downward jitter to desynchronize concurrent clients
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

logger = logging.getLogger("retrycase.retry.backoff")


@runtime_checkable
class Backoff(Protocol):
    """Protocol for backoff delay calculation.

    Attempt numbers are 0-indexed (initial attempt = 0).
    """

    def backoff(self, attempt: int) -> float:
        """Delay in seconds to wait before the given attempt."""
        ...


@dataclass(frozen=True, slots=True)
class BackoffConfig:
    """Exponential backoff parameters.

    Attributes:
        initial_delay: Delay for attempt 0 in seconds (default: 10ms)
        jitter: Maximum fraction shaved off a delay, in [0, 1] (default: 1.0)
        max_delay: Cap applied before jitter in seconds (default: 20s)
        scale_factor: Growth factor per attempt, > 1 (default: 1.5)
    """

    initial_delay: float = 0.01
    jitter: float = 1.0
    max_delay: float = 20.0
    scale_factor: float = 1.5

    def __post_init__(self) -> None:
        if self.initial_delay < 0:
            raise ValueError(f"initial_delay must be >= 0, got {self.initial_delay}")
        if not 0.0 <= self.jitter <= 1.0:
            raise ValueError(f"jitter must be within [0, 1], got {self.jitter}")
        if self.max_delay < 0:
            raise ValueError(f"max_delay must be >= 0, got {self.max_delay}")
        if self.scale_factor <= 1.0:
            raise ValueError(f"scale_factor must be > 1, got {self.scale_factor}")


@dataclass(frozen=True, slots=True)
class ExponentialBackoffWithJitter:
    """Exponential backoff with proportional jitter.

    raw   = min(initial_delay * scale_factor ^ attempt, max_delay)
    delay = raw * (1 - uniform(0, jitter))

    With jitter=0 no random draw happens and the series is exact.

    Example:
        >>> b = ExponentialBackoffWithJitter(BackoffConfig(jitter=0.0, max_delay=0.1, scale_factor=2.0))
        >>> [b.backoff(n) for n in range(6)]
        [0.01, 0.02, 0.04, 0.08, 0.1, 0.1]
    """

    config: BackoffConfig = field(default_factory=BackoffConfig)
    rng: random.Random = field(default_factory=random.Random, repr=False, compare=False)

    def raw(self, attempt: int) -> float:
        """Capped delay before jitter."""
        if attempt < 0:
            raise ValueError(f"attempt must be >= 0, got {attempt}")
        c = self.config
        try:
            grown = c.initial_delay * (c.scale_factor ** attempt)
        except OverflowError:
            return c.max_delay if c.initial_delay > 0 else 0.0
        return min(grown, c.max_delay)

    def backoff(self, attempt: int) -> float:
        raw = self.raw(attempt)
        jitter = self.config.jitter
        delay = raw * (1.0 - self.rng.uniform(0.0, jitter)) if jitter else raw
        logger.debug(f"Backoff attempt {attempt} with delay {delay:.4f}s")
        return delay
