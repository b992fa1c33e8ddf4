"""Time capabilities injected into the retry engine.

Two narrow protocols keep time access swappable:
- Clock: current time in seconds
- Sleeper: awaitable delay

Production code uses MonotonicClock and AsyncioSleeper. Tests swap in the
virtual-time doubles from retrycase.foundation.testing without touching
engine logic.
"""

from __future__ import annotations

import asyncio
import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Source of the current time in seconds."""

    def now(self) -> float: ...


@runtime_checkable
class Sleeper(Protocol):
    """Suspends the caller for at least the given number of seconds."""

    async def sleep(self, seconds: float) -> None: ...


class MonotonicClock:
    """Clock backed by time.monotonic (immune to wall-clock jumps)."""

    __slots__ = ()

    def now(self) -> float:
        return time.monotonic()


class AsyncioSleeper:
    """Sleeper backed by asyncio.sleep. Cancellation propagates to the caller."""

    __slots__ = ()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(max(0.0, seconds))
