"""Concurrency capabilities: injectable clock and sleeper."""

from .clock import AsyncioSleeper, Clock, MonotonicClock, Sleeper

__all__ = [
    "Clock",
    "Sleeper",
    "MonotonicClock",
    "AsyncioSleeper",
]
