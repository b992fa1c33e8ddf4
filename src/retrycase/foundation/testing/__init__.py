"""Testing utilities for code built on retrycase."""

from .clock import VirtualClock, VirtualSleeper

__all__ = ["VirtualClock", "VirtualSleeper"]
