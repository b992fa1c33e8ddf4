"""Tests for exponential backoff with jitter."""

import random

import pytest

from retrycase.runtime.retry import BackoffConfig, ExponentialBackoffWithJitter


def _series(backoff: ExponentialBackoffWithJitter, times: int) -> list[float]:
    return [backoff.backoff(attempt) for attempt in range(times)]


def test_scaling_without_jitter() -> None:
    """jitter=0 yields the exact exponential series."""
    backoff = ExponentialBackoffWithJitter(BackoffConfig(initial_delay=0.01, jitter=0.0, max_delay=float("inf"), scale_factor=2.0))
    assert _series(backoff, 6) == [0.01, 0.02, 0.04, 0.08, 0.16, 0.32]


def test_max_delay_caps_series() -> None:
    backoff = ExponentialBackoffWithJitter(BackoffConfig(initial_delay=0.01, jitter=0.0, max_delay=0.1, scale_factor=2.0))
    assert _series(backoff, 6) == [0.01, 0.02, 0.04, 0.08, 0.1, 0.1]


def test_deterministic_matches_formula() -> None:
    config = BackoffConfig(initial_delay=0.05, jitter=0.0, max_delay=3.0, scale_factor=1.5)
    backoff = ExponentialBackoffWithJitter(config)
    for attempt in range(20):
        assert backoff.backoff(attempt) == min(0.05 * 1.5 ** attempt, 3.0)


def test_jitter_stays_within_bounds() -> None:
    """Jittered delay lies in [raw * (1 - jitter), raw]."""
    backoff = ExponentialBackoffWithJitter(
        BackoffConfig(initial_delay=0.01, jitter=0.6, max_delay=float("inf"), scale_factor=2.0),
        rng=random.Random(1234),
    )
    for _ in range(50):
        for attempt in range(6):
            raw = backoff.raw(attempt)
            delay = backoff.backoff(attempt)
            assert raw * 0.4 - 1e-12 <= delay <= raw


def test_full_jitter_never_exceeds_raw() -> None:
    backoff = ExponentialBackoffWithJitter(rng=random.Random(7))
    for attempt in range(30):
        assert 0.0 <= backoff.backoff(attempt) <= backoff.raw(attempt)


def test_seeded_rng_is_reproducible() -> None:
    config = BackoffConfig(jitter=0.5)
    first = ExponentialBackoffWithJitter(config, rng=random.Random(42))
    second = ExponentialBackoffWithJitter(config, rng=random.Random(42))
    assert _series(first, 10) == _series(second, 10)


def test_huge_attempt_is_capped() -> None:
    backoff = ExponentialBackoffWithJitter(BackoffConfig(jitter=0.0, max_delay=20.0))
    assert backoff.backoff(10_000) == 20.0


@pytest.mark.parametrize("attempt", [0, 5, 2000, 10_000])
def test_zero_initial_delay_stays_zero(attempt: int) -> None:
    backoff = ExponentialBackoffWithJitter(BackoffConfig(initial_delay=0.0, jitter=0.0, max_delay=20.0))
    assert backoff.raw(attempt) == 0.0
    assert backoff.backoff(attempt) == 0.0


def test_negative_attempt_fails_fast() -> None:
    with pytest.raises(ValueError, match="attempt"):
        ExponentialBackoffWithJitter().backoff(-1)


@pytest.mark.parametrize("kwargs", [
    {"jitter": 1.5},
    {"jitter": -0.1},
    {"scale_factor": 1.0},
    {"initial_delay": -1.0},
    {"max_delay": -1.0},
])
def test_invalid_config_rejected(kwargs: dict[str, float]) -> None:
    with pytest.raises(ValueError):
        BackoffConfig(**kwargs)


def test_defaults() -> None:
    config = BackoffConfig()
    assert (config.initial_delay, config.jitter, config.max_delay, config.scale_factor) == (0.01, 1.0, 20.0, 1.5)
