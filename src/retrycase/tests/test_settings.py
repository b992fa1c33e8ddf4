"""Tests for environment settings and logging setup."""

import io
import logging
from collections.abc import Iterator

import orjson
import pytest

from retrycase.foundation.config import RetrycaseSettings, clear_settings_cache, get_settings
from retrycase.foundation.errors import ErrorCategory, HTTPError, RetryInfo
from retrycase.foundation.testing import VirtualClock, VirtualSleeper
from retrycase.runtime.observability import JsonFormatter, configure_logging
from retrycase.runtime.retry import BackoffConfig, BucketConfig, StandardRetryer, TokenBucketPool


@pytest.fixture(autouse=True)
def fresh_settings() -> Iterator[None]:
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def restore_logger() -> Iterator[logging.Logger]:
    logger = logging.getLogger("retrycase")
    handlers, level = list(logger.handlers), logger.level
    yield logger
    logger.handlers = handlers
    logger.setLevel(level)


class TestSettings:
    def test_defaults(self) -> None:
        s = RetrycaseSettings()
        assert s.bucket.max_capacity == 500
        assert s.bucket.retry_cost == 5
        assert s.bucket.timeout_retry_cost == 10
        assert s.bucket.scope == "partition"
        assert s.backoff.jitter == 1.0
        assert s.retry.max_attempts == 3
        assert s.retry.retryable == {ErrorCategory.TRANSIENT, ErrorCategory.THROTTLING}
        assert s.logging.level == "WARNING"

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RETRYCASE_BUCKET_MAX_CAPACITY", "50")
        monkeypatch.setenv("RETRYCASE_BUCKET_SCOPE", "process")
        monkeypatch.setenv("RETRYCASE_BACKOFF_JITTER", "0.25")
        monkeypatch.setenv("RETRYCASE_RETRY_MAX_ATTEMPTS", "7")
        monkeypatch.setenv("RETRYCASE_LOG_LEVEL", "debug")
        s = get_settings()
        assert s.bucket.max_capacity == 50
        assert s.bucket.scope == "process"
        assert s.backoff.jitter == 0.25
        assert s.retry.max_attempts == 7
        assert s.logging.level == "DEBUG"

    def test_comma_separated_categories(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RETRYCASE_RETRY_RETRYABLE", "Transient, server")
        assert get_settings().retry.retryable == {ErrorCategory.TRANSIENT, ErrorCategory.SERVER}

    def test_cache_and_clear(self, monkeypatch: pytest.MonkeyPatch) -> None:
        first = get_settings()
        assert get_settings() is first
        monkeypatch.setenv("RETRYCASE_RETRY_MAX_ATTEMPTS", "9")
        assert get_settings().retry.max_attempts == 3
        clear_settings_cache()
        assert get_settings().retry.max_attempts == 9

    def test_to_config(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RETRYCASE_BUCKET_REFILL_RATE", "0")
        monkeypatch.setenv("RETRYCASE_BUCKET_CIRCUIT_BREAKER", "false")
        s = get_settings()
        bucket = s.bucket.to_config()
        assert isinstance(bucket, BucketConfig)
        assert bucket.refill_rate == 0
        assert bucket.circuit_breaker  # forced on by zero refill
        assert s.backoff.to_config() == BackoffConfig()

    def test_invalid_value_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RETRYCASE_BACKOFF_JITTER", "1.5")
        with pytest.raises(ValueError):
            get_settings()


@pytest.mark.asyncio
async def test_retryer_from_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RETRYCASE_RETRY_MAX_ATTEMPTS", "1")
    monkeypatch.setenv("RETRYCASE_RETRY_DEFAULT_PARTITION", "inventory")
    monkeypatch.setenv("RETRYCASE_BACKOFF_JITTER", "0")
    clock = VirtualClock()
    sleeper = VirtualSleeper(clock)
    retryer = StandardRetryer.from_settings(clock=clock, sleeper=sleeper)
    assert retryer.partition == "inventory"
    assert retryer.strategy.max_attempts == 1

    calls: list[RetryInfo] = []

    async def op(info: RetryInfo) -> None:
        calls.append(info)
        raise HTTPError.from_status(503)

    with pytest.raises(HTTPError):
        await retryer.execute(op)
    assert [c.attempt for c in calls] == [0, 1]
    assert sleeper.delays == pytest.approx([0.01, 0.015])
    pool = retryer.strategy.bucket
    assert isinstance(pool, TokenBucketPool)
    assert pool.partitions() == ["inventory"]


class TestLogging:
    def test_text_output(self, restore_logger: logging.Logger) -> None:
        out = io.StringIO()
        configure_logging(format="text", level="info", output=out)
        logging.getLogger("retrycase.retry").info("[orders] Attempt 1 succeeded")
        line = out.getvalue()
        assert "[INFO] retrycase.retry: [orders] Attempt 1 succeeded" in line

    def test_json_output_includes_extras(self, restore_logger: logging.Logger) -> None:
        out = io.StringIO()
        configure_logging(format="json", level="DEBUG", output=out)
        logging.getLogger("retrycase.retry.bucket").debug("Checked out", extra={"units": 5})
        record = orjson.loads(out.getvalue().strip())
        assert record["level"] == "debug"
        assert record["logger"] == "retrycase.retry.bucket"
        assert record["event"] == "Checked out"
        assert record["units"] == 5

    def test_level_filters(self, restore_logger: logging.Logger) -> None:
        out = io.StringIO()
        configure_logging(format="text", level="WARNING", output=out)
        logging.getLogger("retrycase.retry").info("hidden")
        assert out.getvalue() == ""

    def test_reconfigure_replaces_handler(self, restore_logger: logging.Logger) -> None:
        configure_logging(output=io.StringIO())
        logger = configure_logging(output=io.StringIO())
        assert sum(h.get_name() == "retrycase" for h in logger.handlers) == 1

    def test_settings_drive_defaults(self, restore_logger: logging.Logger, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RETRYCASE_LOG_FORMAT", "json")
        monkeypatch.setenv("RETRYCASE_LOG_LEVEL", "ERROR")
        logger = configure_logging(get_settings(), output=io.StringIO())
        assert logger.level == logging.ERROR
        handler = next(h for h in logger.handlers if h.get_name() == "retrycase")
        assert isinstance(handler.formatter, JsonFormatter)

    def test_unknown_format(self, restore_logger: logging.Logger) -> None:
        with pytest.raises(ValueError):
            configure_logging(format="xml")  # type: ignore[arg-type]
