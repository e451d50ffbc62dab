"""Tests for retry with exponential backoff."""

import asyncio

import httpx
import pytest

from fundraiser_board.core.errors import TransientServiceError
from fundraiser_board.core.retry import (
    NETWORK_RETRY_CONFIG,
    PUBLISH_RETRY_CONFIG,
    RetryConfig,
    async_retry,
    call_with_retry,
)


def test_publish_backoff_schedule():
    assert PUBLISH_RETRY_CONFIG.max_attempts == 4
    assert PUBLISH_RETRY_CONFIG.delays == [5.0, 10.0, 20.0]
    assert [PUBLISH_RETRY_CONFIG.calculate_delay(n) for n in range(3)] == [5.0, 10.0, 20.0]


def test_delay_is_capped():
    config = RetryConfig(base_delay=10.0, max_delay=25.0)

    assert config.calculate_delay(5) == 25.0


def test_jitter_stays_within_half_to_full_delay():
    for attempt in range(3):
        delay = NETWORK_RETRY_CONFIG.calculate_delay(attempt)
        full = NETWORK_RETRY_CONFIG.base_delay * 2 ** attempt
        assert full * 0.5 <= delay <= full


def test_returns_first_success(recording_sleep):
    attempts = []

    async def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise TransientServiceError("busy", target="board")
        return "done"

    result = asyncio.run(call_with_retry(flaky, config=PUBLISH_RETRY_CONFIG, sleep=recording_sleep))

    assert result == "done"
    assert len(attempts) == 3
    assert recording_sleep.delays == [5.0, 10.0]


def test_reraises_last_error_when_exhausted(recording_sleep):
    attempts = []

    async def always_busy():
        attempts.append(1)
        raise TransientServiceError(f"busy {len(attempts)}", target="board")

    with pytest.raises(TransientServiceError, match="busy 4"):
        asyncio.run(call_with_retry(always_busy, config=PUBLISH_RETRY_CONFIG, sleep=recording_sleep))

    assert len(attempts) == 4


def test_non_retryable_error_propagates_immediately(recording_sleep):
    attempts = []

    async def broken():
        attempts.append(1)
        raise ValueError("bad input")

    with pytest.raises(ValueError):
        asyncio.run(call_with_retry(broken, config=PUBLISH_RETRY_CONFIG, sleep=recording_sleep))

    assert len(attempts) == 1
    assert recording_sleep.delays == []


def test_passes_arguments_through(recording_sleep):
    async def add(a, b, *, scale=1):
        return (a + b) * scale

    result = asyncio.run(call_with_retry(add, 1, 2, scale=3, config=RetryConfig(), sleep=recording_sleep))

    assert result == 9


def test_decorator_retries_transport_errors():
    attempts = []

    @async_retry(RetryConfig(max_attempts=2, base_delay=0.0))
    async def fetch():
        attempts.append(1)
        if len(attempts) == 1:
            raise httpx.ConnectError("refused")
        return "ok"

    assert asyncio.run(fetch()) == "ok"
    assert len(attempts) == 2
    assert fetch.__name__ == "fetch"
