"""Retry logic with exponential backoff for HTTP calls.

Retries run as an explicit bounded loop: attempt ``n`` (0-indexed) that fails
with a retryable exception sleeps ``base_delay * exponential_base ** n``
before attempt ``n + 1``. The sleep function is injectable so tests can
record delays instead of waiting.
"""

import asyncio
import functools
import logging
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, ParamSpec, TypeVar

import httpx

from .errors import TransientServiceError

P = ParamSpec("P")
R = TypeVar("R")

SleepFunc = Callable[[float], Awaitable[None]]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior.

    Attributes:
        max_attempts: Maximum number of attempts (including first try)
        base_delay: Delay in seconds before the first retry
        max_delay: Maximum delay cap in seconds
        exponential_base: Base for exponential backoff calculation
        jitter: Whether to add random jitter to delays
        retryable_exceptions: Exception types that trigger a retry
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0
    exponential_base: float = 2.0
    jitter: bool = False
    retryable_exceptions: tuple[type[Exception], ...] = field(
        default_factory=lambda: (httpx.TransportError,)
    )

    def calculate_delay(self, attempt: int) -> float:
        """Calculate the delay after a failed attempt.

        Args:
            attempt: Failed attempt number (0-indexed)

        Returns:
            Delay in seconds
        """
        delay = min(
            self.base_delay * (self.exponential_base**attempt),
            self.max_delay,
        )
        if self.jitter:
            # 50% to 100% of calculated delay
            delay *= 0.5 + random.random() * 0.5
        return delay

    @property
    def delays(self) -> list[float]:
        """Delays between attempts when every attempt fails (no jitter)."""
        return [
            min(self.base_delay * (self.exponential_base**n), self.max_delay)
            for n in range(self.max_attempts - 1)
        ]


# Vestaboard answers 503 when rate limiting: 5s, 10s, 20s, then give up
PUBLISH_RETRY_CONFIG = RetryConfig(
    max_attempts=4,
    base_delay=5.0,
    max_delay=60.0,
    retryable_exceptions=(TransientServiceError,),
)

# Network hiccups talking to Google Sheets or DigitalOcean
NETWORK_RETRY_CONFIG = RetryConfig(
    max_attempts=3,
    base_delay=2.0,
    max_delay=30.0,
    jitter=True,
    retryable_exceptions=(httpx.TransportError,),
)


async def call_with_retry(
    func: Callable[P, Awaitable[R]],
    *args: P.args,
    config: RetryConfig,
    sleep: SleepFunc = asyncio.sleep,
    **kwargs: P.kwargs,
) -> R:
    """Await ``func`` until it succeeds or ``config.max_attempts`` is reached.

    Non-retryable exceptions propagate immediately. When every attempt fails,
    the last retryable exception is re-raised.
    """
    for attempt in range(config.max_attempts):
        try:
            return await func(*args, **kwargs)
        except config.retryable_exceptions as e:
            if attempt == config.max_attempts - 1:
                logger.error(
                    "All %d attempts failed for %s",
                    config.max_attempts,
                    getattr(func, "__name__", repr(func)),
                    extra={"last_error": str(e)},
                )
                raise

            delay = config.calculate_delay(attempt)
            logger.warning(
                "Retry %d/%d in %.1fs: %s",
                attempt + 1,
                config.max_attempts - 1,
                delay,
                e,
                extra={"error_type": type(e).__name__},
            )
            await sleep(delay)

    raise RuntimeError("Retry loop ended without a result")


def async_retry(
    config: RetryConfig | None = None,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Decorator form of :func:`call_with_retry`.

    Usage:
        @async_retry(NETWORK_RETRY_CONFIG)
        async def fetch_data():
            ...
    """
    if config is None:
        config = RetryConfig()

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            return await call_with_retry(func, *args, config=config, **kwargs)

        return wrapper

    return decorator
