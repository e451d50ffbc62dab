"""Vestaboard Subscription API publisher.

Sends a grid to each board with ``POST /subscriptions/{id}/message``.

Response handling:
- 2xx: board updated
- body message containing "fingerprint matches": the board already shows
  this grid, reported as success so re-sending is always safe
- 503: rate limited, retried with exponential backoff (5s, 10s, 20s)
- anything else: permanent failure, no retry
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

import httpx

from ..core.config import BoardConfig
from ..core.errors import PermanentServiceError, TransientServiceError
from ..core.retry import PUBLISH_RETRY_CONFIG, RetryConfig, SleepFunc, call_with_retry
from .charset import SymbolGrid

logger = logging.getLogger(__name__)

VESTABOARD_API_URL = "https://platform.vestaboard.com"
DUPLICATE_MARKER = "fingerprint matches"


class PublishStatus(Enum):
    """How a board ended up showing the grid."""

    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class PublishResult:
    """Successful publish to one board."""

    target: str
    status: PublishStatus
    response: Any = None


@dataclass(frozen=True)
class PublishOutcome:
    """Result or error of publishing to one board within a fan-out."""

    target: str
    result: PublishResult | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _json_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def is_duplicate_response(body: Any) -> bool:
    """Check for the "content already displayed" error body."""
    if not isinstance(body, dict):
        return False
    message = body.get("message")
    return isinstance(message, str) and DUPLICATE_MARKER in message.lower()


class BoardPublisher:
    """Publishes grids to Vestaboards.

    Usage:
        async with httpx.AsyncClient(timeout=30.0) as client:
            publisher = BoardPublisher(client)
            outcomes = await publisher.publish_all(config.boards, grid)
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        retry_config: RetryConfig = PUBLISH_RETRY_CONFIG,
        sleep: SleepFunc = asyncio.sleep,
        base_url: str = VESTABOARD_API_URL,
    ) -> None:
        """Initialize the publisher.

        Args:
            client: Shared HTTP client
            retry_config: Backoff applied to 503 responses
            sleep: Coroutine used to wait between attempts
            base_url: Vestaboard platform URL
        """
        self._client = client
        self._retry_config = retry_config
        self._sleep = sleep
        self._base_url = base_url.rstrip("/")

    async def publish(self, board: BoardConfig, grid: SymbolGrid) -> PublishResult:
        """Send a grid to one board.

        Raises:
            PermanentServiceError: On a non-retryable failure, or when the
                board is still unavailable after the last retry
        """
        try:
            return await call_with_retry(
                self._send,
                board,
                grid,
                config=self._retry_config,
                sleep=self._sleep,
            )
        except TransientServiceError as e:
            raise PermanentServiceError(
                f"{board.name} still unavailable after {self._retry_config.max_attempts} attempts",
                target=board.name,
                status_code=e.status_code,
                cause=e,
            ) from e

    async def publish_all(
        self,
        boards: Sequence[BoardConfig],
        grid: SymbolGrid,
    ) -> list[PublishOutcome]:
        """Publish to every board concurrently.

        A failing board does not stop the others. Outcomes are returned in
        ``boards`` order.
        """
        results = await asyncio.gather(
            *(self.publish(board, grid) for board in boards),
            return_exceptions=True,
        )

        outcomes = []
        for board, result in zip(boards, results):
            if isinstance(result, Exception):
                outcomes.append(PublishOutcome(target=board.name, error=result))
            elif isinstance(result, BaseException):
                raise result
            else:
                outcomes.append(PublishOutcome(target=board.name, result=result))
        return outcomes

    async def _send(self, board: BoardConfig, grid: SymbolGrid) -> PublishResult:
        """Single attempt; exactly one request."""
        url = f"{self._base_url}/subscriptions/{board.subscription_id}/message"
        headers = {
            "X-Vestaboard-Api-Key": board.api_key.get_secret_value(),
            "X-Vestaboard-Api-Secret": board.api_secret.get_secret_value(),
        }

        try:
            response = await self._client.post(
                url,
                json={"characters": grid.to_payload()},
                headers=headers,
            )
        except httpx.HTTPError as e:
            logger.error("Request to %s failed: %s", board.name, e, extra={"board": board.name})
            raise PermanentServiceError(
                f"Request to {board.name} failed: {e}",
                target=board.name,
                cause=e,
            ) from e

        body = _json_body(response)

        if response.is_success:
            logger.info("Updated %s", board.name, extra={"board": board.name})
            return PublishResult(board.name, PublishStatus.UPDATED, body)

        if is_duplicate_response(body):
            logger.info(
                "%s already displays this message, no update needed",
                board.name,
                extra={"board": board.name},
            )
            return PublishResult(board.name, PublishStatus.UNCHANGED, body)

        if response.status_code == httpx.codes.SERVICE_UNAVAILABLE:
            raise TransientServiceError(
                f"{board.name} is rate limited",
                target=board.name,
                status_code=response.status_code,
            )

        logger.error(
            "Error updating %s: HTTP %d %s",
            board.name,
            response.status_code,
            body if body is not None else response.text[:200],
            extra={"board": board.name},
        )
        raise PermanentServiceError(
            f"{board.name} rejected the message",
            target=board.name,
            status_code=response.status_code,
        )
