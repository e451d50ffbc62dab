"""Pytest configuration and shared fixtures."""

from datetime import datetime, timedelta
from typing import Callable
from zoneinfo import ZoneInfo

import httpx
import pytest

from fundraiser_board.core.config import Config, load_config


class RecordingSleep:
    """Async sleep stand-in that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FakeClock:
    """Settable clock for the scheduler."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def eastern() -> ZoneInfo:
    return ZoneInfo("America/New_York")


@pytest.fixture
def fake_clock(eastern: ZoneInfo) -> Callable[..., FakeClock]:
    def factory(hour: int, minute: int = 0, second: int = 0) -> FakeClock:
        return FakeClock(datetime(2024, 3, 4, hour, minute, second, tzinfo=eastern))

    return factory


@pytest.fixture
def env() -> dict[str, str]:
    """Environment as written in a typical .env file."""
    return {
        "UPDATE_INTERVAL_MINUTES": "25",
        "START_HOUR": "12",
        "END_HOUR": "22",
        "TIMEZONE": "America/New_York",
        "GOOGLE_SHEET_ID": "sheet-123",
        "GOOGLE_API_KEY": "sheet-key",
        "SHEET_RANGE": "Sheet1!A1:B10",
        "VESTABOARD_ONE_API_KEY": "key-one",
        "VESTABOARD_ONE_API_SECRET": "secret-one",
        "VESTABOARD_ONE_SUBSCRIPTION_ID": "sub-one",
        "VESTABOARD_TWO_API_KEY": "key-two",
        "VESTABOARD_TWO_API_SECRET": "secret-two",
        "VESTABOARD_TWO_SUBSCRIPTION_ID": "sub-two",
        "DIGITALOCEAN_TOKEN": "do-token",
    }


@pytest.fixture
def config(env: dict[str, str]) -> Config:
    return load_config(None, environ=env)


@pytest.fixture
def sheet_values() -> list[list[str]]:
    """Donation log as returned by the values API."""
    return [
        ["Date", "Donation"],
        ["3/1/2024", "$2,000"],
        ["3/4/2024", "$345"],
        ["3/2/2024", "$10,000"],
        [],
        ["Total Raised", "$12,345"],
    ]


@pytest.fixture
def mock_client() -> Callable[..., httpx.AsyncClient]:
    """Factory for AsyncClients backed by a request handler."""

    def factory(handler: Callable[[httpx.Request], httpx.Response], **kwargs) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler), **kwargs)

    return factory
