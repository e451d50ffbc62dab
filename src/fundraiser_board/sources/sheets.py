"""Google Sheets data source.

Reads the donation log range and pulls out two things:
- the amount next to the "Total Raised" label (any column)
- the latest date found in column A
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Sequence
from urllib.parse import quote

import httpx

from ..core.config import SheetConfig
from ..core.errors import APIError, DataNotFoundError
from ..core.retry import NETWORK_RETRY_CONFIG, RetryConfig, SleepFunc, call_with_retry

logger = logging.getLogger(__name__)

SHEETS_API_URL = "https://sheets.googleapis.com/v4/spreadsheets"
TOTAL_LABEL = "total raised"
MIN_YEAR = 2000

# Formats people actually type into a donations column
_DATE_FORMATS = (
    "%m/%d/%Y",
    "%m/%d/%y",
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m-%d-%Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%b %d %Y",
    "%B %d %Y",
    "%d %b %Y",
    "%d %B %Y",
)

_NON_NUMERIC = re.compile(r"[^0-9.]")


@dataclass(frozen=True)
class FundraiserSnapshot:
    """Total raised and the date of the latest entry."""

    total_raised: float
    as_of: date | None = None


def parse_sheet_date(text: str) -> date | None:
    """Parse a cell as a calendar date, or return None."""
    text = text.strip()
    if not text:
        return None

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def parse_amount(text: str) -> float | None:
    """Parse a currency cell such as "$12,345.67"; None if nothing numeric."""
    try:
        return float(_NON_NUMERIC.sub("", text))
    except ValueError:
        return None


def _cell(row: Sequence[Any], index: int) -> str:
    if index >= len(row) or row[index] is None:
        return ""
    return str(row[index])


def extract_snapshot(values: Sequence[Sequence[Any]]) -> FundraiserSnapshot:
    """Scan a cell grid for the total raised and the latest date.

    Dates only count from column A, after 2000, and never from a cell that
    mentions "total". The first "Total Raised" label (row by row, left to
    right) with a parseable amount to its right wins.

    Raises:
        DataNotFoundError: If no "Total Raised" amount is present
    """
    total_raised: float | None = None
    latest: date | None = None

    for row_index, row in enumerate(values):
        first = _cell(row, 0).strip()
        if first and "total" not in first.lower():
            parsed = parse_sheet_date(first)
            if parsed is not None and parsed.year > MIN_YEAR:
                if latest is None or parsed > latest:
                    latest = parsed
                    logger.debug("Found date %s in row %d", parsed.isoformat(), row_index + 1)

        for col_index in range(len(row)):
            if TOTAL_LABEL not in _cell(row, col_index).lower():
                continue

            amount = parse_amount(_cell(row, col_index + 1))
            cell_name = f"{chr(ord('A') + col_index)}{row_index + 1}"
            if amount is None:
                logger.warning("'Total Raised' label at %s has no amount next to it", cell_name)
            elif total_raised is None:
                total_raised = amount
                logger.info("Found total raised $%s at %s", f"{amount:,.2f}", cell_name)
            else:
                logger.warning(
                    "Ignoring additional 'Total Raised' at %s (keeping $%s)",
                    cell_name,
                    f"{total_raised:,.2f}",
                )
            break

    if total_raised is None:
        raise DataNotFoundError("Could not find 'Total Raised' in spreadsheet")

    if latest is None:
        logger.info("No dates found in column A")
    return FundraiserSnapshot(total_raised=total_raised, as_of=latest)


class SheetsClient:
    """Reads a range through the Google Sheets v4 values API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        sheet: SheetConfig,
        retry_config: RetryConfig = NETWORK_RETRY_CONFIG,
        sleep: SleepFunc = asyncio.sleep,
        base_url: str = SHEETS_API_URL,
    ) -> None:
        self._client = client
        self._sheet = sheet
        self._retry_config = retry_config
        self._sleep = sleep
        self._base_url = base_url.rstrip("/")

    async def fetch_values(self) -> list[list[str]]:
        """Fetch the configured range as rows of cell strings.

        Raises:
            APIError: On an HTTP error status or persistent network failure
        """
        try:
            response = await call_with_retry(
                self._get_range,
                config=self._retry_config,
                sleep=self._sleep,
            )
        except httpx.TransportError as e:
            raise APIError("Could not reach Google Sheets", cause=e) from e

        if not response.is_success:
            try:
                reason = response.json().get("error", {}).get("message", "")
            except (ValueError, AttributeError):
                reason = response.text[:200]
            raise APIError(
                f"Google Sheets returned HTTP {response.status_code}",
                status_code=response.status_code,
                details={"reason": reason} if reason else None,
            )

        return response.json().get("values", [])

    async def fetch_snapshot(self) -> FundraiserSnapshot:
        """Fetch the range and extract the fundraiser snapshot."""
        logger.info("Fetching fundraiser data from Google Sheets")
        values = await self.fetch_values()
        return extract_snapshot(values)

    async def _get_range(self) -> httpx.Response:
        url = f"{self._base_url}/{self._sheet.sheet_id}/values/{quote(self._sheet.cell_range, safe='')}"
        return await self._client.get(
            url,
            params={"key": self._sheet.api_key.get_secret_value()},
        )
