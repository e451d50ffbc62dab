"""One update cycle: sheet -> layout -> every board."""

import logging
from dataclasses import dataclass, field

from .core.config import Config
from .core.errors import UpdateCycleError
from .display.charset import SymbolGrid, render_preview
from .display.formatter import MessageTemplate, format_message
from .display.publisher import BoardPublisher, PublishOutcome
from .sources.sheets import FundraiserSnapshot, SheetsClient

logger = logging.getLogger(__name__)


@dataclass
class CycleReport:
    """What one update cycle fetched, showed, and delivered."""

    snapshot: FundraiserSnapshot
    grid: SymbolGrid
    outcomes: list[PublishOutcome] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(outcome.ok for outcome in self.outcomes)

    @property
    def failures(self) -> list[PublishOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]


class FundraiserUpdater:
    """Runs update cycles against the configured sheet and boards.

    Usage:
        async with httpx.AsyncClient(timeout=30.0) as client:
            updater = FundraiserUpdater(
                config, SheetsClient(client, config.sheet), BoardPublisher(client)
            )
            await updater.run_cycle()
    """

    def __init__(
        self,
        config: Config,
        sheets: SheetsClient,
        publisher: BoardPublisher,
    ) -> None:
        self._config = config
        self._sheets = sheets
        self._publisher = publisher
        self._template = MessageTemplate.from_config(config.message)

    async def build_grid(self) -> tuple[FundraiserSnapshot, SymbolGrid]:
        """Fetch the latest snapshot and lay it out, without publishing."""
        snapshot = await self._sheets.fetch_snapshot()
        logger.info(
            "Total raised: $%s%s",
            f"{snapshot.total_raised:,.2f}",
            f" as of {snapshot.as_of.isoformat()}" if snapshot.as_of else "",
        )

        grid = format_message(snapshot.total_raised, snapshot.as_of, self._template)
        logger.info("Message to display:\n%s", render_preview(grid))
        return snapshot, grid

    async def run_cycle(self) -> CycleReport:
        """Fetch, format, and publish to every board.

        Raises:
            DataNotFoundError: If the sheet has no total
            APIError: If the sheet cannot be read
            UpdateCycleError: If any board failed (others may have updated)
        """
        snapshot, grid = await self.build_grid()

        logger.info("Updating %d boards", len(self._config.boards))
        outcomes = await self._publisher.publish_all(self._config.boards, grid)
        report = CycleReport(snapshot=snapshot, grid=grid, outcomes=outcomes)

        for failure in report.failures:
            logger.error("%s failed: %s", failure.target, failure.error)

        if not report.ok:
            raise UpdateCycleError(
                f"{len(report.failures)} of {len(outcomes)} boards failed to update",
                outcomes=outcomes,
            )

        logger.info("All boards updated")
        return report
