"""Fundraiser board entry point.

Usage:
    python -m fundraiser_board [options] COMMAND

Commands:
    run                 Update the boards on schedule until SIGTERM/SIGINT
    update [--dry-run]  Run one update cycle and exit
    preview AMOUNT      Print the board layout for an amount
    deploy [--yes]      Provision a DigitalOcean droplet running the service

Options:
    --config PATH     Path to config file (default: $FUNDRAISER_BOARD_CONFIG or config.yaml)
    --debug           Enable debug logging
"""

import argparse
import asyncio
import math
import os
import signal
import sys
import time
from datetime import date
from pathlib import Path

import httpx

from . import __version__
from .core.config import Config, load_config
from .core.errors import FundraiserBoardError
from .core.logging import setup_logging, get_logger
from .deploy.provisioner import deploy_droplet
from .display.charset import render_preview
from .display.formatter import MessageTemplate, format_message
from .display.publisher import BoardPublisher
from .scheduler import UpdateScheduler
from .sources.sheets import SheetsClient
from .updater import FundraiserUpdater

logger = get_logger(__name__)

HTTP_TIMEOUT = 30.0
DEPLOY_GRACE_SECONDS = 5


def _build_updater(config: Config, client: httpx.AsyncClient) -> FundraiserUpdater:
    return FundraiserUpdater(
        config,
        SheetsClient(client, config.sheet),
        BoardPublisher(client),
    )


async def run_service(config: Config) -> None:
    """Run the scheduler until a termination signal arrives."""
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def request_stop(sig: signal.Signals) -> None:
        logger.info("Received %s, shutting down", sig.name)
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, request_stop, sig)

    async with httpx.AsyncClient(timeout=HTTP_TIMEOUT) as client:
        updater = _build_updater(config, client)
        scheduler = UpdateScheduler(config.schedule, updater.run_cycle)
        try:
            await scheduler.run_forever(stop_event)
        finally:
            cancelled = scheduler.cancel_pending()
            if cancelled:
                logger.info("Abandoned %d in-flight updates", cancelled)


async def run_once(config: Config, dry_run: bool = False) -> None:
    """Run one update cycle; with ``dry_run`` only fetch and lay out."""
    async with httpx.AsyncClient(timeout=HTTP_TIMEOUT) as client:
        updater = _build_updater(config, client)
        if dry_run:
            await updater.build_grid()
            logger.info("Dry run, boards not updated")
        else:
            await updater.run_cycle()


def _cmd_run(config: Config, args: argparse.Namespace) -> int:
    config.require_update_credentials()
    asyncio.run(run_service(config))
    return 0


def _cmd_update(config: Config, args: argparse.Namespace) -> int:
    if args.dry_run:
        config.require_sheet_credentials()
    else:
        config.require_update_credentials()
    asyncio.run(run_once(config, dry_run=args.dry_run))
    return 0


def _cmd_preview(config: Config, args: argparse.Namespace) -> int:
    grid = format_message(args.amount, args.date, MessageTemplate.from_config(config.message))
    print(render_preview(grid))
    return 0


def _cmd_deploy(config: Config, args: argparse.Namespace) -> int:
    d = config.deploy
    logger.warning(
        "This will replace any droplet named %s with a new %s droplet in %s",
        d.droplet_name,
        d.size,
        d.region,
    )
    if not args.yes:
        logger.warning("Press Ctrl+C within %d seconds to cancel...", DEPLOY_GRACE_SECONDS)
        try:
            time.sleep(DEPLOY_GRACE_SECONDS)
        except KeyboardInterrupt:
            logger.info("Deployment cancelled")
            return 1

    result = asyncio.run(deploy_droplet(config))

    logger.info("Deployment complete")
    logger.info("  Name:       %s", result.name)
    logger.info("  IP address: %s", result.ip_address)
    logger.info("  Dashboard:  %s", result.dashboard_url)
    logger.info("  Setup log:  tail -f /var/log/user-data.log (droplet console)")
    logger.info("  Service:    systemctl status %s", d.droplet_name)
    return 0


def _parse_amount(value: str) -> float:
    try:
        amount = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value}") from None
    if not math.isfinite(amount):
        raise argparse.ArgumentTypeError(f"amount must be finite: {value}")
    return amount


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a YYYY-MM-DD date: {value}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fundraiser-board",
        description="Fundraiser total on Vestaboard displays",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path(os.environ.get("FUNDRAISER_BOARD_CONFIG", "config.yaml")),
        help="Path to config file",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    run = commands.add_parser("run", help="Update the boards on schedule")
    run.set_defaults(handler=_cmd_run)

    update = commands.add_parser("update", help="Run one update cycle")
    update.add_argument("--dry-run", action="store_true", help="Fetch and lay out only")
    update.set_defaults(handler=_cmd_update)

    preview = commands.add_parser("preview", help="Print the board for an amount")
    preview.add_argument("amount", type=_parse_amount, help="Total raised in dollars")
    preview.add_argument("--date", type=_parse_date, default=None, help="As-of date (YYYY-MM-DD)")
    preview.set_defaults(handler=_cmd_preview)

    deploy = commands.add_parser("deploy", help="Provision a DigitalOcean droplet")
    deploy.add_argument("--yes", action="store_true", help="Skip the cancel countdown")
    deploy.set_defaults(handler=_cmd_deploy)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    setup_logging(level="DEBUG" if args.debug else "INFO")
    logger.info("Fundraiser board v%s", __version__)

    try:
        config = load_config(args.config)
        setup_logging(
            level="DEBUG" if args.debug else config.logging.level,
            log_format=config.logging.format,
            log_file=config.logging.file,
            max_size_mb=config.logging.max_size_mb,
            backup_count=config.logging.backup_count,
        )
        return args.handler(config, args)

    except FundraiserBoardError as e:
        logger.error("%s failed: %s", args.command, e, extra={"error": e.to_dict()})
        return 1

    except Exception as e:
        logger.exception("Fatal error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
