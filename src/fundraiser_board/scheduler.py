"""Wall-clock scheduler for board updates.

Wakes once per minute. Inside the active window [start_hour, end_hour) it
runs an update whenever the minute is a multiple of the interval, e.g. :00,
:25 and :50 for a 25 minute interval. Each slot runs at most once, so a
late or repeated tick never double-posts.
"""

import asyncio
import logging
from datetime import date, datetime
from typing import Any, Awaitable, Callable
from zoneinfo import ZoneInfo

from .core.config import ScheduleConfig
from .core.retry import SleepFunc

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
CycleFunc = Callable[[], Awaitable[Any]]

SlotKey = tuple[date, int, int]


class SystemClock:
    """Current time in a fixed time zone."""

    def __init__(self, tz: ZoneInfo) -> None:
        self._tz = tz

    def __call__(self) -> datetime:
        return datetime.now(self._tz)


class UpdateScheduler:
    """Triggers update cycles on a fixed cadence inside the active window.

    Cycles run as background tasks so a slow update never delays the next
    tick. A failing cycle is logged; the next due slot is its retry.

    Usage:
        scheduler = UpdateScheduler(config.schedule, updater.run_cycle)
        await scheduler.run_forever(stop_event)
    """

    def __init__(
        self,
        schedule: ScheduleConfig,
        run_cycle: CycleFunc,
        clock: Clock | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        """Initialize the scheduler.

        Args:
            schedule: Window, interval and time zone
            run_cycle: Coroutine function running one update cycle
            clock: Time source (defaults to the system clock in the schedule zone)
            sleep: Coroutine used to wait for the next minute
        """
        self._schedule = schedule
        self._run_cycle = run_cycle
        self._clock = clock or SystemClock(schedule.tzinfo)
        self._sleep = sleep
        self._last_slot: SlotKey | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending_cycles(self) -> int:
        return len(self._tasks)

    def is_active(self, now: datetime) -> bool:
        """Check if ``now`` is inside the active window (end hour exclusive)."""
        return self._schedule.start_hour <= now.hour < self._schedule.end_hour

    def is_due(self, now: datetime) -> bool:
        """Check if ``now`` falls on an update minute inside the window."""
        return self.is_active(now) and now.minute % self._schedule.update_interval_minutes == 0

    def slot_of(self, now: datetime) -> SlotKey:
        """Interval slot containing ``now``."""
        return (now.date(), now.hour, now.minute // self._schedule.update_interval_minutes)

    def minutes_until_active(self, now: datetime) -> int:
        """Minutes until the window next opens (0 when already inside)."""
        if self.is_active(now):
            return 0
        start = self._schedule.start_hour
        if now.hour < start:
            return (start - now.hour) * 60 - now.minute
        return (24 - now.hour + start) * 60 - now.minute

    def tick(self, now: datetime | None = None) -> asyncio.Task | None:
        """Handle one poll; returns the started cycle task, if any."""
        now = now or self._clock()

        if not self.is_active(now):
            if now.minute == 0:
                self._log_countdown(now)
            return None

        if not self.is_due(now) or self.slot_of(now) == self._last_slot:
            return None

        logger.info("Running scheduled update at %s", now.strftime("%Y-%m-%d %H:%M %Z"))
        return self._start_cycle(now)

    async def run_forever(self, stop_event: asyncio.Event) -> None:
        """Poll every minute until ``stop_event`` is set.

        On a cold start inside the window one update runs right away.
        In-flight cycles are not awaited on stop.
        """
        s = self._schedule
        now = self._clock()
        logger.info(
            "Scheduler started: every %d minutes from %02d:00 to %02d:00 %s",
            s.update_interval_minutes,
            s.start_hour,
            s.end_hour,
            s.timezone,
        )

        if self.is_active(now):
            logger.info("Within active hours, running initial update")
            self._start_cycle(now)
        else:
            self._log_countdown(now)

        while not stop_event.is_set():
            if await self._wait(self._seconds_to_next_minute(now), stop_event):
                break
            now = self._clock()
            self.tick(now)

        logger.info("Scheduler stopped (%d updates in flight)", self.pending_cycles)

    async def wait_for_cycles(self) -> None:
        """Wait until every started cycle has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def cancel_pending(self) -> int:
        """Cancel in-flight cycles; returns how many were cancelled."""
        tasks = [task for task in self._tasks if not task.done()]
        for task in tasks:
            task.cancel()
        return len(tasks)

    def _start_cycle(self, now: datetime) -> asyncio.Task:
        self._last_slot = self.slot_of(now)
        task = asyncio.ensure_future(self._run_cycle())
        self._tasks.add(task)
        task.add_done_callback(self._on_cycle_done)
        return task

    def _on_cycle_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "Update cycle failed: %s",
                error,
                exc_info=(type(error), error, error.__traceback__),
            )

    def _log_countdown(self, now: datetime) -> None:
        minutes = self.minutes_until_active(now)
        logger.info(
            "Outside active hours. Next update in %dh %dm at %02d:00",
            minutes // 60,
            minutes % 60,
            self._schedule.start_hour,
        )

    @staticmethod
    def _seconds_to_next_minute(now: datetime) -> float:
        remaining = 60 - now.second - now.microsecond / 1_000_000
        return remaining if remaining > 0 else 60.0

    async def _wait(self, seconds: float, stop_event: asyncio.Event) -> bool:
        """Sleep, waking early on stop. Returns True if stopped."""
        sleeper = asyncio.ensure_future(self._sleep(seconds))
        stopper = asyncio.ensure_future(stop_event.wait())
        try:
            await asyncio.wait({sleeper, stopper}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            sleeper.cancel()
            stopper.cancel()
        return stop_event.is_set()
