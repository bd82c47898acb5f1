"""
Serializes watcher runs started over HTTP and by the built-in scheduler.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from rentwatch.config import ConfigError, Settings
from rentwatch.core import run_once
from rentwatch.models import RunSummary

logger = logging.getLogger(__name__)


class RunInProgress(Exception):
    """Raised when a run is requested while another one is active."""


class RunCoordinator:
    """Allows at most one run at a time and remembers the last result."""

    def __init__(
        self,
        settings: Settings,
        run: Callable[[Settings], Awaitable[RunSummary]] = run_once
    ):
        self.settings = settings
        self._run = run
        self._lock = asyncio.Lock()
        self.last_summary: Optional[RunSummary] = None

    @property
    def running(self) -> bool:
        return self._lock.locked()

    async def trigger(self) -> RunSummary:
        if self._lock.locked():
            raise RunInProgress("A run is already in progress")
        async with self._lock:
            summary = await self._run(self.settings)
            self.last_summary = summary
            return summary

    async def schedule(self, interval_min: float):
        """Run every ``interval_min`` minutes until cancelled; failures are logged."""
        logger.info(f"Scheduler started: every {interval_min} min")
        while True:
            try:
                await self.trigger()
            except RunInProgress:
                logger.info("Scheduled run skipped: previous run still active")
            except ConfigError as e:
                logger.error(f"Scheduled run aborted: {e}")
            except Exception:
                logger.exception("Scheduled run failed")
            await asyncio.sleep(interval_min * 60)
