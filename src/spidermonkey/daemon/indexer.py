"""Periodic rescan loop using a thread pool for the blocking resync."""

from __future__ import annotations

import asyncio
import contextlib
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

import structlog

from spidermonkey.config.constants import DEFAULT_RESCAN_INTERVAL_SEC
from spidermonkey.core import progress
from spidermonkey.core.errors import PreScanError, SpiderMonkeyError
from spidermonkey.daemon.prescan import run_pre_scan_commands

if TYPE_CHECKING:
    from spidermonkey.index.models import IndexStats
    from spidermonkey.index.ops import IndexSynchronizer

logger = structlog.get_logger()


class SchedulerState(Enum):
    """Rescan scheduler state."""

    IDLE = "idle"
    PRE_SCAN = "pre_scan"
    INDEXING = "indexing"
    STOPPING = "stopping"
    STOPPED = "stopped"


@dataclass
class SchedulerStatus:
    """Current scheduler status."""

    state: SchedulerState
    cycles_completed: int
    cycles_skipped: int
    last_stats: IndexStats | None = None
    last_error: str | None = None
    last_cycle_at: float | None = None


@dataclass
class RescanScheduler:
    """
    Runs pre-scan commands and a resync every ``interval_seconds``.

    Design:
    - HTTP server runs in main asyncio loop
    - resync() is submitted to a single-worker ThreadPoolExecutor
    - A failing pre-scan command skips that cycle's resync
    - Any cycle error is logged and the loop waits for the next tick
    """

    synchronizer: IndexSynchronizer
    interval_seconds: float = DEFAULT_RESCAN_INTERVAL_SEC
    pre_scan_commands: list[str] = field(default_factory=list)
    max_workers: int = 1  # Single worker for serialization

    _state: SchedulerState = field(default=SchedulerState.STOPPED, init=False)
    _executor: ThreadPoolExecutor | None = field(default=None, init=False)
    _loop_task: asyncio.Task[None] | None = field(default=None, init=False)
    _cycles_completed: int = field(default=0, init=False)
    _cycles_skipped: int = field(default=0, init=False)
    _last_stats: IndexStats | None = field(default=None, init=False)
    _last_error: str | None = field(default=None, init=False)
    _last_cycle_at: float | None = field(default=None, init=False)

    def start(self) -> None:
        """Start the rescan loop on the running event loop."""
        if self._executor is not None:
            return
        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix="spidermonkey-indexer",
        )
        self._state = SchedulerState.IDLE
        self._loop_task = asyncio.get_running_loop().create_task(self._run())
        logger.info(
            "rescan_scheduler_started",
            interval_s=self.interval_seconds,
            pre_scan_commands=len(self.pre_scan_commands),
        )

    async def stop(self) -> None:
        """Stop the loop. A resync already running in the pool completes first."""
        self._state = SchedulerState.STOPPING

        if self._loop_task is not None and not self._loop_task.done():
            self._loop_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._loop_task
        self._loop_task = None

        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

        self._state = SchedulerState.STOPPED
        logger.info("rescan_scheduler_stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.run_cycle()

    async def run_cycle(self) -> IndexStats | None:
        """Run one pre-scan + resync cycle.

        Returns:
            The resync stats, or None if the cycle was skipped or failed.
        """
        if self._executor is None or self._state is SchedulerState.STOPPING:
            return None

        self._last_cycle_at = time.time()
        try:
            if self.pre_scan_commands:
                self._state = SchedulerState.PRE_SCAN
                await run_pre_scan_commands(self.pre_scan_commands, self.synchronizer.root)

            self._state = SchedulerState.INDEXING
            loop = asyncio.get_running_loop()
            stats = await loop.run_in_executor(self._executor, self.synchronizer.resync)
        except PreScanError as e:
            self._cycles_skipped += 1
            self._last_error = e.message
            logger.warning("prescan_command_failed", **e.to_dict())
            return None
        except SpiderMonkeyError as e:
            self._last_error = e.message
            logger.error("resync_failed", **e.to_dict())
            return None
        except Exception as e:
            self._last_error = str(e)
            logger.exception("resync_failed", error=str(e))
            return None
        finally:
            if self._state is not SchedulerState.STOPPING:
                self._state = SchedulerState.IDLE

        self._cycles_completed += 1
        self._last_stats = stats
        self._last_error = None
        if stats.changed:
            progress.status(_summarize(stats), style="success", indent=2)
        return stats

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def status(self) -> SchedulerStatus:
        """Get current scheduler status."""
        return SchedulerStatus(
            state=self._state,
            cycles_completed=self._cycles_completed,
            cycles_skipped=self._cycles_skipped,
            last_stats=self._last_stats,
            last_error=self._last_error,
            last_cycle_at=self._last_cycle_at,
        )


def _summarize(stats: IndexStats) -> str:
    """Describe what a cycle changed, e.g. ``2 added, 1 removed in 0.04s``."""
    parts: list[str] = []
    if stats.files_added:
        parts.append(f"{stats.files_added} added")
    if stats.files_updated:
        parts.append(f"{stats.files_updated} updated")
    if stats.files_removed:
        parts.append(f"{stats.files_removed} removed")
    summary = ", ".join(parts) if parts else "no changes"
    return f"{summary} in {stats.duration_seconds:.2f}s"
