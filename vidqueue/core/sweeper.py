"""Periodic cleanup ticker for the video ingestion queue.

Runs a callback on a fixed interval as an asyncio task whose lifetime is
tied to the owning queue (started/stopped explicitly) rather than a
module-level timer.
"""

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class CleanupSweeper:
    """Calls ``callback`` every ``interval`` seconds until stopped.

    A failing callback is logged and the ticker keeps running.
    """

    def __init__(self, callback: Callable[[], object], interval: float):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._callback = callback
        self.interval = interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start ticking. No-op if already running; needs a running loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name="vidqueue-cleanup"
        )
        logger.debug("Cleanup sweeper started (interval: %ss)", self.interval)

    async def stop(self) -> None:
        """Stop ticking and wait for the ticker task to exit."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("Cleanup sweeper stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                self._callback()
            except Exception:
                logger.exception("Cleanup sweep failed")
