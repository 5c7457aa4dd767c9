"""
Cancelable periodic background task.

Sandi Metz Principles:
- Single Responsibility: Run one callback on an interval
- Small methods: start, stop, loop
"""

import asyncio
from typing import Callable, Optional

from resilience.utils.logger import get_logger, log_error

logger = get_logger(__name__)


class PeriodicTask:
    """
    Runs a synchronous callback every ``interval_seconds`` on the event loop.

    Used for cache expiry sweeps and rate-limit counter cleanup. The
    callback must be short and non-blocking.
    """

    def __init__(
        self,
        name: str,
        interval_seconds: float,
        callback: Callable[[], object],
    ):
        """
        Initialize periodic task.

        Args:
            name: Task name used in logs
            interval_seconds: Delay between runs
            callback: Function invoked on every tick
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self._name = name
        self._interval = interval_seconds
        self._callback = callback
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        """Check if the background task is active."""
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """
        Start the background loop.

        Must be called from a running event loop. Starting twice is a no-op.
        """
        if self.is_running:
            return

        self._task = asyncio.create_task(self._run(), name=self._name)
        logger.debug("Periodic task started", task=self._name, interval=self._interval)

    async def stop(self) -> None:
        """Cancel the background loop and wait for it to finish."""
        if self._task is None:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.debug("Periodic task stopped", task=self._name)

    async def _run(self) -> None:
        """Background loop."""
        while True:
            await asyncio.sleep(self._interval)
            try:
                self._callback()
            except Exception as e:
                log_error(e, "periodic_task", task=self._name)
