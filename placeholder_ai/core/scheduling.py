"""Clock and ticker abstractions for time-driven housekeeping.

Components take a `Clock` (any zero-argument callable returning epoch seconds)
instead of calling `time.time` directly, and periodic work is expressed as a
`PeriodicTask` started by the application lifespan. Tests inject a fake clock
and call the housekeeping methods directly.
"""

import asyncio
import logging
from typing import Callable


logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class PeriodicTask:
    """Run a synchronous callback every `interval` seconds on the event loop.

    Exceptions raised by the callback are logged and do not stop the ticker.
    """

    def __init__(self, name: str, interval: float, callback: Callable[[], object]):
        self.name = name
        self.interval = interval
        self._callback = callback
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the ticker on the running loop; no-op if already running."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                self._callback()
            except Exception:
                logger.exception("Periodic task %s failed", self.name)

    async def stop(self) -> None:
        """Cancel the ticker and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
