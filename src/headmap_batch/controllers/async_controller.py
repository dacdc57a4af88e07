# src/headmap_batch/controllers/async_controller.py
import asyncio
import logging
from typing import Set

logger = logging.getLogger(__name__)


class AsyncController:
    """
    Base class for asynchronous controllers.

    Owns the cancel signal shared with in-flight work and the set of tasks
    that `shutdown` has to reap.
    """

    def __init__(self):
        self.cancel_event = asyncio.Event()
        self._in_flight: Set[asyncio.Task] = set()

    def _reset_signals(self) -> None:
        """Fresh events for a new run, bound to whichever loop runs it."""
        self.cancel_event = asyncio.Event()

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    async def shutdown(self):
        """Cancels any task still in flight and waits for it to unwind."""
        pending = [task for task in self._in_flight if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            results = await asyncio.gather(*pending, return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    logger.error("Task failed during controller shutdown: %s", result)
            logger.debug("%d in-flight task(s) cancelled on shutdown.", len(pending))
        self._in_flight.clear()
