"""
Recompute Scheduler

Defers evaluation passes so that a burst of graph mutations made in one
synchronous block results in a single recomputation.
"""

import asyncio
from typing import Callable, Optional
import logging

logger = logging.getLogger(__name__)


class RecomputeScheduler:
    """
    Coalesces recompute requests into one deferred pass.

    When an asyncio event loop is available the pass runs on the loop's next
    iteration (call_soon). Without a loop the request stays pending until
    flush() is called, which keeps evaluation deterministic in scripts and
    tests.

    Example usage:
        scheduler = RecomputeScheduler(coordinator.recompute)
        store.subscribe(lambda state: scheduler.schedule())

        store.update_node_data("text-1", {"text": "a"})
        store.update_node_data("text-1", {"text": "b"})
        scheduler.flush()  # one pass sees both updates
    """

    def __init__(
        self,
        callback: Callable[[], None],
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        """
        Initialize scheduler.

        Args:
            callback: Evaluation pass to run
            loop: Event loop to defer onto; defaults to the running loop at
                  the time schedule() is called, if any
        """
        self._callback = callback
        self._loop = loop
        self._pending = False
        self.passes = 0

    @property
    def pending(self) -> bool:
        return self._pending

    def schedule(self) -> None:
        """Request a pass; no-op if one is already pending"""
        if self._pending:
            return
        self._pending = True

        loop = self._loop or self._running_loop()
        if loop is not None:
            loop.call_soon(self.flush)
            logger.debug("Recompute deferred to next loop iteration")
        else:
            logger.debug("Recompute pending until flush()")

    def flush(self) -> bool:
        """
        Run the pending pass now.

        Returns:
            True if a pass ran, False if nothing was pending
        """
        if not self._pending:
            return False
        self._pending = False
        self.passes += 1
        self._callback()
        return True

    @staticmethod
    def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None
