"""Marshals work from background threads onto the UI timeline."""

import logging
import queue
import time
from typing import Callable

logger = logging.getLogger(__name__)


class Dispatcher:
    """Thread-safe queue of callbacks drained by the UI thread.

    Worker threads call ``post``; only the thread that calls
    ``process_pending`` runs the callbacks, so state they touch is never
    mutated concurrently.
    """

    def __init__(self):
        self.task_queue: "queue.Queue[tuple]" = queue.Queue()

    def post(self, callback: Callable, *args, **kwargs) -> None:
        """Schedule a callback to run on the UI timeline."""
        self.task_queue.put((callback, args, kwargs))

    def process_pending(self, timeout: float = 0.0) -> int:
        """Run queued callbacks on the calling thread.

        Args:
            timeout: Seconds to wait for the first callback if the queue is empty

        Returns:
            Number of callbacks executed
        """
        executed = 0
        block = timeout > 0
        while True:
            try:
                callback, args, kwargs = self.task_queue.get(block=block, timeout=timeout if block else None)
            except queue.Empty:
                break
            block = False
            try:
                callback(*args, **kwargs)
            except Exception as e:
                logger.error(f"Unhandled exception in dispatched callback {callback!r}: {e}", exc_info=True)
            finally:
                self.task_queue.task_done()
            executed += 1
        return executed

    def wait_until(self, predicate: Callable[[], bool], timeout: float = 30.0,
                   poll_interval: float = 0.05) -> bool:
        """Pump callbacks until predicate() holds or the timeout expires.

        Returns:
            True if the predicate became true
        """
        deadline = time.time() + timeout
        while not predicate():
            remaining = deadline - time.time()
            if remaining <= 0:
                logger.warning(f"Timed out after {timeout}s waiting on the UI timeline")
                return False
            self.process_pending(timeout=min(poll_interval, remaining))
        return True
