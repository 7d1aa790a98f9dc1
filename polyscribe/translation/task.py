"""Runs one translation on a worker thread with its own event loop."""

import asyncio
import logging
import threading
from typing import Callable, Optional

from .session import TranslationSession
from ..errors import PolyscribeError, TranslationFailed
from ..services.dispatcher import Dispatcher

logger = logging.getLogger(__name__)


class TranslationTask:
    """Submits text to a translation session and reports back on the UI timeline."""

    def __init__(self,
                 session: TranslationSession,
                 generation: int,
                 text: str,
                 dispatcher: Dispatcher,
                 on_success: Callable[["TranslationTask", str], None],
                 on_error: Callable[["TranslationTask", PolyscribeError], None]):
        self.session = session
        self.generation = generation
        self.text = text
        self.dispatcher = dispatcher
        self.on_success = on_success
        self.on_error = on_error
        self.thread: Optional[threading.Thread] = None
        self.finished = threading.Event()

    def start(self) -> "TranslationTask":
        self.thread = threading.Thread(target=self._worker_loop, daemon=True)
        self.thread.name = f"translation_{self.generation}"
        self.thread.start()
        return self

    def join(self, timeout: Optional[float] = None) -> bool:
        return self.finished.wait(timeout)

    def _worker_loop(self) -> None:
        """Run the async translation in a fresh event loop on this thread."""
        thread_name = threading.current_thread().name
        logger.debug(f"Worker thread {thread_name} starting")

        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            translated = loop.run_until_complete(self.session.translate(self.text, self.generation))
            self.dispatcher.post(self.on_success, self, translated)
        except PolyscribeError as e:
            self.dispatcher.post(self.on_error, self, e)
        except Exception as e:
            logger.error(f"Unhandled exception in translation task for {thread_name}: {e}", exc_info=True)
            failure = TranslationFailed(f"Translation failed: {e}")
            failure.__cause__ = e
            self.dispatcher.post(self.on_error, self, failure)
        finally:
            loop.close()
            self.finished.set()
            logger.debug(f"Worker thread {thread_name} exiting and closing its event loop.")
