"""Runs one recognition on a worker thread and reports back on the UI timeline."""

import logging
import threading
import uuid
from pathlib import Path
from typing import Callable, Optional

from .base import AbstractRecognitionBackend
from ..errors import PolyscribeError, RecognitionFailed
from ..models.transcription import TranscriptionResult
from ..services.dispatcher import Dispatcher

logger = logging.getLogger(__name__)


class RecognitionTask:
    """A cancellable recognition run.

    The backend stream is consumed on a daemon thread. Each result, and the
    failure if one occurs, is posted to the dispatcher so handlers only ever
    run on the UI timeline. Nothing is posted after ``cancel()``.
    """

    def __init__(self,
                 backend: AbstractRecognitionBackend,
                 audio_path: Path,
                 locale: str,
                 dispatcher: Dispatcher,
                 on_result: Callable[[TranscriptionResult], None],
                 on_error: Callable[["RecognitionTask", PolyscribeError], None]):
        self.task_id = uuid.uuid4().hex[:8]
        self.backend = backend
        self.audio_path = Path(audio_path)
        self.locale = locale
        self.dispatcher = dispatcher
        self.on_result = on_result
        self.on_error = on_error
        self.cancel_event = threading.Event()
        self.thread: Optional[threading.Thread] = None
        self.finished = threading.Event()

    def start(self) -> "RecognitionTask":
        self.thread = threading.Thread(target=self._run, daemon=True)
        self.thread.name = f"recognition_{self.task_id}"
        self.thread.start()
        logger.info(f"Started recognition task {self.task_id} for {self.audio_path.name} ({self.locale})")
        return self

    def cancel(self) -> None:
        """Stop delivering results; the backend stops at its next check."""
        if not self.cancel_event.is_set():
            logger.info(f"Cancelling recognition task {self.task_id}")
            self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the worker thread to exit. Returns True if it finished."""
        return self.finished.wait(timeout)

    def _run(self) -> None:
        thread_name = threading.current_thread().name
        logger.debug(f"Worker thread {thread_name} starting")
        saw_final = False
        try:
            for result in self.backend.recognize(self.audio_path, self.locale, self.cancel_event):
                if self.cancelled:
                    break
                result.task_id = self.task_id
                self.dispatcher.post(self._deliver_result, result)
                if result.is_final:
                    saw_final = True
                    break
            if not saw_final and not self.cancelled:
                raise RecognitionFailed("Recognition ended without a final result")
        except PolyscribeError as e:
            self._deliver_error_later(e)
        except Exception as e:
            logger.error(f"Unhandled exception in recognition task {self.task_id}: {e}", exc_info=True)
            failure = RecognitionFailed(f"Recognition failed: {e}")
            failure.__cause__ = e
            self._deliver_error_later(failure)
        finally:
            self.finished.set()
            logger.debug(f"Worker thread {thread_name} exiting")

    def _deliver_error_later(self, error: PolyscribeError) -> None:
        if not self.cancelled:
            self.dispatcher.post(self._deliver_error, error)

    def _deliver_result(self, result: TranscriptionResult) -> None:
        if self.cancelled:
            logger.debug(f"Dropping result #{result.sequence_number} of cancelled task {self.task_id}")
            return
        self.on_result(result)

    def _deliver_error(self, error: PolyscribeError) -> None:
        if self.cancelled:
            return
        self.on_error(self, error)
