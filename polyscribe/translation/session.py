"""Translation session lifecycle: absent, pending, active."""

import logging
import threading
from typing import Optional

from .base import AbstractTranslationBackend
from ..errors import SessionAlreadyStarted, TranslationFailed
from ..models.language import Language
from ..models.workflow import SessionState

logger = logging.getLogger(__name__)


class TranslationSession:
    """A translation context bound to one target language.

    ``start`` creates a pending configuration; the first translation run
    activates it. ``end`` tears it down. Each start bumps ``generation`` so
    callers can recognise results that belong to a session that has since
    been ended.
    """

    def __init__(self, backend: AbstractTranslationBackend):
        self.backend = backend
        self.state = SessionState.ABSENT
        self.target: Optional[Language] = None
        self.source: Optional[Language] = None
        self.generation = 0
        self._lock = threading.Lock()

    @property
    def is_absent(self) -> bool:
        return self.state is SessionState.ABSENT

    def start(self, target: Language, source: Optional[Language] = None) -> int:
        """Create a pending session bound to target (and source, when given).

        Returns:
            Generation number of the new session
        """
        with self._lock:
            if self.state is not SessionState.ABSENT:
                raise SessionAlreadyStarted(f"Translation session already {self.state.value}")
            if not self.backend.supports_language(target):
                raise TranslationFailed(f"{self.backend.service_name} cannot translate into {target.display_name}")
            self.target = target
            self.source = source
            self.generation += 1
            self.state = SessionState.PENDING
            logger.info(f"Translation session {self.generation} pending: "
                        f"{source.display_name if source else 'auto'} -> {target.display_name}")
            return self.generation

    def end(self) -> None:
        """Tear the session down; a no-op when no session exists."""
        with self._lock:
            if self.state is SessionState.ABSENT:
                return
            logger.info(f"Translation session {self.generation} ended")
            self.state = SessionState.ABSENT
            self.target = None
            self.source = None

    def activate(self, generation: int) -> bool:
        """Promote a pending session to active.

        Returns:
            False if the session with that generation no longer exists
        """
        with self._lock:
            if generation != self.generation or self.state is SessionState.ABSENT:
                return False
            if self.state is SessionState.PENDING:
                self.state = SessionState.ACTIVE
                logger.debug(f"Translation session {generation} active")
            return True

    def is_current(self, generation: int) -> bool:
        return generation == self.generation and self.state is not SessionState.ABSENT

    async def translate(self, text: str, generation: int) -> str:
        """Translate text within the session identified by generation."""
        if not self.activate(generation):
            raise TranslationFailed("Translation session was ended before it could be used")
        return await self.backend.translate(text, self.target, self.source)
