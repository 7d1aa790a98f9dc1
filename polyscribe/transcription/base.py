"""Abstract base class for speech recognition backends."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator, Optional
import logging
import threading

from ..models.transcription import TranscriptionResult, AuthorizationStatus

logger = logging.getLogger(__name__)


class AbstractRecognitionBackend(ABC):
    """Contract every speech recognition service must fulfil."""

    service_name = "abstract"

    @abstractmethod
    def initialize(self) -> bool:
        """Initialize backend resources and verify configuration.

        Returns:
            True if initialization successful, False otherwise
        """
        pass

    @abstractmethod
    def request_authorization(self) -> AuthorizationStatus:
        """Ask the service whether this application may transcribe audio."""
        pass

    @abstractmethod
    def supports_locale(self, locale: str) -> bool:
        """Return True if a recognizer exists for the locale."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Return True if the recognizer can serve requests right now."""
        pass

    @abstractmethod
    def recognize(self,
                  audio_path: Path,
                  locale: str,
                  cancel_event: Optional[threading.Event] = None) -> Iterator[TranscriptionResult]:
        """Recognize speech in an audio file.

        Args:
            audio_path: File to transcribe
            locale: Recognition locale, e.g. 'fr' or 'en-US'
            cancel_event: Set by the caller to stop recognition early

        Yields:
            Zero or more partial results followed by exactly one final result

        Raises:
            RecognitionFailed: If recognition stops before a final result
            RecognizerUnavailable: If the service cannot be reached
        """
        pass

    def cleanup(self) -> None:
        """Clean up backend resources."""
        pass
