"""Abstract base class for translation backends."""

from abc import ABC, abstractmethod
from typing import Optional

from ..models.language import Language


class AbstractTranslationBackend(ABC):
    """Contract every translation service must fulfil."""

    service_name = "abstract"

    @abstractmethod
    async def translate(self, text: str, target: Language, source: Optional[Language] = None) -> str:
        """Translate text into the target language.

        Args:
            text: Text to translate
            target: Language to translate into
            source: Language of the text, or None to let the service detect it

        Returns:
            Translated text

        Raises:
            TranslationFailed: If the service does not return a translation
        """
        pass

    def supports_language(self, language: Language) -> bool:
        """Return True if the backend can translate into or out of the language."""
        return True
