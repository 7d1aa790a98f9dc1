"""Languages offered for transcription and translation."""

from enum import Enum


class Language(Enum):
    """Closed set of supported languages, keyed by display name."""
    ENGLISH = "English"
    KOREAN = "Korean"
    SPANISH = "Spanish"
    FRENCH = "French"
    JAPANESE = "Japanese"

    @property
    def display_name(self) -> str:
        return self.value

    @property
    def locale_identifier(self) -> str:
        """Locale handed to the speech recognizer."""
        return _LOCALES[self]

    @property
    def translation_code(self) -> str:
        """Bare language subtag used by the translation service."""
        return self.locale_identifier.split("-")[0]

    @classmethod
    def from_value(cls, value: "str | Language") -> "Language":
        """Look up a language by display name, locale or language code.

        Args:
            value: e.g. "French", "fr", "en-US" (case-insensitive)

        Returns:
            Matching Language

        Raises:
            ValueError: If nothing matches
        """
        if isinstance(value, cls):
            return value
        needle = str(value).strip().lower()
        for language in cls:
            candidates = {
                language.display_name.lower(),
                language.name.lower(),
                language.locale_identifier.lower(),
                language.translation_code,
            }
            if needle in candidates:
                return language
        raise ValueError(f"Unknown language: {value!r}")


_LOCALES = {
    Language.ENGLISH: "en-US",
    Language.KOREAN: "ko",
    Language.SPANISH: "es",
    Language.FRENCH: "fr",
    Language.JAPANESE: "ja",
}

DEFAULT_SOURCE_LANGUAGE = Language.FRENCH
DEFAULT_TARGET_LANGUAGE = Language.ENGLISH
