"""Exceptions raised by the transcription, translation and export stages."""


class PolyscribeError(Exception):
    """Base class for all Polyscribe errors."""


class ConfigurationError(PolyscribeError):
    """Configuration file is missing values or holds invalid ones."""


class NoFileSelected(PolyscribeError):
    """Transcription was requested before an audio file was selected."""


class PermissionDenied(PolyscribeError):
    """The speech recognition service refused authorization."""


class UnsupportedLocale(PolyscribeError):
    """No recognizer exists for the requested locale."""

    def __init__(self, locale: str):
        super().__init__(f"The recognizer is not supported for locale '{locale}'")
        self.locale = locale


class RecognizerUnavailable(PolyscribeError):
    """The recognizer exists but cannot serve requests right now."""


class RecognitionFailed(PolyscribeError):
    """Recognition stopped before a final result was produced."""


class TranslationFailed(PolyscribeError):
    """The translation service did not return a translated text."""


class SessionAlreadyStarted(PolyscribeError):
    """A translation session already exists."""


class ExportFailed(PolyscribeError):
    """The export document could not be written."""


class FileSelectionFailed(PolyscribeError):
    """The chosen input file cannot be used."""


class TranscriptEmpty(PolyscribeError):
    """Translate or export was requested while the transcript is empty."""
