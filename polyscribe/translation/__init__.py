"""Translation module for Polyscribe."""

from .base import AbstractTranslationBackend
from .google_engine import GoogleTranslateEngine
from .session import TranslationSession
from .task import TranslationTask

__all__ = [
    "AbstractTranslationBackend",
    "GoogleTranslateEngine",
    "TranslationSession",
    "TranslationTask",
]
