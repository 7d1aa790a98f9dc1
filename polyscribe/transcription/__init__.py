"""Transcription module for Polyscribe."""

from .base import AbstractRecognitionBackend
from ..models.transcription import TranscriptionResult, AuthorizationStatus
from .google_backend import GoogleSpeechBackend
from .publisher import TranscriptionPublisher
from .task import RecognitionTask

__all__ = [
    "AbstractRecognitionBackend",
    "TranscriptionResult",
    "AuthorizationStatus",
    "GoogleSpeechBackend",
    "TranscriptionPublisher",
    "RecognitionTask",
]
