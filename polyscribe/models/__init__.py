"""Data models for the Polyscribe application."""

from .language import Language, DEFAULT_SOURCE_LANGUAGE, DEFAULT_TARGET_LANGUAGE
from .transcription import TranscriptionResult, AuthorizationStatus
from .workflow import WorkflowState, SessionState, Alert, TRANSCRIBING_PLACEHOLDER
from .export import (
    ExportDocument,
    TRANSLATION_DELIMITER,
    build_export_document,
    default_export_filename,
)

__all__ = [
    "Language",
    "DEFAULT_SOURCE_LANGUAGE",
    "DEFAULT_TARGET_LANGUAGE",
    "TranscriptionResult",
    "AuthorizationStatus",
    "WorkflowState",
    "SessionState",
    "Alert",
    "TRANSCRIBING_PLACEHOLDER",
    "ExportDocument",
    "TRANSLATION_DELIMITER",
    "build_export_document",
    "default_export_filename",
]
