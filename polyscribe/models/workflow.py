"""State held by the workflow controller."""

from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Optional

from .language import Language, DEFAULT_SOURCE_LANGUAGE, DEFAULT_TARGET_LANGUAGE


TRANSCRIBING_PLACEHOLDER = "Transcribing..."


class SessionState(Enum):
    """Lifecycle of a translation session."""
    ABSENT = "absent"
    PENDING = "pending"
    ACTIVE = "active"


class Alert(Enum):
    """User-visible acknowledgments and errors."""
    EXPORT_SUCCEEDED = "The transcript file has been successfully saved"
    NO_FILE_SELECTED = "Please select an audio file first"
    TRANSLATION_FAILED = "The translation could not be completed"
    EXPORT_FAILED = "The transcript file could not be saved"

    @property
    def title(self) -> str:
        return "Success" if self is Alert.EXPORT_SUCCEEDED else "Error"

    @property
    def message(self) -> str:
        return self.value


@dataclass
class WorkflowState:
    """Selection, transcript, translation and busy flags for one screen."""
    source_language: Language = DEFAULT_SOURCE_LANGUAGE
    target_language: Language = DEFAULT_TARGET_LANGUAGE
    input_file: Optional[Path] = None
    live_transcript: str = ""
    transcript: str = ""
    translation: str = ""
    is_transcribing: bool = False
    is_translating: bool = False
    session_state: SessionState = SessionState.ABSENT
    alert: Optional[Alert] = None
    last_error: Optional[str] = None

    @property
    def can_transcribe(self) -> bool:
        return self.input_file is not None and not self.is_transcribing

    @property
    def can_translate(self) -> bool:
        return bool(self.transcript) and not self.is_translating

    @property
    def can_export(self) -> bool:
        return bool(self.transcript)

    def copy(self) -> "WorkflowState":
        """Return a detached snapshot safe to hand to renderers."""
        return replace(self)
