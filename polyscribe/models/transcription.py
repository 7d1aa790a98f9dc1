"""Transcription-related data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class AuthorizationStatus(Enum):
    """Answer of the recognition service to an authorization request."""
    AUTHORIZED = "authorized"
    DENIED = "denied"
    RESTRICTED = "restricted"
    NOT_DETERMINED = "not_determined"


@dataclass
class TranscriptionResult:
    """One hypothesis emitted by a recognizer, partial or final."""
    text: str
    is_final: bool = False
    confidence: float = 0.0
    timestamp: datetime = field(default_factory=datetime.now)
    service: str = ""
    language: str = "en-US"
    sequence_number: int = 0
    # Set by the recognition task once the result reaches the UI timeline
    task_id: Optional[str] = None
