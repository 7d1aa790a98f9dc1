"""Pytest configuration and fixtures for Polyscribe tests."""

import pytest
import tempfile
import threading
import logging
import wave
from pathlib import Path
from typing import List, Optional, Union

import numpy as np
from pubsub import pub

from polyscribe.errors import TranslationFailed
from polyscribe.models.language import Language
from polyscribe.models.transcription import TranscriptionResult, AuthorizationStatus
from polyscribe.services.dispatcher import Dispatcher
from polyscribe.services.workflow_controller import WorkflowController, STATE_TOPIC
from polyscribe.storage.file_manager import FileManager
from polyscribe.transcription.base import AbstractRecognitionBackend
from polyscribe.translation.base import AbstractTranslationBackend


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class StubRecognitionBackend(AbstractRecognitionBackend):
    """Recognizer that replays a scripted sequence of hypotheses.

    Script items are ``(text, is_final)`` tuples or an exception instance,
    which is raised at that point in the stream.
    """

    service_name = "stub"

    def __init__(self, script=None,
                 authorization: AuthorizationStatus = AuthorizationStatus.AUTHORIZED,
                 supported_locales=("en-US", "ko", "es", "fr", "ja"),
                 available: bool = True):
        self.script = list(script or [])
        self.authorization = authorization
        self.supported_locales = set(supported_locales)
        self.available = available
        self.recognize_calls = []
        self.cleaned_up = False
        # When set, the stream waits on this event before each item
        self.gate: Optional[threading.Event] = None

    def initialize(self) -> bool:
        return True

    def request_authorization(self) -> AuthorizationStatus:
        return self.authorization

    def supports_locale(self, locale: str) -> bool:
        return locale in self.supported_locales

    def is_available(self) -> bool:
        return self.available

    def recognize(self, audio_path, locale, cancel_event=None):
        self.recognize_calls.append((Path(audio_path), locale))
        for number, item in enumerate(self.script, 1):
            if self.gate is not None:
                self.gate.wait(5.0)
            if cancel_event is not None and cancel_event.is_set():
                return
            if isinstance(item, Exception):
                raise item
            text, is_final = item
            yield TranscriptionResult(text=text, is_final=is_final, service=self.service_name,
                                      language=locale, sequence_number=number)

    def cleanup(self) -> None:
        self.cleaned_up = True


class StubTranslationBackend(AbstractTranslationBackend):
    """Translator returning a fixed reply, or raising a fixed error."""

    service_name = "stub translator"

    def __init__(self, reply: Union[str, Exception] = "Hello world"):
        self.reply = reply
        self.calls = []

    async def translate(self, text, target, source=None):
        self.calls.append((text, target, source))
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


class StateRecorder:
    """Keeps every state snapshot published on the workflow topic."""

    def __init__(self):
        self.messages = []

    def on_state(self, state, change):
        self.messages.append((change, state))

    def states(self, change: str) -> List:
        return [state for name, state in self.messages if name == change]


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def sample_audio_chunk():
    """Generate a sample audio chunk for testing."""
    # Generate 1024 samples of 16-bit audio (sine wave)
    sample_rate = 16000
    duration = 1024 / sample_rate
    freq = 440  # A4 note

    t = np.linspace(0, duration, 1024, False)
    wave_data = np.sin(2 * np.pi * freq * t)

    audio_data = (wave_data * 32767).astype(np.int16)
    return audio_data.tobytes()


@pytest.fixture
def sample_audio_file(temp_data_dir, sample_audio_chunk):
    """Create a sample WAV file for testing."""
    file_path = Path(temp_data_dir) / "sample.wav"

    with wave.open(str(file_path), 'wb') as wf:
        wf.setnchannels(1)  # Mono
        wf.setsampwidth(2)  # 16-bit
        wf.setframerate(16000)  # 16kHz

        for _ in range(20):
            wf.writeframes(sample_audio_chunk)

    return str(file_path)


@pytest.fixture
def french_script():
    return [("Bonj", False), ("Bonjour", False), ("Bonjour le monde", True)]


@pytest.fixture
def recognizer(french_script):
    return StubRecognitionBackend(french_script)


@pytest.fixture
def translator():
    return StubTranslationBackend("Hello world")


@pytest.fixture
def file_manager(temp_data_dir):
    return FileManager(export_dir=Path(temp_data_dir) / "exports")


@pytest.fixture
def dispatcher():
    return Dispatcher()


@pytest.fixture
def controller(recognizer, translator, file_manager, dispatcher):
    """Controller wired to stub services, French to English."""
    controller = WorkflowController(
        recognizer=recognizer,
        translator=translator,
        file_manager=file_manager,
        dispatcher=dispatcher,
        source_language=Language.FRENCH,
        target_language=Language.ENGLISH,
    )
    yield controller
    controller.shutdown()


@pytest.fixture
def state_recorder():
    """Subscribe a recorder to workflow state changes for the test's duration."""
    recorder = StateRecorder()
    pub.subscribe(recorder.on_state, STATE_TOPIC)
    yield recorder
    pub.unsubscribe(recorder.on_state, STATE_TOPIC)


@pytest.fixture
def make_recognizer():
    """Factory for scripted recognizers."""
    return StubRecognitionBackend


@pytest.fixture
def make_translator():
    """Factory for stub translators."""
    return StubTranslationBackend


@pytest.fixture
def translation_failure():
    return TranslationFailed("Translation API error: 503 - backend unavailable")


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without external services")
