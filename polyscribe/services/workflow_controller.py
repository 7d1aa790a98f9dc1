"""Workflow controller: owns the screen state and drives transcribe, translate and export."""

import logging
from pathlib import Path
from typing import Optional, Sequence, Union

from pubsub import pub

from .dispatcher import Dispatcher
from ..errors import (
    PolyscribeError,
    ConfigurationError,
    NoFileSelected,
    PermissionDenied,
    UnsupportedLocale,
    RecognizerUnavailable,
    ExportFailed,
    FileSelectionFailed,
    TranscriptEmpty,
)
from ..models.export import build_export_document
from ..models.language import Language
from ..models.transcription import TranscriptionResult, AuthorizationStatus
from ..models.workflow import WorkflowState, Alert, TRANSCRIBING_PLACEHOLDER
from ..storage.file_manager import FileManager, PathLike
from ..transcription.base import AbstractRecognitionBackend
from ..transcription.publisher import TranscriptionPublisher
from ..transcription.task import RecognitionTask
from ..translation.base import AbstractTranslationBackend
from ..translation.session import TranslationSession
from ..translation.task import TranslationTask

logger = logging.getLogger(__name__)

STATE_TOPIC = "workflow.state"


class WorkflowController:
    """Single owner of WorkflowState.

    Every public method and every dispatched callback runs on the UI
    timeline, the thread that drains ``dispatcher``. Recognition and
    translation run on worker threads and only touch state through
    callbacks posted to the dispatcher.
    """

    def __init__(self,
                 recognizer: AbstractRecognitionBackend,
                 translator: Optional[AbstractTranslationBackend],
                 file_manager: FileManager,
                 dispatcher: Optional[Dispatcher] = None,
                 publisher: Optional[TranscriptionPublisher] = None,
                 source_language: Union[str, Language, None] = None,
                 target_language: Union[str, Language, None] = None,
                 auto_detect_source: bool = False,
                 overwrite_exports: bool = False):
        """Initialize the controller.

        Args:
            recognizer: Speech recognition backend
            translator: Translation backend, or None when translation is not configured
            file_manager: File selection and export service
            dispatcher: UI timeline; a new one is created if omitted
            publisher: Publishes adopted transcription results
            source_language: Initial source language
            target_language: Initial target language
            auto_detect_source: Let the translation service detect the source language
            overwrite_exports: Replace existing export files
        """
        self.recognizer = recognizer
        self.translator = translator
        self.file_manager = file_manager
        self.dispatcher = dispatcher or Dispatcher()
        self.publisher = publisher or TranscriptionPublisher()
        self.auto_detect_source = auto_detect_source
        self.overwrite_exports = overwrite_exports

        self.state = WorkflowState()
        if source_language is not None:
            self.state.source_language = Language.from_value(source_language)
        if target_language is not None:
            self.state.target_language = Language.from_value(target_language)

        self.session = TranslationSession(translator)
        self.recognition_task: Optional[RecognitionTask] = None
        self.translation_task: Optional[TranslationTask] = None
        self._last_adopted_length = 0
        self._translation_before_run = ""

        logger.info(f"WorkflowController initialized: {self.state.source_language.display_name} -> "
                    f"{self.state.target_language.display_name}")

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def load_sample(self) -> Optional[Path]:
        """Select the bundled sample audio as if the user had picked it."""
        sample = self.file_manager.find_sample_audio()
        if sample is None:
            logger.info("Audio file not found.")
            return None
        logger.info(f"Audio URL: {sample}")
        return self.select_file([sample])

    def select_file(self, candidates: Sequence[PathLike]) -> Optional[Path]:
        """Adopt the first candidate as input file; keeps the prior selection on failure."""
        try:
            path = self.file_manager.select_audio_file(candidates)
        except FileSelectionFailed as e:
            logger.error(f"File selection error: {e}")
            self._record_error(e)
            return None
        if path is None:
            return None

        if self.recognition_task is not None:
            logger.info("Input file replaced while transcribing; abandoning the current run")
            self.cancel_transcription()
        self.state.input_file = path
        self._publish("input_file")
        return path

    def set_source_language(self, language: Union[str, Language]) -> Language:
        language = Language.from_value(language)
        if language is self.state.source_language:
            return language
        self.state.source_language = language
        # An explicit-source session is bound to the old language
        if not self.auto_detect_source and not self.session.is_absent:
            self.end_translation_session()
        self._publish("source_language")
        return language

    def set_target_language(self, language: Union[str, Language]) -> Language:
        language = Language.from_value(language)
        if language is self.state.target_language:
            return language
        self.state.target_language = language
        if not self.session.is_absent:
            self.end_translation_session()
        self._publish("target_language")
        return language

    def edit_transcript(self, text: str) -> None:
        self.state.live_transcript = text
        self._publish("live_transcript")

    def edit_translation(self, text: str) -> None:
        self.state.translation = text
        self._publish("translation")

    # ------------------------------------------------------------------
    # Transcription
    # ------------------------------------------------------------------

    def transcribe(self) -> Optional[RecognitionTask]:
        """Start transcribing the selected file in the selected source language.

        Returns:
            The running task, or None if transcription could not start

        Raises:
            NoFileSelected: If no input file is selected
        """
        if self.state.input_file is None:
            self.state.alert = Alert.NO_FILE_SELECTED
            self._publish("alert")
            logger.warning("Transcription requested with no file selected")
            raise NoFileSelected("Please select an audio file first")

        if self.state.is_transcribing:
            logger.warning("Transcription already in progress")
            return None

        status = self.recognizer.request_authorization()
        if status is not AuthorizationStatus.AUTHORIZED:
            logger.error(f"Transcription Permission Denied ({status.value})")
            self._record_error(PermissionDenied(f"Speech recognition authorization {status.value}"))
            return None

        locale = self.state.source_language.locale_identifier
        if not self.recognizer.supports_locale(locale):
            error = UnsupportedLocale(locale)
            logger.error(str(error))
            self._record_error(error)
            return None

        if not self.recognizer.is_available():
            error = RecognizerUnavailable("The recognizer is not available")
            logger.error(str(error))
            self._record_error(error)
            return None

        self.state.is_transcribing = True
        self.state.live_transcript = TRANSCRIBING_PLACEHOLDER
        self.state.last_error = None
        self._last_adopted_length = 0
        self._publish("transcription_started")

        self.recognition_task = RecognitionTask(
            backend=self.recognizer,
            audio_path=self.state.input_file,
            locale=locale,
            dispatcher=self.dispatcher,
            on_result=self._on_recognition_result,
            on_error=self._on_recognition_error,
        ).start()
        return self.recognition_task

    def cancel_transcription(self) -> None:
        """Abandon the running transcription; its late results are discarded."""
        task = self.recognition_task
        if task is None:
            return
        task.cancel()
        self.recognition_task = None
        self.state.is_transcribing = False
        if self.state.live_transcript == TRANSCRIBING_PLACEHOLDER:
            self.state.live_transcript = ""
        self._publish("transcription_cancelled")

    def _on_recognition_result(self, result: TranscriptionResult) -> None:
        task = self.recognition_task
        if task is None or result.task_id != task.task_id:
            logger.debug(f"Ignoring result from abandoned task {result.task_id}")
            return

        # Only strictly longer hypotheses replace the working transcript
        if len(result.text) > self._last_adopted_length:
            self.state.live_transcript = result.text
            self._last_adopted_length = len(result.text)
            if not result.is_final:
                self.publisher.publish_transcription_result(result)
            self._publish("live_transcript")

        if result.is_final:
            if self._last_adopted_length == 0:
                self.state.live_transcript = ""
            self.state.transcript = self.state.live_transcript
            self.state.is_transcribing = False
            self.recognition_task = None
            logger.info(f"Final Transcript: {self.state.transcript}")
            self.publisher.publish_transcription_result(result)
            self._publish("transcript")

    def _on_recognition_error(self, task: RecognitionTask, error: PolyscribeError) -> None:
        if task is not self.recognition_task:
            logger.debug(f"Ignoring failure of abandoned task {task.task_id}")
            return
        logger.error(f"Recognition failed: {error}")
        self.recognition_task = None
        self.state.is_transcribing = False
        if self.state.live_transcript == TRANSCRIBING_PLACEHOLDER:
            self.state.live_transcript = ""
        self._record_error(error)

    # ------------------------------------------------------------------
    # Translation
    # ------------------------------------------------------------------

    def start_translation_session(self) -> int:
        """Create a pending session bound to the current target language.

        Returns the current generation unchanged when a session already exists.

        Raises:
            ConfigurationError: If no translation backend is configured
        """
        if self.translator is None:
            raise ConfigurationError("No translation backend configured")
        if not self.session.is_absent:
            logger.debug(f"Translation session {self.session.generation} already {self.session.state.value}")
            return self.session.generation
        source = None if self.auto_detect_source else self.state.source_language
        generation = self.session.start(self.state.target_language, source)
        self.state.session_state = self.session.state
        self._publish("session_state")
        return generation

    def end_translation_session(self) -> None:
        """Tear down the session; an in-flight translation is abandoned."""
        if self.translation_task is not None:
            logger.info("Abandoning in-flight translation")
            self.translation_task = None
            self.state.is_translating = False
            self.state.translation = self._translation_before_run
        self.session.end()
        self.state.session_state = self.session.state
        self._publish("session_state")

    def toggle_translation_session(self):
        """Establish a session when none exists, otherwise tear it down."""
        if self.session.is_absent:
            self.start_translation_session()
        else:
            self.end_translation_session()
        return self.state.session_state

    def translate(self) -> Optional[TranslationTask]:
        """Translate the transcript into the target language.

        Returns:
            The running task, or None if a translation is already running

        Raises:
            TranscriptEmpty: If there is no finalized transcript yet
        """
        if not self.state.transcript:
            logger.warning("Translation requested with an empty transcript")
            raise TranscriptEmpty("Transcribe a file before translating")
        if self.state.is_translating:
            logger.warning("Translation already in progress")
            return None

        if self.session.is_absent:
            self.start_translation_session()
        generation = self.session.generation

        source = self.state.source_language.display_name
        target = self.state.target_language.display_name
        self._translation_before_run = self.state.translation
        self.state.is_translating = True
        self.state.translation = f"Translating from {source} to {target}..."
        self.state.last_error = None
        self._publish("translation_started")

        # Partial hypotheses of a running transcription are never sent
        if self.state.is_transcribing:
            text = self.state.transcript
        else:
            text = self.state.live_transcript or self.state.transcript
        self.translation_task = TranslationTask(
            session=self.session,
            generation=generation,
            text=text,
            dispatcher=self.dispatcher,
            on_success=self._on_translation_success,
            on_error=self._on_translation_error,
        ).start()
        return self.translation_task

    def _on_translation_success(self, task: TranslationTask, translated: str) -> None:
        if task is not self.translation_task or not self.session.is_current(task.generation):
            logger.debug("Ignoring translation from an abandoned session")
            return
        self.translation_task = None
        self.state.translation = translated
        self.state.is_translating = False
        self.state.session_state = self.session.state
        logger.info(f"Translation: \n{translated}")
        self._publish("translation")

    def _on_translation_error(self, task: TranslationTask, error: PolyscribeError) -> None:
        if task is not self.translation_task:
            logger.debug("Ignoring failure from an abandoned translation")
            return
        logger.error(f"Translation failed: {error}")
        self.translation_task = None
        self.state.is_translating = False
        self.state.translation = self._translation_before_run
        self.state.session_state = self.session.state
        self.state.alert = Alert.TRANSLATION_FAILED
        self._record_error(error)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export(self,
               directory: Optional[PathLike] = None,
               filename: Optional[str] = None) -> Optional[Path]:
        """Save transcript and translation as one text document.

        Returns:
            Path of the written file, or None if saving failed

        Raises:
            TranscriptEmpty: If there is no finalized transcript yet
        """
        if not self.state.transcript:
            logger.warning("Export requested with an empty transcript")
            raise TranscriptEmpty("Transcribe a file before saving")

        translation = self._translation_before_run if self.state.is_translating else self.state.translation
        document = build_export_document(
            self.state.transcript,
            translation,
            self.state.source_language,
            self.state.target_language,
        )
        try:
            path = self.file_manager.save_document(
                document, directory=directory, filename=filename, overwrite=self.overwrite_exports)
        except ExportFailed as e:
            logger.error(f"Export failed: {e}")
            self.state.alert = Alert.EXPORT_FAILED
            self._record_error(e)
            return None

        self.state.alert = Alert.EXPORT_SUCCEEDED
        self._publish("alert")
        return path

    # ------------------------------------------------------------------
    # Misc
    # ------------------------------------------------------------------

    def dismiss_alert(self) -> None:
        self.state.alert = None
        self._publish("alert")

    def snapshot(self) -> WorkflowState:
        return self.state.copy()

    def wait_until_idle(self, timeout: float = 60.0) -> bool:
        """Pump the UI timeline until neither stage is busy."""
        return self.dispatcher.wait_until(
            lambda: not self.state.is_transcribing and not self.state.is_translating,
            timeout=timeout,
        )

    def shutdown(self) -> None:
        logger.info("Shutting down workflow controller...")
        self.cancel_transcription()
        self.end_translation_session()
        try:
            self.recognizer.cleanup()
        except Exception as e:
            logger.warning(f"Error cleaning up recognition backend: {e}")
        logger.info("Workflow controller shutdown complete")

    def _record_error(self, error: PolyscribeError) -> None:
        self.state.last_error = f"{type(error).__name__}: {error}"
        self._publish("error")

    def _publish(self, change: str) -> None:
        pub.sendMessage(STATE_TOPIC, state=self.state.copy(), change=change)
