"""Builds backends and the workflow controller from configuration."""

import logging
from typing import Optional

from .dispatcher import Dispatcher
from .workflow_controller import WorkflowController
from ..config import PolyscribeConfig
from ..storage.file_manager import FileManager
from ..transcription.google_backend import GoogleSpeechBackend
from ..translation.google_engine import GoogleTranslateEngine

logger = logging.getLogger(__name__)


def create_google_speech_backend(config: PolyscribeConfig) -> GoogleSpeechBackend:
    """Create the recognition backend. Credentials are loaded on first authorization."""
    settings = config.settings.google_cloud
    credentials_path = config.get_google_credentials_path() if settings.credentials_path else None

    logger.info("Creating Google Speech backend...")
    logger.debug(f"Config: enhanced={settings.use_enhanced_model}, "
                 f"punctuation={settings.enable_automatic_punctuation}, chunk_bytes={settings.chunk_bytes}")
    return GoogleSpeechBackend(
        credentials_path=credentials_path,
        use_enhanced=settings.use_enhanced_model,
        enable_automatic_punctuation=settings.enable_automatic_punctuation,
        chunk_bytes=settings.chunk_bytes,
        timeout=settings.timeout_seconds,
    )


def create_google_translate_engine(config: PolyscribeConfig) -> GoogleTranslateEngine:
    settings = config.settings.translation
    return GoogleTranslateEngine(
        api_key=config.get_translation_api_key(),
        endpoint=settings.endpoint,
        timeout=settings.timeout_seconds,
    )


def create_file_manager(config: PolyscribeConfig) -> FileManager:
    return FileManager(
        export_dir=config.get_export_directory(),
        sample_audio_path=config.settings.sample.audio_path,
    )


def create_workflow_controller(config: PolyscribeConfig,
                               dispatcher: Optional[Dispatcher] = None,
                               with_translation: bool = True) -> WorkflowController:
    """Wire Google backends, file manager and controller from config.

    Args:
        config: Loaded configuration
        dispatcher: UI timeline shared with the caller
        with_translation: Build the translation engine; without it no API key is needed

    Raises:
        ConfigurationError: If credentials or the translation API key are missing
    """
    translator = create_google_translate_engine(config) if with_translation else None
    controller = WorkflowController(
        recognizer=create_google_speech_backend(config),
        translator=translator,
        file_manager=create_file_manager(config),
        dispatcher=dispatcher,
        source_language=config.settings.languages.source,
        target_language=config.settings.languages.target,
        auto_detect_source=config.settings.translation.auto_detect_source,
        overwrite_exports=config.settings.storage.overwrite,
    )
    logger.info("Workflow controller ready")
    return controller
