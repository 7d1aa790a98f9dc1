"""File management module for audio selection and transcript export."""

import os
import logging
from pathlib import Path
from typing import Optional, Sequence, Union

from ..errors import ExportFailed, FileSelectionFailed
from ..models.export import ExportDocument


logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = (".wav", ".flac", ".ogg", ".opus", ".mp3")

PathLike = Union[str, os.PathLike]


class FileManager:
    """Picks input audio files and writes export documents."""

    def __init__(self, export_dir: PathLike = "./exports",
                 sample_audio_path: Optional[PathLike] = None):
        """Initialize file manager.

        Args:
            export_dir: Default directory for exported transcripts
            sample_audio_path: Bundled sample audio selected on first run
        """
        self.export_dir = Path(export_dir)
        self.sample_audio_path = Path(sample_audio_path) if sample_audio_path else None

        logger.info(f"FileManager initialized with export_dir: {self.export_dir}")

    def select_audio_file(self, candidates: Sequence[PathLike]) -> Optional[Path]:
        """Adopt the first candidate as the input audio file.

        Args:
            candidates: Paths returned by a picker; only the first is used

        Returns:
            Absolute path to the audio file, or None if there were no candidates

        Raises:
            FileSelectionFailed: If the file is missing, unreadable or not audio
        """
        if not candidates:
            logger.debug("File selection returned no candidates")
            return None

        path = Path(candidates[0]).expanduser()
        if not path.is_file():
            raise FileSelectionFailed(f"Audio file not found: {path}")
        if path.suffix.lower() not in AUDIO_EXTENSIONS:
            raise FileSelectionFailed(
                f"Not an audio file: {path.name} (expected one of {', '.join(AUDIO_EXTENSIONS)})")
        if not os.access(path, os.R_OK):
            raise FileSelectionFailed(f"Audio file is not readable: {path}")

        resolved = path.resolve()
        logger.info(f"Selected audio file: {resolved}")
        return resolved

    def find_sample_audio(self) -> Optional[Path]:
        """Return the bundled sample audio path if it exists."""
        if self.sample_audio_path is None:
            return None
        if not self.sample_audio_path.is_file():
            logger.info(f"Sample audio file not found: {self.sample_audio_path}")
            return None
        return self.sample_audio_path

    def save_document(self,
                      document: ExportDocument,
                      directory: Optional[PathLike] = None,
                      filename: Optional[str] = None,
                      overwrite: bool = False) -> Path:
        """Write an export document and return its path.

        Args:
            document: Document to persist
            directory: Target directory; defaults to the export directory
            filename: File name; defaults to the document's suggested name
            overwrite: Replace an existing file instead of failing

        Returns:
            Full path of the written file

        Raises:
            ExportFailed: If the file exists (and overwrite is False) or cannot be written
        """
        target_dir = Path(directory) if directory is not None else self.export_dir
        name = filename or document.suggested_name
        # Extension comes from the content type
        if not name.endswith(document.extension):
            name += document.extension
        target = target_dir / name

        if target.exists() and not overwrite:
            raise ExportFailed(f"File already exists: {target}")

        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            with open(target, 'w', encoding='utf-8') as f:
                f.write(document.content)
        except OSError as e:
            logger.error(f"Error saving transcript: {e}")
            raise ExportFailed(f"Could not write {target}: {e}") from e

        logger.info(f"Transcript saved: {target} ({len(document.content)} characters)")
        return target

