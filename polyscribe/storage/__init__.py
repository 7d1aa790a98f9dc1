"""Storage module for Polyscribe."""

from .file_manager import FileManager, AUDIO_EXTENSIONS

__all__ = ["FileManager", "AUDIO_EXTENSIONS"]
