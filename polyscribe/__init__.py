"""Polyscribe - transcribe an audio file, translate it and export the result."""

__version__ = "0.1.0"
