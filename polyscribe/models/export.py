"""Export document model."""

from dataclasses import dataclass

from .language import Language


TRANSLATION_DELIMITER = "\n\n--- TRANSLATION ---\n"


@dataclass(frozen=True)
class ExportDocument:
    """Snapshot of transcript and translation taken when export is requested."""
    content: str
    suggested_name: str
    content_type: str = "text/plain"
    extension: str = ".txt"


def default_export_filename(source: Language, target: Language) -> str:
    """Suggested file name without extension, e.g. transcript_French_to_English."""
    return f"transcript_{source.display_name}_to_{target.display_name}"


def build_export_document(transcript: str,
                          translation: str,
                          source: Language,
                          target: Language) -> ExportDocument:
    """Concatenate transcript and translation into one plain-text document.

    The translation may be empty when translation was never run.
    """
    return ExportDocument(
        content=f"{transcript}{TRANSLATION_DELIMITER}{translation}",
        suggested_name=default_export_filename(source, target),
    )
