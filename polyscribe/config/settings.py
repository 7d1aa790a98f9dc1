"""Validated configuration sections."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..models.language import Language, DEFAULT_SOURCE_LANGUAGE, DEFAULT_TARGET_LANGUAGE


class LanguageSettings(BaseModel):
    source: Language = DEFAULT_SOURCE_LANGUAGE
    target: Language = DEFAULT_TARGET_LANGUAGE

    @field_validator("source", "target", mode="before")
    @classmethod
    def _parse_language(cls, value):
        return Language.from_value(value)


class GoogleCloudSettings(BaseModel):
    credentials_path: Optional[str] = None
    use_enhanced_model: bool = True
    enable_automatic_punctuation: bool = True
    # Bytes of audio sent per streaming request
    chunk_bytes: int = Field(default=32768, gt=0)
    timeout_seconds: float = Field(default=300.0, gt=0)


class TranslationSettings(BaseModel):
    api_key: Optional[str] = None
    api_key_env: str = "GOOGLE_TRANSLATE_API_KEY"
    endpoint: str = "https://translation.googleapis.com/language/translate/v2"
    timeout_seconds: float = Field(default=30.0, gt=0)
    auto_detect_source: bool = False


class StorageSettings(BaseModel):
    export_directory: str = "exports"
    overwrite: bool = False


class SampleSettings(BaseModel):
    audio_path: Optional[str] = None
    autoload: bool = True


class LoggingSettings(BaseModel):
    level: str = "INFO"
    file_path: str = "data/logs/polyscribe.log"
    console_output: bool = True

    @field_validator("level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return value


class AppSettings(BaseModel):
    languages: LanguageSettings = Field(default_factory=LanguageSettings)
    google_cloud: GoogleCloudSettings = Field(default_factory=GoogleCloudSettings)
    translation: TranslationSettings = Field(default_factory=TranslationSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    sample: SampleSettings = Field(default_factory=SampleSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
