"""YAML configuration loader for Polyscribe."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from pydantic import ValidationError

from .settings import AppSettings
from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "polyscribe.yaml"


class PolyscribeConfig:
    """Polyscribe configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, polyscribe.yaml in the
                        current directory is used when present, otherwise defaults.
        """
        if config_path is None:
            candidate = Path.cwd() / DEFAULT_CONFIG_FILENAME
            self.config_file = candidate if candidate.exists() else None
        else:
            self.config_file = Path(config_path)
            if not self.config_file.exists():
                raise ConfigurationError(f"Configuration file not found: {self.config_file}")

        if self.config_file is None:
            logger.info("No configuration file found, using defaults")
            raw = {}
        else:
            logger.info(f"Loading configuration from: {self.config_file}")
            raw = self._load_config()

        self.settings = self._validate(raw)
        self.config = self.settings.model_dump(mode="json")

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "PolyscribeConfig":
        """Build a configuration from an in-memory mapping (no file)."""
        config = cls.__new__(cls)
        config.config_file = None
        config.settings = config._validate(copy.deepcopy(values))
        config.config = config.settings.model_dump(mode="json")
        return config

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Failed to read configuration: {e}") from e

        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise ConfigurationError("Configuration file must contain a mapping")

        self._resolve_paths(config)
        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        for section, key in (
            ('google_cloud', 'credentials_path'),
            ('storage', 'export_directory'),
            ('sample', 'audio_path'),
            ('logging', 'file_path'),
        ):
            section_values = config.get(section)
            if not isinstance(section_values, dict):
                continue
            value = section_values.get(key)
            if isinstance(value, str) and value and not os.path.isabs(value):
                config[section][key] = str(config_dir / value)

    @staticmethod
    def _validate(raw: Dict[str, Any]) -> AppSettings:
        try:
            return AppSettings.model_validate(raw)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'languages.source').

        Args:
            key_path: Dot-separated key path (e.g., 'google_cloud.credentials_path')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value = self.config
        for key in key_path.split('.'):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation and re-validate.

        Args:
            key_path: Dot-separated path to config value (e.g., 'languages.target')
            value: Value to set
        """
        updated = copy.deepcopy(self.config)
        keys = key_path.split('.')
        config_dict = updated
        for key in keys[:-1]:
            config_dict = config_dict.setdefault(key, {})
        config_dict[keys[-1]] = value

        self.settings = self._validate(updated)
        self.config = self.settings.model_dump(mode="json")
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_google_credentials_path(self) -> str:
        """Get Google credentials path, raising if it is not configured or missing."""
        creds_path = self.settings.google_cloud.credentials_path
        if not creds_path:
            raise ConfigurationError("Google credentials path not configured in polyscribe.yaml")

        creds_file = Path(creds_path)
        if not creds_file.exists():
            raise ConfigurationError(f"Google credentials file not found: {creds_path}")

        return str(creds_file.absolute())

    def get_translation_api_key(self) -> str:
        """Get the translation API key from config or from the configured env var."""
        translation = self.settings.translation
        api_key = translation.api_key or os.environ.get(translation.api_key_env, "")
        if not api_key:
            raise ConfigurationError(
                f"Translation API key not configured (set translation.api_key "
                f"or the {translation.api_key_env} environment variable)"
            )
        return api_key

    def get_export_directory(self) -> str:
        """Get export directory path."""
        return str(Path(self.settings.storage.export_directory).absolute())
