"""Configuration for xtract.

Settings live in a YAML file under the per-user config directory and are
created with defaults on first use. Every field has its own default, so a
partial file only overrides the keys it names.
"""

import os
import sys
from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from xtract.exceptions import ConfigDirError, ConfigError, ConfigParseError
from xtract.logger import get_logger

logger = get_logger(__name__)

APP_DIR_NAME = "xtract"
CONFIG_FILE_NAME = "config.yaml"

OutputFormat = Literal["markdown", "text"]


class OCRConfig(BaseModel):
    """Settings for the remote OCR chat-completion API.

    Examples:
        >>> # Local DeepSeek-OCR server (default)
        >>> config = OCRConfig()

        >>> # Another OpenAI-compatible vision server
        >>> config = OCRConfig(api_endpoint="http://gpu-box:8080/v1", max_tokens=4096)
    """

    model_config = ConfigDict(frozen=True)

    api_endpoint: str = Field(default="http://localhost:8000/v1", strict=True)
    """Base URL of the API. Requests go to ``{api_endpoint}/chat/completions``."""

    model: str = Field(default="deepseek-ocr", strict=True)
    """Model name sent verbatim in every request."""

    max_tokens: int = Field(default=512, gt=0, strict=True)
    """Upper bound on generated tokens per image.

    Dense pages converted to markdown can exceed the default; raise it when
    output is cut off mid-document.
    """

    temperature: float = Field(default=0.0, ge=0.0, strict=True)
    """Sampling temperature. 0.0 keeps transcription deterministic."""


class ExtractionConfig(BaseModel):
    """Settings for how extracted text is produced."""

    model_config = ConfigDict(frozen=True)

    output_format: OutputFormat = Field(default="markdown")
    preserve_layout: bool = Field(default=True, strict=True)


class Config(BaseModel):
    """Process-wide settings, read once at start-up."""

    model_config = ConfigDict(frozen=True)

    ocr: OCRConfig = Field(default_factory=OCRConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)

    @classmethod
    def config_path(cls) -> Path:
        """Return the per-user config file path.

        Raises:
            ConfigDirError: If the platform config directory cannot be determined
        """
        return _config_dir() / APP_DIR_NAME / CONFIG_FILE_NAME

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Config":
        """Load configuration, persisting defaults if no file exists yet.

        Args:
            path: Config file location. Defaults to ``config_path()``.

        Raises:
            ConfigDirError: If no path is given and the config directory is unknown
            ConfigParseError: If the file exists but cannot be read or validated
            ConfigError: If the default file cannot be written
        """
        path = Path(path) if path is not None else cls.config_path()

        if not path.exists():
            logger.info("Config file not found, writing defaults", extra_data={"path": path})
            config = cls()
            config.save(path)
            return config

        try:
            contents = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigParseError(f"Failed to read config file {path}: {exc}") from exc

        try:
            data = yaml.safe_load(contents)
        except yaml.YAMLError as exc:
            raise ConfigParseError(f"Failed to parse config file {path}: {exc}") from exc

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigParseError(
                f"Failed to parse config file {path}: expected a mapping at the top level, "
                f"got {type(data).__name__}"
            )

        try:
            config = cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigParseError(f"Invalid config file {path}: {exc}") from exc

        logger.debug("Loaded config file", extra_data={"path": path})
        return config

    def save(self, path: Optional[Path] = None) -> None:
        """Overwrite the config file with the current settings.

        Raises:
            ConfigDirError: If no path is given and the config directory is unknown
            ConfigError: If the file cannot be written
        """
        path = Path(path) if path is not None else self.config_path()

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(self.to_yaml(), encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Failed to write config file {path}: {exc}") from exc

        logger.debug("Saved config file", extra_data={"path": path})

    def to_yaml(self) -> str:
        """Serialize to block-style YAML in field declaration order."""
        return yaml.safe_dump(self.model_dump(), sort_keys=False, default_flow_style=False)

    def with_overrides(
        self,
        output_format: Optional[str] = None,
        api_endpoint: Optional[str] = None,
        model: Optional[str] = None,
    ) -> "Config":
        """Return a copy with the given values replaced. Nothing is persisted.

        Raises:
            ConfigError: If an override does not validate
        """
        data: dict[str, Any] = self.model_dump()
        if output_format is not None:
            data["extraction"]["output_format"] = output_format
        if api_endpoint is not None:
            data["ocr"]["api_endpoint"] = api_endpoint
        if model is not None:
            data["ocr"]["model"] = model

        try:
            return type(self).model_validate(data)
        except ValidationError as exc:
            raise ConfigError(f"Invalid configuration override: {exc}") from exc


def _config_dir() -> Path:
    """Resolve the platform config directory from the environment."""
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        if not appdata:
            raise ConfigDirError("Failed to get config directory: APPDATA is not set")
        return Path(appdata)

    home = os.environ.get("HOME")

    if sys.platform == "darwin":
        if not home:
            raise ConfigDirError("Failed to get config directory: HOME is not set")
        return Path(home) / "Library" / "Application Support"

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    # XDG_CONFIG_HOME must be absolute to count
    if xdg_config_home and os.path.isabs(xdg_config_home):
        return Path(xdg_config_home)
    if not home:
        raise ConfigDirError(
            "Failed to get config directory: neither XDG_CONFIG_HOME nor HOME is set"
        )
    return Path(home) / ".config"
