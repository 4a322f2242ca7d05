"""Configuration loading and validation for the chatterm TUI."""

from __future__ import annotations

from copy import deepcopy
import logging
import os
from pathlib import Path
import re
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .exceptions import ConfigValidationError
from .message import ModelRef

import tomllib

LOGGER = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "chatterm"
CONFIG_PATH = CONFIG_DIR / "config.toml"

HEX_COLOR_PATTERN = re.compile(r"^#(?:[0-9a-fA-F]{3}){1,2}$")
VALID_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _non_empty_string(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError("Expected a string value.")
    normalized = value.strip()
    if not normalized:
        raise ValueError("String value must not be empty.")
    return normalized


class AppConfig(BaseModel):
    """Application metadata."""

    title: str = "chatterm"

    @field_validator("title", mode="before")
    @classmethod
    def _validate_title(cls, value: Any) -> str:
        return _non_empty_string(value)


class ProviderConfig(BaseModel):
    """Completion provider endpoint and model choices.

    A blank ``model`` means no model is configured; user messages are then
    recorded without requesting a completion until one is picked.
    """

    host: str = "http://localhost:11434"
    model: str = "llama3.2"
    models: list[str] = Field(default_factory=list)
    timeout: int = Field(default=120, ge=1, le=3600)

    @field_validator("host", mode="before")
    @classmethod
    def _validate_host(cls, value: Any) -> str:
        host = _non_empty_string(value)
        parsed = urlparse(host)
        if parsed.scheme.lower() not in {"http", "https"} or not parsed.hostname:
            raise ValueError("provider.host must use http(s) and include a hostname.")
        return host

    @field_validator("model", mode="before")
    @classmethod
    def _validate_model(cls, value: Any) -> str:
        if value is None:
            return ""
        if not isinstance(value, str):
            raise ValueError("model must be a string.")
        normalized = value.strip()
        if normalized:
            ModelRef.parse(normalized)
        return normalized

    @field_validator("models", mode="before")
    @classmethod
    def _validate_models(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if not isinstance(value, list):
            raise ValueError("models must be a list of model names.")
        normalized: list[str] = []
        for item in value:
            candidate = _non_empty_string(item)
            ModelRef.parse(candidate)
            if candidate not in normalized:
                normalized.append(candidate)
        return normalized

    @model_validator(mode="after")
    def _include_default_model(self) -> ProviderConfig:
        if self.model and self.model not in self.models:
            self.models.insert(0, self.model)
        return self

    def model_ref(self) -> ModelRef | None:
        return ModelRef.parse(self.model) if self.model else None


class ConversationsConfig(BaseModel):
    """Where stored conversations live."""

    directory: str = "~/.local/state/chatterm/conversations"

    @field_validator("directory", mode="before")
    @classmethod
    def _validate_directory(cls, value: Any) -> str:
        return _non_empty_string(value)


class DispatcherConfig(BaseModel):
    """Action queue sizing."""

    queue_size: int = Field(default=256, ge=1, le=65_536)


class UIConfig(BaseModel):
    """Colours for panel emphasis and message headers."""

    active_color: str = "#e0af68"
    focused_color: str = "#7aa2f7"
    unfocused_color: str = "#565f89"
    system_color: str = "#bb9af7"
    user_color: str = "#7dcfff"
    assistant_color: str = "#9ece6a"

    @field_validator("*", mode="before")
    @classmethod
    def _validate_hex_color(cls, value: Any) -> str:
        normalized = _non_empty_string(value)
        if not HEX_COLOR_PATTERN.match(normalized):
            raise ValueError("Color must use #RGB or #RRGGBB format.")
        return normalized


class KeybindsConfig(BaseModel):
    """Key names for each keymap action. A blank value disables the binding."""

    activate: str = "enter"
    edit: str = "i"
    leave: str = "escape"
    cycle_panel: str = "tab"
    model_selector: str = "m"
    next_message: str = "j"
    previous_message: str = "k"
    delete_message: str = "d"
    next_conversation: str = "]"
    previous_conversation: str = "["
    load_conversation: str = "l"
    new_conversation: str = "n"
    save_conversation: str = "ctrl+s"
    quit: str = "q"

    @field_validator("*", mode="before")
    @classmethod
    def _validate_keybind(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("Keybind must be a string.")
        return value.strip()


class LoggingConfig(BaseModel):
    """Logging behavior and output destinations."""

    level: str = "INFO"
    structured: bool = True
    log_to_file: bool = True
    log_file_path: str = "~/.local/state/chatterm/app.log"

    @field_validator("level", mode="before")
    @classmethod
    def _validate_level(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("Logging level must be a string.")
        normalized = value.strip().upper()
        if normalized not in VALID_LOG_LEVELS:
            raise ValueError(f"Unsupported log level {normalized!r}.")
        return normalized

    @field_validator("log_file_path", mode="before")
    @classmethod
    def _validate_log_file_path(cls, value: Any) -> str:
        return _non_empty_string(value)


class Config(BaseModel):
    """Root configuration model for all sections."""

    model_config = ConfigDict(populate_by_name=True)
    app: AppConfig = AppConfig()
    provider: ProviderConfig = ProviderConfig()
    conversations: ConversationsConfig = ConversationsConfig()
    dispatcher: DispatcherConfig = DispatcherConfig()
    ui: UIConfig = UIConfig()
    keybinds: KeybindsConfig = KeybindsConfig()
    logging: LoggingConfig = LoggingConfig()


def _build_default_config() -> dict[str, dict[str, Any]]:
    """Build default config with an empty models list for clean merging."""
    data = Config().model_dump()
    # A partial TOML that only sets `model` must not inherit the default model list.
    data["provider"]["models"] = []
    return data


DEFAULT_CONFIG: dict[str, dict[str, Any]] = _build_default_config()


def ensure_config_dir(config_dir: Path | None = None) -> Path:
    """Ensure that the config directory exists and return its path."""
    directory = config_dir or CONFIG_DIR
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        LOGGER.warning("Unable to create config directory %s: %s", directory, exc)
    return directory


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override values onto base values."""
    merged: dict[str, Any] = deepcopy(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _enforce_private_permissions(path: Path) -> None:
    """Best-effort enforcement of private file permissions on POSIX systems."""
    if os.name != "posix" or not path.exists():
        return
    try:
        path.chmod(0o600)
    except OSError as exc:
        LOGGER.warning("Unable to enforce 0600 permissions for %s: %s", path, exc)


def _validate_config(raw: dict[str, Any]) -> Config:
    """Validate merged config and fall back to safe defaults when possible."""
    try:
        return Config.model_validate(raw)
    except ValidationError as exc:
        LOGGER.warning("Configuration validation failed, using safe defaults: %s", exc)
        return Config.model_validate(deepcopy(DEFAULT_CONFIG))
    except Exception as exc:  # noqa: BLE001 - unexpected model construction failure.
        raise ConfigValidationError(f"Unable to validate configuration: {exc}") from exc


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from TOML, merge with defaults, and validate.

    The optional ``config_path`` argument is intended for tests and tooling.
    """
    target_path = config_path or CONFIG_PATH
    ensure_config_dir(target_path.parent)

    raw_data: dict[str, Any] = {}
    if target_path.exists():
        _enforce_private_permissions(target_path)
        try:
            raw_data = tomllib.loads(target_path.read_text(encoding="utf-8"))
        except Exception as exc:  # noqa: BLE001 - we must not crash on invalid user config.
            LOGGER.warning("Failed to parse config at %s: %s", target_path, exc)
            raw_data = {}

    return _validate_config(_deep_merge(DEFAULT_CONFIG, raw_data))
