"""Formatting settings, lookup maps and JSON loading helpers."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .models import SlackMessage

logger = logging.getLogger(__name__)

DEBUG_ENV_VAR = "SLACK_PASTE_MD_DEBUG"


class ConfigError(ValueError):
    """Raised when settings, maps or message records cannot be loaded."""


class FormatSettings(BaseModel):
    """Toggles controlling which rewrites run and how output is rendered.

    Snapshots are immutable; build a new one with ``model_copy(update=...)`` and
    hand it to ``ContentPipeline.update_settings`` or
    ``StrategyFactory.update_dependencies``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    detect_code_blocks: bool = Field(default=True, alias="detectCodeBlocks")
    convert_slack_links: bool = Field(default=True, alias="convertSlackLinks")
    convert_user_mentions: bool = Field(default=True, alias="convertUserMentions")
    replace_emoji: bool = Field(default=True, alias="replaceEmoji")
    highlight_threads: bool = Field(default=True, alias="highlightThreads")
    enable_text_sanitization: bool = Field(
        default=True, alias="enableTextSanitization"
    )
    parse_slack_times: bool = Field(default=True, alias="parseSlackTimes")
    debug: bool = False
    time_zone: str = Field(default="", alias="timeZone")


class ParsedMaps(BaseModel):
    """Read-only lookup tables shared by the pipeline and the renderers."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user_map: dict[str, str] = Field(default_factory=dict, alias="userMap")
    emoji_map: dict[str, str] = Field(default_factory=dict, alias="emojiMap")


def _read_json(path: Path) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"File not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e


def _env_debug_enabled() -> bool:
    return os.environ.get(DEBUG_ENV_VAR, "").strip().lower() in ("1", "true", "yes")


def load_settings(path: Optional[Path] = None) -> FormatSettings:
    """Load settings from a JSON object file, falling back to defaults.

    Unknown keys are ignored. The SLACK_PASTE_MD_DEBUG environment variable
    forces debug mode on.
    """
    data: dict[str, Any] = {}
    if path is not None:
        raw = _read_json(path)
        if not isinstance(raw, dict):
            raise ConfigError(f"Settings file must contain a JSON object: {path}")
        data = raw

    try:
        settings = FormatSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings in {path}: {e}") from e

    if _env_debug_enabled() and not settings.debug:
        logger.debug("Debug mode forced on by %s", DEBUG_ENV_VAR)
        settings = settings.model_copy(update={"debug": True})
    return settings


def _load_string_map(path: Optional[Path], label: str) -> dict[str, str]:
    if path is None:
        return {}
    raw = _read_json(path)
    if not isinstance(raw, dict):
        raise ConfigError(f"{label} file must contain a JSON object: {path}")
    return {str(key): str(value) for key, value in raw.items()}


def load_maps(
    user_map_path: Optional[Path] = None, emoji_map_path: Optional[Path] = None
) -> ParsedMaps:
    """Load the user-ID and emoji lookup maps from optional JSON files."""
    return ParsedMaps(
        user_map=_load_string_map(user_map_path, "User map"),
        emoji_map=_load_string_map(emoji_map_path, "Emoji map"),
    )


def load_messages(path: Path) -> list[SlackMessage]:
    """Load a JSON list of message records."""
    raw = _read_json(path)
    if not isinstance(raw, list):
        raise ConfigError(f"Messages file must contain a JSON list: {path}")

    messages: list[SlackMessage] = []
    for index, item in enumerate(raw):
        try:
            messages.append(SlackMessage.model_validate(item))
        except ValidationError as e:
            raise ConfigError(f"Invalid message record #{index} in {path}: {e}") from e
    return messages
