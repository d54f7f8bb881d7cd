"""Settings for the mention field, loaded from JSON files and the environment.

Precedence, lowest first: defaults, global settings
(``~/.atmention/settings.json``), project settings
(``<cwd>/.atmention/settings.json``), environment variables, explicit
overrides.  Keys in the files are camelCase.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from atmention.controller import validate_trigger
from atmention.placement import (
    DEFAULT_MENU_HEIGHT,
    DEFAULT_MENU_WIDTH,
    MENU_GAP,
    MENU_MARGIN,
    MIN_MENU_HEIGHT,
)
from atmention.tokenizer import DEFAULT_TRIGGER

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".atmention"
SETTINGS_FILE_NAME = "settings.json"

ENV_TRIGGER = "ATMENTION_TRIGGER"
ENV_WRAP_NAVIGATION = "ATMENTION_WRAP_NAVIGATION"

PLACEHOLDER_TEMPLATE = "Type {trigger} to mention..."


@dataclass
class MentionSettings:
    trigger: str = DEFAULT_TRIGGER
    # None: derived from the trigger, see placeholder_text
    placeholder: str | None = None
    show_suggestions: bool = True
    suggestion_limit: int = 5
    menu_width: int = DEFAULT_MENU_WIDTH
    menu_height: int = DEFAULT_MENU_HEIGHT
    margin: int = MENU_MARGIN
    gap: int = MENU_GAP
    min_height: int = MIN_MENU_HEIGHT
    wrap_navigation: bool = False
    mouse: bool = True
    # Action name -> key id(s), see keybindings.DEFAULT_MENTION_KEYBINDINGS
    keybindings: dict[str, str | list[str]] = field(default_factory=dict)

    @property
    def placeholder_text(self) -> str:
        if self.placeholder is not None:
            return self.placeholder
        return PLACEHOLDER_TEMPLATE.format(trigger=self.trigger)


# camelCase file key -> dataclass field
_FIELD_KEYS: dict[str, str] = {
    "trigger": "trigger",
    "placeholder": "placeholder",
    "showSuggestions": "show_suggestions",
    "suggestionLimit": "suggestion_limit",
    "menuWidth": "menu_width",
    "menuHeight": "menu_height",
    "margin": "margin",
    "gap": "gap",
    "minHeight": "min_height",
    "wrapNavigation": "wrap_navigation",
    "mouse": "mouse",
    "keybindings": "keybindings",
}

_NON_NEGATIVE = ("suggestion_limit", "margin", "gap")
_POSITIVE = ("menu_width", "menu_height", "min_height")
_BOOLEAN = ("show_suggestions", "wrap_navigation", "mouse")


# --- Deep merge ---


def deep_merge_settings(base: dict[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge *overrides* into *base*.

    Nested dicts merge key by key; anything else in *overrides* replaces the
    base value.  ``None`` never overrides.
    """
    result = dict(base)
    for key, value in overrides.items():
        if value is None:
            continue
        if isinstance(result.get(key), dict) and isinstance(value, Mapping):
            result[key] = deep_merge_settings(result[key], value)
        else:
            result[key] = value
    return result


# --- Conversion ---


def settings_from_dict(data: Mapping[str, Any]) -> MentionSettings:
    """Build settings from camelCase keys; raises ``ValueError`` on bad values."""
    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        name = _FIELD_KEYS.get(key)
        if name is None:
            logger.debug("Ignoring unknown setting %r", key)
            continue
        kwargs[name] = value

    settings = MentionSettings(**kwargs)

    validate_trigger(settings.trigger)
    if settings.placeholder is not None and not isinstance(settings.placeholder, str):
        raise ValueError("placeholder must be a string")
    for name in _NON_NEGATIVE:
        value = getattr(settings, name)
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise ValueError(f"{name} must be a non-negative integer, got {value!r}")
    for name in _POSITIVE:
        value = getattr(settings, name)
        if not isinstance(value, int) or isinstance(value, bool) or value < 1:
            raise ValueError(f"{name} must be a positive integer, got {value!r}")
    for name in _BOOLEAN:
        if not isinstance(getattr(settings, name), bool):
            raise ValueError(f"{name} must be a boolean")
    if not isinstance(settings.keybindings, dict):
        raise ValueError("keybindings must be an object")

    return settings


def settings_to_dict(settings: MentionSettings) -> dict[str, Any]:
    return {key: getattr(settings, name) for key, name in _FIELD_KEYS.items()}


# --- Loading ---


def _load_from_file(path: str) -> tuple[dict[str, Any], Exception | None]:
    """Load settings from a JSON file. Returns (settings, error)."""
    if not os.path.exists(path):
        return {}, None
    try:
        content = Path(path).read_text(encoding="utf-8")
        settings = json.loads(content)
    except (OSError, json.JSONDecodeError) as e:
        return {}, e
    if not isinstance(settings, dict):
        return {}, ValueError(f"{path}: settings must be a JSON object")
    return settings, None


def _env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    trigger = environ.get(ENV_TRIGGER)
    if trigger:
        overrides["trigger"] = trigger
    wrap = environ.get(ENV_WRAP_NAVIGATION)
    if wrap is not None:
        overrides["wrapNavigation"] = wrap == "1"
    return overrides


def default_config_dir() -> str:
    """Default global config directory (~/.atmention)."""
    return os.path.join(os.path.expanduser("~"), CONFIG_DIR_NAME)


def load_settings(
    cwd: str | None = None,
    *,
    config_dir: str | None = None,
    overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> tuple[MentionSettings, Exception | None]:
    """Load and merge all settings sources.

    Never raises: a corrupt file or an invalid value is returned as the
    error, alongside the settings that could still be used (defaults when
    the merged values do not validate).
    """
    global_path = os.path.join(config_dir or default_config_dir(), SETTINGS_FILE_NAME)
    project_path = os.path.join(cwd or os.getcwd(), CONFIG_DIR_NAME, SETTINGS_FILE_NAME)

    global_settings, global_error = _load_from_file(global_path)
    project_settings, project_error = _load_from_file(project_path)
    error = global_error or project_error
    if error is not None:
        logger.warning("Could not load settings: %s", error)

    merged = settings_to_dict(MentionSettings())
    merged = deep_merge_settings(merged, global_settings)
    merged = deep_merge_settings(merged, project_settings)
    merged = deep_merge_settings(merged, _env_overrides(os.environ if environ is None else environ))
    merged = deep_merge_settings(merged, overrides or {})

    try:
        return settings_from_dict(merged), error
    except (TypeError, ValueError) as e:
        logger.warning("Invalid settings, using defaults: %s", e)
        return MentionSettings(), e
