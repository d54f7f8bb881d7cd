"""Tests for settings loading and merging."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from atmention.config import (
    CONFIG_DIR_NAME,
    ENV_TRIGGER,
    ENV_WRAP_NAVIGATION,
    MentionSettings,
    deep_merge_settings,
    load_settings,
    settings_from_dict,
    settings_to_dict,
)


def write_settings(directory: Path, data: object) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "settings.json").write_text(json.dumps(data), encoding="utf-8")


@pytest.fixture
def dirs(tmp_path: Path) -> tuple[Path, Path]:
    """(project cwd, global config dir)"""
    cwd = tmp_path / "project"
    cwd.mkdir()
    return cwd, tmp_path / "global"


class TestDeepMerge:
    def test_override(self) -> None:
        assert deep_merge_settings({"a": 1, "b": 2}, {"b": 3}) == {"a": 1, "b": 3}

    def test_nested(self) -> None:
        merged = deep_merge_settings({"k": {"x": 1, "y": 2}}, {"k": {"y": 3}})
        assert merged == {"k": {"x": 1, "y": 3}}

    def test_none_never_overrides(self) -> None:
        assert deep_merge_settings({"a": 1}, {"a": None}) == {"a": 1}

    def test_base_untouched(self) -> None:
        base = {"k": {"x": 1}}
        deep_merge_settings(base, {"k": {"x": 2}})
        assert base == {"k": {"x": 1}}


class TestSettingsFromDict:
    def test_camel_case_keys(self) -> None:
        settings = settings_from_dict({"menuWidth": 40, "wrapNavigation": True, "trigger": "#"})
        assert settings.menu_width == 40
        assert settings.wrap_navigation is True
        assert settings.trigger == "#"

    def test_unknown_keys_ignored(self) -> None:
        assert settings_from_dict({"colour": "red"}) == MentionSettings()

    @pytest.mark.parametrize(
        "data",
        [
            {"trigger": "ab"},
            {"trigger": " "},
            {"menuWidth": 0},
            {"menuHeight": "tall"},
            {"suggestionLimit": -1},
            {"margin": True},
            {"wrapNavigation": "yes"},
            {"placeholder": 3},
            {"keybindings": []},
        ],
    )
    def test_invalid_values(self, data: dict[str, object]) -> None:
        with pytest.raises(ValueError):
            settings_from_dict(data)

    def test_round_trip_of_defaults(self) -> None:
        assert settings_from_dict(settings_to_dict(MentionSettings())) == MentionSettings()


class TestPlaceholder:
    def test_follows_trigger(self) -> None:
        assert MentionSettings().placeholder_text == "Type @ to mention..."
        assert MentionSettings(trigger="#").placeholder_text == "Type # to mention..."

    def test_explicit_placeholder_kept(self) -> None:
        settings = MentionSettings(trigger="#", placeholder="Tag a ticket")
        assert settings.placeholder_text == "Tag a ticket"

    def test_environment_trigger(self, dirs: tuple[Path, Path]) -> None:
        cwd, global_dir = dirs
        settings, _ = load_settings(str(cwd), config_dir=str(global_dir), environ={ENV_TRIGGER: "+"})
        assert settings.placeholder is None
        assert settings.placeholder_text == "Type + to mention..."

    def test_file_placeholder_survives_trigger_override(self, dirs: tuple[Path, Path]) -> None:
        cwd, global_dir = dirs
        write_settings(global_dir, {"placeholder": "Who?"})
        settings, _ = load_settings(str(cwd), config_dir=str(global_dir), overrides={"trigger": "!"}, environ={})
        assert settings.placeholder_text == "Who?"


class TestLoadSettings:
    def test_defaults(self, dirs: tuple[Path, Path]) -> None:
        cwd, global_dir = dirs
        settings, error = load_settings(str(cwd), config_dir=str(global_dir), environ={})
        assert settings == MentionSettings()
        assert error is None

    def test_project_overrides_global(self, dirs: tuple[Path, Path]) -> None:
        cwd, global_dir = dirs
        write_settings(global_dir, {"menuWidth": 20, "menuHeight": 6})
        write_settings(cwd / CONFIG_DIR_NAME, {"menuWidth": 24})
        settings, error = load_settings(str(cwd), config_dir=str(global_dir), environ={})
        assert error is None
        assert settings.menu_width == 24
        assert settings.menu_height == 6

    def test_keybindings_merge(self, dirs: tuple[Path, Path]) -> None:
        cwd, global_dir = dirs
        write_settings(global_dir, {"keybindings": {"selectUp": "ctrl+p"}})
        write_settings(cwd / CONFIG_DIR_NAME, {"keybindings": {"selectDown": "ctrl+n"}})
        settings, _ = load_settings(str(cwd), config_dir=str(global_dir), environ={})
        assert settings.keybindings == {"selectUp": "ctrl+p", "selectDown": "ctrl+n"}

    def test_environment(self, dirs: tuple[Path, Path]) -> None:
        cwd, global_dir = dirs
        write_settings(cwd / CONFIG_DIR_NAME, {"trigger": "#"})
        environ = {ENV_TRIGGER: "+", ENV_WRAP_NAVIGATION: "1"}
        settings, _ = load_settings(str(cwd), config_dir=str(global_dir), environ=environ)
        assert settings.trigger == "+"
        assert settings.wrap_navigation is True

    def test_overrides_win(self, dirs: tuple[Path, Path]) -> None:
        cwd, global_dir = dirs
        settings, _ = load_settings(
            str(cwd),
            config_dir=str(global_dir),
            overrides={"trigger": "!", "mouse": False},
            environ={ENV_TRIGGER: "+"},
        )
        assert settings.trigger == "!"
        assert settings.mouse is False

    def test_corrupt_file(self, dirs: tuple[Path, Path], caplog: pytest.LogCaptureFixture) -> None:
        cwd, global_dir = dirs
        global_dir.mkdir()
        (global_dir / "settings.json").write_text("{not json", encoding="utf-8")
        write_settings(cwd / CONFIG_DIR_NAME, {"menuWidth": 22})
        settings, error = load_settings(str(cwd), config_dir=str(global_dir), environ={})
        assert isinstance(error, json.JSONDecodeError)
        assert settings.menu_width == 22
        assert "Could not load settings" in caplog.text

    def test_non_object_file(self, dirs: tuple[Path, Path]) -> None:
        cwd, global_dir = dirs
        write_settings(global_dir, [1, 2])
        settings, error = load_settings(str(cwd), config_dir=str(global_dir), environ={})
        assert isinstance(error, ValueError)
        assert settings == MentionSettings()

    def test_invalid_value_falls_back_to_defaults(self, dirs: tuple[Path, Path]) -> None:
        cwd, global_dir = dirs
        write_settings(cwd / CONFIG_DIR_NAME, {"menuWidth": -5, "trigger": "#"})
        settings, error = load_settings(str(cwd), config_dir=str(global_dir), environ={})
        assert isinstance(error, ValueError)
        assert settings == MentionSettings()
