"""Keybindings for the mention field and its menu."""

from __future__ import annotations

from typing import Literal

from atmention.keys import KeyId, matches_key

MentionAction = Literal[
    # Cursor movement
    "cursorLeft",
    "cursorRight",
    "cursorWordLeft",
    "cursorWordRight",
    "cursorLineStart",
    "cursorLineEnd",
    # Deletion
    "deleteCharBackward",
    "deleteCharForward",
    "deleteWordBackward",
    "deleteWordForward",
    "deleteToLineStart",
    "deleteToLineEnd",
    # Text input
    "submit",
    # Menu
    "selectUp",
    "selectDown",
    "selectConfirm",
    "selectCancel",
    # Application
    "interrupt",
]

MentionKeybindingsConfig = dict[MentionAction, KeyId | list[KeyId]]

DEFAULT_MENTION_KEYBINDINGS: dict[MentionAction, KeyId | list[KeyId]] = {
    # Cursor movement
    "cursorLeft": ["left", "ctrl+b"],
    "cursorRight": ["right", "ctrl+f"],
    "cursorWordLeft": ["alt+left", "ctrl+left"],
    "cursorWordRight": ["alt+right", "ctrl+right"],
    "cursorLineStart": ["home", "ctrl+a"],
    "cursorLineEnd": ["end", "ctrl+e"],
    # Deletion
    "deleteCharBackward": "backspace",
    "deleteCharForward": ["delete", "ctrl+d"],
    "deleteWordBackward": ["ctrl+w", "alt+backspace"],
    "deleteWordForward": ["alt+d", "alt+delete"],
    "deleteToLineStart": "ctrl+u",
    "deleteToLineEnd": "ctrl+k",
    # Text input
    "submit": "enter",
    # Menu
    "selectUp": "up",
    "selectDown": "down",
    "selectConfirm": ["enter", "tab"],
    "selectCancel": "escape",
    # Application
    "interrupt": "ctrl+c",
}


class MentionKeybindingsManager:
    """Resolves raw input to the actions of the mention field."""

    def __init__(self, config: MentionKeybindingsConfig | None = None) -> None:
        self._action_to_keys: dict[MentionAction, list[KeyId]] = {}
        self._build_maps(config or {})

    def _build_maps(self, config: MentionKeybindingsConfig) -> None:
        self._action_to_keys.clear()
        for source in (DEFAULT_MENTION_KEYBINDINGS, config):
            for action, keys in source.items():
                self._action_to_keys[action] = list(keys if isinstance(keys, list) else [keys])

    def matches(self, data: str, action: MentionAction) -> bool:
        """Check if input matches a specific action."""
        return any(matches_key(data, key) for key in self._action_to_keys.get(action, []))

    def get_keys(self, action: MentionAction) -> list[KeyId]:
        """Get keys bound to an action."""
        return self._action_to_keys.get(action, [])

    def set_config(self, config: MentionKeybindingsConfig) -> None:
        self._build_maps(config)


_global_keybindings: MentionKeybindingsManager | None = None


def get_mention_keybindings() -> MentionKeybindingsManager:
    global _global_keybindings
    if _global_keybindings is None:
        _global_keybindings = MentionKeybindingsManager()
    return _global_keybindings


def set_mention_keybindings(manager: MentionKeybindingsManager | None) -> None:
    global _global_keybindings
    _global_keybindings = manager
