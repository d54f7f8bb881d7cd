"""Mention state machine.

``MentionController`` is the headless core of the mention field.  It owns
the text and cursor of the field and the query state, and derives
everything else (the filtered candidates, the inline suggestions, the
resolved badges) from those and from the host-owned selected list.

The menu has two states, closed and open.  It opens when the tokenizer finds
a valid trigger before the cursor and closes on Escape, on a commit, when
the trigger stops being valid, or when the host dismisses it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Callable, Literal

from atmention.filtering import filter_options, limit_suggestions, unselected_options
from atmention.options import MentionOption, coerce_options, resolve_selected
from atmention.selection import SelectionController
from atmention.tokenizer import DEFAULT_TRIGGER, clamp_cursor, find_trigger

logger = logging.getLogger(__name__)

NavigationKey = Literal["up", "down", "enter", "escape", "backspace"]


@dataclass
class InputState:
    text: str = ""
    cursor: int = 0


@dataclass
class QueryState:
    trigger_offset: int | None = None
    query: str = ""
    is_open: bool = False
    active_index: int = 0


def validate_trigger(trigger: str) -> str:
    if not isinstance(trigger, str) or len(trigger) != 1 or trigger.isspace():
        raise ValueError(f"Trigger must be a single non-whitespace character, got {trigger!r}")
    return trigger


class MentionController:
    def __init__(
        self,
        options: Iterable[object] | None,
        value: Sequence[str] | None,
        on_change: Callable[[list[str]], None],
        *,
        trigger: str = DEFAULT_TRIGGER,
        wrap_navigation: bool = False,
        suggestion_limit: int | None = None,
    ) -> None:
        if suggestion_limit is not None and suggestion_limit < 0:
            raise ValueError("suggestion_limit must be >= 0")

        self.trigger = validate_trigger(trigger)
        self.wrap_navigation = wrap_navigation
        self.suggestion_limit = suggestion_limit

        self._options: list[MentionOption] = coerce_options(options)
        self._value: tuple[str, ...] = tuple(value or ())
        self._on_change = on_change

        self.input_state = InputState()
        self.query_state = QueryState()
        self._filtered_key: tuple[str, ...] = ()

        self._selection = SelectionController(lambda: self._value, self._propose)

        self.on_state_change: Callable[[], None] | None = None

    # -- derived outputs ----------------------------------------------------

    @property
    def options(self) -> list[MentionOption]:
        return list(self._options)

    @property
    def value(self) -> list[str]:
        return list(self._value)

    @property
    def input(self) -> str:
        return self.input_state.text

    @property
    def cursor(self) -> int:
        return self.input_state.cursor

    @property
    def mention_query(self) -> str:
        return self.query_state.query

    @property
    def show_menu(self) -> bool:
        return self.query_state.is_open

    @property
    def active_index(self) -> int:
        return self.query_state.active_index

    @property
    def trigger_offset(self) -> int | None:
        return self.query_state.trigger_offset

    @property
    def unselected_options(self) -> list[MentionOption]:
        return unselected_options(self._options, self._value)

    @property
    def filtered_options(self) -> list[MentionOption]:
        return filter_options(self._options, self._value, self.query_state.query)

    @property
    def suggestions(self) -> list[MentionOption]:
        return limit_suggestions(self.unselected_options, self.suggestion_limit)

    @property
    def selected_options(self) -> list[MentionOption]:
        return resolve_selected(self._options, self._value)

    @property
    def active_option(self) -> MentionOption | None:
        if not self.query_state.is_open:
            return None
        filtered = self.filtered_options
        index = self.query_state.active_index
        return filtered[index] if 0 <= index < len(filtered) else None

    # -- host updates -------------------------------------------------------

    def set_value(self, value: Sequence[str] | None) -> None:
        """Accept the host's selected list (the controlled value)."""
        self._value = tuple(value or ())
        self._sync_active_index()
        self._notify()

    def set_options(self, options: Iterable[object] | None) -> None:
        self._options = coerce_options(options)
        self._sync_active_index()
        self._notify()

    # -- handlers -----------------------------------------------------------

    def handle_input_change(self, text: str, cursor: int | None = None) -> None:
        """The field's text changed; the trigger is re-evaluated from scratch."""
        self.input_state = InputState(text=text, cursor=clamp_cursor(text, cursor))
        self._update_query()
        self._notify()

    def handle_cursor_change(self, cursor: int) -> None:
        """The caret moved without a text change.

        An open query follows the caret and closes once the caret leaves
        it; a closed menu stays closed until the text changes.
        """
        cursor = clamp_cursor(self.input_state.text, cursor)
        if cursor == self.input_state.cursor:
            return
        self.input_state = InputState(text=self.input_state.text, cursor=cursor)
        if self.query_state.is_open:
            self._update_query()
        self._notify()

    def handle_search_change(self, query: str) -> None:
        """The menu's search row was edited."""
        if not self.query_state.is_open:
            return
        self.query_state.query = query
        self.query_state.active_index = 0
        self._sync_active_index()
        self._notify()

    def handle_key_down(self, key: NavigationKey | str) -> bool:
        """Apply a navigation key; returns ``True`` if the key was consumed."""
        if key == "backspace":
            if self.input_state.text.strip() == "" and self._value:
                self._selection.remove_last()
                return True
            return False

        if not self.query_state.is_open:
            return False

        filtered = self.filtered_options
        count = len(filtered)
        index = self.query_state.active_index

        if key == "down":
            if count:
                if self.wrap_navigation:
                    index = (index + 1) % count
                else:
                    index = min(index + 1, count - 1)
            self._set_index(index, count)
            return True

        if key == "up":
            if count:
                if self.wrap_navigation:
                    index = (index - 1) % count
                else:
                    index = max(index - 1, 0)
            self._set_index(index, count)
            return True

        if key == "enter":
            if 0 <= index < count:
                self.handle_select(filtered[index])
            else:
                self._close()
                self._notify()
            return True

        if key == "escape":
            self._close()
            self._notify()
            return True

        return False

    def set_active_index(self, index: int) -> None:
        """Highlight row *index*, e.g. on hover; nothing is committed."""
        if not self.query_state.is_open:
            return
        count = len(self.filtered_options)
        self._set_index(index, count)

    def handle_select(self, option: MentionOption) -> None:
        """Commit *option*: propose the new selection and clear the field."""
        self._selection.commit(option)
        self.input_state = InputState()
        self._close()
        self._notify()

    def handle_remove(self, value: str) -> None:
        self._selection.remove(value)

    def dismiss(self) -> None:
        """Close the menu from outside (blur, click elsewhere)."""
        if not self.query_state.is_open:
            return
        self._close()
        self._notify()

    # -- internals ----------------------------------------------------------

    def _propose(self, next_value: list[str]) -> None:
        self._on_change(next_value)

    def _update_query(self) -> None:
        match = find_trigger(self.input_state.text, self.input_state.cursor, self.trigger)
        if not match.valid:
            self._close()
            return

        was_open = self.query_state.is_open
        self.query_state.trigger_offset = match.trigger_offset
        self.query_state.query = match.query
        self.query_state.is_open = True
        if not was_open:
            logger.debug("Mention menu opened at offset %s", match.trigger_offset)
            self.query_state.active_index = 0
            self._filtered_key = ()
        self._sync_active_index()

    def _sync_active_index(self) -> None:
        key = tuple(option.value for option in self.filtered_options)
        if key != self._filtered_key:
            self._filtered_key = key
            self.query_state.active_index = 0
        self.query_state.active_index = max(0, min(self.query_state.active_index, len(key) - 1))

    def _set_index(self, index: int, count: int) -> None:
        self.query_state.active_index = max(0, min(index, count - 1))
        self._notify()

    def _close(self) -> None:
        if self.query_state.is_open:
            logger.debug("Mention menu closed")
        self.query_state = QueryState()
        self._filtered_key = ()

    def _notify(self) -> None:
        if self.on_state_change is not None:
            self.on_state_change()
