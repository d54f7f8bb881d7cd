"""Tests for the mention state machine."""

from __future__ import annotations

import pytest

from atmention.controller import InputState, MentionController, QueryState, validate_trigger
from atmention.options import MentionOption

OPTIONS = [
    {"value": "alice", "label": "Alice Liddell"},
    {"value": "bob", "label": "Bob Builder"},
    {"value": "carol", "label": "Carol Danvers"},
    {"value": "dave", "label": "Dave"},
]


class Recorder:
    def __init__(self) -> None:
        self.proposals: list[list[str]] = []

    def __call__(self, value: list[str]) -> None:
        self.proposals.append(value)


def make(value: list[str] | None = None, **kwargs: object) -> tuple[MentionController, Recorder]:
    recorder = Recorder()
    controller = MentionController(OPTIONS, value or [], recorder, **kwargs)  # type: ignore[arg-type]
    return controller, recorder


def typed(controller: MentionController, text: str) -> None:
    controller.handle_input_change(text, len(text))


class TestTriggerValidation:
    def test_valid(self) -> None:
        assert validate_trigger("#") == "#"

    @pytest.mark.parametrize("trigger", ["", "@@", " ", "\t"])
    def test_invalid(self, trigger: str) -> None:
        with pytest.raises(ValueError):
            validate_trigger(trigger)

    def test_controller_rejects_invalid_trigger(self) -> None:
        with pytest.raises(ValueError):
            MentionController([], [], lambda v: None, trigger="ab")

    def test_negative_suggestion_limit(self) -> None:
        with pytest.raises(ValueError):
            MentionController([], [], lambda v: None, suggestion_limit=-1)


class TestOpenClose:
    def test_initially_closed(self) -> None:
        controller, _ = make()
        assert not controller.show_menu
        assert controller.trigger_offset is None
        assert controller.active_option is None

    def test_trigger_opens(self) -> None:
        controller, _ = make()
        typed(controller, "hi @")
        assert controller.show_menu
        assert controller.trigger_offset == 3
        assert controller.mention_query == ""
        assert controller.active_index == 0

    def test_query_follows_text(self) -> None:
        controller, _ = make()
        typed(controller, "@ca")
        assert controller.mention_query == "ca"
        assert [o.value for o in controller.filtered_options] == ["carol"]

    def test_invalid_trigger_closes(self) -> None:
        controller, _ = make()
        typed(controller, "@al")
        typed(controller, "x@al")
        assert not controller.show_menu

    def test_deleting_trigger_closes(self) -> None:
        controller, _ = make()
        typed(controller, "@")
        typed(controller, "")
        assert not controller.show_menu

    def test_escape_closes_and_keeps_text(self) -> None:
        controller, _ = make()
        typed(controller, "@al")
        assert controller.handle_key_down("escape")
        assert not controller.show_menu
        assert controller.input == "@al"

    def test_dismiss(self) -> None:
        controller, _ = make()
        typed(controller, "@")
        controller.dismiss()
        assert not controller.show_menu

    def test_keys_ignored_while_closed(self) -> None:
        controller, _ = make()
        for key in ("up", "down", "enter", "escape"):
            assert not controller.handle_key_down(key)

    def test_custom_trigger(self) -> None:
        controller, _ = make(trigger="#")
        typed(controller, "@al")
        assert not controller.show_menu
        typed(controller, "#al")
        assert controller.show_menu


class TestCursorMoves:
    def test_query_follows_caret_while_open(self) -> None:
        controller, _ = make()
        typed(controller, "@ali")
        controller.handle_cursor_change(2)
        assert controller.show_menu
        assert controller.mention_query == "a"

    def test_caret_leaving_query_closes(self) -> None:
        controller, _ = make()
        typed(controller, "hi @al")
        controller.handle_cursor_change(2)
        assert not controller.show_menu

    def test_caret_does_not_reopen(self) -> None:
        controller, _ = make()
        typed(controller, "@al")
        controller.handle_key_down("escape")
        controller.handle_cursor_change(2)
        assert not controller.show_menu
        assert controller.cursor == 2

    def test_same_position_is_ignored(self) -> None:
        controller, _ = make()
        typed(controller, "@al")
        notified: list[int] = []
        controller.on_state_change = lambda: notified.append(1)
        controller.handle_cursor_change(3)
        assert notified == []


class TestNavigation:
    def test_down_and_up_clamp(self) -> None:
        controller, _ = make()
        typed(controller, "@")
        for _ in range(10):
            controller.handle_key_down("down")
        assert controller.active_index == 3
        for _ in range(10):
            controller.handle_key_down("up")
        assert controller.active_index == 0

    def test_wrapping(self) -> None:
        controller, _ = make(wrap_navigation=True)
        typed(controller, "@")
        controller.handle_key_down("up")
        assert controller.active_index == 3
        controller.handle_key_down("down")
        assert controller.active_index == 0

    def test_navigation_with_no_results(self) -> None:
        controller, _ = make()
        typed(controller, "@zzz")
        assert controller.handle_key_down("down")
        assert controller.active_index == 0
        assert controller.active_option is None

    def test_active_option(self) -> None:
        controller, _ = make()
        typed(controller, "@")
        controller.handle_key_down("down")
        assert controller.active_option == MentionOption("bob", "Bob Builder")

    def test_index_resets_when_results_change(self) -> None:
        controller, _ = make()
        typed(controller, "@")
        controller.handle_key_down("down")
        controller.handle_key_down("down")
        typed(controller, "@a")
        assert controller.active_index == 0

    def test_index_kept_when_results_unchanged(self) -> None:
        controller, _ = make()
        typed(controller, "@")
        controller.handle_key_down("down")
        controller.handle_cursor_change(1)
        assert controller.active_index == 1

    def test_set_active_index_clamps(self) -> None:
        controller, _ = make()
        typed(controller, "@")
        controller.set_active_index(2)
        assert controller.active_index == 2
        controller.set_active_index(99)
        assert controller.active_index == 3

    def test_set_active_index_ignored_while_closed(self) -> None:
        controller, _ = make()
        controller.set_active_index(2)
        assert controller.active_index == 0

    def test_search_change(self) -> None:
        controller, _ = make()
        typed(controller, "@")
        controller.handle_key_down("down")
        controller.handle_search_change("dav")
        assert controller.mention_query == "dav"
        assert controller.active_index == 0
        assert [o.value for o in controller.filtered_options] == ["dave"]

    def test_search_change_ignored_while_closed(self) -> None:
        controller, _ = make()
        controller.handle_search_change("x")
        assert controller.mention_query == ""


class TestCommit:
    def test_enter_commits_active(self) -> None:
        controller, recorder = make()
        typed(controller, "hi @ca")
        assert controller.handle_key_down("enter")
        assert recorder.proposals == [["carol"]]
        assert controller.input == ""
        assert controller.cursor == 0
        assert not controller.show_menu

    def test_commit_clears_text_around_query(self) -> None:
        controller, _ = make()
        controller.handle_input_change("hi @al and more", 6)
        controller.handle_key_down("enter")
        assert controller.input_state == InputState()
        assert controller.query_state == QueryState()

    def test_enter_with_no_results_closes(self) -> None:
        controller, recorder = make()
        typed(controller, "@zzz")
        assert controller.handle_key_down("enter")
        assert recorder.proposals == []
        assert not controller.show_menu
        assert controller.input == "@zzz"

    def test_select_appends_to_host_value(self) -> None:
        controller, recorder = make(["bob"])
        typed(controller, "@")
        controller.handle_select(MentionOption("alice", "Alice Liddell"))
        assert recorder.proposals == [["bob", "alice"]]

    def test_controlled_value_is_not_applied(self) -> None:
        controller, _ = make()
        typed(controller, "@")
        controller.handle_key_down("enter")
        assert controller.value == []

    def test_selected_never_duplicated(self) -> None:
        controller, recorder = make(["alice"])
        typed(controller, "@")
        controller.handle_select(MentionOption("alice", "Alice Liddell"))
        assert recorder.proposals == []
        assert not controller.show_menu

    def test_select_without_open_menu(self) -> None:
        controller, recorder = make()
        typed(controller, "text")
        controller.handle_select(MentionOption("dave", "Dave"))
        assert recorder.proposals == [["dave"]]
        assert controller.input == ""


class TestRemove:
    def test_remove(self) -> None:
        controller, recorder = make(["alice", "bob"])
        controller.handle_remove("alice")
        assert recorder.proposals == [["bob"]]

    def test_backspace_on_empty_text_removes_last(self) -> None:
        controller, recorder = make(["alice", "bob"])
        assert controller.handle_key_down("backspace")
        assert recorder.proposals == [["alice"]]

    def test_backspace_on_whitespace_text(self) -> None:
        controller, recorder = make(["alice"])
        typed(controller, "   ")
        assert controller.handle_key_down("backspace")
        assert recorder.proposals == [[]]

    def test_backspace_with_text_is_not_consumed(self) -> None:
        controller, recorder = make(["alice"])
        typed(controller, "a")
        assert not controller.handle_key_down("backspace")
        assert recorder.proposals == []

    def test_backspace_without_selection(self) -> None:
        controller, recorder = make()
        assert not controller.handle_key_down("backspace")
        assert recorder.proposals == []


class TestDerivedOutputs:
    def test_selected_options_in_selection_order(self) -> None:
        controller, _ = make(["dave", "alice"])
        assert [o.value for o in controller.selected_options] == ["dave", "alice"]

    def test_unknown_selected_ids_are_skipped(self) -> None:
        controller, _ = make(["ghost", "bob"])
        assert [o.value for o in controller.selected_options] == ["bob"]
        assert controller.value == ["ghost", "bob"]

    def test_suggestions_limited(self) -> None:
        controller, _ = make(["alice"], suggestion_limit=2)
        assert [o.value for o in controller.suggestions] == ["bob", "carol"]

    def test_suggestions_unlimited(self) -> None:
        controller, _ = make()
        assert len(controller.suggestions) == 4

    def test_set_value_updates_filtered(self) -> None:
        controller, _ = make()
        typed(controller, "@")
        controller.handle_key_down("down")
        controller.set_value(["alice"])
        assert [o.value for o in controller.filtered_options] == ["bob", "carol", "dave"]
        assert controller.active_index == 0

    def test_set_options(self) -> None:
        controller, _ = make()
        typed(controller, "@")
        controller.handle_key_down("down")
        controller.handle_key_down("down")
        controller.handle_key_down("down")
        controller.set_options(OPTIONS[:2])
        assert controller.active_index == 0
        assert len(controller.filtered_options) == 2

    def test_empty_catalog(self) -> None:
        controller = MentionController(None, None, lambda v: None)
        controller.handle_input_change("@", 1)
        assert controller.show_menu
        assert controller.filtered_options == []

    def test_state_change_notifications(self) -> None:
        controller, _ = make()
        notified: list[int] = []
        controller.on_state_change = lambda: notified.append(1)
        typed(controller, "@")
        controller.handle_key_down("down")
        controller.handle_key_down("escape")
        assert len(notified) == 3
