"""Tests for trigger detection."""

from __future__ import annotations

from atmention.tokenizer import NO_TRIGGER, TriggerMatch, clamp_cursor, find_trigger


class TestFindTrigger:
    def test_trigger_at_start(self) -> None:
        assert find_trigger("@al", 3) == TriggerMatch(valid=True, trigger_offset=0, query="al")

    def test_trigger_after_space(self) -> None:
        match = find_trigger("hello @bo", 9)
        assert match.valid
        assert match.trigger_offset == 6
        assert match.query == "bo"

    def test_trigger_after_tab_and_newline(self) -> None:
        assert find_trigger("a\t@x", 4).trigger_offset == 2
        assert find_trigger("a\n@x", 4).trigger_offset == 2

    def test_trigger_inside_word_is_inert(self) -> None:
        assert find_trigger("user@host", 9) == NO_TRIGGER

    def test_bare_trigger_has_empty_query(self) -> None:
        match = find_trigger("hi @", 4)
        assert match.valid
        assert match.query == ""

    def test_query_stops_at_cursor(self) -> None:
        match = find_trigger("@alice", 3)
        assert match.query == "al"

    def test_no_trigger(self) -> None:
        assert find_trigger("plain text", 10) == NO_TRIGGER

    def test_cursor_at_zero(self) -> None:
        assert find_trigger("@al", 0) == NO_TRIGGER

    def test_cursor_before_trigger(self) -> None:
        assert not find_trigger("ab @c", 2).valid

    def test_only_last_trigger_counts(self) -> None:
        # The last trigger is inside a word, so the earlier valid one is ignored
        assert not find_trigger("@a b@c", 6).valid

    def test_email_address_is_not_a_trigger(self) -> None:
        text = "Email me @ test@email.com or @john"
        match = find_trigger(text, len(text))
        assert match.valid
        assert match.trigger_offset == text.rindex("@john")
        assert match.query == "john"

        # Caret right after "test@email"; the @ inside the address is inert
        cursor = text.index(".com")
        assert not find_trigger(text, cursor).valid

    def test_query_may_contain_spaces(self) -> None:
        match = find_trigger("@al ice", 7)
        assert match.valid
        assert match.query == "al ice"

    def test_custom_trigger(self) -> None:
        match = find_trigger("see #bug", 8, "#")
        assert match.trigger_offset == 4
        assert match.query == "bug"
        assert not find_trigger("see @bug", 8, "#").valid

    def test_cursor_none_means_end(self) -> None:
        assert find_trigger("@x", None).query == "x"

    def test_cursor_is_clamped(self) -> None:
        assert find_trigger("@x", 99).query == "x"


class TestClampCursor:
    def test_none(self) -> None:
        assert clamp_cursor("abc", None) == 3

    def test_bounds(self) -> None:
        assert clamp_cursor("abc", -1) == 0
        assert clamp_cursor("abc", 10) == 3
