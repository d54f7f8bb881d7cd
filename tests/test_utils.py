"""Tests for width measurement and ANSI-aware slicing."""

from __future__ import annotations

from atmention.utils import (
    extract_segments,
    grapheme_width,
    is_printable,
    is_punctuation_char,
    is_whitespace_char,
    pad_to_width,
    truncate_to_width,
    visible_width,
)


class TestVisibleWidth:
    def test_ascii(self) -> None:
        assert visible_width("hello") == 5

    def test_empty(self) -> None:
        assert visible_width("") == 0

    def test_ansi_ignored(self) -> None:
        assert visible_width("\x1b[31mred\x1b[0m") == 3

    def test_apc_marker_ignored(self) -> None:
        assert visible_width("ab\x1b_atm:c\x07cd") == 4

    def test_wide_characters(self) -> None:
        assert visible_width("日本") == 4

    def test_nbsp(self) -> None:
        assert visible_width("a\u00a0b") == 3

    def test_tab(self) -> None:
        assert visible_width("\t") == 3

    def test_combining_mark(self) -> None:
        assert visible_width("e\u0301") == 1

    def test_emoji(self) -> None:
        assert grapheme_width("😀") == 2


class TestTruncate:
    def test_fits(self) -> None:
        assert truncate_to_width("abc", 5) == "abc"

    def test_ellipsis(self) -> None:
        assert truncate_to_width("abcdefgh", 5) == "ab..."

    def test_no_ellipsis(self) -> None:
        assert truncate_to_width("abcdefgh", 5, "") == "abcde"

    def test_pad(self) -> None:
        assert truncate_to_width("ab", 4, pad=True) == "ab  "

    def test_zero_width(self) -> None:
        assert truncate_to_width("abc", 0) == ""

    def test_wide_character_not_split(self) -> None:
        assert truncate_to_width("日本語", 3, "") == "日"

    def test_escapes_kept(self) -> None:
        assert truncate_to_width("\x1b[1mabcdef", 3, "") == "\x1b[1mabc"


class TestPad:
    def test_pad(self) -> None:
        assert pad_to_width("ab", 4) == "ab  "

    def test_no_pad_when_wide_enough(self) -> None:
        assert pad_to_width("abcd", 2) == "abcd"


class TestExtractSegments:
    def test_before_and_after(self) -> None:
        before, after = extract_segments("abcdefghij", 2, 5, 3)
        assert before == "ab"
        assert after == "fgh"

    def test_short_line_is_padded(self) -> None:
        before, after = extract_segments("ab", 5, 8, 2)
        assert before == "ab   "
        assert after == ""

    def test_wide_character_on_boundary(self) -> None:
        before, _ = extract_segments("a日b", 2, 4, 0)
        assert before == "a "


class TestCharClasses:
    def test_whitespace(self) -> None:
        assert is_whitespace_char(" ")
        assert not is_whitespace_char("a")

    def test_punctuation(self) -> None:
        assert is_punctuation_char("@")
        assert not is_punctuation_char("a")

    def test_printable(self) -> None:
        assert is_printable("a")
        assert is_printable("héllo 👍")
        assert not is_printable("")
        assert not is_printable("\x1b[A")
        assert not is_printable("\x7f")
        assert not is_printable("a\x85")
