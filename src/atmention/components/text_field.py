"""TextField component - single-line text input with horizontal scrolling."""

from __future__ import annotations

from typing import Callable

from atmention.geometry import FieldStyle
from atmention.keybindings import get_mention_keybindings
from atmention.mouse import MouseEvent
from atmention.tui import CURSOR_MARKER
from atmention.utils import (
    get_segmenter,
    grapheme_width,
    is_printable,
    is_punctuation_char,
    is_whitespace_char,
    pad_to_width,
    truncate_to_width,
    visible_width,
)

_segmenter = get_segmenter()

_PASTE_START = "\x1b[200~"
_PASTE_END = "\x1b[201~"


class TextField:
    """Single-line text input.

    The field keeps the caret in view by scrolling horizontally; the number
    of columns scrolled off the left edge is exposed as ``scroll_left``.
    Value edits are reported through ``on_change(value, cursor)``, caret
    moves that leave the value alone through ``on_cursor_change(cursor)``.
    """

    def __init__(
        self,
        *,
        prompt: str = "> ",
        padding_left: int = 0,
        padding_right: int = 0,
        border: bool = False,
        placeholder: str = "",
        placeholder_style: Callable[[str], str] | None = None,
    ) -> None:
        self._value: str = ""
        self._cursor: int = 0
        self._style = FieldStyle(
            prompt=prompt,
            padding_left=padding_left,
            padding_right=padding_right,
            border_left=1 if border else 0,
            border_right=1 if border else 0,
            border_top=1 if border else 0,
            border_bottom=1 if border else 0,
        )

        self.placeholder = placeholder
        self._placeholder_style = placeholder_style or (lambda text: text)

        self.on_change: Callable[[str, int], None] | None = None
        self.on_cursor_change: Callable[[int], None] | None = None
        self.on_scroll: Callable[[int], None] | None = None
        self.on_submit: Callable[[str], None] | None = None
        self.on_escape: Callable[[], None] | None = None

        # Focusable interface
        self.focused: bool = False

        self.scroll_left: int = 0

        # Bracketed paste mode
        self._paste_buffer: str = ""
        self._is_in_paste: bool = False

    # -- accessors ------------------------------------------------------------

    def get_value(self) -> str:
        return self._value

    def get_cursor(self) -> int:
        return self._cursor

    def layout_style(self) -> FieldStyle:
        return self._style

    def set_value(self, value: str, cursor: int | None = None) -> None:
        """Replace the value without firing callbacks."""
        self._value = value
        self._cursor = len(value) if cursor is None else max(0, min(cursor, len(value)))

    def set_cursor(self, cursor: int) -> None:
        self._cursor = max(0, min(cursor, len(self._value)))

    # -- input ----------------------------------------------------------------

    def handle_input(self, data: str) -> None:
        # Handle bracketed paste
        if _PASTE_START in data:
            self._is_in_paste = True
            self._paste_buffer = ""
            data = data.replace(_PASTE_START, "")

        if self._is_in_paste:
            self._paste_buffer += data
            end_index = self._paste_buffer.find(_PASTE_END)
            if end_index != -1:
                paste_content = self._paste_buffer[:end_index]
                remaining = self._paste_buffer[end_index + len(_PASTE_END) :]
                self._is_in_paste = False
                self._paste_buffer = ""
                self._edit(self._handle_paste, paste_content)
                if remaining:
                    self.handle_input(remaining)
            return

        kb = get_mention_keybindings()

        if kb.matches(data, "selectCancel"):
            if self.on_escape:
                self.on_escape()
            return

        if kb.matches(data, "submit") or data == "\n":
            if self.on_submit:
                self.on_submit(self._value)
            return

        if kb.matches(data, "deleteCharBackward"):
            self._edit(self._handle_backspace)
            return

        if kb.matches(data, "deleteCharForward"):
            self._edit(self._handle_forward_delete)
            return

        if kb.matches(data, "deleteWordBackward"):
            self._edit(self._delete_word_backwards)
            return

        if kb.matches(data, "deleteWordForward"):
            self._edit(self._delete_word_forward)
            return

        if kb.matches(data, "deleteToLineStart"):
            self._edit(self._delete_to_line_start)
            return

        if kb.matches(data, "deleteToLineEnd"):
            self._edit(self._delete_to_line_end)
            return

        if kb.matches(data, "cursorLeft"):
            self._edit(self._move_left)
            return

        if kb.matches(data, "cursorRight"):
            self._edit(self._move_right)
            return

        if kb.matches(data, "cursorLineStart"):
            self._edit(self.set_cursor, 0)
            return

        if kb.matches(data, "cursorLineEnd"):
            self._edit(self.set_cursor, len(self._value))
            return

        if kb.matches(data, "cursorWordLeft"):
            self._edit(self._move_word_backwards)
            return

        if kb.matches(data, "cursorWordRight"):
            self._edit(self._move_word_forwards)
            return

        if is_printable(data):
            self._edit(self._insert_text, data)

    def handle_mouse(self, event: MouseEvent) -> None:
        """Place the caret at a click; coordinates are relative to the field."""
        if not event.is_click or event.row != self._style.border_top:
            return
        target = self.offset_at_column(event.col)
        if target is not None:
            self._edit(self.set_cursor, target)

    def offset_at_column(self, col: int) -> int | None:
        """Map a field-relative column to the nearest value offset."""
        text_col = col - self._style.content_left
        if text_col < 0:
            return None
        target_col = text_col + self.scroll_left
        offset = 0
        current = 0
        for g in _segmenter.segment(self._value):
            w = grapheme_width(g)
            if current + w > target_col:
                return offset
            current += w
            offset += len(g)
        return len(self._value)

    def _edit(self, action: Callable[..., None], *args: object) -> None:
        before_value, before_cursor = self._value, self._cursor
        action(*args)
        if self._value != before_value:
            if self.on_change:
                self.on_change(self._value, self._cursor)
        elif self._cursor != before_cursor:
            if self.on_cursor_change:
                self.on_cursor_change(self._cursor)

    # -- editing ----------------------------------------------------------------

    def _insert_text(self, text: str) -> None:
        self._value = self._value[: self._cursor] + text + self._value[self._cursor :]
        self._cursor += len(text)

    def _move_left(self) -> None:
        if self._cursor > 0:
            graphemes = _segmenter.segment(self._value[: self._cursor])
            self._cursor -= len(graphemes[-1]) if graphemes else 1

    def _move_right(self) -> None:
        if self._cursor < len(self._value):
            graphemes = _segmenter.segment(self._value[self._cursor :])
            self._cursor += len(graphemes[0]) if graphemes else 1

    def _handle_backspace(self) -> None:
        if self._cursor > 0:
            graphemes = _segmenter.segment(self._value[: self._cursor])
            gl = len(graphemes[-1]) if graphemes else 1
            self._value = self._value[: self._cursor - gl] + self._value[self._cursor :]
            self._cursor -= gl

    def _handle_forward_delete(self) -> None:
        if self._cursor < len(self._value):
            graphemes = _segmenter.segment(self._value[self._cursor :])
            gl = len(graphemes[0]) if graphemes else 1
            self._value = self._value[: self._cursor] + self._value[self._cursor + gl :]

    def _delete_to_line_start(self) -> None:
        self._value = self._value[self._cursor :]
        self._cursor = 0

    def _delete_to_line_end(self) -> None:
        self._value = self._value[: self._cursor]

    def _delete_word_backwards(self) -> None:
        if self._cursor == 0:
            return
        old_cursor = self._cursor
        self._move_word_backwards()
        delete_from = self._cursor
        self._value = self._value[:delete_from] + self._value[old_cursor:]

    def _delete_word_forward(self) -> None:
        if self._cursor >= len(self._value):
            return
        old_cursor = self._cursor
        self._move_word_forwards()
        delete_to = self._cursor
        self._cursor = old_cursor
        self._value = self._value[: self._cursor] + self._value[delete_to:]

    def _move_word_backwards(self) -> None:
        if self._cursor == 0:
            return
        graphemes = _segmenter.segment(self._value[: self._cursor])

        # Skip trailing whitespace
        while graphemes and is_whitespace_char(graphemes[-1]):
            self._cursor -= len(graphemes.pop())

        if graphemes:
            if is_punctuation_char(graphemes[-1]):
                while graphemes and is_punctuation_char(graphemes[-1]):
                    self._cursor -= len(graphemes.pop())
            else:
                while (
                    graphemes
                    and not is_whitespace_char(graphemes[-1])
                    and not is_punctuation_char(graphemes[-1])
                ):
                    self._cursor -= len(graphemes.pop())

    def _move_word_forwards(self) -> None:
        if self._cursor >= len(self._value):
            return
        graphemes = _segmenter.segment(self._value[self._cursor :])
        idx = 0

        # Skip leading whitespace
        while idx < len(graphemes) and is_whitespace_char(graphemes[idx]):
            self._cursor += len(graphemes[idx])
            idx += 1

        if idx < len(graphemes):
            if is_punctuation_char(graphemes[idx]):
                while idx < len(graphemes) and is_punctuation_char(graphemes[idx]):
                    self._cursor += len(graphemes[idx])
                    idx += 1
            else:
                while (
                    idx < len(graphemes)
                    and not is_whitespace_char(graphemes[idx])
                    and not is_punctuation_char(graphemes[idx])
                ):
                    self._cursor += len(graphemes[idx])
                    idx += 1

    def _handle_paste(self, pasted_text: str) -> None:
        clean_text = pasted_text.replace("\r\n", "").replace("\r", "").replace("\n", "")
        self._insert_text(clean_text)

    # -- rendering ------------------------------------------------------------

    def invalidate(self) -> None:
        pass

    def _update_scroll(self, graphemes: list[str], available: int) -> None:
        starts: list[int] = []
        total = 0
        for g in graphemes:
            starts.append(total)
            total += grapheme_width(g)
        caret_col = visible_width(self._value[: self._cursor])

        # One extra cell for the caret block at the end of the text
        if total + 1 <= available:
            scroll = 0
        else:
            scroll = self.scroll_left
            if caret_col < scroll:
                scroll = caret_col
            elif caret_col >= scroll + available:
                scroll = caret_col - available + 1
            scroll = max(0, min(scroll, total + 1 - available))
            scroll = next((s for s in starts if s >= scroll), total)

        if scroll != self.scroll_left:
            self.scroll_left = scroll
            if self.on_scroll:
                self.on_scroll(scroll)

    def _render_content(self, available: int) -> str:
        graphemes = _segmenter.segment(self._value)
        self._update_scroll(graphemes, available)

        if not self._value and self.placeholder:
            if not self.focused:
                return self._placeholder_style(truncate_to_width(self.placeholder, available, ""))
            hint = truncate_to_width(self.placeholder, available - 1, "")
            return CURSOR_MARKER + "\x1b[7m \x1b[27m" + self._placeholder_style(hint)

        parts: list[str] = []
        col = 0
        offset = 0
        cursor_drawn = False
        for g in graphemes:
            w = grapheme_width(g)
            if col >= self.scroll_left:
                if col + w - self.scroll_left > available:
                    break
                if offset == self._cursor:
                    if self.focused:
                        parts.append(CURSOR_MARKER)
                    parts.append(f"\x1b[7m{g}\x1b[27m")
                    cursor_drawn = True
                else:
                    parts.append(g)
            col += w
            offset += len(g)

        if not cursor_drawn and self._cursor == len(self._value):
            if self.focused:
                parts.append(CURSOR_MARKER)
            parts.append("\x1b[7m \x1b[27m")

        return "".join(parts)

    def render(self, width: int) -> list[str]:
        style = self._style
        available = style.content_width(width)

        if available <= 0:
            return [truncate_to_width(style.prompt, width, "")]

        content = pad_to_width(self._render_content(available), available)
        inner = " " * style.padding_left + style.prompt + content + " " * style.padding_right

        if not style.border_top:
            return [inner]

        horizontal = "─" * max(0, width - 2)
        return [
            f"┌{horizontal}┐",
            f"│{inner}│",
            f"└{horizontal}┘",
        ]
