"""Caret geometry for single-line text fields.

A text field knows its value and cursor but not where a given character
lands on screen: that depends on its prompt, padding, border and how far it
is scrolled horizontally.  ``get_caret_coordinates`` answers the question
the same way every time: it builds a throwaway mirror line carrying the
field's layout properties, fills it with the value up to the offset, appends
a zero-width marker and measures where the marker ends up.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from atmention.tokenizer import clamp_cursor
from atmention.utils import extract_segments, visible_width

NBSP = "\u00a0"

# Zero-width APC marker; visible_width() ignores it
_MARKER = "\x1b_atm:m\x07"


@dataclass(frozen=True)
class Rect:
    """An axis-aligned box in viewport cells."""

    left: int
    top: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def bottom(self) -> int:
        return self.top + self.height

    def contains(self, col: int, row: int) -> bool:
        return self.left <= col < self.right and self.top <= row < self.bottom


@dataclass(frozen=True)
class CaretPoint:
    x: int
    y: int


@dataclass(frozen=True)
class FieldStyle:
    """Layout-affecting properties of a text field, in cells."""

    prompt: str = ""
    padding_left: int = 0
    padding_right: int = 0
    border_left: int = 0
    border_right: int = 0
    border_top: int = 0
    border_bottom: int = 0

    @property
    def content_left(self) -> int:
        """Column of the first text cell relative to the field's left edge."""
        return self.border_left + self.padding_left + visible_width(self.prompt)

    def content_width(self, width: int) -> int:
        return max(0, width - self.content_left - self.padding_right - self.border_right)


# Everything copied onto the mirror; nothing else influences the measurement
MIRRORED_STYLE_PROPERTIES: tuple[str, ...] = (
    "prompt",
    "padding_left",
    "padding_right",
    "border_left",
    "border_right",
    "border_top",
    "border_bottom",
)


class MeasurableField(Protocol):
    """What the resolver needs from a text field."""

    scroll_left: int

    def get_value(self) -> str: ...

    def get_cursor(self) -> int: ...

    def layout_style(self) -> FieldStyle: ...


class _MirrorLine:
    """Transient stand-in for a field, rendered only to be measured."""

    def __init__(self, source: FieldStyle) -> None:
        self._style = FieldStyle(**{name: getattr(source, name) for name in MIRRORED_STYLE_PROPERTIES})
        self._text = ""
        self.scroll_left = 0

    def __enter__(self) -> _MirrorLine:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._text = ""
        self.scroll_left = 0

    def set_text(self, text: str) -> None:
        # Non-breaking spaces keep leading and trailing whitespace measurable
        self._text = text.replace(" ", NBSP)

    def render(self) -> str:
        style = self._style
        text = self._text
        if self.scroll_left > 0:
            text_width = visible_width(text)
            _, text = extract_segments(text, 0, self.scroll_left, max(0, text_width - self.scroll_left))
        return "".join(
            (
                "│" * style.border_left,
                " " * style.padding_left,
                style.prompt,
                text,
                _MARKER,
            )
        )

    def measure_marker(self) -> int:
        line = self.render()
        return visible_width(line[: line.index(_MARKER)])


def get_caret_coordinates(
    field: MeasurableField | None,
    offset: int | None,
    anchor: Rect | None,
) -> CaretPoint | None:
    """Return the viewport cell of the leading edge of character *offset*.

    *anchor* is the field's current box.  ``None`` for either the field or
    the anchor means the field is not on screen and nothing is measured.
    The point is clamped into the field's content box, so an offset that
    is scrolled out of view pins to the nearest visible edge.
    """
    if field is None or anchor is None:
        return None

    value = field.get_value()
    offset = clamp_cursor(value, offset)
    style = field.layout_style()

    with _MirrorLine(style) as mirror:
        mirror.scroll_left = max(0, field.scroll_left)
        mirror.set_text(value[:offset])
        col = mirror.measure_marker()

    first = style.content_left
    last = max(first, anchor.width - style.padding_right - style.border_right - 1)
    col = max(first, min(col, last))

    return CaretPoint(x=anchor.left + col, y=anchor.top + style.border_top)


def caret_offset_from_anchor(caret: CaretPoint, anchor: Rect) -> int:
    return max(0, caret.x - anchor.left)
