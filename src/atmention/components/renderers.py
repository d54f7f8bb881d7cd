"""Default presentation of badges, inline suggestions and menu rows.

A renderer turns one option into a list of ``Span``s.  A span with an
``action`` is clickable: the mention field hit-tests spans and calls the
action on a click.  Hosts replace any renderer by passing a callable with
the same signature; the ``style`` argument is the theme hook for that item.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, NamedTuple, Protocol

from atmention.options import MentionOption
from atmention.utils import truncate_to_width, visible_width

Style = Callable[[str], str]
Action = Callable[[], None]


class Span(NamedTuple):
    text: str
    action: Action | None = None


BadgeRenderer = Callable[[MentionOption, Action, Style], list[Span]]
SuggestionRenderer = Callable[[MentionOption, Action, Style], list[Span]]
RowRenderer = Callable[[MentionOption, bool, Action, Style], list[Span]]


class MentionTheme(Protocol):
    badge: Style
    suggestion: Style
    row: Style
    row_active: Style
    search: Style
    empty: Style
    placeholder: Style


def _plain(text: str) -> str:
    return text


def _sgr(open_code: str, close_code: str) -> Style:
    def apply(text: str) -> str:
        return f"\x1b[{open_code}m{text}\x1b[{close_code}m"

    return apply


@dataclass
class DefaultMentionTheme:
    badge: Style = _sgr("36", "39")
    suggestion: Style = _sgr("2", "22")
    row: Style = _plain
    row_active: Style = _sgr("7", "27")
    search: Style = _sgr("1", "22")
    empty: Style = _sgr("2;3", "22;23")
    placeholder: Style = _sgr("2", "22")


def _label(option: MentionOption) -> str:
    if option.icon:
        return f"{option.icon} {option.display_label}"
    return option.display_label


def render_badge(option: MentionOption, on_remove: Action, style: Style) -> list[Span]:
    return [
        Span(style(f"[{_label(option)} ")),
        Span(style("×"), on_remove),
        Span(style("]")),
    ]


def render_suggestion(option: MentionOption, on_select: Action, style: Style) -> list[Span]:
    return [Span(style(f"+{_label(option)}"), on_select)]


def render_row(option: MentionOption, is_active: bool, on_select: Action, style: Style) -> list[Span]:
    prefix = "→ " if is_active else "  "
    return [Span(style(prefix + _label(option)), on_select)]


def spans_width(spans: list[Span]) -> int:
    return sum(visible_width(span.text) for span in spans)


def join_spans(spans: list[Span], width: int | None = None) -> str:
    line = "".join(span.text for span in spans)
    if width is not None:
        line = truncate_to_width(line, width, "", pad=True)
        # Truncation may cut a closing SGR code
        if "\x1b[" in line:
            line += "\x1b[0m"
    return line


def span_at(spans: list[Span], col: int) -> Span | None:
    """Return the span covering column *col* of the joined line."""
    start = 0
    for span in spans:
        end = start + visible_width(span.text)
        if start <= col < end:
            return span
        start = end
    return None
