"""MentionInput component - text field with @-mentions, badges and a menu.

Wires a ``MentionController`` to a ``TextField``, a badge/suggestion row and
a floating ``MentionMenu``.  The menu is placed at the trigger's caret cell:

1. When the controller opens, the menu overlay is shown with hidden
   geometry, so nothing is drawn yet, and a measurement is requested.
2. After the next frame the measurement reads the field's box from the TUI,
   resolves the caret cell of the trigger, runs placement and makes the
   geometry visible.
3. While open, terminal resize, viewport scroll, horizontal field scroll
   and any state change (caret moves included) request a new measurement.
4. Closing hides the overlay, cancels a pending measurement and releases
   every listener registered in step 1.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Callable

from atmention.components.mention_menu import MentionMenu
from atmention.components.renderers import (
    BadgeRenderer,
    DefaultMentionTheme,
    MentionTheme,
    RowRenderer,
    Span,
    SuggestionRenderer,
    join_spans,
    render_badge,
    render_suggestion,
    spans_width,
)
from atmention.components.text_field import TextField
from atmention.config import MentionSettings
from atmention.controller import MentionController
from atmention.geometry import caret_offset_from_anchor, get_caret_coordinates
from atmention.keybindings import get_mention_keybindings
from atmention.listeners import Disposer, ListenerScope
from atmention.mouse import MouseEvent
from atmention.options import MentionOption
from atmention.placement import MenuGeometry, place_menu
from atmention.scheduler import MeasurementScheduler
from atmention.utils import get_segmenter, is_printable, visible_width

if TYPE_CHECKING:
    from atmention.tui import TUI, OverlayHandle

logger = logging.getLogger(__name__)

_segmenter = get_segmenter()


class _Hit:
    __slots__ = ("row", "start", "end", "span")

    def __init__(self, row: int, start: int, end: int, span: Span) -> None:
        self.row = row
        self.start = start
        self.end = end
        self.span = span


class MentionInput:
    """Focusable mention field.

    Pass *value* to make the selection controlled: proposals then only
    reach *on_change* and the host answers with :meth:`set_value`.  Without
    *value* the component starts from *default_value* and applies proposals
    itself before notifying.
    """

    def __init__(
        self,
        tui: TUI,
        options: Iterable[object] | None,
        value: Sequence[str] | None = None,
        on_change: Callable[[list[str]], None] | None = None,
        *,
        default_value: Sequence[str] | None = None,
        settings: MentionSettings | None = None,
        theme: MentionTheme | None = None,
        badge_renderer: BadgeRenderer | None = None,
        suggestion_renderer: SuggestionRenderer | None = None,
        row_renderer: RowRenderer | None = None,
        prompt: str = "> ",
        border: bool = False,
    ) -> None:
        self.settings = settings or MentionSettings()
        self._tui = tui
        self._theme: MentionTheme = theme or DefaultMentionTheme()
        self._badge_renderer: BadgeRenderer = badge_renderer or render_badge
        self._suggestion_renderer: SuggestionRenderer = suggestion_renderer or render_suggestion

        self._controlled = value is not None
        self._host_on_change = on_change

        self.controller = MentionController(
            options,
            value if self._controlled else default_value,
            self._handle_proposal,
            trigger=self.settings.trigger,
            wrap_navigation=self.settings.wrap_navigation,
            suggestion_limit=self.settings.suggestion_limit,
        )
        self.controller.on_state_change = self._on_state_change

        self.field = TextField(
            prompt=prompt,
            border=border,
            placeholder=self.settings.placeholder_text,
            placeholder_style=self._theme.placeholder,
        )
        self.field.on_change = self.controller.handle_input_change
        self.field.on_cursor_change = self.controller.handle_cursor_change
        self.field.on_submit = self._on_field_submit

        self.menu = MentionMenu(
            self.controller,
            theme=self._theme,
            row_renderer=row_renderer,
            width=self.settings.menu_width,
            max_height=self.settings.menu_height,
        )
        self.menu.on_select = self.controller.handle_select
        self.menu.on_hover = self.controller.set_active_index
        self.menu.on_search_focus = lambda: self._set_search_focus(True)

        self._scheduler = MeasurementScheduler(tui, self._measure)
        self._listeners = ListenerScope()
        self._overlay: OverlayHandle | None = None

        # Layout of the last render
        self._badge_rows = 0
        self._field_rows = 0
        self._width = 0
        self._hits: list[_Hit] = []

        self._focused = False
        self._disposed = False

        self.on_submit: Callable[[list[str]], None] | None = None
        self.on_interrupt: Callable[[], None] | None = None

    # -- Focusable ------------------------------------------------------------

    @property
    def focused(self) -> bool:
        return self._focused

    @focused.setter
    def focused(self, value: bool) -> None:
        self._focused = value
        self.field.focused = value and not self.menu.search_focused
        if not value:
            self.controller.dismiss()

    # -- host API -------------------------------------------------------------

    @property
    def value(self) -> list[str]:
        return self.controller.value

    @property
    def text(self) -> str:
        return self.controller.input

    def set_value(self, value: Sequence[str] | None) -> None:
        self.controller.set_value(value)

    def set_options(self, options: Iterable[object] | None) -> None:
        self.controller.set_options(options)

    def dispose(self) -> None:
        """Close the menu and release everything registered with the TUI."""
        if self._disposed:
            return
        self._close_menu()
        self.controller.on_state_change = None
        self._disposed = True

    # -- state sync -----------------------------------------------------------

    def _handle_proposal(self, next_value: list[str]) -> None:
        if not self._controlled:
            self.controller.set_value(next_value)
        if self._host_on_change is not None:
            self._host_on_change(next_value)

    def _on_state_change(self) -> None:
        controller = self.controller
        if (self.field.get_value(), self.field.get_cursor()) != (controller.input, controller.cursor):
            self.field.set_value(controller.input, controller.cursor)

        if controller.show_menu and self._overlay is None:
            self._open_menu()
        elif not controller.show_menu and self._overlay is not None:
            self._close_menu()
        elif controller.show_menu:
            self._scheduler.request()

        self._tui.request_render()

    def _open_menu(self) -> None:
        self.menu.set_geometry(MenuGeometry.hidden())
        self._overlay = self._tui.show_overlay(self.menu, self.menu.overlay_options())

        remeasure = self._scheduler.request
        self._listeners.add(self._tui.on("resize", remeasure))
        self._listeners.add(self._tui.on("scroll", remeasure))
        self._listeners.add(self._tui.on("mouse", self._on_pointer))
        self._listeners.add(self._watch_field_scroll(lambda _scroll: remeasure()))

        self._scheduler.request()

    def _close_menu(self) -> None:
        self._scheduler.cancel()
        try:
            self._listeners.close()
        finally:
            if self._overlay is not None:
                self._overlay.hide()
                self._overlay = None
            self.menu.set_geometry(MenuGeometry.hidden())
            self._set_search_focus(False)

    def _set_search_focus(self, on: bool) -> None:
        """Move keystrokes between the field and the menu's search row."""
        if self.menu.search_focused == on:
            return
        self.menu.search_focused = on
        self.field.focused = self._focused and not on
        self._tui.request_render()

    def _watch_field_scroll(self, handler: Callable[[int], None]) -> Disposer:
        self.field.on_scroll = handler

        def dispose() -> None:
            if self.field.on_scroll is handler:
                self.field.on_scroll = None

        return dispose

    def _measure(self) -> None:
        if not self.controller.show_menu:
            return

        anchor = self._tui.get_component_rect(self.field)
        if anchor is None:
            logger.debug("Mention field is not on screen; measurement skipped")
            return

        offset = self.controller.trigger_offset
        caret = get_caret_coordinates(self.field, offset, anchor)
        if caret is None:
            return

        box_width, box_height = self.menu.natural_size()
        settings = self.settings
        geometry = place_menu(
            anchor,
            caret_offset_from_anchor(caret, anchor),
            box_width,
            box_height,
            self._tui.terminal.columns,
            self._tui.terminal.rows,
            margin=settings.margin,
            gap=settings.gap,
            min_height=settings.min_height,
        )
        if geometry.width <= 0 or geometry.height <= 0:
            return

        self.menu.set_geometry(dataclasses.replace(geometry, visible=True))
        self._tui.request_render()

    # -- input ----------------------------------------------------------------

    def handle_input(self, data: str) -> None:
        kb = get_mention_keybindings()

        if kb.matches(data, "interrupt"):
            if self.on_interrupt:
                self.on_interrupt()
            return

        if self.controller.show_menu:
            if kb.matches(data, "selectUp"):
                self.controller.handle_key_down("up")
                return
            if kb.matches(data, "selectDown"):
                self.controller.handle_key_down("down")
                return
            if kb.matches(data, "selectConfirm"):
                self.controller.handle_key_down("enter")
                return
            if kb.matches(data, "selectCancel"):
                self.controller.handle_key_down("escape")
                return
            if self.menu.search_focused:
                self._edit_search(data)
                return

        if kb.matches(data, "deleteCharBackward") and self.controller.handle_key_down("backspace"):
            return

        self.field.handle_input(data)

    def _edit_search(self, data: str) -> None:
        query = self.controller.mention_query
        if get_mention_keybindings().matches(data, "deleteCharBackward"):
            self.controller.handle_search_change("".join(_segmenter.segment(query)[:-1]))
        elif is_printable(data):
            self.controller.handle_search_change(query + data)

    def _on_field_submit(self, _text: str) -> None:
        if self.on_submit:
            self.on_submit(self.controller.value)

    def _on_pointer(self, event: MouseEvent) -> None:
        """Dismiss the open menu on a click outside this component and the menu."""
        if not event.is_click:
            return
        own = self._tui.get_component_rect(self)
        if own is not None and own.contains(event.col, event.row):
            return
        geometry = self.menu.geometry
        if geometry.visible and geometry.as_rect().contains(event.col, event.row):
            return
        self.controller.dismiss()

    def handle_mouse(self, event: MouseEvent) -> None:
        """Badge and suggestion clicks, and caret placement in the field."""
        rect = self._tui.get_component_rect(self)
        if rect is None or not rect.contains(event.col, event.row):
            return
        local = event.translated(rect.left, rect.top)

        if local.row < self._badge_rows:
            if not local.is_click:
                return
            for hit in self._hits:
                if hit.row == local.row and hit.start <= local.col < hit.end and hit.span.action:
                    hit.span.action()
                    return
            return

        if local.is_click:
            self._set_search_focus(False)
        self.field.handle_mouse(local.translated(0, self._badge_rows))

    # -- rendering ------------------------------------------------------------

    def invalidate(self) -> None:
        self.field.invalidate()
        self.menu.invalidate()

    def locate(self, component: object) -> tuple[int, int, int] | None:
        if component is self.field and self._field_rows:
            return (self._badge_rows, self._field_rows, self._width)
        return None

    def _badge_items(self) -> list[list[Span]]:
        controller = self.controller
        theme = self._theme
        items: list[list[Span]] = []
        for option in controller.selected_options:
            items.append(self._badge_renderer(option, self._remove_action(option), theme.badge))
        if self.settings.show_suggestions:
            for option in controller.suggestions:
                items.append(self._suggestion_renderer(option, self._select_action(option), theme.suggestion))
        return items

    def _remove_action(self, option: MentionOption) -> Callable[[], None]:
        return lambda: self.controller.handle_remove(option.value)

    def _select_action(self, option: MentionOption) -> Callable[[], None]:
        return lambda: self.controller.handle_select(option)

    def _render_badges(self, width: int) -> list[str]:
        lines: list[str] = []
        self._hits = []
        row: list[Span] = []
        col = 0

        for item in self._badge_items():
            item_width = spans_width(item)
            if row and col + 1 + item_width > width:
                lines.append(join_spans(row, width))
                row = []
                col = 0
            if row:
                row.append(Span(" "))
                col += 1
            for span in item:
                span_width = visible_width(span.text)
                if span.action is not None:
                    self._hits.append(_Hit(len(lines), col, min(col + span_width, width), span))
                row.append(span)
                col += span_width

        if row:
            lines.append(join_spans(row, width))
        return lines

    def render(self, width: int) -> list[str]:
        badge_lines = self._render_badges(width)
        field_lines = self.field.render(width)
        self._badge_rows = len(badge_lines)
        self._field_rows = len(field_lines)
        self._width = width
        return badge_lines + field_lines
