"""MentionMenu component - the floating candidate list."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from atmention.components.renderers import (
    DefaultMentionTheme,
    MentionTheme,
    RowRenderer,
    Span,
    join_spans,
    render_row,
    span_at,
)
from atmention.mouse import MouseEvent
from atmention.options import MentionOption
from atmention.placement import DEFAULT_MENU_HEIGHT, DEFAULT_MENU_WIDTH, MenuGeometry
from atmention.tui import CURSOR_MARKER
from atmention.utils import get_segmenter, truncate_to_width, visible_width

if TYPE_CHECKING:
    from atmention.controller import MentionController
    from atmention.tui import OverlayOptions

SEARCH_PLACEHOLDER = "Search..."
EMPTY_TEXT = "No results found."

_segmenter = get_segmenter()
_CARET = "\x1b[7m \x1b[27m"


class MentionMenu:
    """Search row plus candidate rows, drawn as a non-capturing overlay.

    The menu only reads the controller.  Where it is drawn comes from
    ``geometry``; until that geometry is marked visible the overlay is
    skipped by the compositor, although ``natural_size`` and ``render``
    still work so the menu can be measured first.

    The first row shows the query without the trigger.  Clicking it fires
    ``on_search_focus``; the owner then routes keystrokes to the
    controller's ``handle_search_change`` and sets ``search_focused`` so
    the row draws the caret.
    """

    def __init__(
        self,
        controller: MentionController,
        *,
        theme: MentionTheme | None = None,
        row_renderer: RowRenderer | None = None,
        width: int = DEFAULT_MENU_WIDTH,
        max_height: int = DEFAULT_MENU_HEIGHT,
    ) -> None:
        self._controller = controller
        self._theme: MentionTheme = theme or DefaultMentionTheme()
        self._row_renderer: RowRenderer = row_renderer or render_row
        self._width = width
        self._max_height = max(2, max_height)

        self.geometry: MenuGeometry = MenuGeometry.hidden()
        self._overlay_options: OverlayOptions = {
            "row": 0,
            "col": 0,
            "width": 1,
            "max_height": 1,
            "visible": lambda _w, _h: self.geometry.visible,
            "non_capturing": True,
        }

        # Row window of the last render
        self._window_start = 0
        self._row_spans: list[list[Span]] = []

        self.search_focused: bool = False

        self.on_select: Callable[[MentionOption], None] | None = None
        self.on_hover: Callable[[int], None] | None = None
        self.on_search_focus: Callable[[], None] | None = None

    # -- geometry -------------------------------------------------------------

    def natural_size(self) -> tuple[int, int]:
        """Width and height the menu wants before placement shrinks it."""
        rows = max(1, len(self._controller.filtered_options))
        return self._width, min(1 + rows, self._max_height)

    def set_geometry(self, geometry: MenuGeometry) -> None:
        self.geometry = geometry
        self._overlay_options["row"] = geometry.y
        self._overlay_options["col"] = geometry.x
        self._overlay_options["width"] = max(1, geometry.width)
        self._overlay_options["max_height"] = max(1, geometry.height)

    def overlay_options(self) -> OverlayOptions:
        """Options for ``TUI.show_overlay``; kept in sync with ``geometry``."""
        return self._overlay_options

    # -- rendering ------------------------------------------------------------

    def invalidate(self) -> None:
        pass

    def _row_capacity(self) -> int:
        height = self.geometry.height if self.geometry.visible else self.natural_size()[1]
        return max(1, height - 1)

    def render(self, width: int) -> list[str]:
        theme = self._theme
        lines = [self._render_search(width)]

        filtered = self._controller.filtered_options
        self._row_spans = []
        if not filtered:
            self._window_start = 0
            lines.append(theme.empty(truncate_to_width(EMPTY_TEXT, width, "", pad=True)))
            return lines

        capacity = self._row_capacity()
        active = self._controller.active_index
        start = max(0, min(active - capacity // 2, len(filtered) - capacity))
        end = min(start + capacity, len(filtered))
        self._window_start = start

        for index in range(start, end):
            option = filtered[index]
            is_active = index == active
            style = theme.row_active if is_active else theme.row
            spans = self._row_renderer(option, is_active, self._select_action(option), style)
            self._row_spans.append(spans)
            lines.append(join_spans(spans, width))

        return lines

    def _render_search(self, width: int) -> str:
        theme = self._theme
        query = self._controller.mention_query
        if not self.search_focused:
            return theme.search(truncate_to_width(query or SEARCH_PLACEHOLDER, width, "", pad=True))

        # Keep the tail of a long query in view, one cell for the caret
        graphemes = _segmenter.segment(query)
        while graphemes and visible_width("".join(graphemes)) > width - 1:
            graphemes.pop(0)
        text = "".join(graphemes)
        if text:
            return theme.search(truncate_to_width(text + CURSOR_MARKER + _CARET, width, "", pad=True))
        hint = truncate_to_width(SEARCH_PLACEHOLDER, width - 1, "", pad=True)
        return CURSOR_MARKER + _CARET + theme.search(hint)

    def _select_action(self, option: MentionOption) -> Callable[[], None]:
        def select() -> None:
            if self.on_select:
                self.on_select(option)

        return select

    # -- mouse ----------------------------------------------------------------

    def handle_mouse(self, event: MouseEvent) -> None:
        """Hover highlights a row, a click commits it; coordinates are local."""
        if event.action == "wheel-up":
            self._controller.handle_key_down("up")
            return
        if event.action == "wheel-down":
            self._controller.handle_key_down("down")
            return

        if event.row == 0:
            if event.is_click and self.on_search_focus:
                self.on_search_focus()
            return

        row = event.row - 1
        if row < 0 or row >= len(self._row_spans):
            return
        index = self._window_start + row

        if event.action == "move":
            if self.on_hover:
                self.on_hover(index)
            return

        if event.is_click:
            spans = self._row_spans[row]
            span = span_at(spans, event.col)
            if span is not None and span.action is not None:
                span.action()
                return
            filtered = self._controller.filtered_options
            if index < len(filtered) and self.on_select:
                self.on_select(filtered[index])
