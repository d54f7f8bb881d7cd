"""Core TUI framework with differential rendering.

Provides the ``Component`` and ``Focusable`` protocols, a ``Container`` class
that composes children and remembers where each one was laid out, and the
main ``TUI`` class that drives rendering, input and mouse dispatch, overlay
management, post-render callbacks and hardware-cursor positioning against a
``Terminal`` back-end.
"""

from __future__ import annotations

import asyncio
import logging
from typing import (
    TYPE_CHECKING,
    Callable,
    Literal,
    Protocol,
    TypedDict,
    runtime_checkable,
)

from atmention.geometry import Rect
from atmention.keys import is_key_release
from atmention.mouse import MouseEvent, is_mouse_sequence, parse_mouse_event
from atmention.utils import extract_segments, visible_width

if TYPE_CHECKING:
    from atmention.terminal import Terminal

logger = logging.getLogger(__name__)

__all__ = [
    "Component",
    "Focusable",
    "is_focusable",
    "CURSOR_MARKER",
    "OverlayOptions",
    "OverlayHandle",
    "FrameHandle",
    "Container",
    "TUI",
]

# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


class Component(Protocol):
    """A renderable terminal component.

    ``handle_input``, ``handle_mouse`` and ``locate`` are optional and are
    looked up at call-sites via ``getattr``.
    """

    def render(self, width: int) -> list[str]:
        """Render the component into a list of terminal lines."""
        ...

    def invalidate(self) -> None:
        """Mark the component as needing a re-render."""
        ...


@runtime_checkable
class Focusable(Protocol):
    """A component that can receive focus."""

    focused: bool


def is_focusable(component: object | None) -> bool:
    """Return ``True`` if *component* implements ``Focusable``."""
    return component is not None and hasattr(component, "focused")


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Zero-width APC marker a focused component emits where the cursor belongs
CURSOR_MARKER = "\x1b_atm:c\x07"

_RESET = "\x1b[0m"

TuiEvent = Literal["resize", "scroll", "mouse"]

# ---------------------------------------------------------------------------
# Overlays
# ---------------------------------------------------------------------------


class OverlayOptions(TypedDict, total=False):
    """Where an overlay goes, in viewport cells.

    The dict is read again on every frame, so a component may keep a
    reference and move itself by mutating it.
    """

    row: int
    col: int
    width: int
    max_height: int
    visible: Callable[[int, int], bool]
    # Non-capturing overlays neither take focus nor receive key input
    non_capturing: bool


class _Overlay:
    __slots__ = ("component", "options", "return_focus", "hidden", "rect")

    def __init__(self, component: object, options: OverlayOptions, return_focus: object | None) -> None:
        self.component = component
        self.options = options
        self.return_focus = return_focus
        self.hidden = False
        # Box it was last composited into
        self.rect: Rect | None = None

    @property
    def captures(self) -> bool:
        return not self.options.get("non_capturing", False)


class OverlayHandle:
    """Handle returned by :meth:`TUI.show_overlay`."""

    def __init__(self, tui: TUI, overlay: _Overlay) -> None:
        self._tui = tui
        self._overlay = overlay

    def hide(self) -> None:
        """Remove the overlay and give focus back."""
        self._tui.hide_overlay(self._overlay.component)

    def set_hidden(self, hidden: bool) -> None:
        """Stop (or resume) drawing the overlay while keeping its place."""
        if self._overlay.hidden != hidden:
            self._overlay.hidden = hidden
            self._tui.invalidate()

    def is_hidden(self) -> bool:
        return self._overlay.hidden or self._overlay not in self._tui._overlays


class FrameHandle:
    """Cancellable registration made with :meth:`TUI.call_after_frame`."""

    def __init__(self, callback: Callable[[], None]) -> None:
        self._callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def _fire(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        self._callback()


def _place_overlay(options: OverlayOptions, term_width: int, term_height: int, content_rows: int) -> Rect:
    """Clamp an overlay's requested box onto the screen."""
    width = max(1, min(options.get("width", term_width), term_width))
    height = content_rows
    max_height = options.get("max_height")
    if max_height is not None:
        height = min(height, max_height)
    height = max(1, min(height, term_height))

    top = max(0, min(options.get("row", 0), term_height - 1))
    left = max(0, min(options.get("col", 0), term_width - width))
    return Rect(left=left, top=top, width=width, height=height)


def _close_styles(text: str) -> str:
    """Reset SGR state at the end of *text* so styles don't bleed on."""
    if "\x1b[" in text and not text.endswith(_RESET):
        return text + _RESET
    return text


def _splice(base: str, overlay: str, left: int, width: int, term_width: int) -> str:
    """Draw *overlay* over *base* across columns ``[left, left + width)``."""
    right = left + width
    before, after = extract_segments(base, left, right, max(0, term_width - right))
    fill = width - visible_width(overlay)
    if fill > 0:
        overlay += " " * fill
    return _close_styles(before) + _close_styles(overlay) + after


def _take_cursor(lines: list[str]) -> tuple[list[str], int, int]:
    """Strip ``CURSOR_MARKER`` and return ``(lines, row, col)`` of the cursor.

    Without a marker the cursor rests at the start of the last line.
    """
    for row, line in enumerate(lines):
        at = line.find(CURSOR_MARKER)
        if at < 0:
            continue
        cleaned = list(lines)
        cleaned[row] = line[:at] + line[at + len(CURSOR_MARKER) :]
        return cleaned, row, visible_width(line[:at])
    return lines, max(0, len(lines) - 1), 0


# ---------------------------------------------------------------------------
# Container
# ---------------------------------------------------------------------------


class Container:
    """Renders its children top to bottom and records their row spans."""

    def __init__(self) -> None:
        self.children: list[object] = []
        # id(child) -> (first row, row count, width) from the last render
        self._layout: dict[int, tuple[int, int, int]] = {}

    def add_child(self, component: object) -> None:
        self.children.append(component)

    def remove_child(self, component: object) -> None:
        if component in self.children:
            self.children.remove(component)
        self._layout.pop(id(component), None)

    def clear(self) -> None:
        self.children.clear()
        self._layout.clear()

    def invalidate(self) -> None:
        for child in self.children:
            invalidate = getattr(child, "invalidate", None)
            if invalidate is not None:
                invalidate()

    def render(self, width: int) -> list[str]:
        lines: list[str] = []
        layout: dict[int, tuple[int, int, int]] = {}
        for child in self.children:
            render = getattr(child, "render", None)
            if render is None:
                continue
            rendered = render(width)
            layout[id(child)] = (len(lines), len(rendered), width)
            lines.extend(rendered)
        self._layout = layout
        return lines

    def locate(self, component: object) -> tuple[int, int, int] | None:
        """``(row, height, width)`` of *component* in this container's last
        render, looking through children that can locate their own parts.
        """
        for child in self.children:
            span = self._layout.get(id(child))
            if span is None:
                continue
            if child is component:
                return span
            locate = getattr(child, "locate", None)
            found = locate(component) if locate is not None else None
            if found is not None:
                return (span[0] + found[0], found[1], found[2])
        return None


# ---------------------------------------------------------------------------
# TUI
# ---------------------------------------------------------------------------


class TUI(Container):
    """Root container bound to a terminal.

    * Only lines that changed since the previous frame are written.
    * When the content is taller than the screen the viewport shows its
      bottom; a change of the first visible row is reported as ``scroll``.
    * Overlays are drawn over the viewport in screen cells.
    * ``call_after_frame`` callbacks run once the next frame is written,
      the earliest point at which component rects describe the screen.
    """

    def __init__(self, terminal: Terminal) -> None:
        super().__init__()

        self.terminal: Terminal = terminal

        self._focused_component: object | None = None
        self._overlays: list[_Overlay] = []
        self._frame_callbacks: list[FrameHandle] = []
        self._listeners: dict[str, list[Callable[..., None]]] = {}

        # Last frame as written
        self._screen: list[str] = []
        self._screen_width = 0
        self._cursor_row = 0
        self._viewport_top = 0
        self._full_redraw_count = 0

        self._render_requested = False
        # Set while dispatching input or painting; renders wait until it clears
        self._busy = False
        self._stopped = False

    @property
    def full_redraws(self) -> int:
        return self._full_redraw_count

    @property
    def viewport_top(self) -> int:
        """Index of the first content row visible on screen."""
        return self._viewport_top

    @property
    def focused_component(self) -> object | None:
        return self._focused_component

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event: TuiEvent, handler: Callable[..., None]) -> Callable[[], None]:
        """Register *handler* for *event*; returns a function that removes it."""
        handlers = self._listeners.setdefault(event, [])
        handlers.append(handler)

        def dispose() -> None:
            if handler in handlers:
                handlers.remove(handler)

        return dispose

    def _emit(self, event: TuiEvent, *args: object) -> None:
        # Handlers may unregister themselves while running
        for handler in list(self._listeners.get(event, ())):
            handler(*args)

    # ------------------------------------------------------------------
    # Focus and overlays
    # ------------------------------------------------------------------

    def set_focus(self, component: object | None) -> None:
        previous = self._focused_component
        if previous is component:
            return
        self._focused_component = component
        if is_focusable(previous):
            previous.focused = False  # type: ignore[union-attr]
        if is_focusable(component):
            component.focused = True  # type: ignore[union-attr]

    def show_overlay(self, component: object, options: OverlayOptions | None = None) -> OverlayHandle:
        """Draw *component* above the content; capturing overlays take focus."""
        overlay = _Overlay(component, options if options is not None else {}, self._focused_component)
        self._overlays.append(overlay)
        if overlay.captures:
            self.set_focus(component)
        self.invalidate()
        return OverlayHandle(self, overlay)

    def hide_overlay(self, component: object) -> None:
        overlay = self._find_overlay(component)
        if overlay is None:
            return
        self._overlays.remove(overlay)
        if self._focused_component is component:
            self.set_focus(self._capturing_overlay() or overlay.return_focus)
        self.invalidate()

    def has_overlay(self) -> bool:
        return bool(self._overlays)

    def is_overlay_visible(self, component: object) -> bool:
        overlay = self._find_overlay(component)
        return overlay is not None and not overlay.hidden

    def _find_overlay(self, component: object) -> _Overlay | None:
        for overlay in self._overlays:
            if overlay.component is component:
                return overlay
        return None

    def _capturing_overlay(self) -> object | None:
        for overlay in reversed(self._overlays):
            if not overlay.hidden and overlay.captures:
                return overlay.component
        return None

    # ------------------------------------------------------------------
    # Layout queries
    # ------------------------------------------------------------------

    def get_component_rect(self, component: object) -> Rect | None:
        """Return *component*'s box in viewport cells as of the last frame.

        ``None`` when it was not rendered or lies entirely off screen.
        Overlays report the box they were last composited into.
        """
        overlay = self._find_overlay(component)
        if overlay is not None:
            return overlay.rect

        span = self.locate(component)
        if span is None:
            return None
        row, height, width = span
        top = row - self._viewport_top
        if top + height <= 0 or top >= self.terminal.rows:
            return None
        return Rect(left=0, top=top, width=width, height=height)

    # ------------------------------------------------------------------
    # Lifecycle and scheduling
    # ------------------------------------------------------------------

    def invalidate(self) -> None:
        if not self._stopped:
            self.request_render()

    def start(self) -> None:
        self._stopped = False
        # A request made while stopped never ran
        self._render_requested = False
        self.terminal.start(self.handle_input, self._on_resize)
        self.request_render()

    def stop(self) -> None:
        """Stop rendering, drop pending frame callbacks and release the terminal."""
        self._stopped = True
        for handle in self._frame_callbacks:
            handle.cancel()
        self._frame_callbacks.clear()

        # Leave the shell prompt below the last line
        below = len(self._screen) - self._cursor_row - 1
        if below > 0:
            self.terminal.write(f"\x1b[{below}B")
        self.terminal.write("\r\n")
        self.terminal.stop()

    def _on_resize(self) -> None:
        self.invalidate()
        self._emit("resize")

    def request_render(self) -> None:
        """Schedule a render on the next event-loop tick.

        Multiple calls coalesce into a single render pass.  Without a
        running loop the render happens synchronously, but never in the
        middle of an input dispatch or another render.
        """
        if self._render_requested:
            return
        self._render_requested = True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if not self._busy:
                self._render_pending()
            return
        loop.call_soon(self._render_pending)

    def _render_pending(self) -> None:
        while self._render_requested and not self._stopped:
            self._render_requested = False
            self.do_render()

    def _flush_deferred_render(self) -> None:
        if not self._render_requested or self._busy:
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            self._render_pending()

    def call_after_frame(self, callback: Callable[[], None]) -> FrameHandle:
        """Run *callback* once, right after the next frame is painted."""
        handle = FrameHandle(callback)
        self._frame_callbacks.append(handle)
        self.request_render()
        return handle

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def handle_input(self, data: str) -> None:
        """Route mouse reports to :meth:`handle_mouse` and keys to the
        topmost capturing overlay, else to the focused component.
        """
        if self._stopped:
            return

        self._busy = True
        try:
            if is_mouse_sequence(data):
                event = parse_mouse_event(data)
                if event is not None:
                    self.handle_mouse(event)
            elif not is_key_release(data):
                target = self._capturing_overlay() or self._focused_component
                handler = getattr(target, "handle_input", None)
                if callable(handler):
                    handler(data)
        finally:
            self._busy = False
        self.request_render()
        self._flush_deferred_render()

    def handle_mouse(self, event: MouseEvent) -> None:
        """Dispatch a mouse event in viewport coordinates.

        Mouse listeners always see the event.  Then the topmost visible
        overlay under the pointer receives it in its own coordinates; when
        none is hit, the focused component receives it unchanged.
        """
        self._emit("mouse", event)

        for overlay in reversed(self._overlays):
            rect = overlay.rect
            if overlay.hidden or rect is None or not rect.contains(event.col, event.row):
                continue
            handler = getattr(overlay.component, "handle_mouse", None)
            if callable(handler):
                handler(event.translated(rect.left, rect.top))
            return

        handler = getattr(self._focused_component, "handle_mouse", None)
        if callable(handler):
            handler(event)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _composite(self, lines: list[str], term_width: int, term_height: int) -> list[str]:
        """Draw every visible overlay over the viewport *lines*."""
        screen = lines + [""] * max(0, term_height - len(lines))

        for overlay in self._overlays:
            overlay.rect = None
            if overlay.hidden:
                continue
            visible = overlay.options.get("visible")
            if visible is not None and not visible(term_width, term_height):
                continue
            render = getattr(overlay.component, "render", None)
            if render is None:
                continue

            # The content height is known only after rendering at the final width
            width = _place_overlay(overlay.options, term_width, term_height, 1).width
            rendered = render(width)
            rect = _place_overlay(overlay.options, term_width, term_height, len(rendered))
            rendered = rendered[: rect.height]
            overlay.rect = Rect(rect.left, rect.top, rect.width, len(rendered))

            for offset, line in enumerate(rendered):
                row = rect.top + offset
                if row < len(screen):
                    screen[row] = _splice(screen[row], line, rect.left, rect.width, term_width)

        return screen

    def do_render(self) -> None:
        """Paint one frame, report a viewport scroll, then run the
        ``call_after_frame`` callbacks registered before this frame.
        """
        if self._stopped:
            return

        term_width = self.terminal.columns
        term_height = self.terminal.rows
        if term_width <= 0 or term_height <= 0:
            return

        was_busy = self._busy
        self._busy = True
        try:
            if self._paint(term_width, term_height):
                self._emit("scroll")
            callbacks, self._frame_callbacks = self._frame_callbacks, []
            for handle in callbacks:
                handle._fire()
        finally:
            self._busy = was_busy

        self._flush_deferred_render()

    def _paint(self, term_width: int, term_height: int) -> bool:
        """Write one frame; return ``True`` if the viewport scrolled."""
        content = self.render(term_width)

        viewport_top = max(0, len(content) - term_height)
        scrolled = viewport_top != self._viewport_top
        self._viewport_top = viewport_top

        lines = content[viewport_top:]
        if self._overlays:
            lines = self._composite(lines, term_width, term_height)
        lines, cursor_row, cursor_col = _take_cursor(lines[:term_height])

        full = scrolled or term_width != self._screen_width
        previous = self._screen
        out: list[str] = []

        # Back to column 0 of the first row of the previous frame
        if self._cursor_row > 0:
            out.append(f"\x1b[{self._cursor_row}A")
        out.append("\r")

        if full:
            self._full_redraw_count += 1
            out.append("\x1b[J")
            out.append("\n".join(line + "\x1b[K" for line in lines))
            bottom = len(lines) - 1
        else:
            rows = max(len(lines), len(previous))
            for row in range(rows):
                if row > 0:
                    out.append("\n")
                if row >= len(lines):
                    out.append("\r\x1b[K")
                elif row >= len(previous) or lines[row] != previous[row]:
                    out.append("\r" + lines[row] + "\x1b[K")
            bottom = rows - 1

        up = max(0, bottom) - cursor_row
        if up > 0:
            out.append(f"\x1b[{up}A")
        elif up < 0:
            out.append(f"\x1b[{-up}B")
        out.append("\r")
        if cursor_col > 0:
            out.append(f"\x1b[{cursor_col}C")

        self._screen = lines
        self._screen_width = term_width
        self._cursor_row = cursor_row
        self.terminal.write("".join(out))
        return scrolled
