"""Viewport-aware placement of the mention menu.

The menu is anchored to the caret column of the trigger, prefers the space
below the field, flips above when only that side fits and otherwise shrinks
into the roomier side.  The returned box always lies inside the viewport.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from atmention.geometry import Rect

logger = logging.getLogger(__name__)

MENU_MARGIN = 1
MENU_GAP = 0
MIN_MENU_HEIGHT = 3
DEFAULT_MENU_WIDTH = 32
DEFAULT_MENU_HEIGHT = 10

Placement = Literal["below", "above"]


@dataclass(frozen=True)
class MenuGeometry:
    """Where the menu is drawn; ``visible`` stays false until measured."""

    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0
    visible: bool = False
    placement: Placement = "below"

    @classmethod
    def hidden(cls) -> MenuGeometry:
        return cls()

    def as_rect(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)


def _effective_margin(margin: int, size: int) -> int:
    # Tiny viewports cannot afford the full margin on both sides
    return max(0, min(margin, (size - 1) // 2))


def place_menu(
    anchor: Rect,
    offset: int,
    box_width: int,
    box_height: int,
    viewport_width: int,
    viewport_height: int,
    *,
    margin: int = MENU_MARGIN,
    gap: int = MENU_GAP,
    min_height: int = MIN_MENU_HEIGHT,
) -> MenuGeometry:
    """Compute a menu box for *anchor* that never leaves the viewport.

    *offset* is the caret column relative to ``anchor.left``.  The result is
    not marked visible; callers flip ``visible`` once they apply it.
    """
    if viewport_width <= 0 or viewport_height <= 0:
        return MenuGeometry.hidden()

    mx = _effective_margin(margin, viewport_width)
    my = _effective_margin(margin, viewport_height)
    max_height = viewport_height - 2 * my

    width = max(1, min(box_width, viewport_width - 2 * mx))
    height = max(1, min(box_height, max_height))

    # Horizontal
    x = anchor.left + offset
    if x + width > viewport_width - mx:
        x = viewport_width - width - mx
    x = max(mx, x)

    # Vertical
    room_below = viewport_height - anchor.bottom - gap - my
    room_above = anchor.top - gap - my

    placement: Placement
    if room_below >= height:
        placement = "below"
    elif room_above >= height:
        placement = "above"
    else:
        placement = "below" if room_below >= room_above else "above"
        room = room_below if placement == "below" else room_above
        height = max(1, min(height, max(min_height, room), max_height))
        logger.debug("Menu shrunk to %d rows (%s)", height, placement)

    if placement == "below":
        y = anchor.bottom + gap
    else:
        y = anchor.top - gap - height

    y = max(my, min(y, viewport_height - height - my))

    return MenuGeometry(x=x, y=y, width=width, height=height, placement=placement)
