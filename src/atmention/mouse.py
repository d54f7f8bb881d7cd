"""SGR mouse reporting (``CSI < b ; x ; y M/m``)."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

MouseAction = Literal["press", "release", "move", "drag", "wheel-up", "wheel-down"]

MOUSE_TRACKING_ENABLE = "\x1b[?1003h\x1b[?1006h"
MOUSE_TRACKING_DISABLE = "\x1b[?1003l\x1b[?1006l"

_SGR_MOUSE_RE = re.compile(r"^\x1b\[<(\d+);(\d+);(\d+)([Mm])$")

_MOTION_BIT = 32
_WHEEL_BIT = 64


@dataclass(frozen=True)
class MouseEvent:
    """A decoded mouse report in 0-based viewport cells."""

    action: MouseAction
    button: int
    col: int
    row: int
    shift: bool = False
    alt: bool = False
    ctrl: bool = False

    @property
    def is_click(self) -> bool:
        return self.action == "press" and self.button == 0

    def translated(self, dcol: int, drow: int) -> MouseEvent:
        """Return a copy with coordinates shifted by ``(-dcol, -drow)``."""
        return MouseEvent(
            action=self.action,
            button=self.button,
            col=self.col - dcol,
            row=self.row - drow,
            shift=self.shift,
            alt=self.alt,
            ctrl=self.ctrl,
        )


def is_mouse_sequence(data: str) -> bool:
    return data.startswith("\x1b[<") and bool(_SGR_MOUSE_RE.match(data))


def parse_mouse_event(data: str) -> MouseEvent | None:
    """Decode an SGR mouse report, or return ``None`` for anything else."""
    m = _SGR_MOUSE_RE.match(data)
    if m is None:
        return None

    code = int(m.group(1))
    # Reports are 1-based
    col = max(0, int(m.group(2)) - 1)
    row = max(0, int(m.group(3)) - 1)
    released = m.group(4) == "m"

    button = code & 0b11
    modifiers = {
        "shift": bool(code & 4),
        "alt": bool(code & 8),
        "ctrl": bool(code & 16),
    }

    action: MouseAction
    if code & _WHEEL_BIT:
        action = "wheel-down" if button & 1 else "wheel-up"
    elif code & _MOTION_BIT:
        action = "move" if button == 3 else "drag"
    elif released:
        action = "release"
    else:
        action = "press"

    return MouseEvent(action=action, button=button, col=col, row=row, **modifiers)
