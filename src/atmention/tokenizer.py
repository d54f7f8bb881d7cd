"""Trigger detection for mention queries.

A trigger only starts a query at a token boundary: the first character of
the text, or right after a space, tab or newline.  ``user@host`` therefore
never opens the menu on ``@host``.
"""

from __future__ import annotations

from typing import NamedTuple

DEFAULT_TRIGGER = "@"

_BOUNDARY_CHARS = (" ", "\t", "\n")


class TriggerMatch(NamedTuple):
    valid: bool
    trigger_offset: int | None = None
    query: str = ""


NO_TRIGGER = TriggerMatch(valid=False)


def clamp_cursor(text: str, cursor: int | None) -> int:
    if cursor is None:
        return len(text)
    return max(0, min(cursor, len(text)))


def find_trigger(text: str, cursor: int | None, trigger: str = DEFAULT_TRIGGER) -> TriggerMatch:
    """Find the active mention query at *cursor*.

    Only the last *trigger* at or before ``cursor - 1`` is considered; any
    earlier trigger is inert even if it sits on a boundary.
    """
    cursor = clamp_cursor(text, cursor)
    if cursor == 0 or not trigger:
        return NO_TRIGGER

    offset = text.rfind(trigger, 0, cursor)
    if offset == -1:
        return NO_TRIGGER

    if offset > 0 and text[offset - 1] not in _BOUNDARY_CHARS:
        return NO_TRIGGER

    return TriggerMatch(valid=True, trigger_offset=offset, query=text[offset + len(trigger) : cursor])
