"""Selected-value mutations.

The selected list belongs to the host.  Every mutation reads the host's
current list and proposes the next one through ``on_change``; nothing here
keeps a copy or edits the list in place.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Callable

from atmention.options import MentionOption


class SelectionController:
    def __init__(
        self,
        get_value: Callable[[], Sequence[str]],
        on_change: Callable[[list[str]], None],
    ) -> None:
        self._get_value = get_value
        self._on_change = on_change

    def commit(self, option: MentionOption) -> bool:
        """Append *option*; returns ``False`` if it was already selected."""
        current = list(self._get_value())
        if option.value in current:
            return False
        self._on_change(current + [option.value])
        return True

    def remove(self, value: str) -> bool:
        current = list(self._get_value())
        if value not in current:
            return False
        self._on_change([v for v in current if v != value])
        return True

    def remove_last(self) -> bool:
        current = list(self._get_value())
        if not current:
            return False
        self._on_change(current[:-1])
        return True
