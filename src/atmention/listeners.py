"""Scoped event registrations."""

from __future__ import annotations

import logging
from typing import Callable

logger = logging.getLogger(__name__)

Disposer = Callable[[], None]


class ListenerScope:
    """Collects disposers and runs all of them when the scope closes.

    Usable as a context manager; closing twice is harmless.  Every disposer
    runs even if an earlier one raises; the first error is re-raised after.
    """

    def __init__(self) -> None:
        self._disposers: list[Disposer] = []

    def __enter__(self) -> ListenerScope:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __len__(self) -> int:
        return len(self._disposers)

    @property
    def active(self) -> bool:
        return bool(self._disposers)

    def add(self, disposer: Disposer) -> Disposer:
        self._disposers.append(disposer)
        return disposer

    def close(self) -> None:
        disposers, self._disposers = self._disposers, []
        first_error: Exception | None = None
        for dispose in reversed(disposers):
            try:
                dispose()
            except Exception as exc:
                logger.exception("Listener disposer failed")
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error
