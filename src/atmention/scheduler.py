"""Deferred, coalesced layout measurement.

Cell positions are only trustworthy once a frame has been painted, so
measuring happens in two phases: ``request()`` asks for a measurement after
the next frame, and the frame source later runs it.  Requests made before
that frame collapse into one, and ``cancel()`` withdraws the pending one.
The measure callback takes no arguments and reads whatever state is current
when it runs, so a late run can never apply an outdated result.
"""

from __future__ import annotations

import logging
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class FrameHandle(Protocol):
    def cancel(self) -> None: ...


class FrameSource(Protocol):
    def call_after_frame(self, callback: Callable[[], None]) -> FrameHandle: ...


class MeasurementScheduler:
    def __init__(self, frame_source: FrameSource, measure: Callable[[], None]) -> None:
        self._frame_source = frame_source
        self._measure = measure
        self._handle: FrameHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def request(self) -> None:
        """Measure after the next frame; a no-op while one is pending."""
        if self._handle is not None:
            return
        ran = False

        def run() -> None:
            nonlocal ran
            ran = True
            self._run()

        handle = self._frame_source.call_after_frame(run)
        # A frame source without an event loop may paint, and run us, inline
        if not ran:
            self._handle = handle

    def cancel(self) -> None:
        if self._handle is None:
            return
        self._handle.cancel()
        self._handle = None
        logger.debug("Pending measurement cancelled")

    def _run(self) -> None:
        self._handle = None
        self._measure()
