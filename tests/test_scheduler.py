"""Tests for deferred layout measurement."""

from __future__ import annotations

from typing import Callable

from atmention.scheduler import MeasurementScheduler
from atmention.tui import TUI

from .virtual_terminal import VirtualTerminal


class FakeHandle:
    def __init__(self, callback: Callable[[], None]) -> None:
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeFrameSource:
    """Collects frame callbacks; ``frame()`` runs the ones still live."""

    def __init__(self) -> None:
        self.handles: list[FakeHandle] = []

    def call_after_frame(self, callback: Callable[[], None]) -> FakeHandle:
        handle = FakeHandle(callback)
        self.handles.append(handle)
        return handle

    def frame(self) -> None:
        handles, self.handles = self.handles, []
        for handle in handles:
            if not handle.cancelled:
                handle.callback()


class TestMeasurementScheduler:
    def test_measures_after_frame(self) -> None:
        source = FakeFrameSource()
        calls: list[int] = []
        scheduler = MeasurementScheduler(source, lambda: calls.append(1))

        scheduler.request()
        assert calls == []
        assert scheduler.pending

        source.frame()
        assert calls == [1]
        assert not scheduler.pending

    def test_requests_coalesce(self) -> None:
        source = FakeFrameSource()
        calls: list[int] = []
        scheduler = MeasurementScheduler(source, lambda: calls.append(1))

        scheduler.request()
        scheduler.request()
        scheduler.request()
        assert len(source.handles) == 1

        source.frame()
        assert calls == [1]

    def test_cancel(self) -> None:
        source = FakeFrameSource()
        calls: list[int] = []
        scheduler = MeasurementScheduler(source, lambda: calls.append(1))

        scheduler.request()
        scheduler.cancel()
        source.frame()
        assert calls == []
        assert not scheduler.pending

    def test_cancel_without_request(self) -> None:
        scheduler = MeasurementScheduler(FakeFrameSource(), lambda: None)
        scheduler.cancel()
        assert not scheduler.pending

    def test_request_again_after_run(self) -> None:
        source = FakeFrameSource()
        calls: list[int] = []
        scheduler = MeasurementScheduler(source, lambda: calls.append(1))

        scheduler.request()
        source.frame()
        scheduler.request()
        source.frame()
        assert calls == [1, 1]

    def test_measure_reads_latest_state(self) -> None:
        source = FakeFrameSource()
        state = {"value": 1}
        seen: list[int] = []
        scheduler = MeasurementScheduler(source, lambda: seen.append(state["value"]))

        scheduler.request()
        state["value"] = 2
        scheduler.request()
        source.frame()
        assert seen == [2]


class TestSchedulerWithTUI:
    def test_runs_after_painted_frame(self) -> None:
        term = VirtualTerminal(rows=10, columns=40)
        tui = TUI(term)
        frames_seen: list[int] = []
        scheduler = MeasurementScheduler(tui, lambda: frames_seen.append(len(term.writes)))

        scheduler.request()
        # Without an event loop the frame is painted synchronously
        assert frames_seen == [1]

    def test_stop_drops_pending(self) -> None:
        term = VirtualTerminal(rows=10, columns=40)
        tui = TUI(term)
        tui.start()
        tui.stop()
        calls: list[int] = []
        scheduler = MeasurementScheduler(tui, lambda: calls.append(1))
        scheduler.request()
        assert calls == []

    def test_inline_frame_does_not_leave_request_pending(self) -> None:
        term = VirtualTerminal(rows=10, columns=40)
        tui = TUI(term)
        calls: list[int] = []
        scheduler = MeasurementScheduler(tui, lambda: calls.append(1))

        scheduler.request()
        assert not scheduler.pending
        scheduler.request()
        assert calls == [1, 1]
