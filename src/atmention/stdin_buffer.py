"""StdinBuffer buffers raw input and emits complete sequences.

Reads from stdin can split escape sequences (mouse reports in particular)
across chunks.  Without buffering, a partial ``ESC [ < 35 ; 1`` would be
misread as an Escape key press followed by text.
"""

from __future__ import annotations

import asyncio
import re
from typing import Callable, Literal

ESC = "\x1b"
BRACKETED_PASTE_START = "\x1b[200~"
BRACKETED_PASTE_END = "\x1b[201~"

_SGR_MOUSE_PAYLOAD_RE = re.compile(r"^<\d+;\d+;\d+[Mm]$")

_Status = Literal["complete", "incomplete", "not-escape"]


def _sequence_status(data: str) -> _Status:
    """Classify *data* as a complete escape sequence, a prefix of one, or text."""
    if not data.startswith(ESC):
        return "not-escape"
    if len(data) == 1:
        return "incomplete"

    introducer = data[1]

    if introducer == "[":
        if data.startswith("\x1b[M"):
            # X10 mouse: ESC [ M b x y
            return "complete" if len(data) >= 6 else "incomplete"
        if len(data) < 3:
            return "incomplete"
        payload = data[2:]
        if not 0x40 <= ord(payload[-1]) <= 0x7E:
            return "incomplete"
        if payload.startswith("<"):
            return "complete" if _SGR_MOUSE_PAYLOAD_RE.match(payload) else "incomplete"
        return "complete"

    if introducer == "]":
        return "complete" if data.endswith("\x07") or data.endswith("\x1b\\") else "incomplete"

    if introducer in "P_":
        return "complete" if data.endswith("\x1b\\") else "incomplete"

    if introducer == "O":
        return "complete" if len(data) >= 3 else "incomplete"

    # Meta key: ESC followed by one character
    return "complete"


def _extract_complete_sequences(buffer: str) -> tuple[list[str], str]:
    """Split *buffer* into complete sequences plus an unfinished remainder."""
    sequences: list[str] = []
    pos = 0

    while pos < len(buffer):
        if buffer[pos] != ESC:
            sequences.append(buffer[pos])
            pos += 1
            continue

        end = pos + 1
        while True:
            if end > len(buffer):
                return sequences, buffer[pos:]
            status = _sequence_status(buffer[pos:end])
            if status != "incomplete":
                sequences.append(buffer[pos:end])
                pos = end
                break
            end += 1

    return sequences, ""


class StdinBuffer:
    """Buffers stdin input and emits complete sequences.

    Bracketed paste content is collected whole and emitted through the
    paste callback.  A lone unfinished escape sequence is flushed after
    *timeout* seconds so that a bare Escape key still gets through.
    """

    def __init__(self, *, timeout: float = 0.01) -> None:
        self._buffer: str = ""
        self._timeout: float = timeout
        self._timeout_handle: asyncio.TimerHandle | None = None
        self._paste_mode: bool = False
        self._paste_buffer: str = ""

        self._on_data: Callable[[str], None] | None = None
        self._on_paste: Callable[[str], None] | None = None

    def on_data(self, callback: Callable[[str], None]) -> None:
        """Set callback for complete sequences."""
        self._on_data = callback

    def on_paste(self, callback: Callable[[str], None]) -> None:
        """Set callback for paste content."""
        self._on_paste = callback

    def _emit_data(self, data: str) -> None:
        if self._on_data:
            self._on_data(data)

    def _emit_paste(self, data: str) -> None:
        if self._on_paste:
            self._on_paste(data)

    def _cancel_timeout(self) -> None:
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None

    def process(self, data: str) -> None:
        """Feed input data into the buffer."""
        self._cancel_timeout()

        if self._paste_mode:
            self._paste_buffer += data
            self._finish_paste_if_complete()
            return

        self._buffer += data

        start_index = self._buffer.find(BRACKETED_PASTE_START)
        if start_index != -1:
            sequences, _ = _extract_complete_sequences(self._buffer[:start_index])
            for sequence in sequences:
                self._emit_data(sequence)
            self._paste_mode = True
            self._paste_buffer = self._buffer[start_index + len(BRACKETED_PASTE_START) :]
            self._buffer = ""
            self._finish_paste_if_complete()
            return

        sequences, self._buffer = _extract_complete_sequences(self._buffer)
        for sequence in sequences:
            self._emit_data(sequence)

        if self._buffer:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                # No event loop: nothing else can arrive in time, flush now
                for sequence in self.flush():
                    self._emit_data(sequence)
            else:
                self._timeout_handle = loop.call_later(self._timeout, self._flush_timeout)

    def _finish_paste_if_complete(self) -> None:
        end_index = self._paste_buffer.find(BRACKETED_PASTE_END)
        if end_index == -1:
            return
        content = self._paste_buffer[:end_index]
        remaining = self._paste_buffer[end_index + len(BRACKETED_PASTE_END) :]
        self._paste_mode = False
        self._paste_buffer = ""
        self._emit_paste(content)
        if remaining:
            self.process(remaining)

    def _flush_timeout(self) -> None:
        self._timeout_handle = None
        for sequence in self.flush():
            self._emit_data(sequence)

    def flush(self) -> list[str]:
        self._cancel_timeout()
        if not self._buffer:
            return []
        sequences = [self._buffer]
        self._buffer = ""
        return sequences

    def clear(self) -> None:
        self._cancel_timeout()
        self._buffer = ""
        self._paste_mode = False
        self._paste_buffer = ""

    def get_buffer(self) -> str:
        return self._buffer

    def destroy(self) -> None:
        self.clear()
