"""Terminal I/O for the mention field.

``Terminal`` is the small surface the renderer needs.  ``ProcessTerminal``
drives the controlling tty: it switches stdin to raw mode, turns on the
terminal modes the field relies on (bracketed paste, SGR mouse reporting and
optionally the alternate screen), feeds stdin through a ``StdinBuffer`` and
turns ``SIGWINCH`` into resize callbacks.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
import termios
import tty
from typing import Callable, Protocol

from atmention.mouse import MOUSE_TRACKING_DISABLE, MOUSE_TRACKING_ENABLE
from atmention.stdin_buffer import BRACKETED_PASTE_END, BRACKETED_PASTE_START, StdinBuffer

logger = logging.getLogger(__name__)

_FALLBACK_SIZE = os.terminal_size((80, 24))

# (enable, disable) pairs, enabled in order and disabled in reverse
_ALT_SCREEN = ("\x1b[?1049h\x1b[H", "\x1b[?1049l")
_BRACKETED_PASTE = ("\x1b[?2004h", "\x1b[?2004l")
_MOUSE = (MOUSE_TRACKING_ENABLE, MOUSE_TRACKING_DISABLE)

_READ_CHUNK = 4096


class Terminal(Protocol):
    """What the renderer needs from a terminal."""

    def start(
        self,
        on_input: Callable[[str], None],
        on_resize: Callable[[], None],
    ) -> None: ...

    def stop(self) -> None: ...

    def write(self, data: str) -> None: ...

    @property
    def columns(self) -> int: ...

    @property
    def rows(self) -> int: ...


class ProcessTerminal:
    """Terminal on the process's own stdin and stdout.

    :meth:`start` registers an asyncio reader for stdin, so it has to be
    called while an event loop is running.  Setting ``ATMENTION_WRITE_LOG``
    to a path appends every frame written to that file.
    """

    def __init__(self, *, mouse: bool = True, alternate_screen: bool = False) -> None:
        self._modes: list[tuple[str, str]] = []
        if alternate_screen:
            self._modes.append(_ALT_SCREEN)
        self._modes.append(_BRACKETED_PASTE)
        if mouse:
            self._modes.append(_MOUSE)

        self._on_input: Callable[[str], None] | None = None
        self._on_resize: Callable[[], None] | None = None
        self._buffer: StdinBuffer | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._saved_attrs: list | None = None
        self._saved_sigwinch: signal.Handlers | None = None
        self._write_log = os.environ.get("ATMENTION_WRITE_LOG", "")

    def _size(self) -> os.terminal_size:
        try:
            return os.get_terminal_size(sys.stdout.fileno())
        except (ValueError, OSError):
            return _FALLBACK_SIZE

    @property
    def columns(self) -> int:
        return self._size().columns

    @property
    def rows(self) -> int:
        return self._size().lines

    def start(
        self,
        on_input: Callable[[str], None],
        on_resize: Callable[[], None],
    ) -> None:
        self._on_input = on_input
        self._on_resize = on_resize

        fd = sys.stdin.fileno()
        self._saved_attrs = termios.tcgetattr(fd)
        tty.setraw(fd)
        self._emit("".join(enable for enable, _ in self._modes))

        self._saved_sigwinch = signal.getsignal(signal.SIGWINCH)
        signal.signal(signal.SIGWINCH, lambda _signum, _frame: self._resized())

        buffer = StdinBuffer(timeout=0.01)
        buffer.on_data(self._deliver)
        buffer.on_paste(lambda text: self._deliver(BRACKETED_PASTE_START + text + BRACKETED_PASTE_END))
        self._buffer = buffer

        self._loop = asyncio.get_running_loop()
        self._loop.add_reader(fd, self._read_stdin)
        logger.debug("Terminal started (%dx%d)", self.columns, self.rows)

    def stop(self) -> None:
        """Undo everything :meth:`start` did, in reverse order."""
        if self._loop is not None:
            try:
                self._loop.remove_reader(sys.stdin.fileno())
            except (RuntimeError, ValueError):
                logger.debug("stdin reader was already gone")
            self._loop = None

        if self._buffer is not None:
            self._buffer.destroy()
            self._buffer = None

        if self._saved_sigwinch is not None:
            signal.signal(signal.SIGWINCH, self._saved_sigwinch)
            self._saved_sigwinch = None

        self._emit("".join(disable for _, disable in reversed(self._modes)))

        if self._saved_attrs is not None:
            termios.tcsetattr(sys.stdin.fileno(), termios.TCSADRAIN, self._saved_attrs)
            self._saved_attrs = None

        self._on_input = None
        self._on_resize = None

    def write(self, data: str) -> None:
        self._emit(data)
        if not self._write_log:
            return
        try:
            with open(self._write_log, "a", encoding="utf-8") as log:
                log.write(data)
        except OSError as e:
            logger.debug("Write log %s unavailable: %s", self._write_log, e)

    def _deliver(self, data: str) -> None:
        if self._on_input is not None:
            self._on_input(data)

    def _resized(self) -> None:
        if self._on_resize is not None:
            self._on_resize()

    def _read_stdin(self) -> None:
        try:
            chunk = os.read(sys.stdin.fileno(), _READ_CHUNK)
        except OSError:
            return
        if not chunk:
            return
        text = chunk.decode("utf-8", errors="replace")
        if self._buffer is None:
            self._deliver(text)
        else:
            self._buffer.process(text)

    @staticmethod
    def _emit(data: str) -> None:
        if not data:
            return
        try:
            sys.stdout.write(data)
            sys.stdout.flush()
        except OSError:
            pass
