"""Non-blocking keyboard polling for the live dashboard.

The dashboard loop must never block on input: it polls with a short timeout
between render ticks. ``KeyReader`` puts the terminal in cbreak mode on POSIX
(signals stay enabled, so Ctrl-C still raises KeyboardInterrupt) and uses
``msvcrt`` on Windows. When stdin is not a TTY, polling simply sleeps.
"""

from __future__ import annotations

import os
import sys
import time
from enum import Enum, auto
from types import TracebackType

__all__ = ["Key", "KeyReader", "decode_key"]


class Key(Enum):
    QUIT = auto()
    TAB = auto()
    UP = auto()
    DOWN = auto()
    PAGE_UP = auto()
    PAGE_DOWN = auto()
    OTHER = auto()


_SEQUENCES: dict[bytes, Key] = {
    b"q": Key.QUIT,
    b"Q": Key.QUIT,
    b"\x1b": Key.QUIT,
    b"\x03": Key.QUIT,
    b"\t": Key.TAB,
    b"\x1b[A": Key.UP,
    b"\x1bOA": Key.UP,
    b"\x1b[B": Key.DOWN,
    b"\x1bOB": Key.DOWN,
    b"\x1b[5~": Key.PAGE_UP,
    b"\x1b[6~": Key.PAGE_DOWN,
}

# msvcrt reports special keys as a 0x00/0xe0 prefix followed by a scan code.
_WINDOWS_SCAN_CODES: dict[str, Key] = {
    "H": Key.UP,
    "P": Key.DOWN,
    "I": Key.PAGE_UP,
    "Q": Key.PAGE_DOWN,
}


def decode_key(data: bytes) -> Key | None:
    """Map raw terminal bytes to a Key (None for no input)."""
    if not data:
        return None
    return _SEQUENCES.get(data, Key.OTHER)


class KeyReader:
    """Context manager providing ``poll(timeout)`` for single key presses."""

    def __init__(self) -> None:
        self._fd: int | None = None
        self._saved: list[object] | None = None
        self._windows = sys.platform == "win32"

    def __enter__(self) -> KeyReader:
        if self._windows or not sys.stdin.isatty():
            return self

        import termios
        import tty

        self._fd = sys.stdin.fileno()
        self._saved = termios.tcgetattr(self._fd)
        tty.setcbreak(self._fd)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._fd is not None and self._saved is not None:
            import termios

            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved)
        self._fd = None
        self._saved = None

    def poll(self, timeout: float) -> Key | None:
        """Wait up to ``timeout`` seconds for a key press."""
        if self._windows:
            return self._poll_windows(timeout)
        if self._fd is None:
            time.sleep(timeout)
            return None

        import select

        ready, _, _ = select.select([self._fd], [], [], timeout)
        if not ready:
            return None
        # Escape sequences arrive in one read on any sane terminal.
        return decode_key(os.read(self._fd, 16))

    def _poll_windows(self, timeout: float) -> Key | None:
        import msvcrt

        deadline = time.monotonic() + timeout
        while not msvcrt.kbhit():
            if time.monotonic() >= deadline:
                return None
            time.sleep(0.005)

        ch = msvcrt.getwch()
        if ch in ("\x00", "\xe0"):
            return _WINDOWS_SCAN_CODES.get(msvcrt.getwch(), Key.OTHER)
        return decode_key(ch.encode("utf-8", errors="replace"))
