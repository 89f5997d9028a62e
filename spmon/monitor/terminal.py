"""Cbreak-mode keyboard input for the live monitor.

``TerminalKeys`` puts stdin into cbreak mode and feeds decoded key names into
an ``asyncio.Queue`` from an event-loop reader callback, so waiting for a key
is just another awaitable the monitor loop can race.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
import termios
import tty
from typing import Any

logger = logging.getLogger(__name__)

_ESCAPES: dict[str, str] = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[5~": "pgup",
    "\x1b[6~": "pgdown",
    "\x1b[H": "home",
    "\x1b[F": "end",
}

_CONTROL: dict[str, str] = {
    "\x03": "ctrl+c",
    "\x06": "ctrl+f",
    "\x02": "ctrl+b",
}


def parse_keys(chunk: str) -> list[str]:
    """Split a chunk of raw terminal input into key names."""
    keys: list[str] = []
    i = 0
    while i < len(chunk):
        if chunk[i] == "\x1b":
            for seq, name in _ESCAPES.items():
                if chunk.startswith(seq, i):
                    keys.append(name)
                    i += len(seq)
                    break
            else:
                keys.append("esc")
                i += 1
            continue
        ch = chunk[i]
        keys.append(_CONTROL.get(ch, ch))
        i += 1
    return keys


class TerminalKeys:
    """Async key source over a cbreak-mode TTY.

    Use as a context manager so the terminal settings are always restored.
    """

    def __init__(self, stream: Any = None) -> None:
        self._stream = stream or sys.stdin
        self._fd = self._stream.fileno()
        self._original: list[Any] | None = None
        self._queue: asyncio.Queue[str] = asyncio.Queue()
        self._loop: asyncio.AbstractEventLoop | None = None

    def __enter__(self) -> TerminalKeys:
        if os.isatty(self._fd):
            self._original = termios.tcgetattr(self._fd)
            tty.setcbreak(self._fd)
        self._loop = asyncio.get_running_loop()
        self._loop.add_reader(self._fd, self._on_readable)
        return self

    def __exit__(self, *exc: Any) -> None:
        if self._loop is not None:
            self._loop.remove_reader(self._fd)
            self._loop = None
        if self._original is not None:
            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._original)
            self._original = None

    def _on_readable(self) -> None:
        data = os.read(self._fd, 64)
        if not data:
            self._queue.put_nowait("eof")
            return
        for key in parse_keys(data.decode("utf-8", errors="ignore")):
            self._queue.put_nowait(key)

    async def read_key(self) -> str:
        return await self._queue.get()
