"""Unit tests for terminal key decoding and the async key source."""

from __future__ import annotations

import asyncio
import os

import pytest

from spmon.monitor.terminal import TerminalKeys, parse_keys


@pytest.mark.parametrize(
    ("chunk", "expected"),
    [
        ("q", ["q"]),
        ("kjG", ["k", "j", "G"]),
        ("\x1b[A\x1b[B", ["up", "down"]),
        ("\x1b[5~\x1b[6~", ["pgup", "pgdown"]),
        ("\x1b[H\x1b[F", ["home", "end"]),
        ("\x03\x06\x02", ["ctrl+c", "ctrl+f", "ctrl+b"]),
        ("\x1bR", ["esc", "R"]),
        ("", []),
    ],
)
def test_parse_keys(chunk, expected):
    assert parse_keys(chunk) == expected


class _PipeStream:
    def __init__(self, fd: int) -> None:
        self._fd = fd

    def fileno(self) -> int:
        return self._fd


def test_reads_keys_from_non_tty_stream():
    read_fd, write_fd = os.pipe()

    async def scenario() -> list[str]:
        with TerminalKeys(_PipeStream(read_fd)) as keys:
            os.write(write_fd, b"k\x1b[B")
            first = await keys.read_key()
            second = await keys.read_key()
            os.close(write_fd)
            third = await keys.read_key()
            return [first, second, third]

    try:
        assert asyncio.run(scenario()) == ["k", "down", "eof"]
    finally:
        os.close(read_fd)
