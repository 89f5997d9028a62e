"""Shared test fixtures for spmon."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import pytest

from spmon.bridge.transport import LocalTransport
from spmon.core.rebirth import RebirthDispatcher
from spmon.core.timeline import MessageTimeline
from spmon.sparkplug.wire import (
    append_fixed32_field,
    append_fixed64_field,
    append_length_delimited_field,
    append_varint_field,
)

FIXED_EPOCH_SECONDS = 1_767_225_600.5  # 2026-01-01T00:00:00.500Z


class FakeTimer:
    """Stands in for an asyncio TimerHandle."""

    def __init__(self, delay: float, callback: Callable[..., None], args: tuple[Any, ...]) -> None:
        self.delay = delay
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        self.callback(*self.args)


class FakeScheduler:
    """``call_later`` replacement that records timers instead of running them."""

    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def __call__(self, delay: float, callback: Callable[..., None], *args: Any) -> FakeTimer:
        timer = FakeTimer(delay, callback, args)
        self.timers.append(timer)
        return timer


@pytest.fixture
def fixed_clock() -> Callable[[], float]:
    """A clock frozen at FIXED_EPOCH_SECONDS."""
    return lambda: FIXED_EPOCH_SECONDS


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def timeline() -> MessageTimeline:
    """A default-capacity timeline with a 10-row window."""
    return MessageTimeline(list_height=10)


@pytest.fixture
def local_transport() -> LocalTransport:
    return LocalTransport()


@pytest.fixture
def dispatcher(
    local_transport: LocalTransport,
    fixed_clock: Callable[[], float],
    scheduler: FakeScheduler,
) -> RebirthDispatcher:
    return RebirthDispatcher(
        local_transport,
        "defgroup",
        "defnode",
        clock=fixed_clock,
        scheduler=scheduler,
    )


@pytest.fixture
def received_at() -> datetime:
    return datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Wire builders
# ---------------------------------------------------------------------------


@pytest.fixture
def make_metric_bytes() -> Callable[..., bytes]:
    """Factory fixture: encode a Metric record field by field.

    Keyword arguments map to metric fields; only those given are written.
    ``extra`` is appended verbatim (for unknown / malformed fields).
    """

    def _factory(
        name: str | None = None,
        alias: int | None = None,
        timestamp_ms: int | None = None,
        datatype: int | None = None,
        is_null: bool | None = None,
        int_value: int | None = None,
        long_value: int | None = None,
        float_value: float | None = None,
        double_value: float | None = None,
        boolean_value: bool | None = None,
        string_value: str | None = None,
        bytes_value: bytes | None = None,
        extra: bytes = b"",
    ) -> bytes:
        buf = bytearray()
        if name is not None:
            append_length_delimited_field(buf, 1, name.encode("utf-8"))
        if alias is not None:
            append_varint_field(buf, 2, alias)
        if timestamp_ms is not None:
            append_varint_field(buf, 3, timestamp_ms)
        if datatype is not None:
            append_varint_field(buf, 4, datatype)
        if is_null is not None:
            append_varint_field(buf, 7, int(is_null))
        if int_value is not None:
            append_varint_field(buf, 10, int_value)
        if long_value is not None:
            append_varint_field(buf, 11, long_value)
        if float_value is not None:
            append_fixed32_field(buf, 12, float_value)
        if double_value is not None:
            append_fixed64_field(buf, 13, double_value)
        if boolean_value is not None:
            append_varint_field(buf, 14, int(boolean_value))
        if string_value is not None:
            append_length_delimited_field(buf, 15, string_value.encode("utf-8"))
        if bytes_value is not None:
            append_length_delimited_field(buf, 16, bytes_value)
        buf.extend(extra)
        return bytes(buf)

    return _factory


@pytest.fixture
def make_payload_bytes() -> Callable[..., bytes]:
    """Factory fixture: encode a Payload envelope around raw metric records."""

    def _factory(
        metrics: list[bytes] | None = None,
        timestamp_ms: int | None = None,
        seq: int | None = None,
        uuid: str | None = None,
        extra: bytes = b"",
    ) -> bytes:
        buf = bytearray()
        if timestamp_ms is not None:
            append_varint_field(buf, 1, timestamp_ms)
        for record in metrics or []:
            append_length_delimited_field(buf, 2, record)
        if seq is not None:
            append_varint_field(buf, 3, seq)
        if uuid is not None:
            append_length_delimited_field(buf, 4, uuid.encode("utf-8"))
        buf.extend(extra)
        return bytes(buf)

    return _factory
