"""Unit tests for the monitor projection — value formatting and snapshots."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from spmon.core.timeline import MessageTimeline
from spmon.models.messages import MessageCategory, RawMessage
from spmon.models.sparkplug import (
    BoolValue,
    BytesValue,
    FloatValue,
    IntValue,
    Metric,
    StringValue,
)
from spmon.monitor.projection import (
    MonitorProjection,
    detail_for,
    format_metric_value,
    format_size,
)


# ---------------------------------------------------------------------------
# Test: Value formatting
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("metric", "expected"),
    [
        (Metric(value=IntValue(value=-7)), "-7"),
        (Metric(value=FloatValue(value=20.0)), "20.0"),
        (Metric(value=FloatValue(value=0.1)), "0.1"),
        (Metric(value=FloatValue(value=float("nan"))), "nan"),
        (Metric(value=BoolValue(value=True)), "true"),
        (Metric(value=BoolValue(value=False)), "false"),
        (Metric(value=StringValue(value='say "hi"')), '"say \\"hi\\""'),
        (Metric(value=BytesValue(value=b"\x01\xff")), "0x01ff"),
        (Metric(), "(complex)"),
        (Metric(is_null=True), "null"),
    ],
)
def test_format_metric_value(metric, expected):
    assert format_metric_value(metric) == expected


def test_format_long_bytes_is_truncated():
    text = format_metric_value(Metric(value=BytesValue(value=bytes(range(20)))))
    assert text == "0x" + bytes(range(16)).hex() + "… (20 bytes)"


@pytest.mark.parametrize(
    ("n", "expected"),
    [(0, "  0 B"), (999, "999 B"), (1000, " 1.0k"), (12_345, "12.3k")],
)
def test_format_size(n, expected):
    assert format_size(n) == expected


# ---------------------------------------------------------------------------
# Test: Detail snapshots
# ---------------------------------------------------------------------------


class TestDetailFor:
    def _raw(self, topic: str, payload: bytes, received_at: datetime) -> RawMessage:
        category = (
            MessageCategory.SPARKPLUG if topic.startswith("spBv1.0/") else MessageCategory.TEDGE
        )
        return RawMessage(received_at=received_at, topic=topic, payload=payload, category=category)

    def test_json_body_is_pretty_printed(self, received_at):
        detail = detail_for(self._raw("te/device/main///m/", b'{"temp":21}', received_at))
        assert detail.body == '{\n  "temp": 21\n}'
        assert detail.payload is None

    def test_non_json_body_is_text(self, received_at):
        detail = detail_for(self._raw("te/device/main///m/", b"plain text", received_at))
        assert detail.body == "plain text"

    def test_sparkplug_metrics(self, received_at, make_payload_bytes, make_metric_bytes):
        data = make_payload_bytes(
            metrics=[
                make_metric_bytes(name="temp", datatype=3, timestamp_ms=1_000, long_value=42),
                make_metric_bytes(alias=5, datatype=11, timestamp_ms=2_000, boolean_value=True),
            ],
            timestamp_ms=1_000,
            seq=9,
        )
        detail = detail_for(self._raw("spBv1.0/g/NDATA/n", data, received_at))
        assert detail.error is None
        assert detail.raw_hex == ""
        first, second = detail.metrics
        assert (first.name, first.type_name, first.value, first.timestamp) == (
            "temp",
            "Int32",
            "42",
            None,
        )
        assert second.name == "<alias 5>"
        assert second.value_kind == "bool"
        assert second.timestamp == datetime(1970, 1, 1, 0, 0, 2, tzinfo=timezone.utc)

    def test_decode_error_keeps_partial_metrics(
        self, received_at, make_payload_bytes, make_metric_bytes
    ):
        data = make_payload_bytes(metrics=[make_metric_bytes(name="ok", long_value=1)]) + b"\x12\x80"
        detail = detail_for(self._raw("spBv1.0/g/NDATA/n", data, received_at))
        assert detail.error is not None
        assert "truncated" in detail.error
        assert detail.raw_hex == data.hex()
        assert [m.name for m in detail.metrics] == ["ok"]


# ---------------------------------------------------------------------------
# Test: MonitorProjection
# ---------------------------------------------------------------------------


class TestMonitorProjection:
    def test_empty_timeline(self):
        view = MonitorProjection(MessageTimeline(), broker="b:1883").snapshot()
        assert view.broker == "b:1883"
        assert view.message_count == 0
        assert view.rows == []
        assert view.detail is None

    def test_rows_follow_visible_window(self, timeline):
        for i in range(12):
            timeline.ingest(f"c8y/{i}", b"")
        view = MonitorProjection(timeline).snapshot(connected=True, status="hi", detail_offset=2)
        assert [r.index for r in view.rows] == list(range(2, 12))
        assert [r.selected for r in view.rows].count(True) == 1
        assert view.rows[-1].selected is True
        assert view.detail.topic == "c8y/11"
        assert (view.connected, view.status, view.detail_offset) == (True, "hi", 2)

    def test_detail_decodes_each_snapshot(self, timeline, make_payload_bytes):
        timeline.ingest("spBv1.0/g/NDATA/n", make_payload_bytes(seq=3))
        projection = MonitorProjection(timeline)
        assert projection.detail().payload.seq == 3
        assert projection.snapshot().detail.payload.seq == 3
