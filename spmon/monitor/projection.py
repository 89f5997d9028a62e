"""Monitor projection — pure read-only views over the MessageTimeline.

The projection never stores state.  Each ``snapshot()`` call re-reads the
timeline and decodes the selected Sparkplug payload afresh; the frozen
``MonitorView`` it returns is what the renderer draws.
"""

from __future__ import annotations

import json
import math
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from spmon.core.timeline import MessageTimeline
from spmon.models.messages import MessageCategory, RawMessage
from spmon.models.sparkplug import (
    BoolValue,
    BytesValue,
    FloatValue,
    IntValue,
    Metric,
    NoValue,
    Payload,
    StringValue,
)
from spmon.sparkplug.decode import DecodeResult, try_decode_payload


class MetricRow(BaseModel):
    """One metric line of the detail table, already formatted."""

    model_config = ConfigDict(frozen=True)

    name: str
    type_name: str
    value: str
    value_kind: str
    timestamp: datetime | None = None


class DetailSnapshot(BaseModel):
    """The detail pane for one message.

    For Sparkplug messages ``payload`` holds the decoded (possibly partial)
    payload and ``error`` the decode error text, if any.  Other messages are
    shown as pretty-printed JSON, or as text when they are not JSON.
    """

    model_config = ConfigDict(frozen=True)

    topic: str
    category: MessageCategory
    received_at: datetime
    size: int
    payload: Payload | None = None
    metrics: list[MetricRow] = []
    error: str | None = None
    raw_hex: str = ""
    body: str = ""


class ListRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    received_at: datetime
    topic: str
    category: MessageCategory
    size: int
    selected: bool = False


class MonitorView(BaseModel):
    """Point-in-time view of the whole monitor screen."""

    model_config = ConfigDict(frozen=True)

    broker: str = ""
    connected: bool = False
    message_count: int = 0
    follow: bool = True
    rows: list[ListRow] = []
    detail: DetailSnapshot | None = None
    detail_offset: int = 0
    status: str = ""


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_metric_value(metric: Metric) -> str:
    """Render a metric value the way the detail table shows it."""
    if metric.is_null:
        return "null"
    value = metric.value
    if isinstance(value, NoValue):
        return "(complex)"
    if isinstance(value, FloatValue):
        v = value.value
        if math.isfinite(v) and v == math.trunc(v):
            return f"{v:.1f}"
        return repr(v)
    if isinstance(value, BoolValue):
        return "true" if value.value else "false"
    if isinstance(value, IntValue):
        return str(value.value)
    if isinstance(value, StringValue):
        return json.dumps(value.value, ensure_ascii=False)
    if isinstance(value, BytesValue):
        if len(value.value) > 16:
            return f"0x{value.value[:16].hex()}… ({len(value.value)} bytes)"
        return f"0x{value.value.hex()}"
    raise TypeError(f"unhandled metric value {value!r}")


def format_size(n: int) -> str:
    """Fixed-width (5 chars) payload size."""
    if n < 1000:
        return f"{n:3d} B"
    return f"{n / 1000:4.1f}k"


def _metric_rows(payload: Payload) -> list[MetricRow]:
    rows: list[MetricRow] = []
    for metric in payload.metrics:
        # Only show a metric timestamp when it differs from the envelope's
        ts = metric.timestamp if metric.timestamp != payload.timestamp else None
        rows.append(
            MetricRow(
                name=metric.display_name,
                type_name=metric.datatype_name,
                value=format_metric_value(metric),
                value_kind="null" if metric.is_null else metric.value.kind,
                timestamp=ts,
            )
        )
    return rows


def _pretty_body(payload: bytes) -> str:
    try:
        return json.dumps(json.loads(payload), indent=2, ensure_ascii=False)
    except (ValueError, UnicodeDecodeError):
        return payload.decode("utf-8", errors="replace")


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------


def detail_for(message: RawMessage, result: DecodeResult | None = None) -> DetailSnapshot:
    """Build the detail view of one message, decoding Sparkplug payloads."""
    base = {
        "topic": message.topic,
        "category": message.category,
        "received_at": message.received_at,
        "size": message.size,
    }
    if message.category != MessageCategory.SPARKPLUG:
        return DetailSnapshot(body=_pretty_body(message.payload), **base)

    if result is None:
        result = try_decode_payload(message.payload)
    return DetailSnapshot(
        payload=result.payload,
        metrics=_metric_rows(result.payload),
        error=str(result.error) if result.error is not None else None,
        raw_hex=message.payload.hex() if result.error is not None else "",
        **base,
    )


class MonitorProjection:
    """Builds ``MonitorView`` snapshots from a timeline.

    Parameters
    ----------
    timeline:
        The live timeline to project from.
    broker:
        Broker address shown in the header.
    """

    def __init__(self, timeline: MessageTimeline, broker: str = "") -> None:
        self._timeline = timeline
        self._broker = broker

    def detail(self) -> DetailSnapshot | None:
        message = self._timeline.selected_message
        if message is None:
            return None
        return detail_for(message, self._timeline.decode_selected())

    def snapshot(
        self,
        *,
        connected: bool = False,
        status: str = "",
        detail_offset: int = 0,
    ) -> MonitorView:
        timeline = self._timeline
        rows = [
            ListRow(
                index=i,
                received_at=msg.received_at,
                topic=msg.topic,
                category=msg.category,
                size=msg.size,
                selected=i == timeline.selected,
            )
            for i, msg in timeline.visible
        ]
        return MonitorView(
            broker=self._broker,
            connected=connected,
            message_count=len(timeline),
            follow=timeline.follow,
            rows=rows,
            detail=self.detail(),
            detail_offset=detail_offset,
            status=status,
        )
