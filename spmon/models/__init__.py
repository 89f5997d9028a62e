"""spmon data models — all Pydantic v2, all frozen (immutable)."""

from spmon.models.messages import MessageCategory, RawMessage
from spmon.models.sparkplug import (
    BoolValue,
    BytesValue,
    DataType,
    FloatValue,
    IntValue,
    Metric,
    MetricValue,
    NoValue,
    Payload,
    StringValue,
    data_type_name,
)

__all__ = [
    # messages
    "MessageCategory",
    "RawMessage",
    # sparkplug
    "DataType",
    "data_type_name",
    "MetricValue",
    "IntValue",
    "FloatValue",
    "BoolValue",
    "StringValue",
    "BytesValue",
    "NoValue",
    "Metric",
    "Payload",
]
