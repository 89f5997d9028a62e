"""Decoded Sparkplug B payload models.

``MetricValue`` is a closed, discriminated union: every consumer has to
handle each of the six kinds explicitly.  ``NoValue`` models absence (a null
metric, or a value field this decoder does not support) rather than a zero.
"""

from __future__ import annotations

from datetime import datetime
from enum import IntEnum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class DataType(IntEnum):
    """Sparkplug B metric data type codes."""

    INT8 = 1
    INT16 = 2
    INT32 = 3
    INT64 = 4
    UINT8 = 5
    UINT16 = 6
    UINT32 = 7
    UINT64 = 8
    FLOAT = 9
    DOUBLE = 10
    BOOLEAN = 11
    STRING = 12
    DATETIME = 13
    TEXT = 14
    UUID = 15
    DATASET = 16
    BYTES = 17
    FILE = 18
    TEMPLATE = 19


_DATA_TYPE_NAMES: dict[int, str] = {
    DataType.INT8: "Int8",
    DataType.INT16: "Int16",
    DataType.INT32: "Int32",
    DataType.INT64: "Int64",
    DataType.UINT8: "UInt8",
    DataType.UINT16: "UInt16",
    DataType.UINT32: "UInt32",
    DataType.UINT64: "UInt64",
    DataType.FLOAT: "Float",
    DataType.DOUBLE: "Double",
    DataType.BOOLEAN: "Boolean",
    DataType.STRING: "String",
    DataType.DATETIME: "DateTime",
    DataType.TEXT: "Text",
    DataType.UUID: "UUID",
    DataType.DATASET: "DataSet",
    DataType.BYTES: "Bytes",
    DataType.FILE: "File",
    DataType.TEMPLATE: "Template",
}


def data_type_name(code: int) -> str:
    """Human-readable name for a data type code, ``Unknown(n)`` otherwise."""
    return _DATA_TYPE_NAMES.get(code, f"Unknown({code})")


# ---------------------------------------------------------------------------
# Metric value sum type
# ---------------------------------------------------------------------------


class _ValueBase(BaseModel):
    model_config = ConfigDict(frozen=True)


class IntValue(_ValueBase):
    kind: Literal["int"] = "int"
    value: int


class FloatValue(_ValueBase):
    kind: Literal["float"] = "float"
    value: float


class BoolValue(_ValueBase):
    kind: Literal["bool"] = "bool"
    value: bool


class StringValue(_ValueBase):
    kind: Literal["string"] = "string"
    value: str


class BytesValue(_ValueBase):
    kind: Literal["bytes"] = "bytes"
    value: bytes


class NoValue(_ValueBase):
    kind: Literal["none"] = "none"


MetricValue = Annotated[
    Union[IntValue, FloatValue, BoolValue, StringValue, BytesValue, NoValue],
    Field(discriminator="kind"),
]

NO_VALUE = NoValue()


# ---------------------------------------------------------------------------
# Metric / Payload
# ---------------------------------------------------------------------------


class Metric(BaseModel):
    """One named (or aliased) data point."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    alias: int = 0
    timestamp: datetime | None = None
    datatype: int = 0
    is_null: bool = False
    value: MetricValue = NO_VALUE

    @property
    def display_name(self) -> str:
        """The metric name, or ``<alias N>`` when only an alias was sent."""
        return self.name or f"<alias {self.alias}>"

    @property
    def datatype_name(self) -> str:
        return data_type_name(self.datatype)


class Payload(BaseModel):
    """A decoded Sparkplug B payload envelope."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime | None = None
    seq: int = 0
    uuid: str = ""
    metrics: list[Metric] = []
