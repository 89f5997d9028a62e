"""Raw MQTT messages as held by the live timeline."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class MessageCategory(str, Enum):
    """Display category, derived from the topic namespace."""

    TEDGE = "tedge"  # te/... JSON measurements
    SPARKPLUG = "sparkplug"  # spBv1.0/... binary payloads
    OTHER = "other"


class RawMessage(BaseModel):
    """A received message.  Immutable once ingested."""

    model_config = ConfigDict(frozen=True)

    received_at: datetime
    topic: str
    payload: bytes
    category: MessageCategory = MessageCategory.OTHER

    @property
    def size(self) -> int:
        return len(self.payload)
