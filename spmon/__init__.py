"""spmon: live MQTT monitor with Sparkplug B decoding.

  - Hand-rolled proto2 codec for Sparkplug B payloads (no protoc)
  - Bounded live message timeline with follow mode
  - On-demand decoding of the selected message, partial results on error
  - Node Control/Rebirth commands targeted from the selection context
"""

__version__ = "0.1.0"
__description__ = "Live MQTT monitor with Sparkplug B decoding"

from spmon.core.timeline import MessageTimeline
from spmon.sparkplug.decode import decode_payload
from spmon.sparkplug.encode import encode_ncmd_rebirth

__all__ = ["MessageTimeline", "decode_payload", "encode_ncmd_rebirth", "__version__"]
