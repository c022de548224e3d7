"""Gateway payload decoding: ``(event name, payload)`` → ``GatewayEvent``."""

from gateway_events.decoding.decoder import (
    EVENT_DECODERS,
    decode_event,
    known_event_names,
)

__all__ = ["EVENT_DECODERS", "decode_event", "known_event_names"]
