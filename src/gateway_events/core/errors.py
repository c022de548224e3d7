"""Custom exception hierarchy for gateway event ingestion."""


class GatewayEventsError(Exception):
    """Base exception for all gateway event errors."""


# --- Configuration ---
class ConfigError(GatewayEventsError):
    """Invalid or missing configuration."""


# --- Decoding ---
class DecodeError(GatewayEventsError):
    """A recognised event could not be decoded.

    Scoped to a single event: the dispatcher logs it, drops the event and
    carries on with the next one.
    """

    def __init__(self, event_name: str, reason: str, path: str = ""):
        self.event_name = event_name
        self.reason = reason
        self.path = path
        location = f" at '{path}'" if path else ""
        super().__init__(f"Cannot decode {event_name}{location}: {reason}")


# --- Connection ---
class ConnectionClosed(GatewayEventsError):
    """The gateway connection ended. Terminates the dispatch loop."""

    def __init__(self, reason: str = "connection closed"):
        self.reason = reason
        super().__init__(reason)


# --- Dispatch ---
class DispatcherStateError(GatewayEventsError):
    """Dispatcher lifecycle misuse (e.g. running a session twice)."""


class ChannelClosedError(GatewayEventsError):
    """Item offered to an ordered delivery channel after it was closed."""
