"""Gateway session runtime: connection boundary, dispatch loop, ordered delivery."""

from gateway_events.gateway.connection import (
    IGatewayConnection,
    QueueConnection,
    RawEnvelope,
    ReplayConnection,
)
from gateway_events.gateway.delivery import OrderedDeliveryChannel
from gateway_events.gateway.dispatcher import EventDispatcher

__all__ = [
    "EventDispatcher",
    "IGatewayConnection",
    "OrderedDeliveryChannel",
    "QueueConnection",
    "RawEnvelope",
    "ReplayConnection",
]
