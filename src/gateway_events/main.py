"""Application bootstrap.

Wires a connection, the dispatch loop and an ordered delivery channel
together and runs one session to completion.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .core.config import Settings, load_settings
from .core.events import GatewayEvent
from .gateway.connection import IGatewayConnection, ReplayConnection
from .gateway.delivery import OrderedDeliveryChannel
from .gateway.dispatcher import EventDispatcher
from .observability.logger import setup_logging

logger = logging.getLogger(__name__)


@dataclass
class SessionSummary:
    """Outcome of one session run."""

    end_reason: str
    events_received: int
    events_dispatched: int
    decode_errors: int
    handler_errors: int
    lines_written: int


def format_event(event: GatewayEvent) -> str:
    """One-line rendering of an event for line-oriented sinks."""
    return repr(event)


async def run_session(
    connection: IGatewayConnection,
    settings: Settings,
    emit: Callable[[str], Any],
) -> SessionSummary:
    """Print every event of a session through one ordered channel.

    Handlers run concurrently, so each one only formats its event and puts
    the finished line on the channel; the channel's single consumer is the
    only writer to ``emit``.
    """
    channel: OrderedDeliveryChannel[str] = OrderedDeliveryChannel(
        emit, maxsize=settings.delivery.max_queue_size, name="output",
    )
    await channel.start()

    async def handle(event: GatewayEvent) -> None:
        await channel.put(format_event(event))

    async def on_start() -> None:
        logger.info("Session ready, dispatching events")

    dispatcher = EventDispatcher(
        connection,
        handle,
        on_start=on_start,
        max_concurrent_handlers=settings.dispatch.max_concurrent_handlers,
    )

    # Graceful shutdown on SIGINT/SIGTERM
    loop = asyncio.get_running_loop()
    installed: list[signal.Signals] = []

    def _signal_handler() -> None:
        logger.info("Received shutdown signal")
        loop.create_task(dispatcher.stop("shutdown signal"))

    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError, RuntimeError, ValueError):
            loop.add_signal_handler(sig, _signal_handler)
            installed.append(sig)

    try:
        reason = await dispatcher.run()
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)
        # Flush lines already produced, even when the session failed
        if not await dispatcher.wait_idle(timeout=settings.dispatch.drain_timeout_seconds):
            logger.warning("Some handlers did not finish; their output is lost")
        await channel.stop()

    return SessionSummary(
        end_reason=reason,
        events_received=dispatcher.events_received,
        events_dispatched=dispatcher.events_dispatched,
        decode_errors=dispatcher.decode_errors,
        handler_errors=dispatcher.handler_errors,
        lines_written=channel.items_delivered,
    )


async def run_replay(
    capture: str | Path,
    emit: Callable[[str], Any],
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> SessionSummary:
    """Main entry point for replaying a recorded capture."""
    settings = load_settings(config_path=config_path, overrides=overrides)
    settings.validate_runtime()
    setup_logging(
        level=settings.observability.log_level,
        format=settings.observability.log_format.value,
    )

    logger.info("Replaying gateway capture %s", capture)
    summary = await run_session(ReplayConnection(capture), settings, emit)
    logger.info(
        "Replay done: %d received, %d dispatched, %d undecodable",
        summary.events_received,
        summary.events_dispatched,
        summary.decode_errors,
    )
    return summary
