"""Gateway dispatch loop.

``EventDispatcher`` pulls envelopes off a connection, decodes them and
hands each decoded event to one user handler running in its own task.

Lifecycle
---------
``CONNECTING`` → ``READY`` → ``RUNNING`` → ``ENDED``

* The first decoded ``Ready`` event moves the loop to ``READY`` and the
  start hook runs to completion (it may send commands) before anything is
  handed to the handler. ``Ready`` is launched first; events that arrived
  ahead of it are held and launched next, in arrival order.
* In ``RUNNING`` every decoded event launches exactly one handler task.
  Tasks are launched in arrival order but may finish in any order.
* A decode failure is logged and the event dropped; the loop continues.
* A handler failure is contained in its task.
* Connection loss (or :meth:`stop`) moves to ``ENDED``; the end hook runs
  exactly once and no task is launched afterwards. Running tasks are left
  to finish; :meth:`wait_idle` waits for them.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from gateway_events.core.enums import GatewayState
from gateway_events.core.errors import (
    ConnectionClosed,
    DecodeError,
    DispatcherStateError,
)
from gateway_events.core.events import GatewayEvent, Ready
from gateway_events.decoding.decoder import decode_event
from gateway_events.gateway.connection import IGatewayConnection, RawEnvelope
from gateway_events.observability.logger import set_session_id

logger = logging.getLogger(__name__)

EventHandler = Callable[[GatewayEvent], Awaitable[None] | None]
Hook = Callable[[], Awaitable[None] | None]
DecodeErrorCallback = Callable[[RawEnvelope, DecodeError], None]
HandlerErrorCallback = Callable[[GatewayEvent, Exception], None]


async def _call(fn: Callable[..., Any], *args: Any) -> None:
    """Invoke a sync or async callable."""
    result = fn(*args)
    if inspect.isawaitable(result):
        await result


class EventDispatcher:
    """Drive one gateway session from connection to end.

    Parameters
    ----------
    connection:
        Source of envelopes and sink for outbound commands.
    handler:
        Called once per decoded event, each call in its own task.
    on_start:
        Runs once, when the session first becomes ready.
    on_end:
        Runs once, when the session ends.
    on_decode_error:
        Optional callback ``(envelope, error)`` for dropped events.
    on_handler_error:
        Optional callback ``(event, exc)`` when a handler raises.
    max_concurrent_handlers:
        ``None`` (default) launches a task per event without limit. With a
        number, the loop stops receiving while that many handlers run;
        :meth:`stop` still ends the session without waiting for a slot.
    """

    def __init__(
        self,
        connection: IGatewayConnection,
        handler: EventHandler,
        *,
        on_start: Hook | None = None,
        on_end: Hook | None = None,
        on_decode_error: DecodeErrorCallback | None = None,
        on_handler_error: HandlerErrorCallback | None = None,
        max_concurrent_handlers: int | None = None,
    ) -> None:
        if max_concurrent_handlers is not None and max_concurrent_handlers < 1:
            raise ValueError("max_concurrent_handlers must be >= 1")

        self._connection = connection
        self._handler = handler
        self._on_start = on_start
        self._on_end = on_end
        self._on_decode_error = on_decode_error
        self._on_handler_error = on_handler_error
        self._slots = (
            asyncio.Semaphore(max_concurrent_handlers)
            if max_concurrent_handlers is not None
            else None
        )

        self._state = GatewayState.CONNECTING
        self._started = False
        self._stopping = False
        self._stop_requested = asyncio.Event()
        self._end_reason: str | None = None
        self._held: list[GatewayEvent] = []
        self._tasks: set[asyncio.Task[None]] = set()

        # Observability
        self._events_received: int = 0
        self._events_dispatched: int = 0
        self._decode_errors: int = 0
        self._handler_errors: int = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def run(self) -> str:
        """Run the session until the connection ends. Returns the end reason."""
        if self._started:
            raise DispatcherStateError("EventDispatcher.run() may only be called once")
        self._started = True
        logger.info("Gateway session connecting")

        try:
            while not self._stopping:
                try:
                    envelope = await self._connection.receive()
                except ConnectionClosed as exc:
                    self._end_reason = self._end_reason or exc.reason
                    break
                self._events_received += 1

                event = self._decode(envelope)
                if event is None or self._stopping:
                    continue
                await self._route(event)
        finally:
            await self._end()

        return self._end_reason or "stopped"

    async def stop(self, reason: str = "stopped by client") -> None:
        """End the session. No handler is launched after this returns."""
        if self._stopping:
            return
        self._stopping = True
        self._stop_requested.set()
        self._end_reason = self._end_reason or reason
        await self._connection.close(reason)

    async def wait_idle(self, timeout: float | None = None) -> bool:
        """Wait for running handler tasks. Returns False on timeout."""
        if not self._tasks:
            return True
        _done, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        if pending:
            logger.warning("%d handler task(s) still running after %.1fs", len(pending), timeout or 0)
        return not pending

    async def send_command(self, command: Any) -> None:
        """Send an outbound command on the session's connection."""
        await self._connection.send(command)

    # ------------------------------------------------------------------
    # Loop internals
    # ------------------------------------------------------------------

    def _decode(self, envelope: RawEnvelope) -> GatewayEvent | None:
        try:
            return decode_event(envelope.name, envelope.payload)
        except DecodeError as exc:
            self._decode_errors += 1
            logger.warning("Dropping undecodable event (seq=%s): %s", envelope.seq, exc)
            if self._on_decode_error is not None:
                try:
                    self._on_decode_error(envelope, exc)
                except Exception:
                    logger.warning("on_decode_error callback failed", exc_info=True)
            return None

    async def _route(self, event: GatewayEvent) -> None:
        if self._state == GatewayState.CONNECTING:
            if not isinstance(event, Ready):
                self._held.append(event)
                return
            await self._become_ready(event)
            await self._launch(event)
            held, self._held = self._held, []
            for early in held:
                await self._launch(early)
            return
        await self._launch(event)

    async def _become_ready(self, ready: Ready) -> None:
        self._state = GatewayState.READY
        set_session_id(ready.session_id)
        logger.info(
            "Gateway session ready (user=%s, guilds=%d, resume_host=%s)",
            ready.user.username,
            len(ready.guilds),
            ready.resume_gateway_host,
        )
        if self._on_start is not None:
            try:
                await _call(self._on_start)
            except Exception:
                logger.exception("Start hook failed")
        self._state = GatewayState.RUNNING

    async def _launch(self, event: GatewayEvent) -> None:
        if self._stopping:
            return
        if self._slots is not None and not await self._acquire_slot(self._slots):
            return
        self._events_dispatched += 1
        task = asyncio.create_task(
            self._invoke(event),
            name=f"handler-{type(event).__name__}-{self._events_dispatched}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    async def _acquire_slot(self, slots: asyncio.Semaphore) -> bool:
        """Wait for a free handler slot. Returns False if the session stops first."""
        acquire = asyncio.ensure_future(slots.acquire())
        stopped = asyncio.ensure_future(self._stop_requested.wait())
        try:
            await asyncio.wait({acquire, stopped}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stopped.cancel()
            if not acquire.done():
                acquire.cancel()
            await asyncio.gather(acquire, stopped, return_exceptions=True)
        if acquire.cancelled():
            return False
        if self._stopping:
            slots.release()
            return False
        return True

    def _task_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if self._slots is not None:
            self._slots.release()

    async def _invoke(self, event: GatewayEvent) -> None:
        try:
            await _call(self._handler, event)
        except Exception as exc:
            self._handler_errors += 1
            logger.exception("Handler error on event=%s", type(event).__name__)
            if self._on_handler_error is not None:
                try:
                    self._on_handler_error(event, exc)
                except Exception:
                    logger.warning("on_handler_error callback failed", exc_info=True)

    async def _end(self) -> None:
        self._stopping = True
        self._stop_requested.set()
        self._state = GatewayState.ENDED
        if self._held:
            logger.warning("Session ended before READY; %d held event(s) dropped", len(self._held))
            self._held.clear()
        logger.info(
            "Gateway session ended (reason=%s, received=%d, dispatched=%d, decode_errors=%d)",
            self._end_reason or "stopped",
            self._events_received,
            self._events_dispatched,
            self._decode_errors,
        )
        if self._on_end is not None:
            try:
                await _call(self._on_end)
            except Exception:
                logger.exception("End hook failed")

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    @property
    def state(self) -> GatewayState:
        return self._state

    @property
    def end_reason(self) -> str | None:
        return self._end_reason

    @property
    def events_received(self) -> int:
        return self._events_received

    @property
    def events_dispatched(self) -> int:
        return self._events_dispatched

    @property
    def decode_errors(self) -> int:
        return self._decode_errors

    @property
    def handler_errors(self) -> int:
        return self._handler_errors

    @property
    def in_flight(self) -> int:
        """Handler tasks launched and not yet finished."""
        return len(self._tasks)
