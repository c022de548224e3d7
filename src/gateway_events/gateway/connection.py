"""Gateway connection boundary.

The dispatcher only needs three things from a connection: the next
envelope, a way to send an outbound command, and a way to close. Socket
handling, heartbeats and resume live behind this protocol.

Two implementations ship here:

* ``QueueConnection``: in-memory, fed by the embedding application or
  a test.
* ``ReplayConnection``: replays gateway dispatch frames recorded as
  JSON Lines.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO, Protocol, runtime_checkable

from gateway_events.core.errors import ConnectionClosed

logger = logging.getLogger(__name__)

# Gateway opcode for DISPATCH frames
DISPATCH_OPCODE = 0


@dataclass(frozen=True, slots=True)
class RawEnvelope:
    """One inbound notification, exactly as the connection delivered it."""

    name: str
    payload: Any
    seq: int | None = None


@runtime_checkable
class IGatewayConnection(Protocol):
    """Inbound/outbound boundary of a gateway session."""

    async def receive(self) -> RawEnvelope:
        """Next envelope, in network order. Raises ``ConnectionClosed``."""
        ...

    async def send(self, command: Any) -> None: ...

    async def close(self, reason: str = "closed by client") -> None: ...


class QueueConnection:
    """In-memory connection.

    Envelopes are fed with :meth:`feed`; outbound commands are recorded in
    :attr:`sent`. After :meth:`close`, envelopes already fed are still
    delivered, then ``receive`` raises ``ConnectionClosed``.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[RawEnvelope | None] = asyncio.Queue()
        self._closed = False
        self._close_reason = "connection closed"
        self._seq = 0
        self.sent: list[Any] = []

    def feed(self, name: str, payload: Any) -> None:
        if self._closed:
            raise ConnectionClosed(self._close_reason)
        self._seq += 1
        self._queue.put_nowait(RawEnvelope(name=name, payload=payload, seq=self._seq))

    async def receive(self) -> RawEnvelope:
        envelope = await self._queue.get()
        if envelope is None:
            # Leave the marker for any later receive() call
            self._queue.put_nowait(None)
            raise ConnectionClosed(self._close_reason)
        return envelope

    async def send(self, command: Any) -> None:
        if self._closed:
            raise ConnectionClosed(self._close_reason)
        self.sent.append(command)

    async def close(self, reason: str = "closed by client") -> None:
        if self._closed:
            return
        self._closed = True
        self._close_reason = reason
        self._queue.put_nowait(None)

    @property
    def closed(self) -> bool:
        return self._closed


class ReplayConnection:
    """Replay recorded gateway frames from a JSON Lines file.

    Each line is one gateway frame, ``{"op": 0, "t": "MESSAGE_CREATE",
    "s": 42, "d": {...}}``. Frames with another opcode (heartbeats, hello)
    are skipped. Outbound commands are logged and recorded, never sent.
    A line that is not UTF-8 or not a JSON object ends the replay like a
    dropped connection would.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._file: BinaryIO | None = None
        self._line_no = 0
        self._closed = False
        self._close_reason = "replay finished"
        self.sent: list[Any] = []

    async def receive(self) -> RawEnvelope:
        while True:
            if self._closed:
                raise ConnectionClosed(self._close_reason)
            line = self._next_line()
            if line is None:
                raise self._end("replay finished")
            if not line.strip():
                continue

            frame = self._parse(line)
            if frame.get("op", DISPATCH_OPCODE) != DISPATCH_OPCODE:
                continue
            name = frame.get("t")
            if not isinstance(name, str):
                raise self._end(f"line {self._line_no}: dispatch frame without event name")
            # Yield so a replay behaves like a network read
            await asyncio.sleep(0)
            return RawEnvelope(name=name, payload=frame.get("d"), seq=frame.get("s"))

    async def send(self, command: Any) -> None:
        logger.info("Replay connection drops outbound command: %r", command)
        self.sent.append(command)

    async def close(self, reason: str = "closed by client") -> None:
        if not self._closed:
            self._end(reason)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _end(self, reason: str) -> ConnectionClosed:
        """Mark the replay finished and return the error to raise."""
        if not self._closed:
            self._closed = True
            self._close_reason = reason
            if self._file is not None:
                self._file.close()
                self._file = None
        return ConnectionClosed(self._close_reason)

    def _next_line(self) -> str | None:
        if self._file is None:
            try:
                self._file = open(self._path, "rb")
            except OSError as exc:
                raise self._end(f"cannot open {self._path}: {exc}") from exc
        raw = self._file.readline()
        if not raw:
            return None
        self._line_no += 1
        # Decoded per line so a bad byte is reported on its own line
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise self._end(f"line {self._line_no}: invalid UTF-8") from exc

    def _parse(self, line: str) -> dict[str, Any]:
        try:
            frame = json.loads(line)
        except json.JSONDecodeError as exc:
            raise self._end(f"line {self._line_no}: invalid JSON ({exc.msg})") from exc
        if not isinstance(frame, dict):
            raise self._end(f"line {self._line_no}: frame must be a JSON object")
        return frame
