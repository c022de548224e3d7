"""Ordered delivery channel.

Handler invocations run as independent tasks, so writing straight to a
shared sink (stdout, a file, a socket) from each of them interleaves
output. Instead, each invocation puts one complete item on this channel
and a single consumer task drains it in enqueue order.

Follows the ``start() / stop()`` lifecycle used across the package.
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

from gateway_events.core.errors import ChannelClosedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Consumer = Callable[[T], Awaitable[None] | None]


class _EndOfStream:
    __slots__ = ()


_END = _EndOfStream()


class OrderedDeliveryChannel(Generic[T]):
    """Many producers, one consumer, strict FIFO.

    Parameters
    ----------
    consumer:
        Called once per item, in enqueue order. May be sync or async.
        Exceptions are logged and counted; the consumer keeps going.
    maxsize:
        Queue bound. ``0`` (default) means unbounded; with a bound,
        :meth:`put` waits for room.
    name:
        Used for the consumer task name and log lines.
    """

    def __init__(
        self,
        consumer: Consumer[T],
        *,
        maxsize: int = 0,
        name: str = "delivery",
    ) -> None:
        self._consumer = consumer
        self._queue: asyncio.Queue[T | _EndOfStream] = asyncio.Queue(maxsize=maxsize)
        self._name = name
        self._task: asyncio.Task[None] | None = None
        self._closed = False
        self._end_queued = False

        # Counters
        self._items_delivered: int = 0
        self._consumer_errors: int = 0

    # -- lifecycle ----------------------------------------------------------

    async def start(self) -> None:
        """Start the consumer task."""
        if self._task is not None:
            return
        self._task = asyncio.create_task(self.run(), name=f"channel-{self._name}")
        logger.info("Delivery channel %s started", self._name)

    async def stop(self, *, drain: bool = True) -> None:
        """Close the channel and wait for the consumer.

        With ``drain=False`` the consumer is cancelled and items still
        queued are dropped.
        """
        if self._task is not None and not drain:
            self._closed = True
            self._task.cancel()
        else:
            await self.close()
        if self._task is None:
            return
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info(
            "Delivery channel %s stopped (delivered=%d, errors=%d, dropped=%d)",
            self._name,
            self._items_delivered,
            self._consumer_errors,
            self.pending,
        )

    async def close(self) -> None:
        """Refuse further items. Items already queued are still delivered."""
        if self._closed:
            return
        self._closed = True
        await self._queue.put(_END)
        self._end_queued = True

    # -- producers ----------------------------------------------------------

    async def put(self, item: T) -> None:
        """Enqueue one complete item. Safe from any number of tasks."""
        if self._closed:
            raise ChannelClosedError(f"channel {self._name} is closed")
        await self._queue.put(item)

    def put_nowait(self, item: T) -> None:
        """Enqueue without waiting. Raises ``asyncio.QueueFull`` when bounded and full."""
        if self._closed:
            raise ChannelClosedError(f"channel {self._name} is closed")
        self._queue.put_nowait(item)

    # -- consumer -----------------------------------------------------------

    async def run(self) -> None:
        """Consume until the channel is closed and drained.

        Exactly one consumer may run; :meth:`start` runs this as a task.
        """
        while True:
            item = await self._queue.get()
            if isinstance(item, _EndOfStream):
                self._end_queued = False
                return
            try:
                result = self._consumer(item)
                if inspect.isawaitable(result):
                    await result
                self._items_delivered += 1
            except Exception:
                self._consumer_errors += 1
                logger.exception("Delivery channel %s consumer error", self._name)

    # -- observability ------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        """Items queued but not yet consumed (end marker excluded)."""
        size = self._queue.qsize()
        return size - 1 if self._end_queued else size

    @property
    def items_delivered(self) -> int:
        return self._items_delivered

    @property
    def consumer_errors(self) -> int:
        return self._consumer_errors
