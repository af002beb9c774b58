"""Bounded broadcast channel for passing messages between listeners."""

from __future__ import annotations

import asyncio
import inspect
import itertools
import uuid
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ChannelError(Exception):
    """Base error of a channel; ``value`` holds the undelivered message, if any."""

    def __init__(self, reason: str, value: Any = None) -> None:
        super().__init__(reason)
        self.value = value


class ChannelFull(ChannelError):
    """The channel already holds as many messages as it can."""

    def __init__(self, value: Any = None) -> None:
        super().__init__("channel is full", value)


class ChannelClosed(ChannelError):
    """The channel has been closed."""

    def __init__(self, value: Any = None) -> None:
        super().__init__("channel is closed", value)


class Channel(Generic[T]):
    """A broadcast channel: every active receiver gets every message sent after it joined.

    A message stays queued until all receivers that were active when it was sent
    have taken it; at most ``capacity`` messages are queued.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self.id = uuid.uuid4()
        self._queue: deque[list[Any]] = deque()  # [message, receivers still to take it]
        self._head = 0
        self._active = 0
        self._closed = False
        self._waiters: list[asyncio.Future[None]] = []

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Channel):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def closed(self) -> bool:
        return self._closed

    def try_send(self, msg: T) -> None:
        """Queue ``msg`` for all active receivers without waiting."""
        if self._closed:
            raise ChannelClosed(msg)
        if self._active == 0:
            raise ChannelError("channel has no active receivers", msg)
        if len(self._queue) >= self.capacity:
            raise ChannelFull(msg)
        self._queue.append([msg, self._active])
        self._wake()

    async def send(self, msg: T) -> None:
        """Queue ``msg``, waiting for room and for an active receiver."""
        while True:
            try:
                self.try_send(msg)
                return
            except ChannelClosed:
                raise
            except ChannelError:
                await self._wait()

    def receiver(self) -> Receiver[T]:
        """Create a receiver that sees messages sent from now on."""
        self._active += 1
        self._wake()
        return Receiver(self, self._head + len(self._queue))

    def close(self) -> bool:
        """Close the channel; return whether this call closed it."""
        if self._closed:
            return False
        self._closed = True
        self._wake()
        return True

    def _wake(self) -> None:
        waiters, self._waiters = self._waiters, []
        for fut in waiters:
            if not fut.done():
                fut.set_result(None)

    async def _wait(self) -> None:
        fut = asyncio.get_running_loop().create_future()
        self._waiters.append(fut)
        try:
            await fut
        finally:
            if fut in self._waiters:
                self._waiters.remove(fut)

    def _has_message(self, pos: int) -> bool:
        return pos - self._head < len(self._queue)

    def _take(self, pos: int) -> Any:
        entry = self._queue[pos - self._head]
        entry[1] -= 1
        self._trim()
        return entry[0]

    def _trim(self) -> None:
        removed = False
        while self._queue and self._queue[0][1] <= 0:
            self._queue.popleft()
            self._head += 1
            removed = True
        if removed:
            self._wake()

    def _detach(self, pos: int) -> None:
        self._active -= 1
        for entry in itertools.islice(self._queue, pos - self._head, None):
            entry[1] -= 1
        self._trim()


class Receiver(Generic[T]):
    """One listener's view of a :class:`Channel`. Use as a context manager to leave it."""

    def __init__(self, channel: Channel[T], position: int) -> None:
        self._channel = channel
        self._pos = position
        self._attached = True

    async def recv(self) -> T:
        """Wait for the next message; raise :class:`ChannelClosed` once none can come."""
        channel = self._channel
        while True:
            if not self._attached:
                raise ChannelClosed()
            if channel._has_message(self._pos):
                value = channel._take(self._pos)
                self._pos += 1
                return value
            if channel.closed:
                raise ChannelClosed()
            await channel._wait()

    def _release(self) -> None:
        if self._attached:
            self._attached = False
            self._channel._detach(self._pos)

    def __enter__(self) -> Receiver[T]:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._release()

    def __aiter__(self) -> Receiver[T]:
        return self

    async def __anext__(self) -> T:
        try:
            return await self.recv()
        except ChannelClosed:
            raise StopAsyncIteration from None


def listen_channel(
    channel: Channel[T],
    action: Callable[[Any], Awaitable[None] | None],
) -> asyncio.Task[None]:
    """Call ``action`` for each message until the channel closes.

    ``action`` receives each message, and finally the :class:`ChannelClosed` error.
    Must be called with an event loop running; returns the listening task.
    """
    loop = asyncio.get_running_loop()
    receiver = channel.receiver()

    async def run() -> None:
        with receiver:
            while True:
                result: Any
                try:
                    result = await receiver.recv()
                except ChannelClosed as exc:
                    result = exc
                outcome = action(result)
                if inspect.isawaitable(outcome):
                    await outcome
                if isinstance(result, ChannelClosed):
                    break

    return loop.create_task(run())