"""Reactive signals, storage backings and entries that keep their value in storage."""

from __future__ import annotations

import abc
import asyncio
import copy
import itertools
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from hookkit.channel import ChannelClosed

T = TypeVar("T")

_MISSING: Any = object()
_background_tasks: set[asyncio.Task[None]] = set()


class Signal(Generic[T]):
    """A value holder that tells its subscribers about every write."""

    def __init__(self, value: T) -> None:
        self._value = value
        self._subscribers: dict[int, Callable[[T], None]] = {}
        self._ids = itertools.count()

    @property
    def value(self) -> T:
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        self._value = new_value
        for callback in list(self._subscribers.values()):
            callback(new_value)

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """Call ``callback`` with the value after each write; return a function that stops it."""
        token = next(self._ids)
        self._subscribers[token] = callback

        def unsubscribe() -> None:
            self._subscribers.pop(token, None)

        return unsubscribe

    def __repr__(self) -> str:
        return f"Signal({self._value!r})"

    def __str__(self) -> str:
        return str(self._value)


class StorageChannelPayload:
    """The latest value from storage, as carried over a watch channel."""

    __slots__ = ("_data",)

    def __init__(self, data: Any = _MISSING) -> None:
        self._data = data

    @property
    def has_data(self) -> bool:
        return self._data is not _MISSING

    @property
    def data(self) -> Any:
        """The carried value, or ``None`` for an empty payload."""
        return None if self._data is _MISSING else self._data

    def __repr__(self) -> str:
        inner = repr(self._data) if self.has_data else ""
        return f"StorageChannelPayload({inner})"


class _WatchState:
    def __init__(self, value: Any) -> None:
        self.value = value
        self.version = 0
        self.receivers = 0
        self.waiters: list[asyncio.Future[None]] = []

    def wake(self) -> None:
        waiters, self.waiters = self.waiters, []
        for fut in waiters:
            if not fut.done():
                fut.set_result(None)


class WatchSender:
    """Sending half of a watch channel, which holds only the latest value."""

    def __init__(self, state: _WatchState) -> None:
        self._state = state

    def send(self, value: Any) -> None:
        """Replace the value and wake receivers; raise :class:`ChannelClosed` if none remain."""
        state = self._state
        if state.receivers == 0:
            raise ChannelClosed(value)
        state.value = value
        state.version += 1
        state.wake()

    def subscribe(self) -> WatchReceiver:
        """Create a receiver that treats the current value as already seen."""
        self._state.receivers += 1
        return WatchReceiver(self._state, self._state.version)

    def is_closed(self) -> bool:
        return self._state.receivers == 0


class WatchReceiver:
    """Receiving half of a watch channel. Use as a context manager to close it."""

    def __init__(self, state: _WatchState, seen_version: int) -> None:
        self._state = state
        self._seen = seen_version
        self._open = True

    def borrow(self) -> Any:
        """The current value, without marking it seen."""
        return self._state.value

    def borrow_and_update(self) -> Any:
        """The current value, marking it seen."""
        self._seen = self._state.version
        return self._state.value

    def has_changed(self) -> bool:
        """Whether a value was sent that this receiver has not seen."""
        if not self._open:
            raise ChannelClosed()
        return self._state.version != self._seen

    async def changed(self) -> None:
        """Wait for an unseen value and mark it seen."""
        state = self._state
        while True:
            if not self._open:
                raise ChannelClosed()
            if state.version != self._seen:
                self._seen = state.version
                return
            fut = asyncio.get_running_loop().create_future()
            state.waiters.append(fut)
            try:
                await fut
            finally:
                if fut in state.waiters:
                    state.waiters.remove(fut)

    def close(self) -> None:
        """Stop receiving; the sender sees the channel closed once no receiver is open."""
        if self._open:
            self._open = False
            self._state.receivers -= 1
            self._state.wake()

    def __copy__(self) -> WatchReceiver:
        self._state.receivers += 1
        return WatchReceiver(self._state, self._seen)

    def __enter__(self) -> WatchReceiver:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def watch_channel(initial: Any) -> tuple[WatchSender, WatchReceiver]:
    """Create a watch channel holding ``initial``."""
    state = _WatchState(initial)
    sender = WatchSender(state)
    return sender, sender.subscribe()


class StorageBacking(abc.ABC):
    """A place where values are stored under keys."""

    @abc.abstractmethod
    def get(self, key: Any) -> Any:
        """Return the stored value; raise ``KeyError`` if absent or unreadable."""

    @abc.abstractmethod
    def set(self, key: Any, value: Any) -> None:
        """Store ``value`` under ``key``."""


class StorageSubscriber(abc.ABC):
    """A backing that can tell subscribers when a key's value changes."""

    @abc.abstractmethod
    def subscribe(self, key: Any) -> WatchReceiver:
        """Return a receiver of :class:`StorageChannelPayload` updates for ``key``."""

    @abc.abstractmethod
    def unsubscribe(self, key: Any) -> None:
        """Stop tracking ``key``."""


@dataclass
class StorageSubscription:
    """Reads a key from a backing and sends it to the key's watch channel."""

    backing: StorageBacking
    key: Any
    tx: WatchSender

    def get_and_send(self) -> None:
        """Send the stored value; raises ``KeyError`` if absent, :class:`ChannelClosed` if unheard."""
        self.tx.send(StorageChannelPayload(self.backing.get(self.key)))


def _save_on_change(data: Signal[Any], save: Callable[[], None]) -> Callable[[], None]:
    old = copy.deepcopy(data.value)

    def on_write(value: Any) -> None:
        if value != old:
            save()

    return data.subscribe(on_write)


class StorageEntry(Generic[T]):
    """A key in a backing together with a signal holding its value."""

    def __init__(self, backing: StorageBacking, key: Any, value: T) -> None:
        self.backing = backing
        self.key = key
        self.data: Signal[T] = Signal(value)

    @property
    def value(self) -> T:
        return self.data.value

    @value.setter
    def value(self, new_value: T) -> None:
        self.data.value = new_value

    def save(self) -> None:
        """Write the current value to storage."""
        self.backing.set(self.key, self.data.value)

    def update(self) -> None:
        """Reload the value from storage, keeping the current one if there is none."""
        try:
            stored = self.backing.get(self.key)
        except KeyError:
            return
        self.data.value = stored

    def save_to_storage_on_change(self) -> Callable[[], None]:
        """Save whenever the value is written as something other than its current value.

        Returns a function that stops saving.
        """
        return _save_on_change(self.data, self.save)

    def __str__(self) -> str:
        return str(self.data.value)

    def __repr__(self) -> str:
        return f"StorageEntry({self.key!r}, {self.data.value!r})"


class SyncedStorageEntry(Generic[T]):
    """A storage entry that also follows changes made to its key elsewhere."""

    def __init__(self, backing: Any, key: Any, value: T) -> None:
        self.channel: WatchReceiver = backing.subscribe(key)
        self.entry: StorageEntry[T] = StorageEntry(backing, key, value)

    @property
    def key(self) -> Any:
        return self.entry.key

    @property
    def data(self) -> Signal[T]:
        return self.entry.data

    @property
    def value(self) -> T:
        return self.entry.data.value

    @value.setter
    def value(self, new_value: T) -> None:
        self.entry.data.value = new_value

    def save(self) -> None:
        """Save unless the channel already carries the current value."""
        payload = self.channel.borrow()
        if payload.has_data and payload.data == self.entry.data.value:
            return
        self.entry.save()

    def update(self) -> None:
        self.entry.update()

    def save_to_storage_on_change(self) -> Callable[[], None]:
        """Save whenever the value is written as something other than its current value."""
        return _save_on_change(self.entry.data, self.save)

    def subscribe_to_storage(self) -> asyncio.Task[None]:
        """Start a task copying storage updates into the signal; needs a running loop."""
        loop = asyncio.get_running_loop()
        channel = copy.copy(self.channel)
        data = self.entry.data

        async def follow() -> None:
            with channel:
                while True:
                    try:
                        await channel.changed()
                    except ChannelClosed:
                        return
                    payload = channel.borrow_and_update()
                    if payload.has_data:
                        data.value = payload.data

        task = loop.create_task(follow())
        _background_tasks.add(task)
        task.add_done_callback(_background_tasks.discard)
        return task

    def __repr__(self) -> str:
        return f"SyncedStorageEntry({self.key!r}, {self.value!r})"


def get_from_storage(backing: StorageBacking, key: Any, init: Callable[[], T]) -> T:
    """Return the stored value, or store and return ``init()`` if there is none."""
    try:
        return backing.get(key)
    except KeyError:
        data = init()
        backing.set(key, data)
        return data


def new_storage_entry(backing: StorageBacking, key: Any, init: Callable[[], T]) -> StorageEntry[T]:
    """An entry holding the stored value, or ``init()`` if there is none."""
    return StorageEntry(backing, key, get_from_storage(backing, key, init))


def new_synced_storage_entry(backing: Any, key: Any, init: Callable[[], T]) -> SyncedStorageEntry[T]:
    """A synced entry holding the stored value, or ``init()`` if there is none."""
    return SyncedStorageEntry(backing, key, get_from_storage(backing, key, init))


def new_storage(backing: StorageBacking, key: Any, init: Callable[[], T]) -> Signal[T]:
    """A signal whose changes are saved to storage."""
    entry = new_storage_entry(backing, key, init)
    entry.save_to_storage_on_change()
    return entry.data


def new_synced_storage(backing: Any, key: Any, init: Callable[[], T]) -> Signal[T]:
    """A signal saved to storage and kept in step with other signals on the same key.

    Must be called with an event loop running.
    """
    entry = new_synced_storage_entry(backing, key, init)
    entry.save_to_storage_on_change()
    entry.subscribe_to_storage()
    return entry.data