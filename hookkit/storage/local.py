"""File-backed storage that outlives the process, with change subscriptions."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import platformdirs

from hookkit.storage.backing import (
    StorageBacking,
    StorageChannelPayload,
    StorageSubscriber,
    StorageSubscription,
    WatchReceiver,
    watch_channel,
)
from hookkit.storage.codec import serde_from_string, serde_to_string

DEFAULT_DIR_NAME = "hookkit"


class LocalStorage(StorageBacking, StorageSubscriber):
    """Stores each key as a file in one directory.

    The directory may be set only once. Writers in the same process notify the
    subscribers of a key directly.
    """

    def __init__(self, directory: str | Path | None = None) -> None:
        self._directory: Path | None = None
        self._subscriptions: dict[str, StorageSubscription] = {}
        if directory is not None:
            self.set_directory(directory)

    @property
    def directory(self) -> Path | None:
        """The storage directory, or ``None`` while it is unset."""
        return self._directory

    def set_directory(self, path: str | Path) -> None:
        """Set the directory holding the storage files; raise ``RuntimeError`` if already set."""
        if self._directory is not None:
            raise RuntimeError("the storage directory has already been set")
        self._directory = Path(path)

    def set_dir_name(self, name: str) -> None:
        """Use the directory ``name`` inside the user's local data directory."""
        base = Path(platformdirs.user_data_dir(roaming=False))
        self.set_directory(base / name)

    def set_dir(self, path: str | Path | None = None) -> None:
        """Use ``path`` if given, otherwise the default directory name under local data."""
        if path is None:
            self.set_dir_name(DEFAULT_DIR_NAME)
        else:
            self.set_directory(path)

    def _require_directory(self) -> Path:
        if self._directory is None:
            raise RuntimeError("call set_dir before accessing persistent data")
        return self._directory

    def get(self, key: str) -> Any:
        """Read the value stored under ``key``; raise ``KeyError`` if absent or unreadable."""
        path = self._require_directory() / key
        try:
            text = path.read_text(encoding="utf-8")
            return serde_from_string(text)
        except (OSError, ValueError):
            raise KeyError(key) from None

    def set(self, key: str, value: Any) -> None:
        """Write ``value`` under ``key`` and notify the key's subscribers."""
        snapshot = copy.deepcopy(value)
        encoded = serde_to_string(value)
        directory = self._require_directory()
        directory.mkdir(parents=True, exist_ok=True)
        (directory / key).write_text(encoded, encoding="utf-8")

        subscription = self._subscriptions.get(key)
        if subscription is not None:
            subscription.tx.send(StorageChannelPayload(snapshot))

    def subscribe(self, key: str) -> WatchReceiver:
        """Return a receiver of updates to ``key``, sharing one channel per key."""
        subscription = self._subscriptions.get(key)
        if subscription is not None:
            return subscription.tx.subscribe()
        tx, rx = watch_channel(StorageChannelPayload())
        self._subscriptions[key] = StorageSubscription(self, key, tx)
        return rx

    def unsubscribe(self, key: str) -> None:
        """Forget the subscription for ``key``, if there is one."""
        self._subscriptions.pop(key, None)