"""In-memory storage that lasts as long as the storage object."""

from __future__ import annotations

import copy
from typing import Any

from hookkit.storage.backing import StorageBacking


class SessionStorage(StorageBacking):
    """Keeps copies of values in memory for the current session."""

    def __init__(self) -> None:
        self._map: dict[str, Any] = {}

    def get(self, key: str) -> Any:
        """Return a copy of the value under ``key``; raise ``KeyError`` if absent."""
        return copy.deepcopy(self._map[key])

    def set(self, key: str, value: Any) -> None:
        """Store a copy of ``value`` under ``key``."""
        self._map[key] = copy.deepcopy(value)

    def __contains__(self, key: object) -> bool:
        return key in self._map