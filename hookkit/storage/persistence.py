"""Signals that persist their value in session storage."""

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import Any, TypeVar

from hookkit.storage.backing import Signal, StorageBacking, new_storage_entry
from hookkit.storage.session import SessionStorage

T = TypeVar("T")

_default_storage = SessionStorage()


def new_persistent(
    key: Any, init: Callable[[], T], storage: StorageBacking | None = None
) -> Signal[T]:
    """A signal stored under ``str(key)`` whose changes are saved.

    Uses the process-wide session storage unless ``storage`` is given.
    """
    backing = _default_storage if storage is None else storage
    entry = new_storage_entry(backing, str(key), init)
    entry.save_to_storage_on_change()
    return entry.data


def new_singleton_persistent(
    init: Callable[[], T], storage: StorageBacking | None = None
) -> Signal[T]:
    """A persistent signal keyed by the calling file and line.

    Every call from the same line shares the same stored value.
    """
    frame = inspect.currentframe()
    caller = frame.f_back if frame is not None else None
    if caller is None:
        key = "<unknown>:0"
    else:
        key = f"{caller.f_code.co_filename}:{caller.f_lineno}"
    del frame, caller
    return new_persistent(key, init, storage)