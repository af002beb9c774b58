# hookkit

Small building blocks for interactive applications:

- **Translations** (`hookkit.i18n`): JSON language files with nested texts,
  dotted-path lookups, `{name}` placeholders and a fallback language.
- **Broadcast channels** (`hookkit.channel`): a bounded asyncio channel whose
  messages reach every active receiver, plus a listener helper.
- **Geolocation state** (`hookkit.geolocation`): coordinate, status, power
  mode and access types, event and error types, and a tracker that keeps the
  latest result from a stream of events.
- **Persistent storage** (`hookkit.storage`): values kept in memory for the
  session or in compressed files on disk, held in reactive signals, with
  change notifications shared between entries for the same key.

## Installation

```
pip install hookkit
```

Python 3.10 or newer is required.

## Translations

A language file is a JSON object with an `id` and nested `texts`; every leaf
must be a string:

```json
{
  "id": "en-US",
  "texts": {
    "messages": {
      "hello_world": "Hello World!",
      "hello": "Hello, {name}"
    }
  }
}
```

```python
from hookkit.i18n import parse_language, init_i18n, translate

with open("en-US.json", encoding="utf-8") as f:
    en_us = parse_language(f.read())
with open("es-ES.json", encoding="utf-8") as f:
    es_es = parse_language(f.read())

i18n = init_i18n("en-US", "en-US", lambda: [en_us, es_es])

i18n.translate("messages.hello_world")            # "Hello World!"
translate(i18n, "messages.hello", name="Dioxus")  # "Hello, Dioxus"

i18n.set_language("es-ES")
```

- `parse_language` raises `ValueError` on malformed JSON, a missing `id` or
  `texts`, or a leaf that is not a string.
- `init_i18n` takes a list of languages or a function returning one.
- Lookups search the selected language first, then the fallback language;
  when neither is loaded the id itself is returned. A path that is missing
  in a loaded language gives an empty string.
- A path is followed step by step; where a step fails, the whole remaining
  path is also tried as a single key (so `{"a": {"b.c": "x"}}` answers
  `"a.b.c"`).
- Each `{name}` placeholder is replaced once, with `str(value)`.

## Broadcast channels

```python
import asyncio
from hookkit.channel import Channel, ChannelClosed, listen_channel

async def main():
    channel = Channel(5)

    async def on_message(result):
        if isinstance(result, ChannelClosed):
            print("Channel closed")
        else:
            print("Incoming message:", result)

    task = listen_channel(channel, on_message)
    await channel.send("Hello")
    channel.close()
    await task

asyncio.run(main())
```

- `Channel(capacity)` needs a capacity of at least 1. Channels compare equal
  only to themselves (each has a random `id`).
- `channel.receiver()` returns a `Receiver` that sees messages sent from then
  on. `await receiver.recv()` returns the next message and raises
  `ChannelClosed` once the channel is closed and drained. A receiver is an
  async iterator, and a context manager that detaches it on exit.
- A message stays queued until every receiver active when it was sent has
  taken it; at most `capacity` messages are queued.
- `try_send` raises `ChannelFull` when the queue is full, `ChannelClosed`
  after `close()`, and `ChannelError` when there is no active receiver. All
  carry the undelivered message as `.value`. `send` waits for room and for a
  receiver instead, raising only `ChannelClosed`.
- `listen_channel(channel, action)` must be called with an event loop
  running. It attaches a receiver at once and returns a task that calls
  `action` with each message and finally with the `ChannelClosed` error;
  `action` may be a plain function or a coroutine function.

## Geolocation state

```python
from hookkit.geolocation import (
    GeolocationTracker, NewGeocoordinates, Geocoordinates, StatusChanged, Status,
)

tracker = GeolocationTracker()
tracker.handle(NewGeocoordinates(Geocoordinates(latitude=52.52, longitude=13.40)))
tracker.coordinates        # Geocoordinates(latitude=52.52, longitude=13.4)

tracker.handle(StatusChanged(Status.DISABLED))
tracker.coordinates        # raises AccessDenied
```

Before any coordinates arrive, `tracker.coordinates` raises `NotInitialized`.
Status changes other than `Status.DISABLED` are ignored. The errors
`NotInitialized`, `AccessDenied`, `Poisoned` and `DeviceError(message)` all
derive from `GeolocationError`.

## Persistent storage

Backings:

- `hookkit.storage.session.SessionStorage` keeps deep copies of values in
  memory for as long as the object lives.
- `hookkit.storage.local.LocalStorage` writes each key as a file in one
  directory. Set the directory once, with `set_directory(path)`,
  `set_dir_name(name)` (a directory of that name in the user's local data
  directory) or `set_dir(path=None)` (the given path, or `hookkit` under local
  data); setting it twice raises `RuntimeError`, as does reading or writing
  before it is set. Values must be JSON-serialisable. Writing a key notifies
  that key's subscribers in the same process.

Reading a missing or unreadable key from a backing raises `KeyError`.

Signals and entries (`hookkit.storage.backing`):

```python
import asyncio
from hookkit.storage.local import LocalStorage
from hookkit.storage.session import SessionStorage
from hookkit.storage.backing import new_storage, new_synced_storage
from hookkit.storage.persistence import new_persistent

async def main():
    local = LocalStorage()
    local.set_dir("path/to/dir")

    count = new_synced_storage(local, "synced", lambda: 0)
    other = new_synced_storage(local, "synced", lambda: 0)
    count.value += 1          # written to disk
    await asyncio.sleep(0)    # let the follower task run
    print(other.value)        # 1

    session = SessionStorage()
    clicks = new_persistent("clicks", lambda: 0, session)
    clicks.value += 1

asyncio.run(main())
```

- `get_from_storage(backing, key, init)` returns the stored value, or stores
  and returns `init()`.
- `new_storage` returns a `Signal` holding the stored value (or `init()`);
  each write whose value differs from the one the signal started with is
  saved.
- `new_synced_storage` does the same and also follows changes to the key made
  through the same `LocalStorage` object; it needs a running event loop.
- `new_storage_entry` / `new_synced_storage_entry` give the underlying
  `StorageEntry` / `SyncedStorageEntry`, with `save()`, `update()`,
  `save_to_storage_on_change()` and, for synced entries,
  `subscribe_to_storage()`.
- `Signal(value)` has a `value` property and `subscribe(callback)`, which
  returns a function that unsubscribes.
- `watch_channel(initial)` creates the latest-value channel used for
  notifications (`WatchSender`, `WatchReceiver`).

`hookkit.storage.persistence`:

- `new_persistent(key, init, storage=None)` stores under `str(key)`, in a
  process-wide `SessionStorage` unless `storage` is given.
- `new_singleton_persistent(init, storage=None)` keys the value by the calling
  file and line, so every call from that line shares it.

Stored text is JSON, zlib-compressed and written as lowercase hexadecimal.
`hookkit.storage.codec` does the conversion: `serde_to_string`,
`try_serde_from_string` (returns `None` on malformed input) and
`serde_from_string` (raises `ValueError`).

## What hookkit does not do

- It does not talk to location hardware or services; the geolocation module
  only holds types and tracks events that you feed to it.
- It has no browser storage backing and no cross-process change
  notifications: `LocalStorage` notifies only subscribers on the same object.
- It has no clipboard, colour-scheme or desktop-notification helpers, and no
  command-line tool.

## Running the tests

```
pip install -e ".[test]"
pytest
```