import asyncio

import platformdirs
import pytest

from hookkit.storage.backing import new_synced_storage_entry
from hookkit.storage.codec import serde_to_string
from hookkit.storage.local import LocalStorage


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(tmp_path / "store")


def test_round_trip(storage):
    storage.set("count", {"a": [1, 2, 3]})
    assert storage.get("count") == {"a": [1, 2, 3]}


def test_overwrite(storage):
    storage.set("k", 1)
    storage.set("k", 2)
    assert storage.get("k") == 2


def test_missing_key_raises_key_error(storage):
    with pytest.raises(KeyError):
        storage.get("absent")


def test_stored_null_is_returned(storage):
    storage.set("nothing", None)
    assert storage.get("nothing") is None


def test_unset_directory_raises():
    store = LocalStorage()
    with pytest.raises(RuntimeError):
        store.get("k")
    with pytest.raises(RuntimeError):
        store.set("k", 1)


def test_directory_set_twice_raises(tmp_path):
    store = LocalStorage()
    store.set_directory(tmp_path)
    with pytest.raises(RuntimeError):
        store.set_directory(tmp_path / "other")
    assert store.directory == tmp_path


def test_file_holds_encoded_value(storage):
    storage.set("k", [1, "two"])
    assert (storage.directory / "k").read_text() == serde_to_string([1, "two"])


def test_directory_is_created(tmp_path):
    target = tmp_path / "a" / "b"
    store = LocalStorage(target)
    store.set("k", 1)
    assert target.is_dir()


def test_corrupt_file_raises_key_error(storage):
    storage.directory.mkdir(parents=True)
    (storage.directory / "bad").write_text("zz not hex")
    with pytest.raises(KeyError):
        storage.get("bad")


def test_set_dir_name_uses_local_data_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(platformdirs, "user_data_dir", lambda *a, **k: str(tmp_path))
    store = LocalStorage()
    store.set_dir_name("app")
    assert store.directory == tmp_path / "app"


def test_set_dir_default_and_explicit(tmp_path, monkeypatch):
    monkeypatch.setattr(platformdirs, "user_data_dir", lambda *a, **k: str(tmp_path))
    default = LocalStorage()
    default.set_dir()
    assert default.directory == tmp_path / "hookkit"

    explicit = LocalStorage()
    explicit.set_dir(tmp_path / "custom")
    assert explicit.directory == tmp_path / "custom"


def test_subscriber_is_notified(storage):
    rx = storage.subscribe("k")
    assert rx.has_changed() is False
    storage.set("k", 7)
    assert rx.has_changed() is True
    assert rx.borrow_and_update().data == 7


def test_subscribers_share_a_channel(storage):
    first = storage.subscribe("k")
    second = storage.subscribe("k")
    storage.set("k", "hello")
    assert first.borrow().data == "hello"
    assert second.borrow().data == "hello"


def test_payload_is_a_copy(storage):
    rx = storage.subscribe("k")
    value = [1, 2]
    storage.set("k", value)
    value.append(3)
    assert rx.borrow().data == [1, 2]


def test_unsubscribe_stops_notifications(storage):
    rx = storage.subscribe("k")
    storage.unsubscribe("k")
    storage.set("k", 1)
    assert rx.has_changed() is False
    assert storage.get("k") == 1


def test_unsubscribe_unknown_key_is_harmless(storage):
    storage.unsubscribe("never")
    storage.set("never", 3)
    assert storage.get("never") == 3


@pytest.mark.asyncio
async def test_synced_entries_follow_each_other(storage):
    first = new_synced_storage_entry(storage, "shared", lambda: 0)
    second = new_synced_storage_entry(storage, "shared", lambda: 0)
    first.save_to_storage_on_change()
    second.save_to_storage_on_change()
    tasks = [first.subscribe_to_storage(), second.subscribe_to_storage()]
    try:
        first.value = 5
        for _ in range(5):
            await asyncio.sleep(0)
        assert second.value == 5
        assert storage.get("shared") == 5
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)