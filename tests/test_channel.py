import asyncio

import pytest

from hookkit.channel import (
    Channel,
    ChannelClosed,
    ChannelError,
    ChannelFull,
    listen_channel,
)


@pytest.mark.asyncio
async def test_receiver_gets_message():
    ch = Channel(5)
    r = ch.receiver()
    await ch.send("Hello")
    assert await r.recv() == "Hello"


@pytest.mark.asyncio
async def test_all_receivers_get_message():
    ch = Channel(5)
    r1, r2 = ch.receiver(), ch.receiver()
    ch.try_send("m")
    assert [await r1.recv(), await r2.recv()] == ["m", "m"]


def test_try_send_without_receivers():
    ch = Channel(5)
    with pytest.raises(ChannelError) as info:
        ch.try_send("m")
    assert not isinstance(info.value, (ChannelFull, ChannelClosed))
    assert info.value.value == "m"


def test_try_send_full():
    ch = Channel(1)
    ch.receiver()
    ch.try_send(1)
    with pytest.raises(ChannelFull) as info:
        ch.try_send(2)
    assert info.value.value == 2


@pytest.mark.asyncio
async def test_message_kept_until_every_receiver_took_it():
    ch = Channel(1)
    r1, r2 = ch.receiver(), ch.receiver()
    ch.try_send("a")
    assert await r1.recv() == "a"
    with pytest.raises(ChannelFull):
        ch.try_send("b")
    assert await r2.recv() == "a"
    ch.try_send("b")
    assert await r1.recv() == "b"


@pytest.mark.asyncio
async def test_late_receiver_sees_only_new_messages():
    ch = Channel(5)
    r1 = ch.receiver()
    ch.try_send("a")
    r2 = ch.receiver()
    ch.try_send("b")
    assert await r2.recv() == "b"
    assert [await r1.recv(), await r1.recv()] == ["a", "b"]


@pytest.mark.asyncio
async def test_close_drains_then_raises():
    ch = Channel(5)
    r = ch.receiver()
    ch.try_send("a")
    assert ch.close() is True
    assert ch.close() is False
    assert await r.recv() == "a"
    with pytest.raises(ChannelClosed):
        await r.recv()
    with pytest.raises(ChannelClosed):
        ch.try_send("b")


@pytest.mark.asyncio
async def test_send_waits_for_room():
    ch = Channel(1)
    r = ch.receiver()
    ch.try_send(1)
    task = asyncio.create_task(ch.send(2))
    await asyncio.sleep(0)
    assert not task.done()
    assert await r.recv() == 1
    await asyncio.wait_for(task, 1)
    assert await r.recv() == 2


@pytest.mark.asyncio
async def test_send_waits_for_receiver():
    ch = Channel(2)
    task = asyncio.create_task(ch.send("x"))
    await asyncio.sleep(0)
    assert not task.done()
    r = ch.receiver()
    await asyncio.wait_for(task, 1)
    assert await r.recv() == "x"


@pytest.mark.asyncio
async def test_leaving_receiver_frees_queue():
    ch = Channel(1)
    keep = ch.receiver()
    with ch.receiver():
        ch.try_send("a")
    assert await keep.recv() == "a"
    ch.try_send("b")
    assert await keep.recv() == "b"


@pytest.mark.asyncio
async def test_async_iteration_stops_on_close():
    ch = Channel(5)
    r = ch.receiver()
    for item in ("a", "b"):
        ch.try_send(item)
    ch.close()
    assert [item async for item in r] == ["a", "b"]


@pytest.mark.asyncio
async def test_listen_channel():
    ch = Channel(5)
    seen = []

    async def handler(result):
        seen.append(result)

    task = listen_channel(ch, handler)
    await ch.send("a")
    await ch.send("b")
    ch.close()
    outcome = await asyncio.wait_for(task, 1)
    assert outcome is None
    assert len(seen) == 3
    assert seen[:2] == ["a", "b"]
    assert type(seen[2]) is ChannelClosed


def test_equality_by_identity():
    a, b = Channel(1), Channel(1)
    assert a == a
    assert not (a == b)


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        Channel(0)