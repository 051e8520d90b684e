import asyncio

import pytest

from kafkaclient.broadcast import BroadcastDropped, BroadcastOnce


@pytest.mark.asyncio
async def test_broadcast_without_receiver():
    broadcast = BroadcastOnce()
    broadcast.broadcast(1)
    assert broadcast.receiver().peek() == 1


@pytest.mark.asyncio
async def test_simple_receiver():
    broadcast = BroadcastOnce()
    receiver = broadcast.receiver()
    assert receiver.peek() is None

    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(receiver.receive(), timeout=0.001)

    broadcast.broadcast(2)

    assert receiver.peek() == 2
    assert receiver.peek() == 2
    assert await receiver.receive() == 2
    assert await receiver.receive() == 2


@pytest.mark.asyncio
async def test_multiple_receivers():
    broadcast = BroadcastOnce()
    r1 = broadcast.receiver()
    r2 = broadcast.receiver()
    broadcast.broadcast(4)
    assert await r1.receive() == 4
    assert await r2.receive() == 4


@pytest.mark.asyncio
async def test_drop():
    broadcast = BroadcastOnce()
    r1 = broadcast.receiver()
    r2 = broadcast.receiver()
    assert r1.peek() is None
    broadcast.close()

    with pytest.raises(BroadcastDropped):
        await r1.receive()
    with pytest.raises(BroadcastDropped):
        await r2.receive()
    with pytest.raises(BroadcastDropped):
        r1.peek()


@pytest.mark.asyncio
async def test_context_manager_drops_unpublished():
    with BroadcastOnce() as broadcast:
        receiver = broadcast.receiver()
    with pytest.raises(BroadcastDropped) as info:
        await receiver.receive()
    assert str(info.value) == "BroadcastOnce dropped"


@pytest.mark.asyncio
async def test_close_after_broadcast_keeps_value():
    broadcast = BroadcastOnce()
    receiver = broadcast.receiver()
    broadcast.broadcast("value")
    broadcast.close()
    assert await receiver.receive() == "value"


@pytest.mark.asyncio
async def test_waiting_receiver_is_woken():
    broadcast = BroadcastOnce()
    receiver = broadcast.receiver()
    task = asyncio.create_task(receiver.receive())
    await asyncio.sleep(0)
    assert not task.done()
    broadcast.broadcast(7)
    assert await asyncio.wait_for(task, timeout=1.0) == 7


def test_double_publish_rejected():
    broadcast = BroadcastOnce()
    broadcast.broadcast(1)
    with pytest.raises(RuntimeError, match="double publish"):
        broadcast.broadcast(2)
    assert broadcast.receiver().peek() == 1