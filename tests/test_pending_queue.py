import pytest

from discord_bridge.models import PendingMessage
from discord_bridge.pending_queue import DELAY_NOTICE, PendingQueue


@pytest.mark.asyncio
async def test_drain_delivers_in_order_with_delay_notice():
    queue = PendingQueue()
    for i in range(3):
        queue.enqueue(PendingMessage(channel_name="general", content=f"m{i}"))
    delivered: list[PendingMessage] = []

    async def deliver(message: PendingMessage) -> None:
        delivered.append(message)

    await queue.drain(deliver)

    assert [m.content for m in delivered] == [f"m{i}{DELAY_NOTICE}" for i in range(3)]
    assert len(queue) == 0


@pytest.mark.asyncio
async def test_failed_deliveries_are_requeued_without_blocking_the_rest():
    queue = PendingQueue()
    queue.enqueue(PendingMessage(channel_name="missing", content="a"))
    queue.enqueue(PendingMessage(channel_name="general", content="b"))
    queue.enqueue(PendingMessage(channel_name="missing", content="c"))
    queue.enqueue(PendingMessage(channel_name="general", content="d"))
    delivered: list[str] = []

    async def deliver(message: PendingMessage) -> None:
        if message.channel_name == "missing":
            raise RuntimeError("Channel #missing not found.")
        delivered.append(message.content)

    await queue.drain(deliver)

    assert delivered == [f"b{DELAY_NOTICE}", f"d{DELAY_NOTICE}"]
    assert queue.snapshot() == [
        PendingMessage(channel_name="missing", content="a"),
        PendingMessage(channel_name="missing", content="c"),
    ]


@pytest.mark.asyncio
async def test_messages_enqueued_during_drain_stay_ahead_of_requeued_ones():
    queue = PendingQueue()
    queue.enqueue(PendingMessage(channel_name="x", content="old"))

    async def deliver(message: PendingMessage) -> None:
        queue.enqueue(PendingMessage(channel_name="general", content="new"))
        raise RuntimeError("send failed")

    await queue.drain(deliver)

    assert [m.content for m in queue.snapshot()] == ["new", "old"]


@pytest.mark.asyncio
async def test_duplicates_are_kept():
    queue = PendingQueue()
    queue.enqueue(PendingMessage(channel_name="general", content="hi"))
    queue.enqueue(PendingMessage(channel_name="general", content="hi"))
    delivered: list[str] = []

    async def deliver(message: PendingMessage) -> None:
        delivered.append(message.content)

    await queue.drain(deliver)

    assert len(delivered) == 2


@pytest.mark.asyncio
async def test_drain_of_empty_queue_does_nothing():
    queue = PendingQueue()

    async def deliver(message: PendingMessage) -> None:
        raise AssertionError("should not be called")

    await queue.drain(deliver)
    assert len(queue) == 0
