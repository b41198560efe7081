import asyncio
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from discord_bridge.errors import ConnectFailureError, NotFoundError, TransportFailureError
from discord_bridge.gateway import DiscordChannel, DiscordGateway, _to_record
from discord_bridge.models import SessionEvent, SessionState
from discord_bridge.session import SessionManager


def _discord_message(reactions):
    return SimpleNamespace(
        id=42,
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        author=SimpleNamespace(display_name="alice"),
        content="hello",
        reactions=reactions,
    )


def _not_found() -> discord.NotFound:
    return discord.NotFound(MagicMock(status=404, reason="Not Found"), "Unknown Message")


def test_to_record_splits_own_reactions():
    custom = SimpleNamespace(name="party")
    message = _discord_message(
        [
            SimpleNamespace(emoji="✅", me=True),
            SimpleNamespace(emoji="🔴", me=False),
            SimpleNamespace(emoji=custom, me=False),
        ]
    )

    record = _to_record(message)

    assert record.id == "42"
    assert record.author == "alice"
    assert record.reactions == frozenset({"✅", "🔴", "party"})
    assert record.own_reactions == frozenset({"✅"})
    assert record.is_read


def test_text_capable_follows_messageable():
    text = MagicMock(spec=discord.TextChannel)
    text.name = "general"
    category = MagicMock(spec=discord.CategoryChannel)
    category.name = "general"

    assert DiscordChannel(text, bot_user=None).text_capable
    assert not DiscordChannel(category, bot_user=None).text_capable


@pytest.mark.asyncio
async def test_non_numeric_message_id_is_not_found():
    raw = MagicMock(spec=discord.TextChannel)
    raw.name = "general"

    with pytest.raises(NotFoundError, match="Message abc"):
        await DiscordChannel(raw, bot_user=None).add_reaction("abc", "✅")


@pytest.mark.asyncio
async def test_unknown_message_is_not_found():
    raw = MagicMock(spec=discord.TextChannel)
    raw.name = "general"
    raw.fetch_message = AsyncMock(side_effect=_not_found())

    with pytest.raises(NotFoundError, match="Message 123 not found in #general"):
        await DiscordChannel(raw, bot_user=None).delete_message("123")


@pytest.mark.asyncio
async def test_reaction_uses_fetched_message():
    bot = object()
    message = MagicMock()
    message.add_reaction = AsyncMock()
    message.remove_reaction = AsyncMock()
    raw = MagicMock(spec=discord.TextChannel)
    raw.name = "general"
    raw.fetch_message = AsyncMock(return_value=message)
    channel = DiscordChannel(raw, bot_user=bot)

    await channel.add_reaction("123", "🔴")
    await channel.remove_own_reaction("123", "🔴")

    raw.fetch_message.assert_awaited_with(123)
    message.add_reaction.assert_awaited_once_with("🔴")
    message.remove_reaction.assert_awaited_once_with("🔴", bot)


@pytest.mark.asyncio
async def test_send_failure_is_transport_failure():
    raw = MagicMock(spec=discord.TextChannel)
    raw.name = "general"
    raw.send = AsyncMock(
        side_effect=discord.HTTPException(MagicMock(status=500, reason="Server Error"), "boom")
    )

    with pytest.raises(TransportFailureError, match="#general"):
        await DiscordChannel(raw, bot_user=None).send("hi")


def test_gateway_events_reach_listeners():
    gateway = DiscordGateway(client=MagicMock())
    seen = []
    gateway.subscribe(lambda event, error: seen.append((event, error)))

    gateway.emit(SessionEvent.DISCONNECTED)

    assert seen == [(SessionEvent.DISCONNECTED, None)]


def _mock_client(handlers):
    client = MagicMock()
    client.event = lambda fn: handlers.setdefault(fn.__name__, fn)
    client.login = AsyncMock()
    client.connect = AsyncMock()
    client.close = AsyncMock()
    client.is_closed = MagicMock(return_value=False)
    return client


async def _hang(*args, **kwargs):
    await asyncio.Event().wait()


@pytest.mark.asyncio
async def test_login_starts_gateway_connection():
    client = _mock_client({})
    gateway = DiscordGateway(client=client)

    await gateway.login("t")
    await asyncio.sleep(0.01)

    client.login.assert_awaited_once_with("t")
    client.connect.assert_awaited_once_with(reconnect=True)


@pytest.mark.asyncio
async def test_connect_failure_rejects_pending_login():
    client = _mock_client({})
    client.connect.side_effect = RuntimeError("Shard closed")
    gateway = DiscordGateway(client=client)
    seen = []
    gateway.subscribe(lambda event, error: seen.append(event))
    session = SessionManager(gateway, token="t", login_timeout_seconds=1)

    with pytest.raises(ConnectFailureError, match="Shard closed"):
        await session.ensure_connected()

    assert SessionEvent.ERROR in seen
    assert session.state is SessionState.DISCONNECTED


@pytest.mark.asyncio
async def test_ready_and_resumed_map_to_ready():
    handlers = {}
    gateway = DiscordGateway(client=_mock_client(handlers))
    seen = []
    gateway.subscribe(lambda event, error: seen.append(event))

    await handlers["on_ready"]()
    await handlers["on_resumed"]()

    assert seen == [SessionEvent.READY, SessionEvent.READY]


@pytest.mark.asyncio
async def test_connect_is_reconnecting_only_after_disconnect():
    handlers = {}
    gateway = DiscordGateway(client=_mock_client(handlers))
    seen = []
    gateway.subscribe(lambda event, error: seen.append(event))

    await handlers["on_connect"]()
    assert seen == []

    await handlers["on_disconnect"]()
    await handlers["on_connect"]()
    assert seen == [SessionEvent.DISCONNECTED, SessionEvent.RECONNECTING]


@pytest.mark.asyncio
async def test_second_login_replaces_running_gateway():
    client = _mock_client({})
    client.connect.side_effect = _hang
    gateway = DiscordGateway(client=client)
    seen = []
    gateway.subscribe(lambda event, error: seen.append(event))

    await gateway.login("t")
    await asyncio.sleep(0.01)
    first = gateway._gateway_task

    await gateway.login("t")
    await asyncio.sleep(0.01)

    assert first.cancelled()
    assert client.login.await_count == 2
    assert client.connect.await_count == 2
    client.close.assert_awaited_once()
    client.clear.assert_called_once()
    assert seen == []

    await gateway.close()
    assert gateway._gateway_task is None


@pytest.mark.asyncio
async def test_cancelled_login_resets_client():
    client = _mock_client({})
    client.login.side_effect = _hang
    gateway = DiscordGateway(client=client)

    task = asyncio.create_task(gateway.login("t"))
    await asyncio.sleep(0.01)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    client.close.assert_awaited_once()
    client.clear.assert_called_once()
    client.connect.assert_not_called()
    assert gateway._gateway_task is None
