"""Read path: overfetch, filter, trim and render recent messages."""

from __future__ import annotations

from typing import Iterable

from discord_bridge.gateway import Channel
from discord_bridge.models import MessageRecord

MAX_PLAIN_FETCH = 50
MAX_FILTERED_FETCH = 100
OVERFETCH_FACTOR = 3
EMPTY_RESULT = "No messages found."


def fetch_limit(limit: int, unread_only: bool, reaction_filter: str | None) -> int:
    """Number of raw messages to request for a read.

    Filtered reads overfetch to leave headroom for messages the filters drop.
    This is a heuristic: fewer than ``limit`` results may survive.
    """

    if unread_only or reaction_filter:
        return min(limit * OVERFETCH_FACTOR, MAX_FILTERED_FETCH)
    return min(limit, MAX_PLAIN_FETCH)


def filter_messages(
    records: Iterable[MessageRecord],
    limit: int,
    unread_only: bool = False,
    reaction_filter: str | None = None,
) -> list[MessageRecord]:
    """Filter newest-first records and return at most ``limit``, oldest first."""

    filtered = list(records)
    if reaction_filter:
        filtered = [m for m in filtered if reaction_filter in m.reactions]
    if unread_only:
        filtered = [m for m in filtered if not m.is_read]
    filtered = filtered[:limit]
    filtered.reverse()
    return filtered


def format_message(record: MessageRecord) -> str:
    marker = "[READ]" if record.is_read else "[NEW]"
    return f"ID:{record.id} {marker} [{record.created_at.isoformat()}] {record.author}: {record.content}"


def render(records: Iterable[MessageRecord]) -> str:
    text = "\n".join(format_message(record) for record in records)
    return text or EMPTY_RESULT


async def read_recent(
    channel: Channel,
    limit: int,
    unread_only: bool = False,
    reaction_filter: str | None = None,
) -> str:
    """Fetch once, filter, and render the most recent messages of a channel."""

    records = await channel.fetch_recent(fetch_limit(limit, unread_only, reaction_filter))
    return render(filter_messages(records, limit, unread_only, reaction_filter))
