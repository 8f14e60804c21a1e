"""Helpers for state visible outside any single room."""
from __future__ import annotations

from typing import List

from .broadcast import Broadcaster
from .registry import ConnectionRegistry
from .room_store import RoomStore
from .schemas import ParticipantCount, RoomSummary


def participant_count(registry: ConnectionRegistry) -> ParticipantCount:
    """Every live connection counts, joined to a room or not."""
    return ParticipantCount(participant_count=registry.count)


async def broadcast_participant_count(broadcaster: Broadcaster, registry: ConnectionRegistry) -> None:
    """Push the current connection count to *all* connections."""
    if not registry.count:
        return
    await broadcaster.broadcast_all(participant_count(registry))


def collect_room_summaries(rooms: RoomStore) -> List[RoomSummary]:
    return rooms.summaries()


__all__ = ["participant_count", "broadcast_participant_count", "collect_room_summaries"]
