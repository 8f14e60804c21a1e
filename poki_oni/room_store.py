"""The room store: sole owner of every ``Room``.

All operations run under a single ``asyncio.Lock``, which is the
serialization boundary for room state. Mutations that change membership
persist the full room list before releasing the lock; a failed write is
logged and the in-memory state stays authoritative.
"""
from __future__ import annotations

import asyncio
import logging
import secrets
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .constants import ID_ALPHABET, PLAYER_ID_LENGTH, ROOM_ID_LENGTH
from .errors import PersistenceFailure, RoomNotFound
from .persistence import RoomSnapshot
from .room import Room
from .schemas import Participant, Position, RoomSummary

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]


def random_id(length: int) -> str:
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(length))


def new_room_id() -> str:
    return random_id(ROOM_ID_LENGTH)


def new_player_id() -> str:
    return random_id(PLAYER_ID_LENGTH)


@dataclass
class JoinResult:
    room_id: str
    player_id: str
    # Everyone already in the room, in join order (copies, safe to read unlocked).
    others: List[Participant] = field(default_factory=list)


@dataclass
class Departure:
    room_id: str
    player_id: str
    room_removed: bool
    # Connection ids still in the room, in join order.
    remaining: List[str] = field(default_factory=list)


class RoomStore:
    def __init__(
        self,
        snapshot: RoomSnapshot,
        room_ids: IdFactory = new_room_id,
        player_ids: IdFactory = new_player_id,
    ):
        self._snapshot = snapshot
        self._room_ids = room_ids
        self._player_ids = player_ids
        self._rooms: Dict[str, Room] = {}
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def restore(self) -> int:
        """Reload room ids from the durable snapshot; returns the room count."""
        records = await self._snapshot.load()
        async with self._lock:
            self._rooms = {}
            for record in records:
                self._rooms[record.room_id] = Room.from_record(record)
        logger.info("Restored %d room(s) from snapshot", len(records))
        return len(records)

    # ------------------------------------------------------------------
    # Room operations
    # ------------------------------------------------------------------

    async def create(self) -> str:
        async with self._lock:
            # Collisions are not retried.
            room_id = self._room_ids()
            self._rooms[room_id] = Room(room_id)
            await self._persist()
        logger.info("Created room %s", room_id)
        return room_id

    def find(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    async def join(self, room_id: str, connection_id: str) -> JoinResult:
        async with self._lock:
            room = self._rooms.get(room_id)
            if room is None:
                raise RoomNotFound(room_id)
            others = [p.model_copy(deep=True) for p in room.participants]
            player_id = self._player_ids()
            room.add_participant(player_id, connection_id)
            await self._persist()
        return JoinResult(room_id=room_id, player_id=player_id, others=others)

    async def leave(self, room_id: str, connection_id: str) -> Optional[Departure]:
        async with self._lock:
            room = self._rooms.get(room_id)
            if room is None:
                return None
            participant = room.remove_participant(connection_id)
            if participant is None:
                return None
            removed = room.is_empty()
            if removed:
                del self._rooms[room_id]
            await self._persist()
            remaining = [p.connection_id for p in room.participants]
        if removed:
            logger.info("Room %s is empty and was removed", room_id)
        return Departure(
            room_id=room_id,
            player_id=participant.player_id,
            room_removed=removed,
            remaining=remaining,
        )

    async def update_position(self, room_id: str, connection_id: str, position: Position) -> Optional[str]:
        """Store *position* for the connection's participant and return its player id."""
        async with self._lock:
            room = self._rooms.get(room_id)
            if room is None:
                return None
            participant = room.participant_for(connection_id)
            if participant is None:
                return None
            participant.position = position.model_copy()
            return participant.player_id

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    def connection_ids(self, room_id: str) -> List[str]:
        room = self._rooms.get(room_id)
        if room is None:
            return []
        return [p.connection_id for p in room.participants]

    def summaries(self) -> List[RoomSummary]:
        return [
            RoomSummary(room_id=rid, participant_count=len(room.participants))
            for rid, room in self._rooms.items()
        ]

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._rooms

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def _persist(self) -> None:
        # Caller holds the lock.
        records = [room.to_record() for room in self._rooms.values()]
        try:
            await self._snapshot.save(records)
        except PersistenceFailure:
            logger.exception("Room snapshot write failed; keeping in-memory state")


__all__ = [
    "RoomStore",
    "JoinResult",
    "Departure",
    "new_room_id",
    "new_player_id",
]
