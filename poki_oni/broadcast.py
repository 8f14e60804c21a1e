"""Fan-out of outbound frames with per-connection failure isolation."""
from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional

from .errors import TransportFailure
from .registry import ConnectionRegistry, Session
from .room_store import RoomStore
from .schemas import WireModel

logger = logging.getLogger(__name__)


class Broadcaster:
    def __init__(self, registry: ConnectionRegistry, rooms: RoomStore, send_timeout: float = 5.0):
        self._registry = registry
        self._rooms = rooms
        self.send_timeout = send_timeout

    async def send_to(self, session: Session, message: WireModel) -> bool:
        """Best-effort send. Returns *False* when the transport failed."""
        try:
            await session.send(message.to_wire(), self.send_timeout)
        except TransportFailure as exc:
            logger.debug("Dropped %s frame: %s", type(message).__name__, exc)
            return False
        return True

    async def send_many(self, sessions: Iterable[Session], message: WireModel) -> None:
        # One task per connection; send_to never raises.
        await asyncio.gather(*(self.send_to(s, message) for s in sessions))

    async def broadcast_room(self, room_id: str, message: WireModel, exclude: Optional[Session] = None) -> None:
        targets = []
        for connection_id in self._rooms.connection_ids(room_id):
            if exclude is not None and connection_id == exclude.id:
                continue
            session = self._registry.get(connection_id)
            if session is not None:
                targets.append(session)
        await self.send_many(targets, message)

    async def broadcast_all(self, message: WireModel) -> None:
        await self.send_many(self._registry.sessions(), message)


__all__ = ["Broadcaster"]
