"""Live connections and their per-connection session state."""
from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Dict, List, Optional

from fastapi import WebSocketDisconnect

from .errors import ProtocolViolation, TransportFailure
from .room_store import Departure, RoomStore

logger = logging.getLogger(__name__)


class Session:
    """Transient state of one accepted connection.

    ``room_id`` and ``player_id`` are lookup keys into the room store; the
    session never owns the room it is in.
    """

    def __init__(self, connection: Any):
        self.id = uuid.uuid4().hex
        self.connection = connection
        self.room_id: Optional[str] = None
        self.player_id: Optional[str] = None
        self.closed = False
        self._close_task: Optional[asyncio.Future] = None
        # Serializes sends so each connection sees frames in issue order.
        self._send_lock = asyncio.Lock()

    @property
    def joined(self) -> bool:
        return self.room_id is not None

    def require_joined(self) -> str:
        if self.room_id is None:
            raise ProtocolViolation("Session has not joined a room")
        return self.room_id

    def require_unjoined(self) -> None:
        if self.room_id is not None:
            raise ProtocolViolation(f"Session already joined room {self.room_id}")

    def bind(self, room_id: str, player_id: str) -> None:
        self.room_id = room_id
        self.player_id = player_id

    def unbind(self) -> None:
        self.room_id = None
        self.player_id = None

    async def send(self, payload: dict, timeout: float) -> None:
        """Send *payload* as JSON; a closed session makes this a no-op."""
        async with self._send_lock:
            if self.closed:
                return
            try:
                await asyncio.wait_for(self.connection.send_json(payload), timeout)
            except asyncio.TimeoutError as exc:
                # The cancelled write may have left a partial frame; the socket is unusable.
                self.closed = True
                self._close_task = asyncio.ensure_future(self._abort(timeout))
                raise TransportFailure(f"Send to {self.id} timed out after {timeout}s") from exc
            except (WebSocketDisconnect, RuntimeError, OSError) as exc:
                raise TransportFailure(f"Send to {self.id} failed: {exc!r}") from exc

    async def _abort(self, timeout: float) -> None:
        try:
            await asyncio.wait_for(self.connection.close(), timeout)
        except (asyncio.TimeoutError, WebSocketDisconnect, RuntimeError, OSError) as exc:
            logger.debug("Closing stalled connection %s failed: %r", self.id, exc)
        else:
            logger.info("Closed stalled connection %s", self.id)

    def __repr__(self) -> str:
        return f"Session({self.id[:8]}, room={self.room_id!r}, player={self.player_id!r})"


class ConnectionRegistry:
    def __init__(self, rooms: RoomStore):
        self._rooms = rooms
        self._sessions: Dict[str, Session] = {}

    def register(self, connection: Any) -> Session:
        session = Session(connection)
        self._sessions[session.id] = session
        logger.info("Connection %s opened (%d live)", session.id, len(self._sessions))
        return session

    async def unregister(self, session: Session) -> Optional[Departure]:
        """Drop *session* and retract its room membership.

        Must be called exactly once per session; a second call raises
        ``KeyError``. Returns the departure when the session was in a room.
        """
        del self._sessions[session.id]
        session.closed = True
        departure: Optional[Departure] = None
        if session.room_id is not None:
            departure = await self._rooms.leave(session.room_id, session.id)
            session.unbind()
        logger.info("Connection %s closed (%d live)", session.id, len(self._sessions))
        return departure

    def get(self, connection_id: str) -> Optional[Session]:
        return self._sessions.get(connection_id)

    def sessions(self) -> List[Session]:
        return list(self._sessions.values())

    @property
    def count(self) -> int:
        return len(self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)


__all__ = ["Session", "ConnectionRegistry"]
