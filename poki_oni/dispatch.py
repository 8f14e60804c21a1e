"""Inbound frame handling.

This module is transport-agnostic: the websocket router feeds it raw
frames and lifecycle events together with the originating ``Session``, and
every handler talks to the room store, the registry and the broadcaster
from ``Services``. All sends triggered by one event are awaited before the
handler returns.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Union

from pydantic import ValidationError

from .constants import END_GAME, JOIN, LEAVE, MOVE, START_GAME
from .errors import MalformedFrame, ProtocolViolation, RoomNotFound
from .lobby import broadcast_participant_count
from .registry import Session
from .schemas import (
    GameEnded,
    GameStarted,
    InboundFrame,
    JoinFrame,
    JoinReply,
    MoveFrame,
    NewPlayer,
    PlayerLeft,
    PlayerMoved,
    Position,
    RoomDeleted,
    inbound_frame_adapter,
)
from .state import Services

logger = logging.getLogger(__name__)


def parse_frame(raw: Union[str, bytes]) -> InboundFrame:
    """Decode one JSON frame; raises ``MalformedFrame`` for anything unusable."""
    try:
        return inbound_frame_adapter.validate_json(raw)
    except ValidationError as exc:
        errors = "; ".join(f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors())
        raise MalformedFrame(errors or str(exc)) from exc


# ---------------------------------------------------------------------------
# Connection lifecycle
# ---------------------------------------------------------------------------

async def handle_open(services: Services, session: Session) -> None:
    await broadcast_participant_count(services.broadcaster, services.registry)


async def handle_close(services: Services, session: Session) -> None:
    departure = await services.registry.unregister(session)
    if departure is not None and departure.remaining:
        await services.broadcaster.broadcast_room(departure.room_id, PlayerLeft(id=departure.player_id))
    await broadcast_participant_count(services.broadcaster, services.registry)


# ---------------------------------------------------------------------------
# Frame handlers
# ---------------------------------------------------------------------------

async def handle_join(services: Services, session: Session, frame: JoinFrame) -> None:
    session.require_unjoined()
    broadcaster = services.broadcaster
    try:
        result = await services.rooms.join(frame.room_id, session.id)
    except RoomNotFound:
        await broadcaster.send_to(session, JoinReply(room_id=frame.room_id, room_exists=False))
        return
    except asyncio.CancelledError:
        # The store may already list this connection while the session is still unbound.
        await services.rooms.leave(frame.room_id, session.id)
        raise

    session.bind(result.room_id, result.player_id)
    await broadcaster.send_to(
        session,
        JoinReply(room_id=result.room_id, room_exists=True, player_id=result.player_id),
    )
    await broadcaster.broadcast_room(
        result.room_id,
        NewPlayer(id=result.player_id, position=Position.origin()),
        exclude=session,
    )
    # Bring the newcomer up to date with everyone already in the room.
    for other in result.others:
        await broadcaster.send_to(session, PlayerMoved(id=other.player_id, position=other.position))


async def handle_leave(services: Services, session: Session) -> None:
    room_id = session.require_joined()
    departure = await services.rooms.leave(room_id, session.id)
    session.unbind()
    if departure is None:
        return
    await services.broadcaster.broadcast_room(room_id, PlayerLeft(id=departure.player_id))
    if departure.room_removed:
        await services.broadcaster.send_to(session, RoomDeleted(room_id=room_id))


async def handle_move(services: Services, session: Session, frame: MoveFrame) -> None:
    room_id = session.require_joined()
    player_id = await services.rooms.update_position(room_id, session.id, frame.position)
    if player_id is None:
        return
    await services.broadcaster.broadcast_room(
        room_id,
        PlayerMoved(id=player_id, position=frame.position),
        exclude=session,
    )


async def handle_start_game(services: Services, session: Session) -> None:
    room_id = session.require_joined()
    await services.broadcaster.broadcast_room(room_id, GameStarted())


async def handle_end_game(services: Services, session: Session) -> None:
    room_id = session.require_joined()
    await services.broadcaster.broadcast_room(room_id, GameEnded())


async def handle_frame(services: Services, session: Session, raw: Union[str, bytes]) -> None:
    try:
        frame = parse_frame(raw)
    except MalformedFrame as exc:
        logger.warning("Dropping malformed frame from %s: %s", session.id, exc)
        return

    try:
        if frame.type == JOIN:
            await handle_join(services, session, frame)
        elif frame.type == LEAVE:
            await handle_leave(services, session)
        elif frame.type == MOVE:
            await handle_move(services, session, frame)
        elif frame.type == START_GAME:
            await handle_start_game(services, session)
        elif frame.type == END_GAME:
            await handle_end_game(services, session)
    except ProtocolViolation as exc:
        logger.debug("Ignoring %s frame from %s: %s", frame.type, session.id, exc)


__all__ = [
    "parse_frame",
    "handle_open",
    "handle_close",
    "handle_frame",
    "handle_join",
    "handle_leave",
    "handle_move",
    "handle_start_game",
    "handle_end_game",
]
