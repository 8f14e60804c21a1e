"""Pydantic data schemas used across the room server.

Wire models use snake_case attributes in Python and camelCase keys on the
wire (``roomId``, ``playerId`` ...) because that is what the browser client
speaks. Call :meth:`WireModel.to_wire` to obtain the JSON-ready dict.
"""
from __future__ import annotations

from typing import Annotated, List, Literal, Optional, Union

from pydantic import AllowInfNan, BaseModel, ConfigDict, Field, Strict, StrictInt, TypeAdapter
from pydantic.alias_generators import to_camel

from .constants import (
    END_GAME,
    JOIN,
    MOVE,
    NEW_PLAYER,
    PLAYER_LEFT,
    ROOM_DELETED,
    START_GAME,
    UPDATE_PARTICIPANTS,
)


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


# JSON numbers only: no numeric strings, booleans or NaN/Infinity.
Coordinate = Union[StrictInt, Annotated[float, Strict(), AllowInfNan(False)]]


class Position(WireModel):
    """Last reported coordinates. Trusted as sent, never range-checked."""

    x: Coordinate
    y: Coordinate

    @classmethod
    def origin(cls) -> "Position":
        return cls(x=0, y=0)


# -----------------------------
# Runtime
# -----------------------------

class Participant(BaseModel):
    """A room's membership record for one connection."""

    player_id: str
    # Lookup key into the connection registry, never the socket itself.
    connection_id: str
    position: Position = Field(default_factory=Position.origin)


# -----------------------------
# Inbound frames
# -----------------------------

class JoinFrame(WireModel):
    type: Literal["join"]
    room_id: str


class LeaveFrame(WireModel):
    type: Literal["leave"]


class MoveFrame(WireModel):
    type: Literal["move"]
    position: Position


class StartGameFrame(WireModel):
    type: Literal["startGame"]


class EndGameFrame(WireModel):
    type: Literal["endGame"]


InboundFrame = Annotated[
    Union[JoinFrame, LeaveFrame, MoveFrame, StartGameFrame, EndGameFrame],
    Field(discriminator="type"),
]

inbound_frame_adapter: TypeAdapter = TypeAdapter(InboundFrame)


# -----------------------------
# Outbound frames
# -----------------------------

class JoinReply(WireModel):
    type: Literal["join"] = JOIN
    room_id: str
    room_exists: bool
    player_id: Optional[str] = None


class NewPlayer(WireModel):
    type: Literal["new-player"] = NEW_PLAYER
    id: str
    position: Position


class PlayerMoved(WireModel):
    type: Literal["move"] = MOVE
    id: str
    position: Position


class PlayerLeft(WireModel):
    type: Literal["player-left"] = PLAYER_LEFT
    id: str


class ParticipantCount(WireModel):
    type: Literal["updateParticipants"] = UPDATE_PARTICIPANTS
    participant_count: int


class GameStarted(WireModel):
    type: Literal["startGame"] = START_GAME


class GameEnded(WireModel):
    type: Literal["endGame"] = END_GAME


class RoomDeleted(WireModel):
    type: Literal["roomDeleted"] = ROOM_DELETED
    room_id: str


# -----------------------------
# Durable snapshot
# -----------------------------

class ParticipantRecord(WireModel):
    player_id: str
    position: Position = Field(default_factory=Position.origin)


class RoomRecord(WireModel):
    room_id: str
    participants: List[ParticipantRecord] = []


room_records_adapter: TypeAdapter = TypeAdapter(List[RoomRecord])


# -----------------------------
# REST request / response models
# -----------------------------

class CreateRoomResponse(WireModel):
    success: bool = True
    room_id: str


class RoomSummary(WireModel):
    room_id: str
    participant_count: int


class ClientServerConfig(BaseModel):
    ip: str
    port: int


class ClientConfig(BaseModel):
    """The subset of ``config.json`` exposed to browsers."""

    server: ClientServerConfig


__all__ = [
    "WireModel",
    "Position",
    "Participant",
    "JoinFrame",
    "LeaveFrame",
    "MoveFrame",
    "StartGameFrame",
    "EndGameFrame",
    "InboundFrame",
    "inbound_frame_adapter",
    "JoinReply",
    "NewPlayer",
    "PlayerMoved",
    "PlayerLeft",
    "ParticipantCount",
    "GameStarted",
    "GameEnded",
    "RoomDeleted",
    "ParticipantRecord",
    "RoomRecord",
    "room_records_adapter",
    "CreateRoomResponse",
    "RoomSummary",
    "ClientServerConfig",
    "ClientConfig",
]
