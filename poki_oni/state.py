"""Centralised runtime state.

One ``Services`` instance is built per application and stored on
``app.state.services`` so routers and the dispatcher share the same room
store, registry and broadcaster without module-level globals.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .broadcast import Broadcaster
from .config import AppConfig
from .persistence import RoomSnapshot, snapshot_from_config
from .registry import ConnectionRegistry
from .room_store import IdFactory, RoomStore, new_player_id, new_room_id


@dataclass
class Services:
    config: AppConfig
    rooms: RoomStore
    registry: ConnectionRegistry
    broadcaster: Broadcaster


def build_services(
    config: AppConfig,
    snapshot: Optional[RoomSnapshot] = None,
    room_ids: IdFactory = new_room_id,
    player_ids: IdFactory = new_player_id,
) -> Services:
    if snapshot is None:
        snapshot = snapshot_from_config(config.storage)
    rooms = RoomStore(snapshot, room_ids=room_ids, player_ids=player_ids)
    registry = ConnectionRegistry(rooms)
    broadcaster = Broadcaster(registry, rooms, send_timeout=config.broadcast.send_timeout)
    return Services(config=config, rooms=rooms, registry=registry, broadcaster=broadcaster)


__all__ = ["Services", "build_services"]
