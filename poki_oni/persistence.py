"""Durable snapshot backends for the room list.

A snapshot is the ordered list of :class:`~poki_oni.schemas.RoomRecord`. The
room store awaits :meth:`RoomSnapshot.save` while holding its lock, so a
returned ``save`` is the acknowledgment that the snapshot is on disk.
Backends translate their own I/O errors into ``PersistenceFailure``.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import List, Union

from pydantic import ValidationError
from tortoise.exceptions import BaseORMException
from tortoise.transactions import in_transaction

from .config import StorageConfig
from .errors import PersistenceFailure
from .models import StoredRoom
from .schemas import RoomRecord, room_records_adapter

logger = logging.getLogger(__name__)


class RoomSnapshot:
    """Interface shared by the snapshot backends."""

    async def load(self) -> List[RoomRecord]:
        raise NotImplementedError

    async def save(self, records: List[RoomRecord]) -> None:
        raise NotImplementedError


class JsonFileRoomSnapshot(RoomSnapshot):
    """Keeps the room list in a pretty-printed ``rooms.json`` file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    async def load(self) -> List[RoomRecord]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.exception("Could not read room snapshot %s; starting empty", self.path)
            return []
        if not isinstance(raw, list):
            logger.error("Room snapshot %s is not a list; starting empty", self.path)
            return []
        try:
            return room_records_adapter.validate_python(raw)
        except ValidationError:
            logger.exception("Room snapshot %s has invalid records; starting empty", self.path)
            return []

    async def save(self, records: List[RoomRecord]) -> None:
        payload = json.dumps([r.to_wire() for r in records], indent=2)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise PersistenceFailure(f"Could not write {self.path}: {exc}") from exc


class TortoiseRoomSnapshot(RoomSnapshot):
    """Stores one ``StoredRoom`` row per room; requires Tortoise to be initialised."""

    async def load(self) -> List[RoomRecord]:
        try:
            rows = await StoredRoom.all().order_by("id")
        except BaseORMException:
            logger.exception("Could not read room snapshot from the database; starting empty")
            return []
        records: List[RoomRecord] = []
        for row in rows:
            try:
                records.append(
                    RoomRecord.model_validate({"roomId": row.room_id, "participants": row.participants or []})
                )
            except ValidationError:
                logger.warning("Skipping unreadable snapshot row for room %s", row.room_id)
        return records

    async def save(self, records: List[RoomRecord]) -> None:
        try:
            async with in_transaction():
                await StoredRoom.all().delete()
                if records:
                    await StoredRoom.bulk_create(
                        [
                            StoredRoom(
                                room_id=r.room_id,
                                participants=r.to_wire()["participants"],
                            )
                            for r in records
                        ]
                    )
        except BaseORMException as exc:
            raise PersistenceFailure(f"Could not write room snapshot: {exc}") from exc


def snapshot_from_config(storage: StorageConfig) -> RoomSnapshot:
    if storage.backend == "json":
        return JsonFileRoomSnapshot(storage.json_path)
    return TortoiseRoomSnapshot()


__all__ = [
    "RoomSnapshot",
    "JsonFileRoomSnapshot",
    "TortoiseRoomSnapshot",
    "snapshot_from_config",
]
