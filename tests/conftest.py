from __future__ import annotations

import asyncio
import itertools
from typing import Iterator, List

import pytest
from fastapi.testclient import TestClient

from poki_oni.app import create_app
from poki_oni.config import AppConfig, StorageConfig
from poki_oni.errors import PersistenceFailure
from poki_oni.persistence import RoomSnapshot
from poki_oni.schemas import RoomRecord
from poki_oni.state import build_services

ROOM_IDS = ["abc12345", "def67890", "ghi13579", "jkl24680"]


class FakeConnection:
    """Stands in for a WebSocket; records every JSON payload sent to it."""

    def __init__(self, fail: bool = False, hang: bool = False):
        self.sent: List[dict] = []
        self.fail = fail
        self.hang = hang
        self.closed = False

    async def send_json(self, payload: dict) -> None:
        if self.fail:
            raise RuntimeError('Cannot call "send" once a close message has been sent.')
        if self.hang:
            await asyncio.sleep(3600)
        self.sent.append(payload)

    async def close(self, code: int = 1000) -> None:
        self.closed = True


class MemorySnapshot(RoomSnapshot):
    def __init__(self, records: List[RoomRecord] = None, fail: bool = False):
        self.records: List[RoomRecord] = list(records or [])
        self.saves = 0
        self.fail = fail

    async def load(self) -> List[RoomRecord]:
        return list(self.records)

    async def save(self, records: List[RoomRecord]) -> None:
        self.saves += 1
        if self.fail:
            raise PersistenceFailure("disk full")
        self.records = [r.model_copy(deep=True) for r in records]

    def room_ids(self) -> List[str]:
        return [r.room_id for r in self.records]


def room_id_factory(ids=ROOM_IDS):
    it = iter(ids)
    return lambda: next(it)


def player_id_factory():
    counter = itertools.count(1)
    return lambda: f"p{next(counter)}"


@pytest.fixture
def snapshot() -> MemorySnapshot:
    return MemorySnapshot()


@pytest.fixture
def config(tmp_path) -> AppConfig:
    return AppConfig(
        storage=StorageConfig(backend="json", json_path=str(tmp_path / "rooms.json")),
        static_dir=str(tmp_path / "public"),
    )


@pytest.fixture
def services(config, snapshot):
    return build_services(
        config,
        snapshot=snapshot,
        room_ids=room_id_factory(),
        player_ids=player_id_factory(),
    )


@pytest.fixture
def client(services) -> Iterator[TestClient]:
    with TestClient(create_app(services=services)) as test_client:
        yield test_client
