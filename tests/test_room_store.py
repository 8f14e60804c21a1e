from __future__ import annotations

import asyncio
import logging
import random

import pytest

from poki_oni.errors import RoomNotFound
from poki_oni.room_store import RoomStore, new_player_id, new_room_id
from poki_oni.schemas import ParticipantRecord, Position, RoomRecord

from conftest import MemorySnapshot, player_id_factory, room_id_factory


@pytest.fixture
def store(snapshot):
    return RoomStore(snapshot, room_ids=room_id_factory(), player_ids=player_id_factory())


def test_default_ids_are_lowercase_alphanumeric():
    room_id = new_room_id()
    player_id = new_player_id()
    assert len(room_id) == 8 and len(player_id) == 9
    assert (room_id + player_id).isalnum()
    assert (room_id + player_id) == (room_id + player_id).lower()


async def test_create_persists_before_returning(store, snapshot):
    room_id = await store.create()
    assert room_id == "abc12345"
    assert store.find(room_id).is_empty()
    assert snapshot.room_ids() == [room_id]


async def test_find_is_exact_match(store):
    room_id = await store.create()
    assert store.find(room_id) is not None
    assert store.find(room_id.upper()) is None
    assert store.find(room_id[:-1]) is None


async def test_join_unknown_room_raises(store):
    with pytest.raises(RoomNotFound):
        await store.join("missing0", "conn-a")


async def test_join_returns_other_participants_in_join_order(store, snapshot):
    room_id = await store.create()
    first = await store.join(room_id, "conn-a")
    assert first.player_id == "p1"
    assert first.others == []

    await store.update_position(room_id, "conn-a", Position(x=5, y=6))
    await store.join(room_id, "conn-b")
    third = await store.join(room_id, "conn-c")

    assert third.player_id == "p3"
    assert [p.player_id for p in third.others] == ["p1", "p2"]
    assert third.others[0].position == Position(x=5, y=6)
    assert store.connection_ids(room_id) == ["conn-a", "conn-b", "conn-c"]
    assert [p.player_id for p in snapshot.records[0].participants] == ["p1", "p2", "p3"]


async def test_leave_last_participant_removes_room_everywhere(store, snapshot):
    keep = await store.create()
    room_id = await store.create()
    await store.join(room_id, "conn-a")
    await store.join(room_id, "conn-b")

    departure = await store.leave(room_id, "conn-a")
    assert departure.player_id == "p1"
    assert departure.remaining == ["conn-b"]
    assert not departure.room_removed
    assert room_id in store

    departure = await store.leave(room_id, "conn-b")
    assert departure.room_removed
    assert departure.remaining == []
    assert room_id not in store
    assert snapshot.room_ids() == [keep]


async def test_leave_unknown_connection_is_a_noop(store):
    room_id = await store.create()
    await store.join(room_id, "conn-a")
    assert await store.leave(room_id, "conn-z") is None
    assert await store.leave("missing0", "conn-a") is None
    assert store.connection_ids(room_id) == ["conn-a"]


async def test_position_updates_are_not_persisted(store, snapshot):
    room_id = await store.create()
    await store.join(room_id, "conn-a")
    saves = snapshot.saves

    player_id = await store.update_position(room_id, "conn-a", Position(x=42, y=7))

    assert player_id == "p1"
    assert store.find(room_id).participants[0].position == Position(x=42, y=7)
    assert snapshot.saves == saves
    assert await store.update_position(room_id, "conn-z", Position(x=1, y=1)) is None


async def test_participant_count_tracks_net_joins(snapshot):
    rng = random.Random(1234)
    store = RoomStore(snapshot, room_ids=room_id_factory(), player_ids=player_id_factory())
    room_id = await store.create()
    await store.join(room_id, "seed")
    members = {"seed"}
    next_conn = 0

    for _ in range(200):
        if members and rng.random() < 0.45:
            conn = rng.choice(sorted(members))
            await store.leave(room_id, conn)
            members.discard(conn)
        else:
            next_conn += 1
            conn = f"conn-{next_conn}"
            if room_id not in store:
                break
            await store.join(room_id, conn)
            members.add(conn)

        room = store.find(room_id)
        if not members:
            assert room is None
            assert room_id not in snapshot.room_ids()
            break
        assert len(room.participants) == len(members) >= 0
        assert set(store.connection_ids(room_id)) == members


async def test_persistence_failure_is_logged_not_raised(caplog):
    snapshot = MemorySnapshot(fail=True)
    store = RoomStore(snapshot, room_ids=room_id_factory(), player_ids=player_id_factory())

    with caplog.at_level(logging.ERROR, logger="poki_oni.room_store"):
        room_id = await store.create()
        await store.join(room_id, "conn-a")
        departure = await store.leave(room_id, "conn-a")

    assert departure.room_removed
    assert room_id not in store
    assert snapshot.saves == 3
    assert "snapshot write failed" in caplog.text


async def test_restore_keeps_room_ids_but_drops_participants():
    snapshot = MemorySnapshot(
        records=[
            RoomRecord(room_id="old00001", participants=[ParticipantRecord(player_id="ghost0001")]),
            RoomRecord(room_id="old00002"),
        ]
    )
    store = RoomStore(snapshot, player_ids=player_id_factory())

    assert await store.restore() == 2
    assert [s.room_id for s in store.summaries()] == ["old00001", "old00002"]
    assert store.find("old00001").is_empty()

    result = await store.join("old00001", "conn-a")
    assert result.others == []


class SlowSnapshot(MemorySnapshot):
    async def save(self, records):
        await asyncio.sleep(0.01)
        await super().save(records)


def test_store_built_outside_the_serving_loop():
    # create_app builds services before uvicorn starts its own loop.
    snapshot = SlowSnapshot()
    store = RoomStore(snapshot, room_ids=room_id_factory(), player_ids=player_id_factory())

    async def serve():
        room_id = await store.create()
        # Concurrent joins queue on the store lock while a save is in flight.
        results = await asyncio.gather(*(store.join(room_id, f"conn-{n}") for n in range(3)))
        return room_id, results

    room_id, results = asyncio.run(serve())

    assert sorted(r.player_id for r in results) == ["p1", "p2", "p3"]
    assert len(store.connection_ids(room_id)) == 3
    assert len(snapshot.records[0].participants) == 3
