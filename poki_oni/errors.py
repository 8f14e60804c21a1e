"""Exception taxonomy for the room server.

None of these are fatal to the process. Each one is raised at the seam
where the problem is detected and handled one level up:

* ``MalformedFrame`` - raised by frame parsing, logged by the dispatcher.
* ``RoomNotFound`` - raised by the room store, answered with ``roomExists: false``.
* ``ProtocolViolation`` - raised by session state checks, silently ignored.
* ``TransportFailure`` - raised by a single send, isolated by the broadcaster.
* ``PersistenceFailure`` - raised by snapshot backends, logged by the room store.
"""
from __future__ import annotations


class RoomServerError(Exception):
    """Base class for every error raised by the room server."""


class MalformedFrame(RoomServerError):
    pass


class RoomNotFound(RoomServerError):
    def __init__(self, room_id: str):
        super().__init__(f"Room {room_id!r} not found")
        self.room_id = room_id


class ProtocolViolation(RoomServerError):
    pass


class TransportFailure(RoomServerError):
    pass


class PersistenceFailure(RoomServerError):
    pass


__all__ = [
    "RoomServerError",
    "MalformedFrame",
    "RoomNotFound",
    "ProtocolViolation",
    "TransportFailure",
    "PersistenceFailure",
]
