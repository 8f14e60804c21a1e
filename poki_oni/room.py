from __future__ import annotations

from typing import List, Optional

from .schemas import Participant, ParticipantRecord, RoomRecord

# NOTE: ``Room`` objects are owned by ``RoomStore``. Handlers never mutate
# them directly; every change goes through the store so it runs under the
# store lock.


class Room:
    """Runtime state of one room: its id and participants in join order."""

    def __init__(self, room_id: str):
        self.room_id = room_id
        self.participants: List[Participant] = []

    # -------------------- Participant management -------------------- #

    def add_participant(self, player_id: str, connection_id: str) -> Participant:
        participant = Participant(player_id=player_id, connection_id=connection_id)
        self.participants.append(participant)
        return participant

    def remove_participant(self, connection_id: str) -> Optional[Participant]:
        participant = self.participant_for(connection_id)
        if participant is not None:
            self.participants.remove(participant)
        return participant

    def participant_for(self, connection_id: str) -> Optional[Participant]:
        for participant in self.participants:
            if participant.connection_id == connection_id:
                return participant
        return None

    def player_ids(self) -> List[str]:
        return [p.player_id for p in self.participants]

    def is_empty(self) -> bool:
        return not self.participants

    # -------------------- Snapshot helpers -------------------- #

    def to_record(self) -> RoomRecord:
        """Durable view of the room; connection ids are never persisted."""
        return RoomRecord(
            room_id=self.room_id,
            participants=[
                ParticipantRecord(player_id=p.player_id, position=p.position.model_copy())
                for p in self.participants
            ],
        )

    @classmethod
    def from_record(cls, record: RoomRecord) -> "Room":
        # Live connections do not survive a restart, so membership starts empty.
        return cls(record.room_id)

    def __repr__(self) -> str:
        return f"Room({self.room_id!r}, participants={self.player_ids()!r})"


__all__ = ["Room"]
