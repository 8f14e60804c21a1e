from tortoise import fields
from tortoise.models import Model


class StoredRoom(Model):
    """One row of the durable room snapshot stored in SQLite."""

    # Auto-increment key doubles as the snapshot ordering.
    id = fields.IntField(pk=True)
    room_id = fields.CharField(max_length=32, unique=True, index=True)
    # List of {"playerId": str, "position": {"x": ..., "y": ...}}
    participants = fields.JSONField(default=list)

    class Meta:
        table = "rooms"
