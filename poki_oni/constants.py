import string

# Identifier shapes mirror the base-36 ids handed out to the browser client.
ID_ALPHABET = string.ascii_lowercase + string.digits
ROOM_ID_LENGTH = 8
PLAYER_ID_LENGTH = 9

# Inbound frame kinds
JOIN = "join"
LEAVE = "leave"
MOVE = "move"
START_GAME = "startGame"
END_GAME = "endGame"

# Outbound-only frame kinds
NEW_PLAYER = "new-player"
PLAYER_LEFT = "player-left"
UPDATE_PARTICIPANTS = "updateParticipants"
ROOM_DELETED = "roomDeleted"

__all__ = [
    "ID_ALPHABET",
    "ROOM_ID_LENGTH",
    "PLAYER_ID_LENGTH",
    "JOIN",
    "LEAVE",
    "MOVE",
    "START_GAME",
    "END_GAME",
    "NEW_PLAYER",
    "PLAYER_LEFT",
    "UPDATE_PARTICIPANTS",
    "ROOM_DELETED",
]
