"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UserId and RoomId wrap str; MessageId wraps int (strictly increasing per store)
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders (payloads are persisted as JSON)
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", str)
RoomId = NewType("RoomId", str)
MessageId = NewType("MessageId", int)


# ─── Enums ───────────────────────────────────────────────────────

class Collection(str, Enum):
    """Logical collections held by the persisted store."""
    USERS = "users"
    ROOMS = "rooms"
    MESSAGES = "messages"


# Scalar key holding the logged-in user's snapshot for session restoration
CURRENT_USER_KEY = "current_user"


class EventType(str, Enum):
    """Change notifications published after a committed write."""
    NEW_MESSAGE = "NEW_MESSAGE"
    ROOM_CREATED = "ROOM_CREATED"
    ROOM_DELETED = "ROOM_DELETED"
    USER_UPDATE = "USER_UPDATE"
    USER_JOINED = "USER_JOINED"
    USER_LEFT = "USER_LEFT"


class MessageKind(str, Enum):
    TEXT = "text"
    IMAGE = "image"


class JoinState(str, Enum):
    """Room-join attempt states — see core/room_access.py."""
    IDLE = "idle"
    CREDENTIAL_CHALLENGE = "credential_challenge"
    REJECTED = "rejected"
    JOINED = "joined"


class StoreBackend(str, Enum):
    MEMORY = "memory"
    DATABASE = "database"
