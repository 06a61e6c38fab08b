"""Record Schemas — the three persisted record types.

Invariants:
    - Room.credential is non-empty iff Room.is_private
    - Message.id is an int assigned by the command layer (strictly increasing)
    - Records round-trip through JSON via model_dump(mode="json") / model_validate

Design Decisions:
    - Records are frozen: commands derive updated copies with model_copy(update=...)
    - Credentials are stored and compared in plaintext (no authentication security)
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, model_validator

from roomcast.core.domain_types import MessageId, MessageKind, RoomId, UserId


class User(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UserId
    name: str
    email: str
    credential: str
    avatar_ref: str
    online: bool = False
    bio: str | None = None


class Room(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: RoomId
    name: str
    is_private: bool = False
    credential: str | None = None
    owner_id: str
    description: str | None = None

    @model_validator(mode="after")
    def check_credential_presence(self):
        if self.is_private and not self.credential:
            raise ValueError("private room requires a non-empty credential")
        if not self.is_private and self.credential is not None:
            raise ValueError("public room must not carry a credential")
        return self


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: MessageId
    room_id: RoomId
    sender_id: UserId
    sender_name: str
    sender_avatar_ref: str
    content: str
    kind: MessageKind = MessageKind.TEXT
    created_at: datetime
