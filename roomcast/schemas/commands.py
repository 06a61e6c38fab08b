"""Command Inputs — pydantic models validated before a command touches the store.

Invariants:
    - Names are stripped and non-empty
    - Domain rules (private room needs a credential, content non-empty) are NOT
      enforced here: they raise typed RoomcastErrors inside the command layer

Design Decisions:
    - field_validator for side-effect-free transforms (strip) — keeps models pure
"""

from pydantic import BaseModel, Field, field_validator

from roomcast.core.domain_types import MessageKind


class RoomCreate(BaseModel):
    """Room creation — owner and privacy chosen by the caller."""
    name: str = Field(min_length=1, max_length=100)
    owner_id: str
    is_private: bool = False
    credential: str | None = None
    description: str | None = "New custom room"

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("room name cannot be empty or whitespace")
        return v


class MessageCreate(BaseModel):
    """Message send — sender name/avatar are snapshotted from the users collection."""
    room_id: str
    sender_id: str
    content: str
    kind: MessageKind = MessageKind.TEXT


class ProfileUpdate(BaseModel):
    """Partial profile update — only fields explicitly set are merged."""
    name: str | None = Field(None, min_length=1, max_length=100)
    avatar_ref: str | None = None
    credential: str | None = None
    bio: str | None = Field(None, max_length=500)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v

    def changes(self) -> dict:
        """Fields to merge. A blank credential means 'keep the current one'."""
        updates = self.model_dump(exclude_unset=True, exclude_none=True)
        if not updates.get("credential", "x").strip():
            updates.pop("credential")
        return updates
