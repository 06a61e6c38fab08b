"""StoredCollection ORM — one row per persisted key.

Invariants:
    - key is the primary key ("chat_users", "chat_rooms", "chat_messages", "chat_current_user")
    - payload is the whole JSON document for that key (overwritten on every save)
    - version starts at 1 on insert and increments by exactly 1 per update
"""

from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from roomcast.db.base import Base


class StoredCollection(Base):
    __tablename__ = "stored_collections"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
