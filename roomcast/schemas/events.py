"""Event Schema — immutable notification describing a committed mutation."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from roomcast.core.domain_types import EventType


class Event(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: EventType
    payload: dict[str, Any]
    sequence: int
    published_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
