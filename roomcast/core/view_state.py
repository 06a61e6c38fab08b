"""View State — what one chat view knows, and how events change it.

Invariants:
    - messages only ever holds messages of active_room_id
    - users holds at most one record per id
    - apply_event is pure apart from mutating the given ViewState; unknown ids are ignored

Design Decisions:
    - One match-case over EventType: every event's effect visible in one place
    - Payloads arrive as JSON dicts (Event.payload) and are re-validated into records
"""

from dataclasses import dataclass, field

from roomcast.core.domain_types import EventType, RoomId
from roomcast.schemas.events import Event
from roomcast.schemas.records import Message, Room, User

ROOM_DELETED_NOTICE = "The room you were in has been deleted."


@dataclass
class ViewState:
    current_user: User
    rooms: list[Room] = field(default_factory=list)
    users: list[User] = field(default_factory=list)
    messages: list[Message] = field(default_factory=list)
    active_room_id: RoomId | None = None
    notices: list[str] = field(default_factory=list)

    def find_room(self, room_id: str) -> Room | None:
        return next((r for r in self.rooms if r.id == room_id), None)

    def find_user(self, user_id: str) -> User | None:
        return next((u for u in self.users if u.id == user_id), None)

    def leave_room(self) -> None:
        self.active_room_id = None
        self.messages = []


def apply_event(state: ViewState, event: Event) -> None:
    """Fold one event into the view state."""
    payload = event.payload
    match event.type:
        case EventType.NEW_MESSAGE:
            message = Message.model_validate(payload)
            if message.room_id == state.active_room_id:
                state.messages.append(message)
        case EventType.ROOM_CREATED:
            room = Room.model_validate(payload)
            if state.find_room(room.id) is None:
                state.rooms.append(room)
        case EventType.ROOM_DELETED:
            room_id = payload["room_id"]
            state.rooms = [r for r in state.rooms if r.id != room_id]
            if state.active_room_id == room_id:
                state.leave_room()
                state.notices.append(ROOM_DELETED_NOTICE)
        case EventType.USER_UPDATE:
            user = User.model_validate(payload)
            state.users = [user if u.id == user.id else u for u in state.users]
            if user.id == state.current_user.id:
                state.current_user = user
        case EventType.USER_JOINED:
            user = User.model_validate(payload)
            if state.find_user(user.id) is None:
                state.users.append(user)
        case EventType.USER_LEFT:
            user_id = payload["user_id"]
            state.users = [
                u.model_copy(update={"online": False}) if u.id == user_id else u
                for u in state.users
            ]
