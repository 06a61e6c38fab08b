"""Chat View — one observer of the store: rooms, users, active room and its messages.

Invariants:
    - open() loads rooms and users, then subscribes; close() releases the subscription
    - A room is entered only through a JoinAttempt; JOINED loads that room's history
    - A rejected credential never loads messages and never touches shared state
    - A pending join is dropped when its room is deleted; a credential can no longer
      be submitted for it
    - Joining the room that is already active is a no-op
    - Every incoming event is folded in by core.view_state.apply_event

Design Decisions:
    - Async context manager so the subscription is released on every exit path
    - Images pass through infrastructure.image_codec before they reach the command layer
"""

import logging

from roomcast.core.domain_types import JoinState, MessageKind
from roomcast.core.errors import RoomNotFoundError
from roomcast.core.room_access import JoinAttempt
from roomcast.core.view_state import ViewState, apply_event
from roomcast.infrastructure.image_codec import encode_image_payload
from roomcast.schemas.commands import MessageCreate, ProfileUpdate, RoomCreate
from roomcast.schemas.events import Event
from roomcast.schemas.records import Message, Room, User
from roomcast.services.chat_commands import ChatCommands
from roomcast.services.event_bus import EventBus, Subscription

logger = logging.getLogger(__name__)


class ChatView:
    """State and actions of one logged-in chat window."""

    def __init__(
        self,
        commands: ChatCommands,
        bus: EventBus,
        current_user: User,
        image_max_dimension: int = 1024,
        image_quality: int = 80,
    ):
        self._commands = commands
        self._bus = bus
        self.state = ViewState(current_user=current_user)
        self.pending_join: JoinAttempt | None = None
        self._subscription: Subscription | None = None
        self._image_max_dimension = image_max_dimension
        self._image_quality = image_quality

    @property
    def current_user(self) -> User:
        return self.state.current_user

    @property
    def is_open(self) -> bool:
        return self._subscription is not None and self._subscription.active

    async def open(self) -> "ChatView":
        self.state.rooms = await self._commands.list_rooms()
        self.state.users = await self._commands.list_users()
        self._subscription = self._bus.subscribe(self._on_event)
        return self

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    async def __aenter__(self) -> "ChatView":
        return await self.open()

    async def __aexit__(self, *exc_info) -> None:
        self.close()

    def _on_event(self, event: Event) -> None:
        apply_event(self.state, event)
        attempt = self.pending_join
        if attempt is not None and self.state.find_room(attempt.room.id) is None:
            self.pending_join = None

    # -- joining rooms -------------------------------------------------------

    async def join_room(self, room_id: str) -> JoinState:
        """Start entering a room; private rooms stop at CREDENTIAL_CHALLENGE."""
        if room_id == self.state.active_room_id:
            return JoinState.JOINED
        room = self.state.find_room(room_id)
        if room is None:
            raise RoomNotFoundError(room_id)
        attempt = JoinAttempt(room)
        state = attempt.begin()
        if state is JoinState.JOINED:
            self.pending_join = None
            await self._enter(room)
        else:
            self.pending_join = attempt
        return state

    async def submit_room_credential(self, credential: str) -> JoinState:
        if self.pending_join is None:
            raise ValueError("no room is waiting for a credential")
        attempt = self.pending_join
        state = attempt.submit(credential)
        if state is JoinState.JOINED:
            self.pending_join = None
            await self._enter(attempt.room)
        else:
            logger.info(
                "Room credential rejected",
                extra={"room_id": attempt.room.id, "user_id": self.current_user.id},
            )
        return state

    def cancel_join(self) -> None:
        if self.pending_join is not None:
            self.pending_join.cancel()
            self.pending_join = None

    async def _enter(self, room: Room) -> None:
        self.state.active_room_id = room.id
        self.state.messages = await self._commands.list_messages(room.id)

    def leave_room(self) -> None:
        self.state.leave_room()

    # -- actions -------------------------------------------------------------

    async def send_text(self, content: str) -> Message:
        return await self._send(content, MessageKind.TEXT)

    async def send_image(self, raw: bytes) -> Message:
        payload = encode_image_payload(
            raw, self._image_max_dimension, self._image_quality,
        )
        return await self._send(payload, MessageKind.IMAGE)

    async def _send(self, content: str, kind: MessageKind) -> Message:
        if self.state.active_room_id is None:
            raise ValueError("join a room before sending messages")
        return await self._commands.send_message(MessageCreate(
            room_id=self.state.active_room_id,
            sender_id=self.current_user.id,
            content=content,
            kind=kind,
        ))

    async def create_room(
        self, name: str, is_private: bool = False, credential: str | None = None,
    ) -> Room:
        return await self._commands.create_room(RoomCreate(
            name=name,
            owner_id=self.current_user.id,
            is_private=is_private,
            credential=credential,
        ))

    async def delete_room(self, room_id: str) -> None:
        await self._commands.delete_room(room_id, self.current_user.id)

    def can_delete(self, room: Room) -> bool:
        return room.owner_id == self.current_user.id

    async def update_profile(self, fields: ProfileUpdate | dict) -> User:
        return await self._commands.update_profile(self.current_user.id, fields)

    async def update_avatar(self, raw: bytes) -> User:
        avatar_ref = encode_image_payload(
            raw, self._image_max_dimension, self._image_quality,
        )
        return await self._commands.update_profile(
            self.current_user.id, ProfileUpdate(avatar_ref=avatar_ref),
        )
