"""Chat Commands — latency-simulating create/read/update/delete operations.

Invariants:
    - Write protocol: load -> validate -> compute -> persist -> publish exactly one event
    - Validation failures raise before any write or publish (no partial state observable)
    - The event is published only after the store write returned (durable)
    - Commands run under one FIFO asyncio.Lock: delay + read-modify-write + publish of one
      command never interleaves with another issued from this process, and commands
      complete in the order they were issued
    - Commands that touch the session write the users collection first and the
      current_user snapshot second: a rejected users write leaves the session as it was
    - Messages get strictly increasing ids and created_at timestamps
    - Deleting a room leaves its messages in place (orphaned, never queried again)

Design Decisions:
    - Store and bus injected: the same commands run over memory or database backends
    - strict_writes passes each snapshot's version as expected_version (compare-and-swap);
      off by default, so cross-process writers are last-writer-wins
    - Clock and id factory injectable for deterministic tests
"""

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Callable

from roomcast.core.domain_types import EventType, MessageId, RoomId, UserId
from roomcast.core.errors import (
    EmailTakenError,
    EmptyMessageError,
    InvalidCredentialsError,
    MissingPasswordError,
    NotOwnerError,
    RoomcastError,
    RoomNotFoundError,
    UserNotFoundError,
)
from roomcast.infrastructure.latency import LatencySimulator
from roomcast.infrastructure.persisted_store import PersistedStore, Snapshot
from roomcast.schemas.commands import MessageCreate, ProfileUpdate, RoomCreate
from roomcast.schemas.records import Message, Room, User
from roomcast.services.event_bus import EventBus

logger = logging.getLogger(__name__)

_ONE_TICK = timedelta(microseconds=1)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id(prefix: str) -> str:
    return f"{prefix}{uuid.uuid4().hex[:12]}"


def _dump(record) -> dict:
    return record.model_dump(mode="json", exclude_none=True)


def _replace(records: list, updated) -> list:
    return [updated if r.id == updated.id else r for r in records]


class ChatCommands:
    """The operations a view invokes and awaits."""

    def __init__(
        self,
        store: PersistedStore,
        bus: EventBus,
        latency: LatencySimulator | None = None,
        strict_writes: bool = False,
        avatar_template: str = "https://picsum.photos/seed/{seed}/200",
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[str], str] = _new_id,
    ):
        self._store = store
        self._bus = bus
        self._latency = latency or LatencySimulator(0, 0)
        self._strict = strict_writes
        self._avatar_template = avatar_template
        self._clock = clock
        self._new_id = id_factory
        self._lock = asyncio.Lock()

    # -- plumbing ------------------------------------------------------------

    @asynccontextmanager
    async def _command(self, name: str, **context: str | None) -> AsyncGenerator[None, None]:
        """Serialize one command, simulate latency, annotate and log domain errors."""
        async with self._lock:
            await self._latency()
            try:
                yield
            except RoomcastError as e:
                e.context.command = name
                e.context.user_id = e.context.user_id or context.get("user_id")
                e.context.room_id = e.context.room_id or context.get("room_id")
                logger.warning(
                    f"{name} rejected: {e.message}",
                    extra={"command": name, "error_code": e.code, **context},
                )
                raise

    def _expected(self, snapshot: Snapshot) -> int | None:
        return snapshot.version if self._strict else None

    def _publish(self, event_type: EventType, payload: dict, command: str) -> None:
        event = self._bus.publish(event_type, payload)
        logger.info(
            f"{command} committed",
            extra={
                "command": command,
                "event_type": event_type.value,
                "sequence": event.sequence,
            },
        )

    # -- auth ----------------------------------------------------------------

    async def login(self, email: str, credential: str) -> User:
        async with self._command("login"):
            users = await self._store.users.load()
            user = next(
                (
                    u for u in users.records
                    if u.email == email and u.credential == credential
                ),
                None,
            )
            if user is None:
                raise InvalidCredentialsError()
            updated = user.model_copy(update={"online": True})
            await self._store.users.save(
                _replace(users.records, updated), self._expected(users),
            )
            await self._store.current_user.set(updated)
            self._publish(EventType.USER_UPDATE, _dump(updated), "login")
            return updated

    async def register(self, name: str, email: str, credential: str) -> User:
        async with self._command("register"):
            users = await self._store.users.load()
            if any(u.email == email for u in users.records):
                raise EmailTakenError(email)
            user_id = UserId(self._new_id("u"))
            user = User(
                id=user_id,
                name=name,
                email=email,
                credential=credential,
                avatar_ref=self._avatar_template.format(seed=user_id),
                online=True,
            )
            await self._store.users.save(
                [*users.records, user], self._expected(users),
            )
            await self._store.current_user.set(user)
            self._publish(EventType.USER_JOINED, _dump(user), "register")
            return user

    async def logout(self, user_id: str) -> None:
        async with self._command("logout", user_id=user_id):
            users = await self._store.users.load()
            user = self._find_user(users.records, user_id)
            updated = user.model_copy(update={"online": False})
            await self._store.users.save(
                _replace(users.records, updated), self._expected(users),
            )
            current = await self._store.current_user.get()
            if current is not None and current.id == user_id:
                await self._store.current_user.set(None)
            self._publish(EventType.USER_LEFT, {"user_id": user_id}, "logout")

    async def restore_session(self) -> User | None:
        """Snapshot of the user logged in before the last restart, if any."""
        return await self._store.current_user.get()

    async def update_profile(
        self, user_id: str, fields: ProfileUpdate | dict,
    ) -> User:
        if not isinstance(fields, ProfileUpdate):
            fields = ProfileUpdate.model_validate(fields)
        async with self._command("update_profile", user_id=user_id):
            users = await self._store.users.load()
            user = self._find_user(users.records, user_id)
            merged = user.model_copy(update=fields.changes())
            await self._store.users.save(
                _replace(users.records, merged), self._expected(users),
            )
            current = await self._store.current_user.get()
            if current is not None and current.id == user_id:
                await self._store.current_user.set(merged)
            self._publish(EventType.USER_UPDATE, _dump(merged), "update_profile")
            return merged

    # -- reads ---------------------------------------------------------------

    async def list_users(self) -> list[User]:
        async with self._command("list_users"):
            return (await self._store.users.load()).records

    async def list_rooms(self) -> list[Room]:
        async with self._command("list_rooms"):
            return (await self._store.rooms.load()).records

    async def list_messages(self, room_id: str) -> list[Message]:
        async with self._command("list_messages", room_id=room_id):
            messages = await self._store.messages.load()
            return [m for m in messages.records if m.room_id == room_id]

    # -- rooms ---------------------------------------------------------------

    async def create_room(self, request: RoomCreate | dict) -> Room:
        if not isinstance(request, RoomCreate):
            request = RoomCreate.model_validate(request)
        async with self._command("create_room", user_id=request.owner_id):
            if request.is_private and not (request.credential or "").strip():
                raise MissingPasswordError()
            users = await self._store.users.load()
            self._find_user(users.records, request.owner_id)
            rooms = await self._store.rooms.load()
            room = Room(
                id=RoomId(self._new_id("r")),
                name=request.name,
                is_private=request.is_private,
                credential=request.credential if request.is_private else None,
                owner_id=request.owner_id,
                description=request.description,
            )
            await self._store.rooms.save(
                [*rooms.records, room], self._expected(rooms),
            )
            self._publish(EventType.ROOM_CREATED, _dump(room), "create_room")
            return room

    async def delete_room(self, room_id: str, requester_id: str) -> None:
        async with self._command(
            "delete_room", room_id=room_id, user_id=requester_id,
        ):
            rooms = await self._store.rooms.load()
            room = self._find_room(rooms.records, room_id)
            if room.owner_id != requester_id:
                raise NotOwnerError(room_id, requester_id)
            await self._store.rooms.save(
                [r for r in rooms.records if r.id != room_id],
                self._expected(rooms),
            )
            self._publish(
                EventType.ROOM_DELETED, {"room_id": room_id}, "delete_room",
            )

    # -- messages ------------------------------------------------------------

    async def send_message(self, request: MessageCreate | dict) -> Message:
        if not isinstance(request, MessageCreate):
            request = MessageCreate.model_validate(request)
        async with self._command(
            "send_message", room_id=request.room_id, user_id=request.sender_id,
        ):
            if not request.content.strip():
                raise EmptyMessageError()
            rooms = await self._store.rooms.load()
            self._find_room(rooms.records, request.room_id)
            users = await self._store.users.load()
            sender = self._find_user(users.records, request.sender_id)
            messages = await self._store.messages.load()

            message = Message(
                id=self._next_message_id(messages.records),
                room_id=RoomId(request.room_id),
                sender_id=sender.id,
                sender_name=sender.name,
                sender_avatar_ref=sender.avatar_ref,
                content=request.content,
                kind=request.kind,
                created_at=self._next_timestamp(messages.records),
            )
            await self._store.messages.save(
                [*messages.records, message], self._expected(messages),
            )
            self._publish(
                EventType.NEW_MESSAGE, message.model_dump(mode="json"), "send_message",
            )
            return message

    # -- helpers -------------------------------------------------------------

    @staticmethod
    def _find_user(users: list[User], user_id: str) -> User:
        user = next((u for u in users if u.id == user_id), None)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    @staticmethod
    def _find_room(rooms: list[Room], room_id: str) -> Room:
        room = next((r for r in rooms if r.id == room_id), None)
        if room is None:
            raise RoomNotFoundError(room_id)
        return room

    @staticmethod
    def _next_message_id(messages: list[Message]) -> MessageId:
        return MessageId(max((m.id for m in messages), default=0) + 1)

    def _next_timestamp(self, messages: list[Message]) -> datetime:
        now = self._clock()
        if messages:
            latest = max(m.created_at for m in messages)
            if now <= latest:
                now = latest + _ONE_TICK
        return now
