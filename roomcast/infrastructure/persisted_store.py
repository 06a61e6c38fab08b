"""Persisted Store — key-ordered durable collections over a StorageBackend.

Invariants:
    - load(collection, default) seeds the key with default on first access (idempotent)
    - save() overwrites the whole collection in one backend write and returns the new version
    - A payload that fails JSON decoding or record validation is StoreCorrupt:
      reseeded from default when reseed_on_corrupt, raised otherwise
    - Command code only sees typed accessors (users, rooms, messages, current_user)

Design Decisions:
    - Versions surface in every Snapshot so callers can opt into compare-and-swap writes
    - Reseed writes use the corrupt payload's version as expected_version: a concurrent
      repair by another writer wins instead of being overwritten
"""

import logging
from dataclasses import dataclass
from typing import Callable, Generic, Sequence, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from roomcast.core.domain_types import CURRENT_USER_KEY, Collection
from roomcast.core.errors import StoreCorruptError
from roomcast.core.record_codec import (
    decode_records, decode_scalar, encode_records, encode_scalar,
)
from roomcast.core.repository_protocols import StorageBackend
from roomcast.core.seed_data import default_collections
from roomcast.schemas.records import Message, Room, User

logger = logging.getLogger(__name__)

T = TypeVar("T")
RecordT = TypeVar("RecordT", bound=BaseModel)


@dataclass(frozen=True)
class Snapshot(Generic[T]):
    """Records of one collection as read, plus the version they were read at."""
    records: list[T]
    version: int


def _identity(records: list[dict]) -> list:
    return records


class PersistedStore:
    """Durable mapping from collection name to an ordered sequence of records."""

    def __init__(
        self,
        backend: StorageBackend,
        key_prefix: str = "chat_",
        seed_demo_data: bool = True,
        reseed_on_corrupt: bool = True,
    ):
        self._backend = backend
        self._prefix = key_prefix
        self._defaults = default_collections(seed_demo_data)
        self._reseed_on_corrupt = reseed_on_corrupt
        self.users: CollectionAccessor[User] = CollectionAccessor(
            self, Collection.USERS, User,
        )
        self.rooms: CollectionAccessor[Room] = CollectionAccessor(
            self, Collection.ROOMS, Room,
        )
        self.messages: CollectionAccessor[Message] = CollectionAccessor(
            self, Collection.MESSAGES, Message,
        )
        self.current_user: ScalarAccessor[User] = ScalarAccessor(
            self, CURRENT_USER_KEY, User,
        )

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    @property
    def reseed_on_corrupt(self) -> bool:
        return self._reseed_on_corrupt

    def key_for(self, name: Collection | str) -> str:
        value = name.value if isinstance(name, Collection) else name
        return f"{self._prefix}{value}"

    def default_for(self, collection: Collection) -> list[dict]:
        return [dict(r) for r in self._defaults[collection]]

    async def load(
        self,
        collection: Collection,
        default: list[dict],
        parse: Callable[[list[dict]], list] = _identity,
    ) -> Snapshot:
        """Return the persisted sequence, seeding it with default on first access."""
        key = self.key_for(collection)
        stored = await self._backend.read(key)
        if stored is None:
            records = parse(default)
            version = await self._backend.write(key, encode_records(default))
            logger.info(
                "Seeded %s with %d records", key, len(default),
                extra={"collection": key, "version": version},
            )
            return Snapshot(records, version)
        try:
            return Snapshot(parse(decode_records(key, stored.payload)), stored.version)
        except StoreCorruptError as e:
            if not self._reseed_on_corrupt:
                logger.error(
                    f"Corrupt store payload: {e.reason}",
                    extra={"collection": key, "error_code": e.code},
                )
                raise
            logger.warning(
                f"Corrupt store payload, reseeding: {e.reason}",
                extra={"collection": key, "error_code": e.code},
            )
            version = await self._backend.write(
                key, encode_records(default), expected_version=stored.version,
            )
            return Snapshot(parse(default), version)

    async def save(
        self,
        collection: Collection,
        records: list[dict],
        expected_version: int | None = None,
    ) -> int:
        """Overwrite a collection in one write; returns the new version."""
        key = self.key_for(collection)
        return await self._backend.write(
            key, encode_records(records), expected_version=expected_version,
        )

    async def load_scalar(self, name: str) -> dict | None:
        key = self.key_for(name)
        stored = await self._backend.read(key)
        if stored is None:
            return None
        try:
            return decode_scalar(key, stored.payload)
        except StoreCorruptError as e:
            if not self._reseed_on_corrupt:
                raise
            logger.warning(
                f"Corrupt scalar payload, clearing: {e.reason}",
                extra={"collection": key, "error_code": e.code},
            )
            await self._backend.delete(key)
            return None

    async def save_scalar(self, name: str, value: dict | None) -> None:
        key = self.key_for(name)
        if value is None:
            await self._backend.delete(key)
        else:
            await self._backend.write(key, encode_scalar(value))

    async def close(self) -> None:
        await self._backend.close()


def _corrupt_on_invalid(key: str, adapter: TypeAdapter, raw):
    try:
        return adapter.validate_python(raw)
    except ValidationError as e:
        raise StoreCorruptError(key, f"{e.error_count()} invalid field(s)")


class CollectionAccessor(Generic[RecordT]):
    """Typed view of one collection: load() -> Snapshot[RecordT], save(records)."""

    def __init__(
        self, store: PersistedStore, collection: Collection, model: type[RecordT],
    ):
        self._store = store
        self.collection = collection
        self._adapter = TypeAdapter(list[model])

    def _parse(self, raw: list[dict]) -> list[RecordT]:
        return _corrupt_on_invalid(
            self._store.key_for(self.collection), self._adapter, raw,
        )

    async def load(self) -> Snapshot[RecordT]:
        return await self._store.load(
            self.collection, self._store.default_for(self.collection), self._parse,
        )

    async def save(
        self, records: Sequence[RecordT], expected_version: int | None = None,
    ) -> int:
        return await self._store.save(
            self.collection,
            [r.model_dump(mode="json", exclude_none=True) for r in records],
            expected_version=expected_version,
        )


class ScalarAccessor(Generic[RecordT]):
    """Typed single-record key (absent means None)."""

    def __init__(self, store: PersistedStore, name: str, model: type[RecordT]):
        self._store = store
        self._name = name
        self._model = model

    async def get(self) -> RecordT | None:
        raw = await self._store.load_scalar(self._name)
        if raw is None:
            return None
        try:
            return self._model.model_validate(raw)
        except ValidationError as e:
            if not self._store.reseed_on_corrupt:
                raise StoreCorruptError(self._store.key_for(self._name), str(e))
            logger.warning("Invalid %s snapshot, clearing", self._name)
            await self._store.save_scalar(self._name, None)
            return None

    async def set(self, value: RecordT | None) -> None:
        await self._store.save_scalar(
            self._name,
            value.model_dump(mode="json", exclude_none=True) if value else None,
        )
