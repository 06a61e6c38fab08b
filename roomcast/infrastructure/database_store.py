"""Database Storage Backend — StorageBackend over the stored_collections table.

Invariants:
    - write() without expected_version is last-writer-wins: one upsert statement that
      bumps the stored version, so concurrent writers never fail on each other
    - write() with expected_version is a compare-and-swap: INSERT for 0,
      UPDATE ... WHERE version = :expected otherwise; a miss raises ConcurrencyError
    - An absent key has version 0; the first write stores version 1
    - Each write is one committed transaction (no partial-write visibility)
    - ConcurrencyError never leaves an open transaction

Design Decisions:
    - Whole-document rows (one JSON payload per key): mirrors the collection contract
      instead of normalising records into tables
    - Upserts use the dialect's ON CONFLICT DO UPDATE (SQLite and PostgreSQL)
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import delete, insert, select, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from roomcast.core.errors import ConcurrencyError, DatabaseError
from roomcast.core.repository_protocols import StoredPayload
from roomcast.infrastructure.database import DatabaseSessionManager
from roomcast.models.stored_collection import StoredCollection

logger = logging.getLogger(__name__)

_UPSERT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": postgresql_insert,
}


async def _current_version(db: AsyncSession, key: str) -> int:
    result = await db.execute(
        select(StoredCollection.version).where(StoredCollection.key == key),
    )
    return result.scalar_one_or_none() or 0


class DatabaseStorageBackend:
    """Durable key -> JSON store backed by SQLAlchemy async sessions."""

    def __init__(self, db_manager: DatabaseSessionManager):
        self._db = db_manager
        dialect = db_manager.engine.dialect.name
        if dialect not in _UPSERT_INSERTS:
            raise DatabaseError(f"unsupported dialect '{dialect}'", "connect")
        self._upsert_insert = _UPSERT_INSERTS[dialect]

    async def read(self, key: str) -> StoredPayload | None:
        async with self._db.session() as db:
            result = await db.execute(
                select(StoredCollection.payload, StoredCollection.version)
                .where(StoredCollection.key == key),
            )
            row = result.one_or_none()
        if row is None:
            return None
        return StoredPayload(payload=row.payload, version=row.version)

    async def write(
        self, key: str, payload: str, expected_version: int | None = None,
    ) -> int:
        now = datetime.now(timezone.utc)
        async with self._db.session() as db:
            if expected_version is None:
                new_version = await self._upsert(db, key, payload, now)
            elif expected_version == 0:
                new_version = await self._insert_new(db, key, payload, now)
            else:
                new_version = await self._swap(db, key, payload, expected_version, now)
            await db.commit()
        logger.debug(
            "Persisted %s", key, extra={"collection": key, "version": new_version},
        )
        return new_version

    async def _upsert(
        self, db: AsyncSession, key: str, payload: str, now: datetime,
    ) -> int:
        stmt = self._upsert_insert(StoredCollection).values(
            key=key, payload=payload, version=1, updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[StoredCollection.key],
            set_={
                "payload": payload,
                "version": StoredCollection.version + 1,
                "updated_at": now,
            },
        ).returning(StoredCollection.version)
        result = await db.execute(stmt)
        return result.scalar_one()

    async def _insert_new(
        self, db: AsyncSession, key: str, payload: str, now: datetime,
    ) -> int:
        try:
            await db.execute(
                insert(StoredCollection).values(
                    key=key, payload=payload, version=1, updated_at=now,
                ),
            )
        except IntegrityError:
            await db.rollback()
            raise ConcurrencyError(key, 0, await _current_version(db, key))
        return 1

    async def _swap(
        self, db: AsyncSession, key: str, payload: str, expected: int, now: datetime,
    ) -> int:
        updated = await db.execute(
            update(StoredCollection)
            .where(
                StoredCollection.key == key,
                StoredCollection.version == expected,
            )
            .values(payload=payload, version=expected + 1, updated_at=now),
        )
        if updated.rowcount != 1:
            actual = await _current_version(db, key)
            await db.rollback()
            raise ConcurrencyError(key, expected, actual)
        return expected + 1

    async def delete(self, key: str, expected_version: int | None = None) -> None:
        async with self._db.session() as db:
            stmt = delete(StoredCollection).where(StoredCollection.key == key)
            if expected_version is not None:
                stmt = stmt.where(StoredCollection.version == expected_version)
            deleted = await db.execute(stmt)
            if expected_version is not None and deleted.rowcount != 1:
                actual = await _current_version(db, key)
                if actual:
                    await db.rollback()
                    raise ConcurrencyError(key, expected_version, actual)
            await db.commit()

    async def close(self) -> None:
        await self._db.dispose()
