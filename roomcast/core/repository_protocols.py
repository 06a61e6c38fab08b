"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by infrastructure via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Backends store opaque JSON text plus a version; decoding and seeding live in
      PersistedStore so every backend gets identical corruption handling
"""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class StoredPayload:
    """Raw persisted value for one key. version is 0 for an absent key."""
    payload: str
    version: int


class StorageBackend(Protocol):
    """Key -> JSON text store with per-key version counters."""
    async def read(self, key: str) -> StoredPayload | None: ...
    async def write(
        self, key: str, payload: str, expected_version: int | None = None,
    ) -> int: ...
    async def delete(self, key: str, expected_version: int | None = None) -> None: ...
    async def close(self) -> None: ...
