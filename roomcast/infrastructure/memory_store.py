"""In-Memory Storage Backend — StorageBackend kept in a process-local dict.

Invariants:
    - Same version semantics as DatabaseStorageBackend (absent = 0, +1 per write)
    - Payloads stay JSON text so corruption handling is exercised exactly as on disk
"""

from roomcast.core.errors import ConcurrencyError
from roomcast.core.repository_protocols import StoredPayload


class InMemoryStorageBackend:
    """Ephemeral backend for tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, StoredPayload] = {
            key: StoredPayload(payload, 1) for key, payload in (initial or {}).items()
        }

    async def read(self, key: str) -> StoredPayload | None:
        return self._data.get(key)

    async def write(
        self, key: str, payload: str, expected_version: int | None = None,
    ) -> int:
        current = self._data[key].version if key in self._data else 0
        if expected_version is not None and expected_version != current:
            raise ConcurrencyError(key, expected_version, current)
        self._data[key] = StoredPayload(payload, current + 1)
        return current + 1

    async def delete(self, key: str, expected_version: int | None = None) -> None:
        stored = self._data.get(key)
        if stored is None:
            return
        if expected_version is not None and expected_version != stored.version:
            raise ConcurrencyError(key, expected_version, stored.version)
        del self._data[key]

    async def close(self) -> None:
        pass

    def raw(self, key: str) -> str | None:
        """Raw payload for a key (inspection in tests and tooling)."""
        stored = self._data.get(key)
        return stored.payload if stored else None

    def put_raw(self, key: str, payload: str) -> None:
        """Overwrite a key bypassing version checks, as a foreign writer would."""
        current = self._data[key].version if key in self._data else 0
        self._data[key] = StoredPayload(payload, current + 1)
