"""Service test fixtures — in-memory store, running bus, zero-latency commands.

Invariants:
    - Every test gets a fresh InMemoryStorageBackend seeded with the demo data
    - The bus delivers with no delay; tests call bus.drain() before asserting on events
    - Ids are deterministic (prefix + counter) so scenarios can name rooms like "r9"
"""

import itertools

import pytest

from roomcast.infrastructure.memory_store import InMemoryStorageBackend
from roomcast.infrastructure.persisted_store import PersistedStore
from roomcast.services.chat_commands import ChatCommands
from roomcast.services.event_bus import EventBus


@pytest.fixture
def backend():
    return InMemoryStorageBackend()


@pytest.fixture
def store(backend):
    return PersistedStore(backend)


@pytest.fixture
async def bus():
    bus = EventBus(delivery_delay_ms=0)
    await bus.start()
    yield bus
    await bus.close()


@pytest.fixture
def events(bus):
    """Every event delivered on the bus, in delivery order."""
    received = []
    bus.subscribe(received.append)
    return received


@pytest.fixture
def id_factory():
    counter = itertools.count(100)
    return lambda prefix: f"{prefix}{next(counter)}"


@pytest.fixture
def commands(store, bus, id_factory):
    return ChatCommands(store, bus, id_factory=id_factory)
