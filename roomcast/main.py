"""roomcast application root — builds, owns and tears down the store, bus and commands.

Invariants:
    - Exactly one EventBus per ChatBackend, started before the first command, closed on exit
    - Views never reach the store directly: they get commands and the bus from ChatBackend
    - The storage backend (and its engine) is closed on exit, even when the body raises

Design Decisions:
    - open_backend as an async context manager: startup/shutdown in one place
    - Backend selected by Settings.store_backend (memory for throwaway sessions and tests)
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncGenerator

from roomcast.config import Settings, get_settings
from roomcast.core.domain_types import StoreBackend
from roomcast.core.repository_protocols import StorageBackend
from roomcast.infrastructure.database import DatabaseSessionManager
from roomcast.infrastructure.database_store import DatabaseStorageBackend
from roomcast.infrastructure.latency import LatencySimulator
from roomcast.infrastructure.memory_store import InMemoryStorageBackend
from roomcast.infrastructure.observability import setup_logging
from roomcast.infrastructure.persisted_store import PersistedStore
from roomcast.schemas.records import User
from roomcast.services.chat_commands import ChatCommands
from roomcast.services.chat_view import ChatView
from roomcast.services.event_bus import EventBus

logger = logging.getLogger(__name__)


@dataclass
class ChatBackend:
    settings: Settings
    store: PersistedStore
    bus: EventBus
    commands: ChatCommands

    def view_for(self, user: User) -> ChatView:
        """A new (unopened) view for a logged-in user."""
        return ChatView(
            self.commands,
            self.bus,
            user,
            image_max_dimension=self.settings.image_max_dimension,
            image_quality=self.settings.image_quality,
        )


async def build_storage(settings: Settings) -> StorageBackend:
    if settings.store_backend == StoreBackend.MEMORY:
        return InMemoryStorageBackend()
    db_manager = DatabaseSessionManager(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if settings.database_auto_create:
        await db_manager.create_all()
    return DatabaseStorageBackend(db_manager)


@asynccontextmanager
async def open_backend(
    settings: Settings | None = None, configure_logging: bool = True,
) -> AsyncGenerator[ChatBackend, None]:
    """Startup/shutdown lifecycle."""
    settings = settings or get_settings()
    handler = None
    if configure_logging:
        handler = setup_logging(settings.log_level, settings.log_format)

    storage = await build_storage(settings)
    store = PersistedStore(
        storage,
        key_prefix=settings.store_key_prefix,
        seed_demo_data=settings.seed_demo_data,
        reseed_on_corrupt=settings.reseed_on_corrupt,
    )
    bus = EventBus(settings.event_delivery_delay_ms)
    commands = ChatCommands(
        store,
        bus,
        LatencySimulator(settings.latency_min_ms, settings.latency_max_ms),
        strict_writes=settings.strict_writes,
        avatar_template=settings.default_avatar_template,
    )
    await bus.start()
    logger.info("roomcast started (store=%s)", settings.store_backend.value)
    try:
        yield ChatBackend(settings, store, bus, commands)
    finally:
        await bus.close()
        await store.close()
        logger.info("roomcast shut down")
        if handler is not None:
            logging.root.removeHandler(handler)
