"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - get_settings() is cached (lru_cache) — single instance per process
    - latency_min_ms <= latency_max_ms

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all settings: a local SQLite file works out-of-the-box
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from roomcast.core.domain_types import StoreBackend


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Persistence
    store_backend: StoreBackend = StoreBackend.DATABASE
    database_url: str = "sqlite+aiosqlite:///roomcast.db"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """postgresql:// URLs need the asyncpg driver."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 5
    database_max_overflow: int = 5
    database_auto_create: bool = True

    # Store behavior
    store_key_prefix: str = "chat_"
    seed_demo_data: bool = True
    reseed_on_corrupt: bool = True
    strict_writes: bool = False

    # Simulated network
    latency_min_ms: int = 100
    latency_max_ms: int = 500
    event_delivery_delay_ms: int = 100

    @model_validator(mode="after")
    def check_latency_bounds(self):
        if self.latency_min_ms < 0 or self.latency_max_ms < self.latency_min_ms:
            raise ValueError("latency bounds must satisfy 0 <= min <= max")
        return self

    # Users & media
    default_avatar_template: str = "https://picsum.photos/seed/{seed}/200"
    image_max_dimension: int = 1024
    image_quality: int = 80

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
