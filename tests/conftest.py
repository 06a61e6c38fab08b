"""Root conftest — shared test configuration."""

import os

import pytest

# Ensure tests never write a roomcast.db into the working directory by accident
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("LATENCY_MIN_MS", "0")
os.environ.setdefault("LATENCY_MAX_MS", "0")
os.environ.setdefault("EVENT_DELIVERY_DELAY_MS", "0")


@pytest.fixture(autouse=True)
def _fresh_settings():
    from roomcast.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
