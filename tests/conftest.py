"""Root conftest — shared test configuration."""

import os

import pytest

from collection_sync.config import get_settings

# Ensure tests never talk to a real API
os.environ.setdefault("COLLECTION_SYNC_API_BASE_URL", "http://test/api/v1/")


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
