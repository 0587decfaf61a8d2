"""Service test fixtures — coordinator wired to a scripted FakeTransport.

Invariants:
    - Every test gets a fresh CacheStore, BroadcastChannel and FakeTransport
    - `published` records every snapshot delivered to a subscriber attached at setup
      (the first entry is the replayed empty snapshot)
"""

import pytest

from collection_sync.core.broadcast_channel import BroadcastChannel
from collection_sync.core.cache_store import CacheStore
from collection_sync.services.crud_coordinator import CrudCoordinator
from tests.services.fake_transport import FakeTransport, StaticResolver


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def coordinator(transport):
    channel = BroadcastChannel()
    store = CacheStore(channel)
    return CrudCoordinator(store, channel, transport, StaticResolver())


@pytest.fixture
def published(coordinator):
    received = []
    coordinator.subscribe(received.append)
    return received
