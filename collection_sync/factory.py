"""Composition Root — wires settings, transport, resolver, cache and coordinator.

Invariants:
    - The CacheStore always publishes through the same BroadcastChannel the coordinator exposes
    - Default sort from settings is applied before the first operation
    - Collaborators passed in explicitly win over ones built from settings
"""

import logging
from collections.abc import Callable
from typing import Any

from collection_sync.config import Settings, get_settings
from collection_sync.core.broadcast_channel import BroadcastChannel
from collection_sync.core.cache_store import CacheStore
from collection_sync.core.domain_types import Entity
from collection_sync.core.transport_protocols import TokenProvider, Transport
from collection_sync.infrastructure.http_transport import HttpTransport
from collection_sync.infrastructure.observability import setup_logging
from collection_sync.infrastructure.url_resolver import ResourceUrlResolver
from collection_sync.services.crud_coordinator import CrudCoordinator

logger = logging.getLogger(__name__)


def build_coordinator(
    template: str,
    settings: Settings | None = None,
    transport: Transport | None = None,
    token_provider: TokenProvider | None = None,
    decode: Callable[[Any], Any] = Entity,
    configure_logging: bool = False,
) -> CrudCoordinator:
    """Build a CrudCoordinator for the collection at `template`."""
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings.log_level, settings.log_format)
    if transport is None:
        transport = HttpTransport(
            base_url=settings.api_base_url,
            timeout_seconds=settings.request_timeout_seconds,
            token_provider=token_provider,
        )
    channel = BroadcastChannel(name=template)
    store = CacheStore(channel, settings.sort_descriptors)
    coordinator = CrudCoordinator(
        store,
        channel,
        transport,
        ResourceUrlResolver(template, trailing_slash=settings.trailing_slash),
        decode=decode,
        serialize_mutations=settings.serialize_mutations,
    )
    logger.info(
        f"Coordinator ready for {template}",
        extra={"url": settings.api_base_url},
    )
    return coordinator
