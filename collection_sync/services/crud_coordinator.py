"""CRUD Coordinator — keeps the cached collection in step with remote CRUD calls.

Invariants:
    - Transport is awaited before the cache is read: a failure short-circuits with no
      mutation and no publish, and the Transport's exception propagates unchanged
    - Every successful mutation funnels through CacheStore.set_snapshot (sort + publish once)
    - New sequences are always built fresh (copy-on-write); the published tuple is never touched
    - update/patch only replace an entry already cached (matched by the returned entity's id);
      an absent id leaves the snapshot as-is and publishes nothing
    - Replacing by id keeps the first cached match and drops later duplicates
    - An empty response body (204) leaves the snapshot untouched and resolves to None;
      update falls back to the entity it sent
    - Each operation runs as a scheduled task: it completes (and mutates the cache) even if
      the caller never awaits it, and cancelling the returned future does not stop it

Design Decisions:
    - Composition over inheritance: store, channel, transport and URL resolver are injected;
      resource services wrap a coordinator and expose only the operations they need
    - Read-compute-write happens after the only suspension point (the transport await),
      so it runs atomically relative to other operations' continuations
    - Concurrent mutating operations are NOT serialized by default; interleaved responses
      can overwrite each other's effects. serialize_mutations=True runs operations one at a
      time through a single asyncio.Lock
"""

import asyncio
import logging
from collections.abc import Callable, Iterable, Mapping
from functools import partial
from typing import Any, Generic

from collection_sync.core.broadcast_channel import BroadcastChannel, Subscription
from collection_sync.core.cache_store import CacheStore
from collection_sync.core.domain_types import (
    Entity, Observer, Snapshot, SortDescriptor, T,
)
from collection_sync.core.transport_protocols import Transport, UrlResolver

logger = logging.getLogger(__name__)


def _identity(value: Any) -> Any:
    return value


def _consume_outcome(future: asyncio.Future) -> None:
    """Mark an unawaited failure as retrieved; it was already logged by _run."""
    if not future.cancelled():
        future.exception()


def _replace_first(items: Snapshot, entity: Any) -> list:
    """Put `entity` where the first item with its id sits; drop later items with that id."""
    replaced, seen = [], False
    for item in items:
        if item.id != entity.id:
            replaced.append(item)
        elif not seen:
            replaced.append(entity)
            seen = True
    return replaced


class CrudCoordinator(Generic[T]):
    """Runs CRUD calls through a Transport and applies each result to the cache."""

    def __init__(
        self,
        store: CacheStore,
        channel: BroadcastChannel,
        transport: Transport,
        url_resolver: UrlResolver,
        decode: Callable[[Any], T] = Entity,
        encode: Callable[[T], Any] = _identity,
        serialize_mutations: bool = False,
    ):
        if store.channel is not channel:
            raise ValueError("CacheStore must publish through the coordinator's channel")
        self.store = store
        self.channel = channel
        self.transport = transport
        self.url_resolver = url_resolver
        self._decode = decode
        self._encode = encode
        self._write_lock = asyncio.Lock() if serialize_mutations else None
        self._inflight: set[asyncio.Task] = set()

    # ─── Observation / configuration ────────────────────────────

    @property
    def snapshot(self) -> Snapshot:
        return self.store.get_snapshot()

    @property
    def sort_descriptors(self) -> tuple[SortDescriptor, ...]:
        return self.store.sort_descriptors

    @sort_descriptors.setter
    def sort_descriptors(self, descriptors: Iterable[SortDescriptor | str]) -> None:
        self.store.sort_descriptors = descriptors

    def subscribe(self, observer: Observer) -> Subscription:
        return self.channel.subscribe(observer)

    def unsubscribe(self, handle: Subscription) -> None:
        self.channel.unsubscribe(handle)

    def stream(self):
        return self.channel.stream()

    def resolve_url(self, item_id: Any = None, **params: Any) -> str:
        return self.url_resolver.resolve(item_id, **params)

    @property
    def pending(self) -> int:
        return len(self._inflight)

    async def wait_idle(self) -> None:
        """Wait until every scheduled operation has finished (success or failure)."""
        while self._inflight:
            await asyncio.gather(*tuple(self._inflight), return_exceptions=True)

    async def aclose(self) -> None:
        """Let scheduled operations finish, then close the transport if it can be closed."""
        await self.wait_idle()
        close = getattr(self.transport, "aclose", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> "CrudCoordinator[T]":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ─── CRUD operations ────────────────────────────────────────

    def list(self, url: str) -> asyncio.Future:
        """GET the collection and replace the whole snapshot with it."""
        return self._schedule("list", url, self._list, url)

    def create(self, url: str, payload: Any) -> asyncio.Future:
        """POST `payload` and append the created entity."""
        return self._schedule("create", url, self._create, url, payload)

    def retrieve_item(self, url: str) -> asyncio.Future:
        """GET one entity and upsert it by id."""
        return self._schedule("retrieve_item", url, self._retrieve_item, url)

    def update(self, url: str, entity: T) -> asyncio.Future:
        """PUT the full entity and replace the cached copy if present."""
        return self._schedule("update", url, self._update, url, entity)

    def patch(self, url: str, changes: Mapping[str, Any]) -> asyncio.Future:
        """PATCH a partial entity and replace the cached copy if present."""
        return self._schedule("patch", url, self._patch, url, changes)

    def delete(self, url: str, entity_id: Any) -> asyncio.Future:
        """DELETE the resource and drop every cached entry with `entity_id`."""
        return self._schedule("delete", url, self._delete, url, entity_id)

    def clean(self) -> None:
        """Empty the cache and publish the empty snapshot. No transport call."""
        self.store.reset()
        logger.debug("Cache cleaned", extra={"operation": "clean", "snapshot_size": 0})

    # ─── Operation bodies ───────────────────────────────────────

    async def _list(self, url: str) -> Snapshot:
        payload = await self.transport.get(url)
        items = tuple(self._decode(raw) for raw in payload or ())
        self.store.set_snapshot(items)
        return items

    async def _create(self, url: str, payload: Any) -> T | None:
        created = self._decode_body(await self.transport.post(url, self._encode(payload)))
        if created is None:
            return self._no_body("create", url)
        self.store.set_snapshot((*self.store.get_snapshot(), created))
        return created

    async def _retrieve_item(self, url: str) -> T | None:
        entity = self._decode_body(await self.transport.get(url))
        if entity is None:
            return self._no_body("retrieve_item", url)
        current = self.store.get_snapshot()
        if any(item.id == entity.id for item in current):
            self.store.set_snapshot(_replace_first(current, entity))
        else:
            self.store.set_snapshot((*current, entity))
        return entity

    async def _update(self, url: str, entity: T) -> T:
        sent = self._encode(entity)
        # No body back from a PUT: the server now holds what was sent.
        updated = self._decode_body(await self.transport.put(url, sent))
        if updated is None:
            updated = self._decode(sent)
        self._replace_if_present("update", updated)
        return updated

    async def _patch(self, url: str, changes: Mapping[str, Any]) -> T | None:
        patched = self._decode_body(await self.transport.patch(url, dict(changes)))
        if patched is None:
            return self._no_body("patch", url)
        self._replace_if_present("patch", patched)
        return patched

    async def _delete(self, url: str, entity_id: Any) -> None:
        await self.transport.delete(url)
        self.store.set_snapshot(
            item for item in self.store.get_snapshot() if item.id != entity_id
        )

    def _decode_body(self, raw: Any) -> T | None:
        return None if raw is None else self._decode(raw)

    def _no_body(self, operation: str, url: str) -> None:
        logger.debug(
            f"{operation} {url} returned no body, snapshot left unchanged",
            extra={"operation": operation, "url": url},
        )
        return None

    def _replace_if_present(self, operation: str, entity: T) -> bool:
        current = self.store.get_snapshot()
        if not any(item.id == entity.id for item in current):
            logger.debug(
                f"{operation}: id {entity.id!r} not cached, snapshot left unchanged",
                extra={"operation": operation, "snapshot_size": len(current)},
            )
            return False
        self.store.set_snapshot(_replace_first(current, entity))
        return True

    # ─── Scheduling ─────────────────────────────────────────────

    def _schedule(
        self, operation: str, url: str, body: Callable, *args: Any,
    ) -> asyncio.Future:
        loop = asyncio.get_running_loop()
        task = loop.create_task(self._run(operation, url, partial(body, *args)))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        outcome = asyncio.shield(task)
        outcome.add_done_callback(_consume_outcome)
        return outcome

    async def _run(self, operation: str, url: str, body: Callable) -> Any:
        try:
            if self._write_lock is not None:
                async with self._write_lock:
                    result = await body()
            else:
                result = await body()
        except Exception as e:
            logger.warning(
                f"{operation} {url} failed: {e}",
                extra={
                    "operation": operation,
                    "url": url,
                    "error_code": getattr(e, "code", type(e).__name__),
                },
            )
            raise
        logger.debug(
            f"{operation} {url} applied",
            extra={
                "operation": operation,
                "url": url,
                "snapshot_size": len(self.store),
            },
        )
        return result
