"""Broadcast Channel — replay-latest publish/subscribe for cache snapshots.

Invariants:
    - subscribe() delivers the latest snapshot (or an empty tuple) before it returns
    - Each publish() delivers exactly once to every registered observer, in
      registration order, before publish() returns
    - Unsubscribing twice, or a handle from another channel, is a no-op
    - An observer that raises is logged; remaining observers still receive the snapshot

Design Decisions:
    - Explicit subscriber dict (insertion ordered) plus a last-value holder
    - Iterates over a copy of the subscribers: observers may unsubscribe mid-publish
    - stream() adapts the callback API to `async for` via an unbounded asyncio.Queue
"""

import asyncio
import itertools
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field

from collection_sync.core.domain_types import Observer, Snapshot

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Subscription:
    """Handle returned by BroadcastChannel.subscribe()."""
    key: int
    observer: Observer
    channel: "BroadcastChannel" = field(repr=False)

    @property
    def active(self) -> bool:
        return self.channel.is_subscribed(self)

    def unsubscribe(self) -> None:
        self.channel.unsubscribe(self)


class BroadcastChannel:
    """Replay-latest channel: new observers get the current value immediately."""

    def __init__(self, name: str = "snapshots"):
        self.name = name
        self._latest: Snapshot = ()
        self._subscribers: dict[int, Subscription] = {}
        self._keys = itertools.count(1)

    @property
    def latest(self) -> Snapshot:
        return self._latest

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, observer: Observer) -> Subscription:
        """Replay the latest snapshot to `observer`, then register it."""
        handle = Subscription(next(self._keys), observer, self)
        self._deliver(handle, self._latest)
        self._subscribers[handle.key] = handle
        logger.debug(
            f"Observer subscribed to {self.name}",
            extra={"subscriber_count": self.subscriber_count},
        )
        return handle

    def unsubscribe(self, handle: Subscription) -> None:
        if self._subscribers.get(handle.key) is handle:
            del self._subscribers[handle.key]
            logger.debug(
                f"Observer unsubscribed from {self.name}",
                extra={"subscriber_count": self.subscriber_count},
            )

    def is_subscribed(self, handle: Subscription) -> bool:
        return self._subscribers.get(handle.key) is handle

    def publish(self, snapshot: Snapshot) -> None:
        """Store `snapshot` as latest and deliver it to every current observer."""
        self._latest = snapshot
        for handle in tuple(self._subscribers.values()):
            if self.is_subscribed(handle):
                self._deliver(handle, snapshot)
        logger.debug(
            f"Published snapshot on {self.name}",
            extra={
                "snapshot_size": len(snapshot),
                "subscriber_count": self.subscriber_count,
            },
        )

    async def stream(self) -> AsyncIterator[Snapshot]:
        """Yield the latest snapshot, then every later one, until the caller stops."""
        queue: asyncio.Queue[Snapshot] = asyncio.Queue()
        handle = self.subscribe(queue.put_nowait)
        try:
            while True:
                yield await queue.get()
        finally:
            self.unsubscribe(handle)

    def _deliver(self, handle: Subscription, snapshot: Snapshot) -> None:
        try:
            handle.observer(snapshot)
        except Exception:
            logger.exception(
                f"Observer {handle.key} on {self.name} failed",
                extra={"snapshot_size": len(snapshot)},
            )
