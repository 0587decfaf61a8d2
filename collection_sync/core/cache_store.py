"""Cache Store — the single sorted, in-memory snapshot of one remote collection.

Invariants:
    - set_snapshot() is the only writer; reset() is set_snapshot(())
    - After every set_snapshot() the snapshot equals sort_items(snapshot, descriptors)
    - Every set_snapshot() publishes exactly once through the attached channel
    - Changing sort_descriptors does not re-sort until the next mutation
    - A failed sort (SortKeyError) leaves the snapshot untouched and publishes nothing

Design Decisions:
    - Snapshots are tuples: readers can never alias-and-mutate the published value
    - Descriptors accept SortDescriptor objects or "attr" / "-attr" tokens
"""

import logging
from collections.abc import Iterable

from collection_sync.core.broadcast_channel import BroadcastChannel
from collection_sync.core.domain_types import Snapshot, SortDescriptor
from collection_sync.core.sort_engine import sort_items

logger = logging.getLogger(__name__)


def _as_descriptor(value: SortDescriptor | str) -> SortDescriptor:
    if isinstance(value, SortDescriptor):
        return value
    return SortDescriptor.from_token(value)


class CacheStore:
    """Holds the current ordered snapshot and publishes it on every write."""

    def __init__(
        self,
        channel: BroadcastChannel | None = None,
        sort_descriptors: Iterable[SortDescriptor | str] = (),
    ):
        self.channel = channel or BroadcastChannel()
        self._snapshot: Snapshot = ()
        self._descriptors: tuple[SortDescriptor, ...] = tuple(
            _as_descriptor(d) for d in sort_descriptors
        )

    @property
    def sort_descriptors(self) -> tuple[SortDescriptor, ...]:
        return self._descriptors

    @sort_descriptors.setter
    def sort_descriptors(self, descriptors: Iterable[SortDescriptor | str]) -> None:
        self._descriptors = tuple(_as_descriptor(d) for d in descriptors)
        logger.debug(
            "Sort descriptors set to %s",
            [d.to_token() for d in self._descriptors],
        )

    def get_snapshot(self) -> Snapshot:
        """Current snapshot. Read-only: build a new sequence to change it."""
        return self._snapshot

    def set_snapshot(self, items: Iterable) -> None:
        """Sort `items`, store them as the snapshot, and publish."""
        self._snapshot = sort_items(items, self._descriptors)
        self.channel.publish(self._snapshot)

    def reset(self) -> None:
        self.set_snapshot(())

    def __len__(self) -> int:
        return len(self._snapshot)
