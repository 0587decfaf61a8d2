"""Sort Engine — stable multi-key ordering of entity sequences.

Invariants:
    - Pure: never mutates its input, always returns a new tuple (or the same tuple when
      no descriptors are active)
    - Stable: items tied on every descriptor keep their input relative order
    - Earlier descriptors take priority; later descriptors only break ties
    - Missing or None attribute values sort after present values, in both directions
    - Non-comparable values (e.g. int vs str) raise SortKeyError

Design Decisions:
    - One stable pass per descriptor, last descriptor first: works for any value type
      with natural ordering (numbers, strings, dates), no negation tricks needed
    - read_field handles both mapping entities (JSON records) and attribute entities
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from collection_sync.core.domain_types import SortDescriptor
from collection_sync.core.errors import SortKeyError


def read_field(item: Any, attribute: str) -> Any:
    """Value of `attribute` on an entity, or None when absent."""
    if isinstance(item, Mapping):
        return item.get(attribute)
    return getattr(item, attribute, None)


def _key_for(descriptor: SortDescriptor):
    # Missing-flag first so absent values group at the end of either direction
    if descriptor.descending:
        def key(item):
            value = read_field(item, descriptor.attribute)
            return (0, 0) if value is None else (1, value)
    else:
        def key(item):
            value = read_field(item, descriptor.attribute)
            return (1, 0) if value is None else (0, value)
    return key


def sort_items(
    items: Iterable[Any], descriptors: Sequence[SortDescriptor],
) -> tuple:
    """Return `items` ordered by `descriptors`. Pure, no IO."""
    ordered = tuple(items)
    if not descriptors:
        return ordered

    result = list(ordered)
    for descriptor in reversed(descriptors):
        try:
            result.sort(key=_key_for(descriptor), reverse=descriptor.descending)
        except TypeError as e:
            raise SortKeyError(descriptor.attribute, str(e)) from e
    return tuple(result)


def is_sorted(items: Sequence[Any], descriptors: Sequence[SortDescriptor]) -> bool:
    """True when re-sorting `items` would not change their order."""
    return tuple(items) == sort_items(items, descriptors)
