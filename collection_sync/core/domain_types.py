"""Domain Types — entity capability, sort descriptors, and snapshot aliases.

Invariants:
    - Every cached entity exposes a readable `id` (Identifiable); ids only need equality
    - SortDescriptor is immutable; an ordered sequence of them defines one total sort key
    - Snapshot is a tuple — a published snapshot can never be mutated in place

Design Decisions:
    - Protocol over ABC: any object with an `id` attribute qualifies, no base class needed
    - Entity subclasses dict: JSON payloads from the transport are cached as-is and
      still compare equal to plain dicts
    - str Enum for SortOrder: settings and descriptors round-trip through plain strings
"""

from collections.abc import Callable, Hashable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, TypeVar, runtime_checkable


# ─── Identity Capability ────────────────────────────────────────

@runtime_checkable
class Identifiable(Protocol):
    """Structural contract for cacheable entities."""

    @property
    def id(self) -> Hashable: ...


T = TypeVar("T", bound=Identifiable)


class Entity(dict):
    """JSON record returned by the transport, addressable by its `id` key."""

    @property
    def id(self) -> Any:
        return self.get("id")

    def __repr__(self) -> str:
        return f"Entity({dict.__repr__(self)})"


# ─── Sorting ─────────────────────────────────────────────────────

class SortOrder(str, Enum):
    """Direction of one sort level."""
    ASCENDING = "asc"
    DESCENDING = "desc"


@dataclass(frozen=True)
class SortDescriptor:
    """One (attribute, direction) level of a multi-key sort."""
    attribute: str
    order: SortOrder = SortOrder.ASCENDING

    def __post_init__(self):
        if not self.attribute:
            raise ValueError("SortDescriptor.attribute must be a non-empty field name")
        # Accept "asc"/"desc" strings from settings and callers
        object.__setattr__(self, "order", SortOrder(self.order))

    @property
    def descending(self) -> bool:
        return self.order == SortOrder.DESCENDING

    @classmethod
    def from_token(cls, token: str) -> "SortDescriptor":
        """Parse `"pop"` (ascending) or `"-pop"` (descending)."""
        token = token.strip()
        if token.startswith("-"):
            return cls(token[1:].strip(), SortOrder.DESCENDING)
        return cls(token.lstrip("+").strip(), SortOrder.ASCENDING)

    def to_token(self) -> str:
        return f"-{self.attribute}" if self.descending else self.attribute


# ─── Snapshot / Observer ─────────────────────────────────────────

Snapshot = tuple  # tuple[T, ...] — ordered, read-only view of the cache
Observer = Callable[[tuple], None]
