"""Boundary Protocols — contracts between the cache core and its IO collaborators.

Invariants:
    - Core never imports from infrastructure — dependency arrows point inward only
    - Every network call goes through Transport; credentials live behind TokenProvider
    - Transport failures surface as TransportError subclasses (core/errors.py)

Design Decisions:
    - Protocol over ABC: structural subtyping, fakes in tests need no base class
    - Async in Protocol: implementations do IO; the sort/cache/broadcast core stays sync
"""

from typing import Any, Protocol


class Transport(Protocol):
    """Performs HTTP-style requests and returns parsed JSON-like payloads."""
    async def get(self, url: str) -> Any: ...
    async def post(self, url: str, body: Any) -> Any: ...
    async def put(self, url: str, body: Any) -> Any: ...
    async def patch(self, url: str, body: Any) -> Any: ...
    async def delete(self, url: str) -> None: ...


class UrlResolver(Protocol):
    """Builds the resource URL for one CRUD call from path parameters."""
    def resolve(self, item_id: Any = None, **params: Any) -> str: ...


class TokenProvider(Protocol):
    """Supplies bearer tokens to the transport and renews them on demand."""
    async def get_token(self) -> str | None: ...
    async def refresh_token(self) -> str | None: ...
