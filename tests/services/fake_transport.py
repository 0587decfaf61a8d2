"""Fake Transport — scripted in-memory Transport for coordinator tests.

Invariants:
    - Responses are consumed in FIFO order per HTTP method
    - A scripted Exception instance is raised instead of returned
    - A scripted gate (asyncio.Event) holds the call until the test sets it
    - Every call is recorded in `calls` before any gate is awaited

Design Decisions:
    - Flat class, no inheritance from the Transport Protocol (structural typing)
"""

import asyncio
from dataclasses import dataclass
from typing import Any


@dataclass
class _Scripted:
    value: Any
    gate: asyncio.Event | None = None


class FakeTransport:
    """Transport double with per-method response queues."""

    def __init__(self):
        self.calls: list[dict] = []
        self._queues: dict[str, list[_Scripted]] = {
            m: [] for m in ("GET", "POST", "PUT", "PATCH", "DELETE")
        }

    def respond(self, method: str, value: Any = None, gate: asyncio.Event | None = None):
        self._queues[method].append(_Scripted(value, gate))
        return self

    def fail(self, method: str, error: Exception, gate: asyncio.Event | None = None):
        return self.respond(method, error, gate)

    async def get(self, url):
        return await self._handle("GET", url)

    async def post(self, url, body):
        return await self._handle("POST", url, body)

    async def put(self, url, body):
        return await self._handle("PUT", url, body)

    async def patch(self, url, body):
        return await self._handle("PATCH", url, body)

    async def delete(self, url):
        await self._handle("DELETE", url)

    async def _handle(self, method, url, body=None):
        self.calls.append({"method": method, "url": url, "body": body})
        if not self._queues[method]:
            raise AssertionError(f"No scripted response for {method} {url}")
        scripted = self._queues[method].pop(0)
        if scripted.gate is not None:
            await scripted.gate.wait()
        else:
            await asyncio.sleep(0)
        if isinstance(scripted.value, Exception):
            raise scripted.value
        return scripted.value


class StaticResolver:
    """UrlResolver double: "items/" and "items/<id>/"."""

    def resolve(self, item_id=None, **params):
        return "items/" if item_id is None else f"items/{item_id}/"
