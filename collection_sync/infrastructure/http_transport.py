"""HTTP Transport — httpx-backed Transport with bearer auth and error mapping.

Invariants:
    - Connection, read and timeout failures: mapped to NetworkError
    - 401: token refreshed once and the request retried once; a second 401 → AuthError
    - 403, or a refresh that fails or yields no token: AuthError (no retry)
    - Any other non-2xx: ServerError carrying status_code and the response detail
    - 204 / empty body resolves to None; every other success body is parsed JSON
    - No retries beyond the single auth refresh — callers decide what to do next

Design Decisions:
    - Wrapper over raw httpx.AsyncClient: error mapping and credentials stay out of the core
    - Client injectable: tests pass an AsyncClient built on httpx.MockTransport
"""

import logging
from typing import Any

import httpx

from collection_sync.core.errors import (
    AuthError, ErrorContext, NetworkError, ServerError,
)
from collection_sync.core.transport_protocols import TokenProvider

logger = logging.getLogger(__name__)

_NO_BODY = object()


def _error_detail(response: httpx.Response) -> Any:
    """Best-effort detail from an error response body."""
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200] or None
    if isinstance(payload, dict) and "detail" in payload:
        return payload["detail"]
    return payload


class HttpTransport:
    """JSON-over-HTTP Transport with transparent token refresh."""

    def __init__(
        self,
        base_url: str = "",
        timeout_seconds: float = 30.0,
        token_provider: TokenProvider | None = None,
        client: httpx.AsyncClient | None = None,
        headers: dict[str, str] | None = None,
    ):
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            headers=headers,
        )
        self.token_provider = token_provider

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    # ─── Transport protocol ─────────────────────────────────────

    async def get(self, url: str) -> Any:
        return await self._request("GET", url)

    async def post(self, url: str, body: Any) -> Any:
        return await self._request("POST", url, body)

    async def put(self, url: str, body: Any) -> Any:
        return await self._request("PUT", url, body)

    async def patch(self, url: str, body: Any) -> Any:
        return await self._request("PATCH", url, body)

    async def delete(self, url: str) -> None:
        await self._request("DELETE", url)

    # ─── Internals ──────────────────────────────────────────────

    async def _request(self, method: str, url: str, body: Any = _NO_BODY) -> Any:
        token = await self.token_provider.get_token() if self.token_provider else None
        response = await self._send(method, url, body, token)

        if response.status_code == 401 and self.token_provider is not None:
            logger.info(
                f"{method} {url} unauthorized, refreshing token",
                extra={"url": url, "status_code": 401, "attempt": 1},
            )
            token = await self._refresh_token(method, url)
            response = await self._send(method, url, body, token)

        return self._parse(method, url, response)

    async def _refresh_token(self, method: str, url: str) -> str:
        ctx = ErrorContext(operation=method, url=url, status_code=401)
        try:
            token = await self.token_provider.refresh_token()
        except Exception as e:
            logger.warning(f"Token refresh failed: {e}", extra={"url": url})
            raise AuthError(f"Token refresh failed: {e}", ctx) from e
        if not token:
            raise AuthError("Token refresh returned no credentials", ctx)
        return token

    async def _send(
        self, method: str, url: str, body: Any, token: str | None,
    ) -> httpx.Response:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        kwargs = {} if body is _NO_BODY else {"json": body}
        try:
            return await self.client.request(method, url, headers=headers, **kwargs)
        except httpx.TransportError as e:
            logger.warning(
                f"{method} {url} network failure: {e!r}", extra={"url": url},
            )
            raise NetworkError(
                str(e) or type(e).__name__,
                ErrorContext(operation=method, url=url),
            ) from e

    def _parse(self, method: str, url: str, response: httpx.Response) -> Any:
        status = response.status_code
        ctx = ErrorContext(operation=method, url=url, status_code=status)
        if status in (401, 403):
            raise AuthError(
                f"{method} {url} rejected credentials ({status})", ctx,
            )
        if not response.is_success:
            raise ServerError(status, _error_detail(response), ctx)
        if status == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ServerError(status, "Response body is not valid JSON", ctx) from e
