"""
HTTP transport and JSON decoding — the collaborators ``BungieClient`` calls.

``Transport`` is the boundary contract: one asynchronous GET per call,
returning the raw body or raising ``TransportError``. ``HttpxTransport`` is
the default implementation over a shared ``httpx.AsyncClient``; tests swap
in a fake that serves canned documents.

No retries or backoff: a failed request surfaces once and the client
collapses it into the operation's absence value.
"""

from __future__ import annotations

import json
from typing import Any, Optional, Protocol

import httpx

from destiny_client.exceptions import DecodeError, TransportError


class Transport(Protocol):
    """One HTTP GET per call."""

    async def fetch(self, url: str, headers: dict[str, str]) -> bytes:
        """Return the response body, or raise ``TransportError``."""
        ...

    async def aclose(self) -> None:
        ...


class HttpxTransport:
    """``Transport`` backed by ``httpx.AsyncClient``.

    Args:
        timeout_seconds: Per-request timeout.
        client: Optional pre-built ``httpx.AsyncClient``. When given, the
            caller owns it and ``aclose()`` leaves it open.
    """

    def __init__(
        self,
        timeout_seconds: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def fetch(self, url: str, headers: dict[str, str]) -> bytes:
        try:
            resp = await self._client.get(url, headers=headers)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise TransportError(url, str(exc)) from exc
        return resp.content

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def decode_json(body: bytes) -> Any:
    """Decode a response body into a JSON tree.

    Raises:
        DecodeError: If the body is not UTF-8 JSON.
    """
    try:
        return json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DecodeError(f"Failed to decode content: {exc}") from exc
