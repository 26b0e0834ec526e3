"""
Shared pytest fixtures for the Destiny client test suite.

Provides:
  - ``FakeTransport``: an in-memory ``Transport`` serving canned documents
    keyed by URL path (base URL stripped), recording every request.
  - ``make_envelope``: builds a Bungie ``{"ErrorCode", "Response"}`` envelope.
  - ``client``: a ``BungieClient`` wired to the fake transport.
  - Sample identities and characters.

Async tests run on asyncio through the anyio pytest plugin.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Callable

import pytest

from destiny_client.exceptions import TransportError
from destiny_client.ingestion.bungie_client import BungieClient
from destiny_client.models.character import Character
from destiny_client.models.identity import DestinyId
from destiny_client.taxonomy.platform import ClassType, Platform

BASE_URL = "https://www.bungie.net/Platform"
API_KEY = "test-api-key"


class FakeTransport:
    """Serves ``routes[path]`` for each request.

    A route value may be a dict/list (JSON-encoded), raw ``bytes``, or an
    exception instance to raise. Unknown paths raise ``TransportError``.
    """

    def __init__(self, routes: dict[str, Any] | None = None) -> None:
        self.routes: dict[str, Any] = dict(routes or {})
        self.requests: list[tuple[str, dict[str, str]]] = []
        self.closed = False

    async def fetch(self, url: str, headers: dict[str, str]) -> bytes:
        self.requests.append((url, dict(headers)))
        path = url[len(BASE_URL):] if url.startswith(BASE_URL) else url
        if path not in self.routes:
            raise TransportError(url, "404 Not Found")
        payload = self.routes[path]
        if isinstance(payload, Exception):
            raise payload
        if isinstance(payload, bytes):
            return payload
        return json.dumps(payload).encode("utf-8")

    async def aclose(self) -> None:
        self.closed = True

    @property
    def paths(self) -> list[str]:
        """Requested paths in request order."""
        return [url[len(BASE_URL):] for url, _ in self.requests]


def _envelope(response: Any, error_code: int = 1) -> dict:
    return {
        "ErrorCode": error_code,
        "ThrottleSeconds": 0,
        "ErrorStatus": "Success" if error_code == 1 else "DestinyAccountNotFound",
        "Message": "Ok",
        "Response": response,
    }


# ── Async backend ─────────────────────────────────────────────────────────────

@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


# ── Transport / client ────────────────────────────────────────────────────────

@pytest.fixture
def make_envelope() -> Callable[..., dict]:
    """Factory: ``make_envelope(response, error_code=1)``."""
    return _envelope


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def client(transport: FakeTransport) -> BungieClient:
    return BungieClient(API_KEY, transport, max_roster_pages=10)


# ── Sample domain objects ─────────────────────────────────────────────────────

@pytest.fixture
def xbox_id() -> DestinyId:
    return DestinyId(platform=Platform.XBOX, token="4611686018428389840")


@pytest.fixture
def psn_id() -> DestinyId:
    return DestinyId(platform=Platform.PLAYSTATION, token="4611686018436136301")


@pytest.fixture
def sample_character(xbox_id: DestinyId) -> Character:
    return Character(
        owner=xbox_id,
        character_id="2305843009219505743",
        class_type=ClassType.WARLOCK,
        last_played=datetime(2016, 10, 1, 20, 15, 0, tzinfo=timezone.utc),
    )
