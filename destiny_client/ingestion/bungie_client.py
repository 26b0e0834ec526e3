"""
Bungie Platform API client — read-only Destiny queries.

API:   https://www.bungie.net/Platform
Auth:  static API key sent as the ``X-API-Key`` header on every request.

Credential setup (.env, gitignored):
  BUNGIE_API_KEY=your_api_key

Endpoints used:
  GET /Destiny/SearchDestinyPlayer/{type}/{displayName}
  GET /Destiny/{type}/Account/{token}/Summary
  GET /User/GetBungieAccount/{token}/{type}/
  GET /Destiny/Stats/ActivityHistory/{type}/{token}/{characterId}?mode=None|Raid
  GET /Destiny/{type}/Account/{token}/Character/{characterId}/Inventory/Summary/
  GET /Group/{clanId}/ClanMembers/?currentPage={n}&platformType={type}
  GET /Destiny/Advisors/Xur/
  GET /Destiny/Advisors/V2
  GET /Destiny/{type}/Account/{token}/Advisors/

Failure handling:
  - Transport and decode failures are logged at WARNING and become the
    operation's absence value (``None`` or ``[]``, see each method).
  - Non-success envelopes (unknown player, maintenance) are expected and
    only logged at DEBUG.
  - Fields missing deeper in an otherwise valid document follow each
    operation's own contract; see ``destiny_client.ingestion.parsers``.
  - ``get_triumphs_progress`` is the one operation that raises
    (``EmptyRecordBookError``) instead of returning a value.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Optional, TypeVar
from urllib.parse import quote, urlencode

from pydantic import ValidationError

from destiny_client.exceptions import DecodeError, TransportError
from destiny_client.ingestion import parsers
from destiny_client.ingestion.envelope import has_valid_response
from destiny_client.ingestion.transport import HttpxTransport, Transport, decode_json
from destiny_client.models.activity import ActivityReference, WeeklyProgram
from destiny_client.models.character import Character, Inventory, Profile
from destiny_client.models.clan import ClanMember, XurExoticItem
from destiny_client.models.identity import DestinyId
from destiny_client.taxonomy.platform import Platform

if TYPE_CHECKING:
    from destiny_client.config import AppConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Raised by parsers when a document is malformed below the envelope.
_STRUCTURAL_ERRORS = (KeyError, IndexError, TypeError, AttributeError, ValidationError)


class BungieClient:
    """Async client for the Bungie REST API.

    Usage::

        async with BungieClient(api_key) as client:
            destiny_id = await client.get_destiny_id("gamertag")
            if destiny_id is not None:
                profile = await client.get_player_profile(destiny_id)

    Usage (from configuration)::

        config = load_config()
        async with BungieClient.from_config(config) as client:
            program = await client.get_weekly_activities()

    Args:
        api_key: Bungie application API key.
        transport: HTTP collaborator; defaults to an ``HttpxTransport`` owned
            (and closed) by this client.
        base_url: Platform API root.
        website_url: Root for links to bungie.net profile pages.
        max_roster_pages: Upper bound on pages fetched by ``get_clan_roster``.
        log: Logger receiving transport and decode warnings.
    """

    BASE_URL: ClassVar[str] = "https://www.bungie.net/Platform"
    WEBSITE_URL: ClassVar[str] = "https://www.bungie.net/en"
    DEFAULT_MAX_ROSTER_PAGES: ClassVar[int] = 50

    def __init__(
        self,
        api_key: str,
        transport: Optional[Transport] = None,
        *,
        base_url: str = BASE_URL,
        website_url: str = WEBSITE_URL,
        max_roster_pages: int = DEFAULT_MAX_ROSTER_PAGES,
        log: Optional[logging.Logger] = None,
    ) -> None:
        if max_roster_pages < 1:
            raise ValueError(f"max_roster_pages must be >= 1, got {max_roster_pages}.")
        self._api_key = api_key
        self._transport: Transport = transport or HttpxTransport()
        self._base_url = base_url.rstrip("/")
        self._website_url = website_url.rstrip("/")
        self._max_roster_pages = max_roster_pages
        self._log = log or logger

    @classmethod
    def from_config(
        cls, config: "AppConfig", transport: Optional[Transport] = None
    ) -> "BungieClient":
        """Build a client from the ``[api]`` and ``[roster]`` config sections."""
        return cls(
            config.api.api_key,
            transport or HttpxTransport(timeout_seconds=config.api.timeout_seconds),
            base_url=config.api.base_url,
            website_url=config.api.website_url,
            max_roster_pages=config.roster.max_pages,
        )

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def __aenter__(self) -> "BungieClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ── Website links ─────────────────────────────────────────────────────────

    def get_player_profile_url(self, destiny_id: DestinyId) -> str:
        """Link to the player's profile page on bungie.net."""
        return f"{self._website_url}/Profile/{destiny_id.type}/{destiny_id.token}"

    def get_player_triumphs_url(self, destiny_id: DestinyId) -> str:
        """Link to the player's Moments of Triumph page on bungie.net."""
        return f"{self._website_url}/Profile/Triumphs/{destiny_id.type}/{destiny_id.token}"

    # ── Identity ──────────────────────────────────────────────────────────────

    async def get_destiny_id(
        self, display_name: str, platform: Optional[Platform] = None
    ) -> Optional[DestinyId]:
        """Look up a player by display name.

        With ``platform`` set, exactly one search is made on that platform.
        Otherwise Xbox is searched first and Playstation only if Xbox found
        nobody.

        Returns:
            The player's ``DestinyId``, or ``None`` if not found.
        """
        if platform is not None:
            return await self._search_destiny_player(display_name, platform)
        destiny_id = await self._search_destiny_player(display_name, Platform.XBOX)
        if destiny_id is None:
            destiny_id = await self._search_destiny_player(
                display_name, Platform.PLAYSTATION
            )
        return destiny_id

    async def _search_destiny_player(
        self, display_name: str, platform: Platform
    ) -> Optional[DestinyId]:
        url = self._url(
            f"/Destiny/SearchDestinyPlayer/{platform.code}/{quote(display_name, safe='')}"
        )
        return await self._fetch_and_parse(
            url, lambda r: parsers.parse_destiny_id(r, platform)
        )

    # ── Account summary / profile ─────────────────────────────────────────────

    async def get_current_activity(
        self, destiny_id: DestinyId
    ) -> Optional[ActivityReference]:
        """The activity the player is currently in, or ``None`` if offline."""
        url = self._url(f"/Destiny/{destiny_id.type}/Account/{destiny_id.token}/Summary")
        return await self._fetch_and_parse(url, parsers.parse_current_activity)

    async def get_player_profile(self, destiny_id: DestinyId) -> Optional[Profile]:
        """Grimoire score and characters of the player's account.

        An account without characters yields a ``Profile`` with an empty
        ``characters`` tuple; ``None`` means the account itself was not found.
        """
        url = self._url(f"/User/GetBungieAccount/{destiny_id.token}/{destiny_id.type}/")
        return await self._fetch_and_parse(
            url, lambda r: parsers.parse_profile(r, destiny_id)
        )

    async def get_last_played_character(
        self, destiny_id: DestinyId
    ) -> Optional[Character]:
        profile = await self.get_player_profile(destiny_id)
        return profile.last_played_character if profile is not None else None

    async def get_grimoire_score(self, destiny_id: DestinyId) -> Optional[int]:
        profile = await self.get_player_profile(destiny_id)
        return profile.grimoire if profile is not None else None

    # ── Activity history ──────────────────────────────────────────────────────

    async def get_last_completed_activity(
        self, character: Character
    ) -> Optional[ActivityReference]:
        """The last activity completed with ``character``."""
        url = self._activity_history_url(character, "None")
        return await self._fetch_and_parse(
            url, parsers.parse_last_completed_activity
        )

    async def get_raid_completions(
        self, character: Character
    ) -> Optional[list[ActivityReference]]:
        """Raids completed by ``character``, most recent first.

        Returns:
            ``None`` if the history could not be fetched, ``[]`` if the
            character has no raid history.
        """
        url = self._activity_history_url(character, "Raid")
        return await self._fetch_and_parse(url, parsers.parse_raid_completions)

    def _activity_history_url(self, character: Character, mode: str) -> str:
        owner = character.owner
        path = (
            f"/Destiny/Stats/ActivityHistory/{owner.type}/{owner.token}/"
            f"{character.character_id}"
        )
        return self._url(path, {"mode": mode})

    # ── Inventory ─────────────────────────────────────────────────────────────

    async def get_inventory(
        self, destiny_id: DestinyId, character_id: str
    ) -> Optional[Inventory]:
        """Inventory summary of one character; ``None`` when it has no items."""
        url = self._url(
            f"/Destiny/{destiny_id.type}/Account/{destiny_id.token}"
            f"/Character/{character_id}/Inventory/Summary/"
        )
        return await self._fetch_and_parse(url, parsers.parse_inventory)

    # ── Clan roster ───────────────────────────────────────────────────────────

    async def get_clan_roster(
        self, clan_id: str, platform: Platform
    ) -> list[ClanMember]:
        """All members of a clan on one platform.

        Pages are fetched one at a time starting at 0. A page that fails or
        lists no members is skipped (not retried) and the next index is
        requested. Fetching stops at the first valid page whose ``hasMore``
        is false, or after ``max_roster_pages`` pages.

        Returns:
            Members in page order, then in-page order. Possibly empty.
        """
        members: list[ClanMember] = []
        for page_index in range(self._max_roster_pages):
            url = self._url(
                f"/Group/{clan_id}/ClanMembers/",
                {"currentPage": page_index, "platformType": platform.code},
            )
            page = await self._fetch_and_parse(
                url, lambda r: parsers.parse_clan_roster_page(r, platform)
            )
            if page is None:
                continue
            page_members, has_more = page
            members.extend(page_members)
            if not has_more:
                return members

        self._log.warning(
            "Clan %s roster: stopped after %d pages with more still reported "
            "(%d members collected)",
            clan_id, self._max_roster_pages, len(members),
        )
        return members

    # ── Advisors ──────────────────────────────────────────────────────────────

    async def get_xur_inventory(self) -> Optional[list[XurExoticItem]]:
        """Exotic gear sold by Xur.

        Returns:
            ``[]`` if Xur is not around, ``None`` if his inventory could not
            be retrieved or has no "Exotic Gear" category.
        """
        url = self._url("/Destiny/Advisors/Xur/")
        return await self._fetch_and_parse(url, parsers.parse_xur_inventory)

    async def get_weekly_activities(self) -> Optional[WeeklyProgram]:
        """This week's nightfall, raid, elder challenge, crucible and heroic strike."""
        url = self._url("/Destiny/Advisors/V2")
        return await self._fetch_and_parse(url, parsers.parse_weekly_program)

    async def get_triumphs_progress(self, destiny_id: DestinyId) -> Optional[int]:
        """Age of Triumph completion percentage (0-100) for the player.

        Raises:
            EmptyRecordBookError: If the record book holds no records.
        """
        url = self._url(
            f"/Destiny/{destiny_id.type}/Account/{destiny_id.token}/Advisors/"
        )
        return await self._fetch_and_parse(url, parsers.parse_triumphs_progress)

    # ── Raw ───────────────────────────────────────────────────────────────────

    async def get_raw_data(self, path: str) -> Optional[dict[str, Any]]:
        """The ``Response.data`` bucket of an arbitrary Platform path."""
        return await self._fetch_and_parse(self._url(path), parsers.parse_raw_data)

    # ── Plumbing ──────────────────────────────────────────────────────────────

    def _url(self, path: str, params: Optional[dict[str, Any]] = None) -> str:
        url = f"{self._base_url}{path}"
        if params:
            url = f"{url}?{urlencode(params)}"
        return url

    async def _get_json(self, url: str) -> Any:
        """Fetch and decode ``url``; ``None`` on transport or decode failure."""
        try:
            body = await self._transport.fetch(url, {"X-API-Key": self._api_key})
        except TransportError as exc:
            self._log.warning("Failed request: %s", exc)
            return None
        try:
            return decode_json(body)
        except DecodeError as exc:
            self._log.warning("Failed to decode content from %s: %s", url, exc)
            return None

    async def _fetch_and_parse(
        self, url: str, parse: Callable[[Any], Optional[T]]
    ) -> Optional[T]:
        """GET ``url``, validate the envelope and hand ``Response`` to ``parse``.

        ``None`` is returned for invalid envelopes and for documents that are
        malformed below the envelope.
        """
        data = await self._get_json(url)
        if not has_valid_response(data):
            if data is not None:
                self._log.debug(
                    "Non-success response from %s: ErrorCode=%s ErrorStatus=%s",
                    url,
                    data.get("ErrorCode") if isinstance(data, dict) else None,
                    data.get("ErrorStatus") if isinstance(data, dict) else None,
                )
            return None
        try:
            return parse(data["Response"])
        except _STRUCTURAL_ERRORS as exc:
            self._log.debug("Incomplete response from %s: %r", url, exc)
            return None
