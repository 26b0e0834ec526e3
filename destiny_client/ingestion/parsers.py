"""
Per-endpoint extraction from a validated ``Response`` payload to entities.

Each parser receives the ``Response`` member of an envelope that already
passed ``has_valid_response``. "No data" is signalled differently by every
endpoint (null object, empty array, missing nested key), so each parser
states which absence value it produces:

  parse_destiny_id              None   — empty result list or null first entry
  parse_current_activity        None   — no characters, or every hash is 0
  parse_profile                 None   — no destiny account; empty characters ok
  parse_last_completed_activity None   — no activities
  parse_raid_completions        None if ``data`` missing, [] if no activities
  parse_inventory               None   — never an empty Inventory
  parse_clan_roster_page        ([], has_more) for an empty page
  parse_xur_inventory           [] when Xur is away, None if no exotic category
  parse_weekly_program          None   — no activities bucket
  parse_triumphs_progress       None   — no data / record book; raises if empty
  parse_raw_data                None   — no ``data`` bucket

Parsers raise ``KeyError`` / ``IndexError`` / ``TypeError`` (or a pydantic
``ValidationError``) when a field they rely on is malformed deeper in the
document. ``BungieClient`` treats those as a structural absence.
"""

from __future__ import annotations

import math
from typing import Any, Optional

from destiny_client.exceptions import EmptyRecordBookError
from destiny_client.models.activity import ActivityReference, WeeklyProgram
from destiny_client.models.character import Character, Inventory, Profile
from destiny_client.models.clan import ClanMember, XurExoticItem
from destiny_client.models.identity import DestinyId
from destiny_client.taxonomy.platform import (
    AGE_OF_TRIUMPH_RECORD_BOOK_ID,
    DEFENSE_STAT_HASH,
    EXOTIC_GEAR_CATEGORY,
    Platform,
    RecordStatus,
)


# ── Identity ──────────────────────────────────────────────────────────────────

def parse_destiny_id(response: list, platform: Platform) -> Optional[DestinyId]:
    """First search hit on ``platform``, or ``None`` if the search found nobody."""
    if not response or response[0] is None:
        return None
    return DestinyId(platform=platform, token=response[0]["membershipId"])


# ── Account summary ───────────────────────────────────────────────────────────

def parse_current_activity(response: dict) -> Optional[ActivityReference]:
    """First non-zero ``currentActivityHash`` across the account's characters.

    A hash of 0 means the character is not in an activity.
    """
    data = response.get("data")
    if data is None or not data.get("characters"):
        return None
    for character in data["characters"]:
        activity_hash = character["characterBase"]["currentActivityHash"]
        if activity_hash:
            return ActivityReference(activity_hash=activity_hash)
    return None


# ── Bungie account / profile ──────────────────────────────────────────────────

def parse_profile(response: dict, destiny_id: DestinyId) -> Optional[Profile]:
    """Build a ``Profile`` from the first destiny account of a Bungie account."""
    accounts = response.get("destinyAccounts")
    if not accounts or accounts[0] is None:
        return None
    account = accounts[0]
    return Profile(
        grimoire=account.get("grimoireScore"),
        characters=_extract_characters(account, destiny_id),
    )


def _extract_characters(account: dict, destiny_id: DestinyId) -> tuple[Character, ...]:
    # Account records are flat, unlike the characterBase records of the summary.
    if not account.get("characters"):
        return ()
    return tuple(
        Character(
            owner=destiny_id,
            character_id=record["characterId"],
            class_type=record["classType"],
            last_played=record["dateLastPlayed"],
        )
        for record in account["characters"]
    )


# ── Activity history ──────────────────────────────────────────────────────────

def _activity_reference(activity: dict) -> ActivityReference:
    details = activity["activityDetails"]
    return ActivityReference(
        activity_hash=details["referenceId"],
        override_hash=details.get("activityTypeHashOverride"),
    )


def parse_last_completed_activity(response: dict) -> Optional[ActivityReference]:
    """Most recent entry of an unfiltered activity history."""
    data = response.get("data")
    if data is None or not data.get("activities") or data["activities"][0] is None:
        return None
    return _activity_reference(data["activities"][0])


def parse_raid_completions(response: dict) -> Optional[list[ActivityReference]]:
    """Completed raids from a ``mode=Raid`` activity history, in source order.

    Returns ``None`` when the ``data`` bucket is missing and ``[]`` when it is
    present without ``activities``. Attempts with a completed count of 0 are
    dropped.
    """
    data = response.get("data")
    if data is None:
        return None
    if data.get("activities") is None:
        return []
    return [
        _activity_reference(activity)
        for activity in data["activities"]
        if activity["values"]["completed"]["basic"]["value"] != 0
    ]


# ── Inventory ─────────────────────────────────────────────────────────────────

def parse_inventory(response: dict) -> Optional[Inventory]:
    data = response.get("data")
    if data is None or not data.get("items"):
        return None
    return Inventory(items=tuple(data["items"]))


# ── Clan roster ───────────────────────────────────────────────────────────────

def parse_clan_roster_page(
    response: dict, platform: Platform
) -> tuple[list[ClanMember], bool]:
    """Members listed on one roster page, and whether more pages follow."""
    has_more = bool(response.get("hasMore"))
    results = response.get("results")
    if not results:
        return [], has_more
    on_xbox = platform is Platform.XBOX
    members = []
    for user in results:
        info = user["destinyUserInfo"]
        members.append(
            ClanMember(
                id=DestinyId(platform=platform, token=info["membershipId"]),
                name=info["displayName"],
                on_xbox=on_xbox,
            )
        )
    return members, has_more


# ── Xur ───────────────────────────────────────────────────────────────────────

def parse_xur_inventory(response: dict) -> Optional[list[XurExoticItem]]:
    """Exotic weapons and armor sold by Xur.

    An empty ``Response`` object means Xur is not around this week. Exotic
    engrams (not equippable) are skipped.
    """
    if isinstance(response, dict) and not response:
        return []
    categories = response["data"]["saleItemCategories"]
    exotic_gear = next(
        (c for c in categories if c.get("categoryTitle") == EXOTIC_GEAR_CATEGORY),
        None,
    )
    if exotic_gear is None:
        return None
    items = []
    for sale_item in exotic_gear["saleItems"]:
        item = sale_item["item"]
        if not item.get("isEquipment"):
            continue
        stat_hash = (item.get("primaryStat") or {}).get("statHash")
        items.append(
            XurExoticItem(item_id=item["itemHash"], is_armor=stat_hash == DEFENSE_STAT_HASH)
        )
    return items


# ── Weekly program ────────────────────────────────────────────────────────────

def _skull_names(category: dict) -> tuple[str, ...]:
    return tuple(skull["displayName"] for skull in category["skulls"])


def _display_reference(activity: dict) -> ActivityReference:
    return ActivityReference(activity_hash=activity["display"]["activityHash"])


def parse_weekly_program(response: dict) -> Optional[WeeklyProgram]:
    """Combine the five weekly advisors into a ``WeeklyProgram``.

    Skulls come from a different nesting per slot:
      nightfall      extended.skullCategories[0]
      featured raid  activityTiers[0].skullCategories[0]
      elder chal.    every entry of extended.skullCategories, concatenated
      heroic strike  extended.skullCategories[0]
    The weekly crucible contributes only its activity reference.
    """
    data = response.get("data")
    if data is None or data.get("activities") is None:
        return None
    activities = data["activities"]

    nightfall = activities["nightfall"]
    raid = activities["weeklyfeaturedraid"]
    elder = activities["elderchallenge"]
    crucible = activities["weeklycrucible"]
    heroic = activities["heroicstrike"]

    return WeeklyProgram(
        nightfall=_display_reference(nightfall),
        nightfall_skulls=_skull_names(nightfall["extended"]["skullCategories"][0]),
        featured_raid=_display_reference(raid),
        featured_raid_skulls=_skull_names(raid["activityTiers"][0]["skullCategories"][0]),
        elder_challenge_skulls=tuple(
            name
            for category in elder["extended"]["skullCategories"]
            for name in _skull_names(category)
        ),
        weekly_crucible=_display_reference(crucible),
        heroic_strike_skulls=_skull_names(heroic["extended"]["skullCategories"][0]),
    )


# ── Triumphs ──────────────────────────────────────────────────────────────────

def round_half_up(value: float) -> int:
    """Round a non-negative value to the nearest integer, halves going up."""
    return int(math.floor(value + 0.5))


def parse_triumphs_progress(response: dict) -> Optional[int]:
    """Age of Triumph completion percentage in [0, 100].

    Raises:
        EmptyRecordBookError: If the record book holds no records.
    """
    data = response.get("data")
    if data is None:
        return None
    book = (data.get("recordBooks") or {}).get(AGE_OF_TRIUMPH_RECORD_BOOK_ID)
    if book is None:
        return None

    total = 0
    completed = 0
    for record in (book.get("records") or {}).values():
        total += 1
        if record.get("status") == RecordStatus.COMPLETED:
            completed += 1

    if total == 0:
        raise EmptyRecordBookError(AGE_OF_TRIUMPH_RECORD_BOOK_ID)
    return round_half_up(100 * completed / total)


# ── Raw ───────────────────────────────────────────────────────────────────────

def parse_raw_data(response: Any) -> Optional[dict]:
    if not isinstance(response, dict):
        return None
    return response.get("data")
