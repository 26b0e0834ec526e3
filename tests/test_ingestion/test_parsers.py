"""
Tests for destiny_client.ingestion.parsers — per-endpoint extraction.

Covers the null-vs-empty contract of each endpoint:
  - search results, account summary, profile, activity history, inventory
  - clan roster pages
  - Xur stock classification
  - weekly program aggregation (skull names in source order)
  - Age of Triumph percentage and the empty-book failure
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from destiny_client.exceptions import EmptyRecordBookError
from destiny_client.ingestion.parsers import (
    parse_clan_roster_page,
    parse_current_activity,
    parse_destiny_id,
    parse_inventory,
    parse_last_completed_activity,
    parse_profile,
    parse_raid_completions,
    parse_raw_data,
    parse_triumphs_progress,
    parse_weekly_program,
    parse_xur_inventory,
    round_half_up,
)
from destiny_client.models.activity import ActivityReference
from destiny_client.taxonomy.platform import (
    AGE_OF_TRIUMPH_RECORD_BOOK_ID,
    DEFENSE_STAT_HASH,
    ClassType,
    Platform,
)


def _skulls(*names: str) -> dict:
    return {"skulls": [{"displayName": n, "description": "", "icon": ""} for n in names]}


def _activity(reference_id: int, override: int | None = None, completed: float = 1.0) -> dict:
    details = {"referenceId": reference_id, "instanceId": "9000", "mode": 4}
    if override is not None:
        details["activityTypeHashOverride"] = override
    return {
        "period": "2016-10-01T20:15:00Z",
        "activityDetails": details,
        "values": {"completed": {"basic": {"value": completed, "displayValue": "Yes"}}},
    }


# ── Identity ───────────────────────────────────────────────────────────────────

class TestParseDestinyId:
    def test_first_hit(self):
        result = parse_destiny_id(
            [{"membershipId": "4611", "displayName": "Gamer"}, {"membershipId": "9999"}],
            Platform.PLAYSTATION,
        )
        assert result is not None
        assert result.token == "4611"
        assert result.platform is Platform.PLAYSTATION

    def test_empty_list(self):
        assert parse_destiny_id([], Platform.XBOX) is None

    def test_null_first_element(self):
        assert parse_destiny_id([None], Platform.XBOX) is None


# ── Account summary ────────────────────────────────────────────────────────────

class TestParseCurrentActivity:
    def _summary(self, *hashes: int) -> dict:
        return {
            "data": {
                "characters": [
                    {"characterBase": {"characterId": str(i), "currentActivityHash": h}}
                    for i, h in enumerate(hashes)
                ]
            }
        }

    def test_first_non_zero_hash(self):
        result = parse_current_activity(self._summary(0, 1234, 5678))
        assert result == ActivityReference(activity_hash=1234)

    def test_all_zero_is_none(self):
        assert parse_current_activity(self._summary(0, 0, 0)) is None

    def test_empty_characters_is_none(self):
        assert parse_current_activity({"data": {"characters": []}}) is None

    def test_missing_characters_is_none(self):
        assert parse_current_activity({"data": {}}) is None

    def test_missing_data_is_none(self):
        assert parse_current_activity({}) is None


# ── Profile ────────────────────────────────────────────────────────────────────

class TestParseProfile:
    def test_characters_in_platform_order(self, xbox_id):
        response = {
            "destinyAccounts": [
                {
                    "grimoireScore": 4210,
                    "characters": [
                        {"characterId": "111", "classType": 0,
                         "dateLastPlayed": "2016-09-01T10:00:00Z"},
                        {"characterId": "222", "classType": 2,
                         "dateLastPlayed": "2016-10-01T10:00:00Z"},
                        {"characterId": "333", "classType": 1,
                         "dateLastPlayed": "2016-08-01T10:00:00Z"},
                    ],
                }
            ]
        }
        profile = parse_profile(response, xbox_id)
        assert profile is not None
        assert profile.grimoire == 4210
        assert [c.character_id for c in profile.characters] == ["111", "222", "333"]
        assert profile.characters[1].class_type is ClassType.WARLOCK
        assert profile.characters[1].owner == xbox_id
        assert profile.characters[1].last_played == datetime(
            2016, 10, 1, 10, 0, 0, tzinfo=timezone.utc
        )
        assert profile.last_played_character.character_id == "222"

    def test_no_characters_gives_empty_profile(self, xbox_id):
        profile = parse_profile({"destinyAccounts": [{"grimoireScore": 10}]}, xbox_id)
        assert profile is not None
        assert profile.characters == ()
        assert profile.last_played_character is None

    def test_empty_characters_gives_empty_profile(self, xbox_id):
        profile = parse_profile(
            {"destinyAccounts": [{"grimoireScore": 10, "characters": []}]}, xbox_id
        )
        assert profile is not None
        assert profile.characters == ()

    def test_numeric_character_id_becomes_string(self, xbox_id):
        response = {
            "destinyAccounts": [
                {
                    "grimoireScore": 10,
                    "characters": [
                        {"characterId": 2305843009261519028, "classType": 1,
                         "dateLastPlayed": "2016-09-01T10:00:00Z"},
                    ],
                }
            ]
        }
        profile = parse_profile(response, xbox_id)
        assert profile is not None
        assert profile.characters[0].character_id == "2305843009261519028"

    @pytest.mark.parametrize("accounts", [None, [], [None]])
    def test_missing_account_is_none(self, xbox_id, accounts):
        response = {} if accounts is None else {"destinyAccounts": accounts}
        assert parse_profile(response, xbox_id) is None


# ── Activity history ───────────────────────────────────────────────────────────

class TestParseLastCompletedActivity:
    def test_first_activity_with_override(self):
        response = {"data": {"activities": [_activity(100, override=200), _activity(300)]}}
        result = parse_last_completed_activity(response)
        assert result == ActivityReference(activity_hash=100, override_hash=200)
        assert result.type_hash == 200

    def test_first_activity_without_override(self):
        result = parse_last_completed_activity({"data": {"activities": [_activity(100)]}})
        assert result == ActivityReference(activity_hash=100)
        assert result.type_hash == 100

    @pytest.mark.parametrize(
        "response",
        [{}, {"data": {}}, {"data": {"activities": []}}, {"data": {"activities": [None]}}],
    )
    def test_absent_is_none(self, response):
        assert parse_last_completed_activity(response) is None


class TestParseRaidCompletions:
    def test_drops_incomplete_and_keeps_order(self):
        response = {
            "data": {
                "activities": [
                    _activity(1, override=11),
                    _activity(2, completed=0),
                    _activity(3),
                    _activity(4, override=44, completed=0.0),
                    _activity(5, override=55),
                ]
            }
        }
        result = parse_raid_completions(response)
        assert result == [
            ActivityReference(activity_hash=1, override_hash=11),
            ActivityReference(activity_hash=3),
            ActivityReference(activity_hash=5, override_hash=55),
        ]

    def test_missing_activities_is_empty_list(self):
        assert parse_raid_completions({"data": {}}) == []

    def test_missing_data_is_none(self):
        assert parse_raid_completions({}) is None


# ── Inventory ──────────────────────────────────────────────────────────────────

class TestParseInventory:
    def test_items_kept_opaque(self):
        items = [{"itemHash": 1, "quantity": 1}, {"itemHash": 2, "quantity": 5}]
        inventory = parse_inventory({"data": {"items": items}})
        assert inventory is not None
        assert list(inventory.items) == items

    @pytest.mark.parametrize("response", [{}, {"data": {}}, {"data": {"items": []}}])
    def test_no_items_is_none(self, response):
        assert parse_inventory(response) is None


# ── Clan roster ────────────────────────────────────────────────────────────────

class TestParseClanRosterPage:
    def test_members_and_has_more(self):
        response = {
            "results": [
                {"destinyUserInfo": {"membershipId": "1", "displayName": "Alpha"}},
                {"destinyUserInfo": {"membershipId": "2", "displayName": "Bravo"}},
            ],
            "hasMore": True,
        }
        members, has_more = parse_clan_roster_page(response, Platform.PLAYSTATION)
        assert has_more is True
        assert [m.name for m in members] == ["Alpha", "Bravo"]
        assert all(m.id.platform is Platform.PLAYSTATION for m in members)
        assert all(m.on_xbox is False for m in members)

    def test_empty_results(self):
        members, has_more = parse_clan_roster_page(
            {"results": [], "hasMore": False}, Platform.XBOX
        )
        assert members == []
        assert has_more is False

    def test_missing_has_more_means_last_page(self):
        _, has_more = parse_clan_roster_page({"results": []}, Platform.XBOX)
        assert has_more is False


# ── Xur ────────────────────────────────────────────────────────────────────────

def _sale_item(item_hash: int, equippable: bool = True, stat_hash: int | None = None) -> dict:
    item: dict = {"itemHash": item_hash, "isEquipment": equippable}
    if stat_hash is not None:
        item["primaryStat"] = {"statHash": stat_hash, "value": 350}
    return {"item": item, "vendorItemIndex": 0}


class TestParseXurInventory:
    def _response(self, *sale_items: dict, title: str = "Exotic Gear") -> dict:
        return {
            "data": {
                "saleItemCategories": [
                    {"categoryTitle": "Curios", "saleItems": [_sale_item(1, stat_hash=DEFENSE_STAT_HASH)]},
                    {"categoryTitle": title, "saleItems": list(sale_items)},
                ]
            }
        }

    def test_empty_response_means_xur_is_away(self):
        assert parse_xur_inventory({}) == []

    def test_list_payload_is_not_an_empty_stock(self):
        with pytest.raises(TypeError):
            parse_xur_inventory([])

    def test_classifies_armor_and_weapons(self):
        result = parse_xur_inventory(
            self._response(
                _sale_item(10, stat_hash=DEFENSE_STAT_HASH),
                _sale_item(20, stat_hash=368428387),
                _sale_item(30, equippable=False),
            )
        )
        assert result is not None
        assert [(i.item_id, i.is_armor) for i in result] == [(10, True), (20, False)]

    def test_defense_literal(self):
        result = parse_xur_inventory(self._response(_sale_item(10, stat_hash=3897883278)))
        assert result[0].is_armor is True

    def test_equippable_without_primary_stat_is_weapon(self):
        result = parse_xur_inventory(self._response(_sale_item(40)))
        assert result[0].is_armor is False

    def test_only_engrams_gives_empty_list(self):
        assert parse_xur_inventory(self._response(_sale_item(30, equippable=False))) == []

    def test_missing_exotic_category_is_none(self):
        assert parse_xur_inventory(self._response(_sale_item(10), title="Exotic Engrams")) is None


# ── Weekly program ─────────────────────────────────────────────────────────────

def _weekly_response() -> dict:
    return {
        "data": {
            "activities": {
                "nightfall": {
                    "display": {"activityHash": 1001},
                    "extended": {
                        "skullCategories": [
                            _skulls("Epic", "Solar Burn", "Juggler"),
                            _skulls("Ignored"),
                        ]
                    },
                },
                "weeklyfeaturedraid": {
                    "display": {"activityHash": 2002},
                    "activityTiers": [
                        {"skullCategories": [_skulls("Heroic", "Grounded"), _skulls("Ignored")]},
                        {"skullCategories": [_skulls("Other tier")]},
                    ],
                },
                "elderchallenge": {
                    "display": {"activityHash": 3003},
                    "extended": {
                        "skullCategories": [
                            _skulls("Brawler", "Specialist"),
                            _skulls("Catapult"),
                            _skulls("Trickle", "Airborne"),
                        ]
                    },
                },
                "weeklycrucible": {"display": {"activityHash": 4004}},
                "heroicstrike": {
                    "display": {"activityHash": 5005},
                    "extended": {"skullCategories": [_skulls("Heroic", "Lightswitch")]},
                },
            }
        }
    }


class TestParseWeeklyProgram:
    def test_round_trip_skull_names(self):
        program = parse_weekly_program(_weekly_response())
        assert program is not None
        assert program.nightfall == ActivityReference(activity_hash=1001)
        assert program.nightfall_skulls == ("Epic", "Solar Burn", "Juggler")
        assert program.featured_raid == ActivityReference(activity_hash=2002)
        assert program.featured_raid_skulls == ("Heroic", "Grounded")
        assert program.elder_challenge_skulls == (
            "Brawler", "Specialist", "Catapult", "Trickle", "Airborne",
        )
        assert program.weekly_crucible == ActivityReference(activity_hash=4004)
        assert program.heroic_strike_skulls == ("Heroic", "Lightswitch")

    def test_skull_names_are_restartable(self):
        program = parse_weekly_program(_weekly_response())
        assert list(program.elder_challenge_skulls) == list(program.elder_challenge_skulls)

    @pytest.mark.parametrize("response", [{}, {"data": {}}, {"data": {"activities": None}}])
    def test_missing_activities_is_none(self, response):
        assert parse_weekly_program(response) is None

    def test_missing_slot_raises_key_error(self):
        response = _weekly_response()
        del response["data"]["activities"]["heroicstrike"]
        with pytest.raises(KeyError):
            parse_weekly_program(response)


# ── Triumphs ───────────────────────────────────────────────────────────────────

def _advisors(records: dict | None) -> dict:
    book = {"recordBookHash": 840570351}
    if records is not None:
        book["records"] = records
    return {"data": {"recordBooks": {AGE_OF_TRIUMPH_RECORD_BOOK_ID: book}}}


class TestParseTriumphsProgress:
    def test_half_completed(self):
        assert parse_triumphs_progress(_advisors({"A": {"status": 2}, "B": {"status": 0}})) == 50

    def test_all_completed(self):
        assert parse_triumphs_progress(_advisors({"A": {"status": 2}})) == 100

    def test_redeemable_is_not_completed(self):
        assert parse_triumphs_progress(_advisors({"A": {"status": 1}})) == 0

    def test_rounds_half_up(self):
        records = {str(i): {"status": 2 if i == 0 else 0} for i in range(8)}
        # 100 * 1 / 8 = 12.5
        assert parse_triumphs_progress(_advisors(records)) == 13

    def test_rounds_down_below_half(self):
        records = {"A": {"status": 2}, "B": {"status": 0}, "C": {"status": 0}}
        assert parse_triumphs_progress(_advisors(records)) == 33

    def test_empty_book_raises(self):
        with pytest.raises(EmptyRecordBookError, match="840570351"):
            parse_triumphs_progress(_advisors({}))

    def test_book_without_records_raises(self):
        with pytest.raises(EmptyRecordBookError):
            parse_triumphs_progress(_advisors(None))

    def test_missing_data_is_none(self):
        assert parse_triumphs_progress({}) is None

    def test_missing_book_is_none(self):
        assert parse_triumphs_progress({"data": {"recordBooks": {"123": {}}}}) is None


class TestRoundHalfUp:
    @pytest.mark.parametrize(
        "value,expected", [(0.0, 0), (0.5, 1), (1.5, 2), (2.5, 3), (49.4, 49), (99.5, 100)]
    )
    def test_values(self, value, expected):
        assert round_half_up(value) == expected


# ── Raw ────────────────────────────────────────────────────────────────────────

class TestParseRawData:
    def test_returns_data_bucket(self):
        assert parse_raw_data({"data": {"x": 1}}) == {"x": 1}

    def test_missing_data_is_none(self):
        assert parse_raw_data({}) is None

    def test_list_response_is_none(self):
        assert parse_raw_data([1, 2]) is None
