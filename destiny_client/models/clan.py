"""Clan roster and vendor stock models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from destiny_client.models.identity import DestinyId


class ClanMember(BaseModel):
    """A clan member on one platform.

    Attributes:
        id: Destiny identity of the member.
        name: Display name (gamertag / PSN id).
        on_xbox: Platform flag the roster was queried with.
    """

    model_config = ConfigDict(frozen=True)

    id: DestinyId
    name: str
    on_xbox: bool


class XurExoticItem(BaseModel):
    """An exotic sold by Xur. Derived from the vendor payload, never persisted."""

    model_config = ConfigDict(frozen=True)

    item_id: int
    is_armor: bool
