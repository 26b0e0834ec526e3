"""
Character, profile and inventory models.

A ``Profile`` is built from the Bungie account endpoint, whose character
records are flat (``characterId``, ``classType``, ``dateLastPlayed``) unlike
the ``characterBase``-nested records of the account summary endpoint.
Characters keep the order the platform returned them in.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from destiny_client.models.identity import DestinyId
from destiny_client.taxonomy.platform import ClassType


class Character(BaseModel):
    """A character belonging to exactly one ``DestinyId``.

    Attributes:
        owner: Account the character belongs to.
        character_id: Bungie character id.
        class_type: Titan / Hunter / Warlock.
        last_played: Last time the character was played (timezone-aware).
    """

    model_config = ConfigDict(frozen=True)

    owner: DestinyId
    character_id: str
    class_type: ClassType
    last_played: datetime

    @field_validator("character_id", mode="before")
    @classmethod
    def coerce_character_id(cls, v: object) -> object:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class Profile(BaseModel):
    """Summary of a player's account."""

    model_config = ConfigDict(frozen=True)

    grimoire: Optional[int] = None
    characters: tuple[Character, ...] = ()

    @property
    def last_played_character(self) -> Optional[Character]:
        """The character with the most recent ``last_played``, if any."""
        if not self.characters:
            return None
        return max(self.characters, key=lambda c: c.last_played)


class Inventory(BaseModel):
    """Inventory summary for one character; item records are kept opaque."""

    model_config = ConfigDict(frozen=True)

    items: tuple[dict[str, Any], ...]
