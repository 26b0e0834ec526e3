"""
Activity models — single activity references and the weekly rotation.

``ActivityReference`` carries the concrete activity hash plus an optional
type override. When the override is present it identifies a type-specific
re-skin and is authoritative for categorization (``type_hash``), while
``activity_hash`` stays the instance identifier.

``WeeklyProgram`` bundles the five rotating weekly activities read from the
V2 advisors endpoint. Skull (modifier) names are stored as tuples so they
can be iterated any number of times, always in source order.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class ActivityReference(BaseModel):
    """Reference to an activity definition.

    Attributes:
        activity_hash: Hash of the concrete activity instance.
        override_hash: Optional ``activityTypeHashOverride``.
    """

    model_config = ConfigDict(frozen=True)

    activity_hash: int
    override_hash: Optional[int] = None

    @property
    def type_hash(self) -> int:
        """Hash to use when deciding what kind of activity this is."""
        return self.override_hash if self.override_hash is not None else self.activity_hash


class WeeklyProgram(BaseModel):
    """The weekly activity rotation.

    Attributes:
        nightfall: Nightfall strike.
        nightfall_skulls: Nightfall modifier names.
        featured_raid: Featured raid of the week.
        featured_raid_skulls: Modifiers of the raid's first tier.
        elder_challenge_skulls: Modifiers across every elder-challenge skull category.
        weekly_crucible: Featured crucible playlist.
        heroic_strike_skulls: Heroic strike playlist modifiers.
    """

    model_config = ConfigDict(frozen=True)

    nightfall: ActivityReference
    nightfall_skulls: tuple[str, ...] = ()
    featured_raid: ActivityReference
    featured_raid_skulls: tuple[str, ...] = ()
    elder_challenge_skulls: tuple[str, ...] = ()
    weekly_crucible: ActivityReference
    heroic_strike_skulls: tuple[str, ...] = ()
