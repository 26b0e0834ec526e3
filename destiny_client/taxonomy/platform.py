"""
Platform taxonomy and fixed Bungie API literals.

``Platform``     — the distribution network an account belongs to; its value is
                   the integer membership type used in URL path segments.
``ClassType``    — character class as reported by ``classType``.
``RecordStatus`` — status of a single record inside a record book.

Usage example::

    from destiny_client.taxonomy.platform import Platform

    platform = Platform.XBOX
    platform.code   # "1"

This module has NO imports from any other ``destiny_client`` package.
"""

from enum import IntEnum

# Top-level ``ErrorCode`` value for a successful response.
SUCCESS_ERROR_CODE = 1

# ``statHash`` of the "Defense" stat; an exotic carrying it as primary stat is armor.
DEFENSE_STAT_HASH = 3897883278

# Record book for the Year 3 "Age of Triumph" event.
AGE_OF_TRIUMPH_RECORD_BOOK_ID = "840570351"

# Title of Xur's sale category holding the weekly exotics.
EXOTIC_GEAR_CATEGORY = "Exotic Gear"


class Platform(IntEnum):
    """Game distribution network of a Destiny account."""

    XBOX = 1
    PLAYSTATION = 2

    @property
    def code(self) -> str:
        """Membership type as it appears in URL path segments."""
        return str(self.value)


class ClassType(IntEnum):
    """Character class."""

    TITAN = 0
    HUNTER = 1
    WARLOCK = 2
    UNKNOWN = 3


class RecordStatus(IntEnum):
    """Progress status of a record-book entry."""

    INCOMPLETE = 0
    REDEEMABLE = 1
    COMPLETED = 2
