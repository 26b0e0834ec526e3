"""
Player identity model.

``DestinyId`` pairs a ``Platform`` with the opaque membership token Bungie
assigns to the account on that platform. The platform is fixed at
construction; nothing downstream ever re-infers it from the token.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

from destiny_client.taxonomy.platform import Platform


class DestinyId(BaseModel):
    """Identifies a player account on one platform.

    Attributes:
        platform: Network the account belongs to.
        token: Bungie membership id (opaque string).
    """

    model_config = ConfigDict(frozen=True)

    platform: Platform
    token: str

    @field_validator("token", mode="before")
    @classmethod
    def coerce_token(cls, v: object) -> object:
        # Membership ids occasionally arrive as JSON numbers.
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("token")
    @classmethod
    def validate_token(cls, v: str) -> str:
        if not v:
            raise ValueError("Membership token must be non-empty.")
        return v

    @property
    def type(self) -> str:
        """Membership type code used in URL path segments ("1" or "2")."""
        return self.platform.code

    @property
    def on_xbox(self) -> bool:
        return self.platform is Platform.XBOX

    def __str__(self) -> str:
        return f"{self.type}:{self.token}"
