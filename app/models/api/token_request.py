"""
Request bodies for the /api/discord-tokens endpoints.
"""

from datetime import UTC, datetime, timedelta
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.domain.discord_domain import (
    DEFAULT_TOKEN_TYPE,
    MAX_TOKEN_LIFETIME_SECONDS,
    DiscordTokenPair,
    DiscordTokenUpdate,
)


class StoreTokenRequest(BaseModel):
    """Store (or replace) the Discord token for a user."""

    user_id: UUID = Field(..., description="Local user id")
    access_token: str = Field(..., min_length=1, description="Discord access token")
    refresh_token: str | None = Field(default=None, description="Discord refresh token")
    token_type: str | None = Field(default=None, description="Defaults to Bearer")
    scope: str | None = Field(default=None, description="Space-separated granted scopes")
    expires_in: int | None = Field(
        default=None,
        ge=0,
        le=MAX_TOKEN_LIFETIME_SECONDS,
        description="Lifetime in seconds; omit for a non-expiring token",
    )

    def to_token_pair(self) -> DiscordTokenPair:
        return DiscordTokenPair(
            access_token=self.access_token,
            refresh_token=self.refresh_token,
            token_type=self.token_type or DEFAULT_TOKEN_TYPE,
            scope=self.scope,
            expires_in=self.expires_in,
        )


class UpdateTokenRequest(BaseModel):
    """Partial update; omitted fields keep their stored value."""

    access_token: str | None = Field(default=None, min_length=1)
    refresh_token: str | None = None
    token_type: str | None = None
    scope: str | None = None
    expires_in: int | None = Field(
        default=None, ge=0, le=MAX_TOKEN_LIFETIME_SECONDS, description="New lifetime in seconds"
    )

    def to_update(self, now: datetime | None = None) -> DiscordTokenUpdate:
        expires_at = None
        if self.expires_in is not None:
            expires_at = (now or datetime.now(UTC)) + timedelta(seconds=self.expires_in)

        return DiscordTokenUpdate(
            access_token=self.access_token,
            refresh_token=self.refresh_token,
            token_type=self.token_type,
            scope=self.scope,
            expires_at=expires_at,
        )
