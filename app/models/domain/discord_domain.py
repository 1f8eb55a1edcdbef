"""
Discord OAuth domain models: the exchanged token pair, the fetched
profile, and the token row persisted per user.
"""

from datetime import UTC, datetime, timedelta

from pydantic import BaseModel, Field, field_validator

DEFAULT_TOKEN_TYPE = "Bearer"
UNKNOWN_USERNAME = "Unknown User"

# Upper bound for client-supplied token lifetimes (ten years).
MAX_TOKEN_LIFETIME_SECONDS = 10 * 365 * 86400


class DiscordTokenPair(BaseModel):
    """Token pair returned by Discord's token endpoint."""

    access_token: str
    token_type: str = DEFAULT_TOKEN_TYPE
    refresh_token: str | None = None
    scope: str | None = None
    expires_in: int | None = None  # seconds, relative to the exchange

    def expires_at(self, now: datetime | None = None) -> datetime | None:
        """Absolute expiry for storage; None means non-expiring."""
        if self.expires_in is None:
            return None
        now = now or datetime.now(UTC)
        return now + timedelta(seconds=self.expires_in)


class DiscordProfile(BaseModel):
    """Subset of Discord's /users/@me payload used for the local user."""

    id: str = Field(..., min_length=1)
    username: str = UNKNOWN_USERNAME
    global_name: str | None = None
    avatar: str | None = None

    @field_validator("username", mode="before")
    @classmethod
    def _placeholder_for_missing_username(cls, value):
        return value or UNKNOWN_USERNAME

    @property
    def display_name(self) -> str:
        if self.global_name:
            return self.global_name
        return self.username

    def avatar_url(self, cdn_base: str) -> str | None:
        if not self.avatar:
            return None
        return f"{cdn_base}/{self.id}/{self.avatar}.png"


class DiscordToken(BaseModel):
    """Stored token row for a user (at most one per user)."""

    user_id: str
    access_token: str
    refresh_token: str | None = None
    token_type: str = DEFAULT_TOKEN_TYPE
    scope: str | None = None
    expires_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        """A token without expiry never expires."""
        if self.expires_at is None:
            return False
        now = now or datetime.now(UTC)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        return expires_at <= now


class DiscordTokenUpdate(BaseModel):
    """Partial token update; None leaves the stored value untouched."""

    access_token: str | None = None
    refresh_token: str | None = None
    token_type: str | None = None
    scope: str | None = None
    expires_at: datetime | None = None


class TokenVerification(BaseModel):
    user_id: str
    has_token: bool
    is_valid: bool
    is_expired: bool | None = None
    expires_at: datetime | None = None
