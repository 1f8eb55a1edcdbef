"""
Token responses. Raw access and refresh tokens are never returned.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from app.models.domain.discord_domain import DiscordToken


class TokenResponse(BaseModel):
    user_id: str
    token_type: str
    scope: str | None = None
    expires_at: datetime | None = None
    is_expired: bool
    has_refresh_token: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_token(cls, token: DiscordToken) -> "TokenResponse":
        return cls(
            user_id=token.user_id,
            token_type=token.token_type,
            scope=token.scope,
            expires_at=token.expires_at,
            is_expired=token.is_expired(),
            has_refresh_token=bool(token.refresh_token),
            created_at=token.created_at,
            updated_at=token.updated_at,
        )


class CleanupResponse(BaseModel):
    deleted_count: int = Field(..., description="Number of expired tokens removed")
    message: str


class ExchangeResponse(BaseModel):
    """JSON outcome of /auth/discord/exchange."""

    success: bool
    user_id: str | None = None
    error: str | None = Field(default=None, description="Failure reason code")
