from datetime import datetime

from pydantic import BaseModel, Field


class User(BaseModel):
    """Local user record keyed by a generated id, linked to one Discord identity."""

    id: str
    discord_id: str
    display_name: str
    avatar_url: str | None = None
    bio: str | None = None
    created_at: datetime
    updated_at: datetime


class UserCreate(BaseModel):
    discord_id: str = Field(..., min_length=1, max_length=255)
    display_name: str = Field(..., min_length=1, max_length=255)
    avatar_url: str | None = None
    bio: str | None = None


class UserUpdate(BaseModel):
    """Partial update; None leaves the stored value untouched."""

    display_name: str | None = Field(default=None, min_length=1, max_length=255)
    avatar_url: str | None = None
    bio: str | None = None


class UserStats(BaseModel):
    total_users: int
    users_with_bio: int
    users_with_avatar: int
