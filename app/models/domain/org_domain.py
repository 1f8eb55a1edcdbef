from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class MemberStatus(str, Enum):
    SPECTATING = "spectating"
    PLAYING = "playing"
    BANNED = "banned"


class Organization(BaseModel):
    id: str
    owner_id: str
    name: str
    avatar_url: str | None = None
    description: str | None = None
    created_at: datetime
    updated_at: datetime


class OrganizationCreate(BaseModel):
    owner_id: str
    name: str = Field(..., min_length=1, max_length=255)
    avatar_url: str | None = None
    description: str | None = None


class OrganizationUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    avatar_url: str | None = None
    description: str | None = None


class Membership(BaseModel):
    id: str
    user_id: str
    discord_org_id: str
    status: MemberStatus
    created_at: datetime
    updated_at: datetime


class MembershipCreate(BaseModel):
    user_id: str
    discord_org_id: str
    status: MemberStatus = MemberStatus.SPECTATING


class MembershipUpdate(BaseModel):
    status: MemberStatus
