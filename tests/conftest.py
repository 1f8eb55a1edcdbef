import asyncio
import uuid
from datetime import UTC, datetime

import httpx
import pytest

from app.config import DiscordOAuthConfig
from app.db.helpers import DuplicateKeyError, ForeignKeyError
from app.models.domain.discord_domain import DiscordToken, DiscordTokenUpdate
from app.models.domain.org_domain import (
    Membership,
    MembershipCreate,
    MembershipUpdate,
    Organization,
    OrganizationCreate,
    OrganizationUpdate,
)
from app.models.domain.user_domain import User, UserCreate, UserStats, UserUpdate

TOKEN_URL = "https://discord.test/api/oauth2/token"
USER_API_URL = "https://discord.test/api/users/@me"
FRONTEND_URL = "http://frontend.test"


class FakeUserRepository:
    """In-memory users table with a unique discord_id, like the real schema."""

    def __init__(self):
        self.rows: dict[str, User] = {}

    async def get_by_id(self, user_id: str) -> User | None:
        return self.rows.get(user_id)

    async def get_by_discord_id(self, discord_id: str) -> User | None:
        found = next((u for u in self.rows.values() if u.discord_id == discord_id), None)
        # yield after the lookup so concurrent callers can both miss
        await asyncio.sleep(0)
        return found

    async def create(self, data: UserCreate) -> User:
        if any(u.discord_id == data.discord_id for u in self.rows.values()):
            raise DuplicateKeyError("duplicate discord_id", operation="fetch_one")
        now = datetime.now(UTC)
        user = User(id=str(uuid.uuid4()), created_at=now, updated_at=now, **data.model_dump())
        self.rows[user.id] = user
        return user

    async def update_identity(self, user_id, display_name, avatar_url) -> User | None:
        user = self.rows.get(user_id)
        if user is None:
            return None
        user = user.model_copy(
            update={
                "display_name": display_name,
                "avatar_url": avatar_url,
                "updated_at": datetime.now(UTC),
            }
        )
        self.rows[user_id] = user
        return user

    async def update(self, user_id: str, data: UserUpdate) -> User | None:
        user = self.rows.get(user_id)
        if user is None:
            return None
        user = user.model_copy(update=data.model_dump(exclude_none=True))
        self.rows[user_id] = user
        return user

    async def delete(self, user_id: str) -> bool:
        return self.rows.pop(user_id, None) is not None

    async def stats(self) -> UserStats:
        users = list(self.rows.values())
        return UserStats(
            total_users=len(users),
            users_with_bio=sum(1 for u in users if u.bio),
            users_with_avatar=sum(1 for u in users if u.avatar_url),
        )


class FakeTokenRepository:
    """In-memory discord_tokens table keyed by user_id.

    When ``known_users`` is set, writes for other ids fail like the foreign key.
    """

    def __init__(self, known_users: set[str] | None = None):
        self.rows: dict[str, DiscordToken] = {}
        self.known_users = known_users

    async def upsert(self, user_id, access_token, refresh_token, token_type, scope, expires_at):
        if self.known_users is not None and user_id not in self.known_users:
            raise ForeignKeyError("unknown user", operation="fetch_one")
        now = datetime.now(UTC)
        existing = self.rows.get(user_id)
        token = DiscordToken(
            user_id=user_id,
            access_token=access_token,
            refresh_token=refresh_token,
            token_type=token_type,
            scope=scope,
            expires_at=expires_at,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        self.rows[user_id] = token
        return token

    async def get_by_user_id(self, user_id: str) -> DiscordToken | None:
        return self.rows.get(user_id)

    async def update(self, user_id: str, data: DiscordTokenUpdate) -> DiscordToken | None:
        token = self.rows.get(user_id)
        if token is None:
            return None
        token = token.model_copy(update=data.model_dump(exclude_none=True))
        self.rows[user_id] = token
        return token

    async def delete(self, user_id: str) -> bool:
        return self.rows.pop(user_id, None) is not None

    async def delete_expired(self) -> int:
        now = datetime.now(UTC)
        expired = [
            user_id
            for user_id, token in self.rows.items()
            if token.expires_at is not None and token.expires_at < now
        ]
        for user_id in expired:
            del self.rows[user_id]
        return len(expired)


class FakeOrgRepository:
    def __init__(self, users: FakeUserRepository):
        self.users = users
        self.rows: dict[str, Organization] = {}
        self.memberships: list[Membership] = []

    async def create(self, data: OrganizationCreate) -> Organization:
        if data.owner_id not in self.users.rows:
            raise ForeignKeyError("unknown owner", operation="fetch_one")
        now = datetime.now(UTC)
        org = Organization(
            id=str(uuid.uuid4()), created_at=now, updated_at=now, **data.model_dump()
        )
        self.rows[org.id] = org
        return org

    async def get_by_id(self, org_id: str) -> Organization | None:
        return self.rows.get(org_id)

    async def update(self, org_id: str, data: OrganizationUpdate) -> Organization | None:
        org = self.rows.get(org_id)
        if org is None:
            return None
        org = org.model_copy(update=data.model_dump(exclude_none=True))
        self.rows[org_id] = org
        return org

    async def delete(self, org_id: str) -> bool:
        return self.rows.pop(org_id, None) is not None

    async def list_for_user(self, user_id: str) -> list[Organization]:
        member_of = {m.discord_org_id for m in self.memberships if m.user_id == user_id}
        return [o for o in self.rows.values() if o.owner_id == user_id or o.id in member_of]


class FakeMemberRepository:
    def __init__(self, orgs: FakeOrgRepository):
        self.orgs = orgs

    @property
    def rows(self) -> list[Membership]:
        return self.orgs.memberships

    async def create(self, data: MembershipCreate) -> Membership:
        if data.user_id not in self.orgs.users.rows or data.discord_org_id not in self.orgs.rows:
            raise ForeignKeyError("unknown user or org", operation="fetch_one")
        if any(
            m.user_id == data.user_id and m.discord_org_id == data.discord_org_id
            for m in self.rows
        ):
            raise DuplicateKeyError("duplicate membership", operation="fetch_one")
        now = datetime.now(UTC)
        membership = Membership(
            id=str(uuid.uuid4()), created_at=now, updated_at=now, **data.model_dump()
        )
        self.rows.append(membership)
        return membership

    async def get_by_id(self, member_id: str) -> Membership | None:
        return next((m for m in self.rows if m.id == member_id), None)

    async def update_status(self, member_id: str, data: MembershipUpdate) -> Membership | None:
        for index, membership in enumerate(self.rows):
            if membership.id == member_id:
                self.rows[index] = membership.model_copy(update={"status": data.status})
                return self.rows[index]
        return None

    async def delete(self, member_id: str) -> bool:
        before = len(self.rows)
        self.rows[:] = [m for m in self.rows if m.id != member_id]
        return len(self.rows) < before

    async def list_for_org(self, org_id: str) -> list[Membership]:
        return [m for m in self.rows if m.discord_org_id == org_id]


class FakeDiscord:
    """Scripted Discord token and users endpoints behind an httpx.MockTransport.

    Replies are (status, body) pairs; a dict body is sent as JSON, a str as
    text. Setting ``token_error`` or ``profile_error`` raises it instead.
    """

    def __init__(self):
        self.token_reply = (
            200,
            {
                "access_token": "access-abc",
                "token_type": "Bearer",
                "refresh_token": "refresh-abc",
                "scope": "identify",
                "expires_in": 604800,
            },
        )
        self.profile_reply = (200, {"id": "42", "username": "bob"})
        self.token_error: Exception | None = None
        self.profile_error: Exception | None = None
        self.requests: list[httpx.Request] = []

    @staticmethod
    def _reply(status: int, body) -> httpx.Response:
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "POST" and request.url.path.endswith("/oauth2/token"):
            if self.token_error:
                raise self.token_error
            return self._reply(*self.token_reply)
        if request.method == "GET" and request.url.path.startswith("/api/users/"):
            if self.profile_error:
                raise self.profile_error
            return self._reply(*self.profile_reply)
        return httpx.Response(404)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def oauth_config() -> DiscordOAuthConfig:
    return DiscordOAuthConfig(
        client_id="client-123",
        client_secret="secret-456",
        redirect_uri="http://backend.test/auth/discord/callback",
        token_url=TOKEN_URL,
        user_api_url=USER_API_URL,
        cdn_avatar_base="https://cdn.discordapp.com/avatars",
        frontend_url=FRONTEND_URL,
        request_timeout=5.0,
    )


@pytest.fixture
def fake_discord():
    return FakeDiscord()


@pytest.fixture
def user_repository():
    return FakeUserRepository()


@pytest.fixture
def token_repository():
    return FakeTokenRepository()


@pytest.fixture
def org_repository(user_repository):
    return FakeOrgRepository(user_repository)


@pytest.fixture
def member_repository(org_repository):
    return FakeMemberRepository(org_repository)
