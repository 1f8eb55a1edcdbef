import uuid
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from app.models.domain.discord_domain import DiscordTokenUpdate
from app.repositories.token_repository import TokenRepository
from app.repositories.user_repository import UserRepository

NOW = datetime(2026, 1, 1, tzinfo=UTC)


def _normalize(query: str) -> str:
    return " ".join(query.split())


def _token_row(user_id: uuid.UUID, **overrides) -> dict:
    row = {
        "user_id": user_id,
        "access_token": "access",
        "refresh_token": None,
        "token_type": "Bearer",
        "scope": "identify",
        "expires_at": NOW + timedelta(hours=1),
        "created_at": NOW,
        "updated_at": NOW,
    }
    row.update(overrides)
    return row


def _user_row(user_id: uuid.UUID, **overrides) -> dict:
    row = {
        "id": user_id,
        "discord_id": "80351110224678912",
        "display_name": "Nelly",
        "avatar_url": None,
        "bio": "kept",
        "created_at": NOW,
        "updated_at": NOW,
    }
    row.update(overrides)
    return row


@pytest.mark.asyncio
async def test_token_upsert_replaces_row_on_user_conflict(monkeypatch):
    user_id = uuid.uuid4()
    fetch_one_mock = AsyncMock(return_value=_token_row(user_id, access_token="second"))
    monkeypatch.setattr("app.repositories.token_repository.fetch_one", fetch_one_mock)

    token = await TokenRepository().upsert(
        user_id=str(user_id),
        access_token="second",
        refresh_token="refresh",
        token_type="Bearer",
        scope="identify",
        expires_at=None,
    )

    query, params = fetch_one_mock.await_args.args
    query = _normalize(query)
    assert "INSERT INTO discord_tokens" in query
    assert "ON CONFLICT (user_id) DO UPDATE SET" in query
    for column in ("access_token", "refresh_token", "token_type", "scope", "expires_at"):
        assert f"{column} = EXCLUDED.{column}" in query
    assert params == (str(user_id), "second", "refresh", "Bearer", "identify", None)
    assert token.user_id == str(user_id)
    assert token.access_token == "second"


@pytest.mark.asyncio
async def test_token_delete_expired_only_removes_rows_strictly_in_the_past(monkeypatch):
    execute_mock = AsyncMock(return_value=3)
    monkeypatch.setattr("app.repositories.token_repository.execute_query", execute_mock)

    deleted = await TokenRepository().delete_expired()

    query = _normalize(execute_mock.await_args.args[0])
    assert deleted == 3
    assert query.startswith("DELETE FROM discord_tokens")
    assert "expires_at IS NOT NULL" in query
    assert "expires_at < NOW()" in query
    assert "<=" not in query


@pytest.mark.asyncio
async def test_token_update_keeps_unset_fields(monkeypatch):
    user_id = uuid.uuid4()
    fetch_one_mock = AsyncMock(return_value=_token_row(user_id, scope="guilds"))
    monkeypatch.setattr("app.repositories.token_repository.fetch_one", fetch_one_mock)

    token = await TokenRepository().update(str(user_id), DiscordTokenUpdate(scope="guilds"))

    query, params = fetch_one_mock.await_args.args
    assert "scope = COALESCE(%s, scope)" in _normalize(query)
    assert params == (None, None, None, "guilds", None, str(user_id))
    assert token.scope == "guilds"


@pytest.mark.asyncio
async def test_token_lookup_maps_missing_row_to_none(monkeypatch):
    monkeypatch.setattr(
        "app.repositories.token_repository.fetch_one", AsyncMock(return_value=None)
    )

    assert await TokenRepository().get_by_user_id(str(uuid.uuid4())) is None


def test_row_to_token_stringifies_user_id():
    user_id = uuid.uuid4()

    token = TokenRepository._row_to_token(_token_row(user_id, refresh_token="refresh"))

    assert token.user_id == str(user_id)
    assert token.refresh_token == "refresh"
    assert token.expires_at == NOW + timedelta(hours=1)


@pytest.mark.asyncio
async def test_update_identity_never_writes_bio(monkeypatch):
    user_id = uuid.uuid4()
    fetch_one_mock = AsyncMock(return_value=_user_row(user_id, display_name="Nelly G"))
    monkeypatch.setattr("app.repositories.user_repository.fetch_one", fetch_one_mock)

    user = await UserRepository().update_identity(str(user_id), "Nelly G", None)

    query, params = fetch_one_mock.await_args.args
    set_clause = _normalize(query).split("RETURNING")[0]
    assert "display_name = %s" in set_clause
    assert "avatar_url = %s" in set_clause
    assert "bio" not in set_clause
    assert params == ("Nelly G", None, str(user_id))
    assert user.bio == "kept"


def test_row_to_user_stringifies_id():
    user_id = uuid.uuid4()

    user = UserRepository._row_to_user(_user_row(user_id, avatar_url="https://cdn/a.png"))

    assert user.id == str(user_id)
    assert user.discord_id == "80351110224678912"
    assert user.avatar_url == "https://cdn/a.png"
    assert user.bio == "kept"
