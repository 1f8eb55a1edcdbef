import uuid

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.dependencies import get_org_service, get_user_service
from app.middleware.error_handlers import register_error_handlers
from app.routes import orgs, users
from app.services.org_service import OrgService
from app.services.user_service import UserService


@pytest.fixture
def client(user_repository, org_repository, member_repository):
    app = FastAPI()
    register_error_handlers(app)
    app.include_router(users.router)
    app.include_router(orgs.router)
    app.include_router(orgs.members_router)

    user_service = UserService(user_repository)
    org_service = OrgService(org_repository, member_repository)
    app.dependency_overrides[get_user_service] = lambda: user_service
    app.dependency_overrides[get_org_service] = lambda: org_service
    return TestClient(app)


def _create_user(client, discord_id="42", **extra) -> dict:
    response = client.post(
        "/api/users", json={"discord_id": discord_id, "display_name": "bob", **extra}
    )
    assert response.status_code == 200
    return response.json()["data"]


def test_user_crud(client):
    user = _create_user(client, bio="hi")

    assert client.get(f"/api/users/{user['id']}").json()["data"]["bio"] == "hi"
    assert client.get("/api/users/discord/42").json()["data"]["id"] == user["id"]

    updated = client.put(f"/api/users/{user['id']}", json={"display_name": "Bobby"})
    assert updated.json()["data"]["display_name"] == "Bobby"
    assert updated.json()["data"]["bio"] == "hi"

    assert client.delete(f"/api/users/{user['id']}").status_code == 200
    assert client.get(f"/api/users/{user['id']}").status_code == 404


def test_duplicate_discord_id_rejected(client):
    _create_user(client)

    response = client.post("/api/users", json={"discord_id": "42", "display_name": "again"})

    assert response.status_code == 400
    assert response.json()["error"] == "User with this Discord ID already exists"


def test_stats_route_is_not_shadowed_by_user_id(client):
    _create_user(client, discord_id="1", bio="hi")
    _create_user(client, discord_id="2", avatar_url="https://cdn.test/a.png")

    response = client.get("/api/users/stats")

    assert response.status_code == 200
    assert response.json()["data"] == {
        "total_users": 2,
        "users_with_bio": 1,
        "users_with_avatar": 1,
    }


def test_org_and_membership_flow(client):
    owner = _create_user(client, discord_id="1")
    player = _create_user(client, discord_id="2")

    org = client.post("/api/orgs", json={"owner_id": owner["id"], "name": "Guild"}).json()["data"]
    member = client.post(
        "/api/members", json={"user_id": player["id"], "discord_org_id": org["id"]}
    ).json()["data"]
    assert member["status"] == "spectating"

    promoted = client.put(f"/api/members/{member['id']}", json={"status": "playing"})
    assert promoted.json()["data"]["status"] == "playing"

    members = client.get(f"/api/orgs/{org['id']}/members").json()["data"]
    assert [m["user_id"] for m in members] == [player["id"]]

    player_orgs = client.get(f"/api/users/{player['id']}/orgs").json()["data"]
    assert [o["id"] for o in player_orgs] == [org["id"]]

    duplicate = client.post(
        "/api/members", json={"user_id": player["id"], "discord_org_id": org["id"]}
    )
    assert duplicate.status_code == 409

    assert client.delete(f"/api/members/{member['id']}").status_code == 200
    assert client.get(f"/api/members/{member['id']}").status_code == 404


def test_org_with_unknown_owner(client):
    response = client.post("/api/orgs", json={"owner_id": str(uuid.uuid4()), "name": "Guild"})

    assert response.status_code == 400
    assert response.json()["error"] == "User not found"


def test_invalid_member_status_rejected(client):
    response = client.put(f"/api/members/{uuid.uuid4()}", json={"status": "royalty"})

    assert response.status_code == 422


def test_missing_org(client):
    response = client.get(f"/api/orgs/{uuid.uuid4()}")

    assert response.status_code == 404
    assert response.json() == {"success": False, "data": None, "error": "Organization not found"}
