"""
Service wiring and FastAPI dependency getters.

Services are built once in the app lifespan and kept on ``app.state``;
routes reach them through the getters below, which tests replace with
``app.dependency_overrides``.
"""

from dataclasses import dataclass

import httpx
from fastapi import Request

from app.config import DiscordOAuthConfig
from app.repositories.org_repository import MemberRepository, OrgRepository
from app.repositories.token_repository import TokenRepository
from app.repositories.user_repository import UserRepository
from app.services.auth_callback_service import AuthCallbackService
from app.services.discord_oauth_service import DiscordOAuthService
from app.services.identity_service import IdentityService
from app.services.org_service import OrgService
from app.services.token_service import TokenService
from app.services.user_service import UserService


@dataclass
class Services:
    auth_callback: AuthCallbackService
    tokens: TokenService
    users: UserService
    orgs: OrgService


def build_services(
    config: DiscordOAuthConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Services:
    user_repository = UserRepository()
    token_service = TokenService(TokenRepository())

    auth_callback = AuthCallbackService(
        config=config,
        oauth_service=DiscordOAuthService(config, transport=transport),
        identity_service=IdentityService(user_repository, config.cdn_avatar_base),
        token_service=token_service,
    )

    return Services(
        auth_callback=auth_callback,
        tokens=token_service,
        users=UserService(user_repository),
        orgs=OrgService(OrgRepository(), MemberRepository()),
    )


def get_auth_callback_service(request: Request) -> AuthCallbackService:
    return request.app.state.services.auth_callback


def get_token_service(request: Request) -> TokenService:
    return request.app.state.services.tokens


def get_user_service(request: Request) -> UserService:
    return request.app.state.services.users


def get_org_service(request: Request) -> OrgService:
    return request.app.state.services.orgs
