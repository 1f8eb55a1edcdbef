"""
Maps a Discord profile onto a local user, creating the user on first login.
"""

from dataclasses import dataclass

from app.db.helpers import DatabaseError, DuplicateKeyError
from app.infrastructure.observability.logging import get_logger
from app.models.domain.discord_domain import DiscordProfile
from app.models.domain.user_domain import UserCreate
from app.repositories.user_repository import UserRepository
from app.services.auth_errors import UpsertFailed

logger = get_logger(__name__)


@dataclass(frozen=True)
class UpsertResult:
    user_id: str
    created: bool


class IdentityService:
    def __init__(self, user_repository: UserRepository, cdn_avatar_base: str):
        self.users = user_repository
        self.cdn_avatar_base = cdn_avatar_base

    async def upsert_from_profile(self, profile: DiscordProfile) -> UpsertResult:
        """
        Update the user linked to ``profile.id`` or insert a new one.

        A concurrent first login can make the insert hit the discord_id unique
        constraint; in that case the winner's row is re-read and updated, once.

        Raises:
            UpsertFailed: database unavailable, or the fallback update also failed
        """
        display_name = profile.display_name
        avatar_url = profile.avatar_url(self.cdn_avatar_base)

        try:
            existing = await self.users.get_by_discord_id(profile.id)
            if existing:
                await self._update(existing.id, display_name, avatar_url)
                logger.info("Updated user from Discord profile", user_id=existing.id)
                return UpsertResult(user_id=existing.id, created=False)

            try:
                user = await self.users.create(
                    UserCreate(
                        discord_id=profile.id,
                        display_name=display_name,
                        avatar_url=avatar_url,
                    )
                )
            except DuplicateKeyError:
                logger.warning(
                    "Concurrent insert for Discord id, updating instead",
                    discord_id=profile.id,
                )
                winner = await self.users.get_by_discord_id(profile.id)
                if winner is None:
                    raise UpsertFailed(
                        "User vanished after unique violation", detail=profile.id
                    ) from None
                await self._update(winner.id, display_name, avatar_url)
                return UpsertResult(user_id=winner.id, created=False)

        except DatabaseError as e:
            logger.error(
                "User upsert failed",
                discord_id=profile.id,
                operation=e.operation,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise UpsertFailed("User upsert failed", detail=str(e)) from e

        logger.info("Created user from Discord profile", user_id=user.id, discord_id=profile.id)
        return UpsertResult(user_id=user.id, created=True)

    async def _update(self, user_id: str, display_name: str, avatar_url: str | None) -> None:
        updated = await self.users.update_identity(user_id, display_name, avatar_url)
        if updated is None:
            raise UpsertFailed("User disappeared during update", detail=user_id)
