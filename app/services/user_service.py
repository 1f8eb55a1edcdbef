"""
User management on top of UserRepository, used by the /api/users routes.
"""

from app.db.helpers import DuplicateKeyError
from app.infrastructure.observability.logging import get_logger
from app.models.domain.user_domain import User, UserCreate, UserStats, UserUpdate
from app.repositories.user_repository import UserRepository

logger = get_logger(__name__)


class UserServiceError(Exception):
    """Base exception for user service operations."""


class UserNotFound(UserServiceError):
    pass


class DuplicateDiscordUser(UserServiceError):
    pass


class UserService:
    def __init__(self, user_repository: UserRepository):
        self.users = user_repository

    async def create(self, data: UserCreate) -> User:
        try:
            return await self.users.create(data)
        except DuplicateKeyError:
            raise DuplicateDiscordUser("User with this Discord ID already exists") from None

    async def get(self, user_id: str) -> User:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise UserNotFound("User not found")
        return user

    async def get_by_discord_id(self, discord_id: str) -> User:
        user = await self.users.get_by_discord_id(discord_id)
        if user is None:
            raise UserNotFound("User not found")
        return user

    async def update(self, user_id: str, data: UserUpdate) -> User:
        user = await self.users.update(user_id, data)
        if user is None:
            raise UserNotFound("User not found")

        logger.info(
            "User updated", user_id=user_id, fields=sorted(data.model_dump(exclude_none=True))
        )
        return user

    async def delete(self, user_id: str) -> None:
        if not await self.users.delete(user_id):
            raise UserNotFound("User not found")
        logger.info("User deleted", user_id=user_id)

    async def stats(self) -> UserStats:
        return await self.users.stats()
