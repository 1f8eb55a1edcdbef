"""
Persistence for local users.

The unique constraint on discord_id is what keeps one Discord identity mapped
to one local id; inserts let DuplicateKeyError propagate so callers can react.
"""

from app.db.helpers import DatabaseError, execute_query, fetch_one, with_db_retry
from app.infrastructure.observability.logging import get_logger
from app.models.domain.user_domain import User, UserCreate, UserStats, UserUpdate

logger = get_logger(__name__)


class UserRepositoryError(DatabaseError):
    """More specific exception for user persistence failures."""


class UserRepository:
    """SQL access for the users table."""

    SELECT_COLUMNS = """
        id, discord_id, display_name, avatar_url, bio, created_at, updated_at
    """

    @classmethod
    def _row_to_user(cls, row: dict | None) -> User | None:
        if not row:
            return None

        return User(
            id=str(row["id"]),
            discord_id=row["discord_id"],
            display_name=row["display_name"],
            avatar_url=row.get("avatar_url"),
            bio=row.get("bio"),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    @with_db_retry(max_retries=2)
    async def get_by_id(self, user_id: str) -> User | None:
        query = f"SELECT {self.SELECT_COLUMNS} FROM users WHERE id = %s"
        return self._row_to_user(await fetch_one(query, (user_id,)))

    async def get_by_discord_id(self, discord_id: str) -> User | None:
        query = f"SELECT {self.SELECT_COLUMNS} FROM users WHERE discord_id = %s"
        return self._row_to_user(await fetch_one(query, (discord_id,)))

    async def create(self, data: UserCreate) -> User:
        """
        Insert a new user with a database-generated id.

        Raises:
            DuplicateKeyError: discord_id is already linked to a user
        """
        query = f"""
            INSERT INTO users (discord_id, display_name, avatar_url, bio)
            VALUES (%s, %s, %s, %s)
            RETURNING {self.SELECT_COLUMNS}
        """
        row = await fetch_one(
            query, (data.discord_id, data.display_name, data.avatar_url, data.bio)
        )
        user = self._row_to_user(row)
        if user is None:
            raise UserRepositoryError("Insert returned no row", operation="create_user")

        logger.info("User created", user_id=user.id, discord_id=user.discord_id)
        return user

    async def update_identity(
        self, user_id: str, display_name: str, avatar_url: str | None
    ) -> User | None:
        """Overwrite the Discord-sourced fields; bio is left as is."""
        query = f"""
            UPDATE users
            SET display_name = %s, avatar_url = %s, updated_at = NOW()
            WHERE id = %s
            RETURNING {self.SELECT_COLUMNS}
        """
        return self._row_to_user(await fetch_one(query, (display_name, avatar_url, user_id)))

    async def update(self, user_id: str, data: UserUpdate) -> User | None:
        query = f"""
            UPDATE users
            SET display_name = COALESCE(%s, display_name),
                avatar_url = COALESCE(%s, avatar_url),
                bio = COALESCE(%s, bio),
                updated_at = NOW()
            WHERE id = %s
            RETURNING {self.SELECT_COLUMNS}
        """
        row = await fetch_one(query, (data.display_name, data.avatar_url, data.bio, user_id))
        return self._row_to_user(row)

    async def delete(self, user_id: str) -> bool:
        deleted = await execute_query("DELETE FROM users WHERE id = %s", (user_id,))
        return deleted > 0

    @with_db_retry(max_retries=2)
    async def stats(self) -> UserStats:
        row = await fetch_one(
            """
            SELECT
                COUNT(*) AS total_users,
                COUNT(*) FILTER (WHERE bio IS NOT NULL AND bio <> '') AS users_with_bio,
                COUNT(*) FILTER (WHERE avatar_url IS NOT NULL) AS users_with_avatar
            FROM users
            """
        )
        row = row or {}
        return UserStats(
            total_users=row.get("total_users", 0),
            users_with_bio=row.get("users_with_bio", 0),
            users_with_avatar=row.get("users_with_avatar", 0),
        )
