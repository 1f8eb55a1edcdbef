"""
Persistence for per-user Discord tokens (one row per user).
"""

from datetime import datetime

from app.db.helpers import DatabaseError, execute_query, fetch_one, with_db_retry
from app.models.domain.discord_domain import DiscordToken, DiscordTokenUpdate


class TokenRepositoryError(DatabaseError):
    """More specific exception for token persistence failures."""


class TokenRepository:
    """SQL access for the discord_tokens table."""

    SELECT_COLUMNS = """
        user_id, access_token, refresh_token, token_type, scope,
        expires_at, created_at, updated_at
    """

    @classmethod
    def _row_to_token(cls, row: dict | None) -> DiscordToken | None:
        if not row:
            return None

        return DiscordToken(
            user_id=str(row["user_id"]),
            access_token=row["access_token"],
            refresh_token=row.get("refresh_token"),
            token_type=row["token_type"],
            scope=row.get("scope"),
            expires_at=row.get("expires_at"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    async def upsert(
        self,
        user_id: str,
        access_token: str,
        refresh_token: str | None,
        token_type: str,
        scope: str | None,
        expires_at: datetime | None,
    ) -> DiscordToken:
        """Insert or replace the user's token; concurrent writers resolve last-wins."""
        query = f"""
            INSERT INTO discord_tokens (
                user_id, access_token, refresh_token, token_type, scope, expires_at
            )
            VALUES (%s, %s, %s, %s, %s, %s)
            ON CONFLICT (user_id) DO UPDATE SET
                access_token = EXCLUDED.access_token,
                refresh_token = EXCLUDED.refresh_token,
                token_type = EXCLUDED.token_type,
                scope = EXCLUDED.scope,
                expires_at = EXCLUDED.expires_at,
                updated_at = NOW()
            RETURNING {self.SELECT_COLUMNS}
        """
        row = await fetch_one(
            query, (user_id, access_token, refresh_token, token_type, scope, expires_at)
        )
        token = self._row_to_token(row)
        if token is None:
            raise TokenRepositoryError("Upsert returned no row", operation="upsert_token")
        return token

    @with_db_retry(max_retries=2)
    async def get_by_user_id(self, user_id: str) -> DiscordToken | None:
        query = f"SELECT {self.SELECT_COLUMNS} FROM discord_tokens WHERE user_id = %s"
        return self._row_to_token(await fetch_one(query, (user_id,)))

    async def update(self, user_id: str, data: DiscordTokenUpdate) -> DiscordToken | None:
        query = f"""
            UPDATE discord_tokens
            SET access_token = COALESCE(%s, access_token),
                refresh_token = COALESCE(%s, refresh_token),
                token_type = COALESCE(%s, token_type),
                scope = COALESCE(%s, scope),
                expires_at = COALESCE(%s, expires_at),
                updated_at = NOW()
            WHERE user_id = %s
            RETURNING {self.SELECT_COLUMNS}
        """
        row = await fetch_one(
            query,
            (
                data.access_token,
                data.refresh_token,
                data.token_type,
                data.scope,
                data.expires_at,
                user_id,
            ),
        )
        return self._row_to_token(row)

    async def delete(self, user_id: str) -> bool:
        deleted = await execute_query("DELETE FROM discord_tokens WHERE user_id = %s", (user_id,))
        return deleted > 0

    async def delete_expired(self) -> int:
        return await execute_query(
            "DELETE FROM discord_tokens WHERE expires_at IS NOT NULL AND expires_at < NOW()"
        )
