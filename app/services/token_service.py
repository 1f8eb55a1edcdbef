"""
Discord token storage: one token row per user, replaced on every login.

Tokens are kept for later use against Discord's API; there is no proactive
refresh. ``verify`` answers from the stored expiry alone and ``cleanup``
sweeps rows whose expiry has passed.
"""

from app.db.helpers import DatabaseError, ForeignKeyError
from app.infrastructure.observability.logging import get_logger, preview
from app.models.domain.discord_domain import (
    DiscordToken,
    DiscordTokenPair,
    DiscordTokenUpdate,
    TokenVerification,
)
from app.repositories.token_repository import TokenRepository
from app.services.auth_errors import TokenStoreFailed

logger = get_logger(__name__)


class TokenServiceError(Exception):
    """Custom exception for token service operations."""

    def __init__(self, message: str, user_id: str | None = None, recoverable: bool = True):
        super().__init__(message)
        self.user_id = user_id
        self.recoverable = recoverable


class TokenNotFound(TokenServiceError):
    def __init__(self, user_id: str):
        super().__init__(f"No Discord token stored for user {user_id}", user_id, recoverable=False)


class UnknownTokenUser(TokenStoreFailed):
    """The referenced user does not exist."""


class TokenService:
    def __init__(self, token_repository: TokenRepository):
        self.tokens = token_repository

    async def put(self, user_id: str, token_pair: DiscordTokenPair) -> DiscordToken:
        """
        Store the token pair for ``user_id``, replacing any existing row.

        ``expires_in`` is converted to an absolute expiry; without it the
        token is stored as non-expiring.

        Raises:
            UnknownTokenUser: user_id does not reference an existing user
            TokenStoreFailed: lifetime out of range or any other database failure
        """
        try:
            expires_at = token_pair.expires_at()
        except OverflowError as e:
            logger.warning(
                "Token lifetime out of range", user_id=user_id, expires_in=token_pair.expires_in
            )
            raise TokenStoreFailed("Token lifetime out of range", detail=str(e)) from e

        try:
            token = await self.tokens.upsert(
                user_id=user_id,
                access_token=token_pair.access_token,
                refresh_token=token_pair.refresh_token,
                token_type=token_pair.token_type,
                scope=token_pair.scope,
                expires_at=expires_at,
            )
        except ForeignKeyError as e:
            logger.warning("Token store rejected for unknown user", user_id=user_id)
            raise UnknownTokenUser("User not found", detail=str(e)) from e
        except DatabaseError as e:
            logger.error(
                "Failed to store Discord token",
                user_id=user_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise TokenStoreFailed("Token store failed", detail=str(e)) from e

        logger.info(
            "Discord token stored",
            user_id=user_id,
            access_token_preview=preview(token_pair.access_token),
            expires_at=expires_at.isoformat() if expires_at else None,
        )
        return token

    async def get(self, user_id: str) -> DiscordToken:
        token = await self.tokens.get_by_user_id(user_id)
        if token is None:
            raise TokenNotFound(user_id)
        return token

    async def verify(self, user_id: str) -> TokenVerification:
        """Report whether a usable token is stored. Never contacts Discord."""
        token = await self.tokens.get_by_user_id(user_id)
        if token is None:
            return TokenVerification(user_id=user_id, has_token=False, is_valid=False)

        expired = token.is_expired()
        return TokenVerification(
            user_id=user_id,
            has_token=True,
            is_valid=not expired,
            is_expired=expired,
            expires_at=token.expires_at,
        )

    async def update(self, user_id: str, patch: DiscordTokenUpdate) -> DiscordToken:
        token = await self.tokens.update(user_id, patch)
        if token is None:
            raise TokenNotFound(user_id)

        logger.info("Discord token updated", user_id=user_id)
        return token

    async def delete(self, user_id: str) -> None:
        if not await self.tokens.delete(user_id):
            raise TokenNotFound(user_id)

        logger.info("Discord token deleted", user_id=user_id)

    async def cleanup(self) -> int:
        """Delete tokens whose expiry is strictly in the past; returns the count."""
        deleted = await self.tokens.delete_expired()
        logger.info("Expired Discord tokens cleaned up", deleted_count=deleted)
        return deleted
