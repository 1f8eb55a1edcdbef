"""
Discord OAuth client: authorization code exchange and current-user lookup.

Neither call is retried: authorization codes are single use.
"""

import httpx
from pydantic import ValidationError

from app.config import DiscordOAuthConfig
from app.infrastructure.observability.logging import get_logger, preview
from app.models.domain.discord_domain import DiscordProfile, DiscordTokenPair
from app.services.auth_errors import ExchangeFailed, ProfileFetchFailed

logger = get_logger(__name__)

# Provider bodies are logged truncated to this many characters
MAX_LOGGED_BODY = 500


class DiscordOAuthService:
    """
    Talks to Discord's OAuth2 token endpoint and users API.

    Configuration is handed in at construction; ``transport`` lets tests
    substitute an ``httpx.MockTransport``.
    """

    def __init__(
        self,
        config: DiscordOAuthConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.config.request_timeout, transport=self._transport)

    async def exchange_code(self, code: str) -> DiscordTokenPair:
        """
        Exchange an authorization code for a token pair.

        Raises:
            ExchangeFailed: non-2xx status, network error or timeout, or a
                body that is not JSON or lacks access_token
        """
        data = {
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.config.redirect_uri,
        }
        headers = {"Content-Type": "application/x-www-form-urlencoded"}

        logger.info("Exchanging Discord authorization code", code_preview=preview(code))

        try:
            async with self._client() as client:
                response = await client.post(self.config.token_url, data=data, headers=headers)
        except httpx.HTTPError as e:
            logger.error(
                "Network error during Discord code exchange",
                code_preview=preview(code),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise ExchangeFailed("Network error during code exchange", detail=str(e)) from e

        if not response.is_success:
            logger.error(
                "Discord code exchange rejected",
                status_code=response.status_code,
                body=response.text[:MAX_LOGGED_BODY],
            )
            raise ExchangeFailed(
                f"Token endpoint returned {response.status_code}",
                detail=response.text[:MAX_LOGGED_BODY],
            )

        try:
            token_pair = DiscordTokenPair.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error(
                "Malformed Discord token response",
                body=response.text[:MAX_LOGGED_BODY],
                error_type=type(e).__name__,
            )
            raise ExchangeFailed("Malformed token response", detail=str(e)) from e

        logger.info(
            "Discord code exchange successful",
            token_type=token_pair.token_type,
            scope=token_pair.scope,
            expires_in=token_pair.expires_in,
            has_refresh_token=token_pair.refresh_token is not None,
        )
        return token_pair

    async def fetch_profile(self, access_token: str) -> DiscordProfile:
        """
        Fetch the profile of the user the access token belongs to.

        Raises:
            ProfileFetchFailed: non-2xx status, network error or timeout,
                or a body without an id
        """
        headers = {"Authorization": f"Bearer {access_token}"}

        try:
            async with self._client() as client:
                response = await client.get(self.config.user_api_url, headers=headers)
        except httpx.HTTPError as e:
            logger.error(
                "Network error fetching Discord profile",
                token_preview=preview(access_token),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise ProfileFetchFailed("Network error fetching profile", detail=str(e)) from e

        if not response.is_success:
            logger.error(
                "Discord profile request rejected",
                status_code=response.status_code,
                body=response.text[:MAX_LOGGED_BODY],
            )
            raise ProfileFetchFailed(
                f"Users API returned {response.status_code}",
                detail=response.text[:MAX_LOGGED_BODY],
            )

        try:
            profile = DiscordProfile.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error(
                "Malformed Discord profile response",
                body=response.text[:MAX_LOGGED_BODY],
                error_type=type(e).__name__,
            )
            raise ProfileFetchFailed("Malformed profile response", detail=str(e)) from e

        logger.info("Fetched Discord profile", discord_id=profile.id, username=profile.username)
        return profile
