"""
Discord OAuth callback orchestration.

Runs exchange -> profile fetch -> user upsert -> token store for one callback
and reduces the result to a CallbackOutcome. Steps are not retried and
earlier steps are not rolled back when a later one fails: a user row written
before a token-store failure stays and is updated on the next login.
"""

from dataclasses import dataclass
from enum import Enum

from app.config import DiscordOAuthConfig
from app.infrastructure.observability.logging import get_logger, preview
from app.services.auth_errors import (
    AuthFlowError,
    ExchangeFailed,
    ProfileFetchFailed,
    TokenStoreFailed,
    UpsertFailed,
)
from app.services.discord_oauth_service import DiscordOAuthService
from app.services.identity_service import IdentityService
from app.services.token_service import TokenService

logger = get_logger(__name__)

REASON_OAUTH_FAILED = "oauth_failed"
REASON_MISSING_CODE = "missing_code"


class CallbackState(str, Enum):
    RECEIVED_CODE = "received_code"
    EXCHANGED = "exchanged"
    FETCHED_PROFILE = "fetched_profile"
    UPSERTED = "upserted"
    TOKEN_STORED = "token_stored"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class CallbackOutcome:
    state: CallbackState
    user_id: str | None = None
    reason: str | None = None
    # last state reached before the failure, for logs
    failed_at: CallbackState | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is CallbackState.SUCCESS

    @classmethod
    def success(cls, user_id: str) -> "CallbackOutcome":
        return cls(state=CallbackState.SUCCESS, user_id=user_id)

    @classmethod
    def failure(cls, reason: str, failed_at: CallbackState | None = None) -> "CallbackOutcome":
        return cls(state=CallbackState.FAILURE, reason=reason, failed_at=failed_at)


# Reason reported when a step fails with something other than AuthFlowError
_REASON_BY_STATE = {
    "received_code": ExchangeFailed.reason,
    "exchanged": ProfileFetchFailed.reason,
    "fetched_profile": UpsertFailed.reason,
    "upserted": TokenStoreFailed.reason,
}


class AuthCallbackService:
    def __init__(
        self,
        config: DiscordOAuthConfig,
        oauth_service: DiscordOAuthService,
        identity_service: IdentityService,
        token_service: TokenService,
    ):
        self.config = config
        self.oauth = oauth_service
        self.identity = identity_service
        self.tokens = token_service

    async def handle_callback(
        self, code: str | None, error: str | None = None
    ) -> CallbackOutcome:
        """
        Run the login flow for one callback. Never raises for step failures.

        Args:
            code: authorization code from the query string
            error: ``error`` query parameter set when the user denied access
        """
        if error:
            logger.warning("Discord returned an OAuth error", oauth_error=error)
            return CallbackOutcome.failure(REASON_OAUTH_FAILED)
        if not code:
            logger.warning("Discord callback without authorization code")
            return CallbackOutcome.failure(REASON_MISSING_CODE)

        state = CallbackState.RECEIVED_CODE
        try:
            token_pair = await self.oauth.exchange_code(code)
            state = CallbackState.EXCHANGED

            profile = await self.oauth.fetch_profile(token_pair.access_token)
            state = CallbackState.FETCHED_PROFILE

            result = await self.identity.upsert_from_profile(profile)
            state = CallbackState.UPSERTED

            await self.tokens.put(result.user_id, token_pair)
            state = CallbackState.TOKEN_STORED

        except AuthFlowError as e:
            logger.error(
                "Discord login failed",
                code_preview=preview(code),
                failed_at=state.value,
                reason=e.reason,
                error=str(e),
            )
            return CallbackOutcome.failure(e.reason, failed_at=state)
        except Exception as e:
            reason = _REASON_BY_STATE[state.value]
            logger.exception(
                "Unexpected error during Discord login",
                failed_at=state.value,
                reason=reason,
                error_type=type(e).__name__,
            )
            return CallbackOutcome.failure(reason, failed_at=state)

        logger.info(
            "Discord login complete",
            user_id=result.user_id,
            new_user=result.created,
            final_state=state.value,
        )
        return CallbackOutcome.success(result.user_id)

    def redirect_url(self, outcome: CallbackOutcome) -> str:
        """Frontend URL the browser is sent to for ``outcome``."""
        if outcome.succeeded:
            return self.config.oauth_success_redirect(outcome.user_id)
        return self.config.oauth_error_redirect(outcome.reason)
