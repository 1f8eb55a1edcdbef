"""
Failure taxonomy for the Discord login callback.

Each step of the callback raises one of these; the orchestrator turns it into
a redirect carrying the coarse ``reason`` code. Detail stays in the logs.
"""


class AuthFlowError(Exception):
    """Base class for callback step failures."""

    reason = "auth_failed"

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.detail = detail


class ExchangeFailed(AuthFlowError):
    reason = "exchange_failed"


class ProfileFetchFailed(AuthFlowError):
    reason = "profile_fetch_failed"


class UpsertFailed(AuthFlowError):
    reason = "upsert_failed"


class TokenStoreFailed(AuthFlowError):
    reason = "token_store_failed"
