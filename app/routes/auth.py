"""
Discord OAuth callback routes.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse

from app.dependencies import get_auth_callback_service
from app.models.api.token_response import ExchangeResponse
from app.services.auth_callback_service import AuthCallbackService

router = APIRouter(prefix="/auth/discord", tags=["auth"])


@router.get("/callback")
async def discord_callback(
    code: str | None = Query(default=None),
    error: str | None = Query(default=None),
    service: AuthCallbackService = Depends(get_auth_callback_service),
):
    """
    Redirect target registered with Discord.

    Always answers with a redirect to the frontend: ``?auth=success&user_id=``
    on success, ``?auth=error&reason=`` otherwise.
    """
    outcome = await service.handle_callback(code, error=error)
    return RedirectResponse(url=service.redirect_url(outcome))


@router.get("/exchange", response_model=ExchangeResponse)
async def discord_exchange(
    code: str | None = Query(default=None),
    error: str | None = Query(default=None),
    service: AuthCallbackService = Depends(get_auth_callback_service),
):
    """Same flow as the callback, reported as JSON for non-browser clients."""
    outcome = await service.handle_callback(code, error=error)
    if outcome.succeeded:
        return ExchangeResponse(success=True, user_id=outcome.user_id)
    return ExchangeResponse(success=False, error=outcome.reason)
