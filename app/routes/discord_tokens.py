"""
Discord token storage endpoints.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from app.dependencies import get_token_service
from app.models.api.common import ApiResponse
from app.models.api.token_request import StoreTokenRequest, UpdateTokenRequest
from app.models.api.token_response import CleanupResponse, TokenResponse
from app.models.domain.discord_domain import TokenVerification
from app.services.auth_errors import TokenStoreFailed
from app.services.token_service import TokenNotFound, TokenService, UnknownTokenUser

router = APIRouter(prefix="/api/discord-tokens", tags=["discord-tokens"])


def _token_not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Token not found")


@router.post("", response_model=ApiResponse[TokenResponse])
async def store_token(
    body: StoreTokenRequest,
    service: TokenService = Depends(get_token_service),
):
    """Store or replace a user's Discord token."""
    try:
        token = await service.put(str(body.user_id), body.to_token_pair())
    except UnknownTokenUser:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="User not found"
        ) from None
    except TokenStoreFailed:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to store token"
        ) from None

    return ApiResponse.ok(TokenResponse.from_token(token))


@router.get("/verify/{user_id}", response_model=ApiResponse[TokenVerification])
async def verify_token(user_id: UUID, service: TokenService = Depends(get_token_service)):
    """Whether a non-expired token is stored. Does not call Discord."""
    return ApiResponse.ok(await service.verify(str(user_id)))


@router.post("/cleanup", response_model=ApiResponse[CleanupResponse])
async def cleanup_tokens(service: TokenService = Depends(get_token_service)):
    deleted = await service.cleanup()
    return ApiResponse.ok(
        CleanupResponse(deleted_count=deleted, message=f"Cleaned up {deleted} expired tokens")
    )


@router.get("/user/{user_id}", response_model=ApiResponse[TokenResponse])
async def get_token(user_id: UUID, service: TokenService = Depends(get_token_service)):
    try:
        token = await service.get(str(user_id))
    except TokenNotFound:
        raise _token_not_found() from None

    return ApiResponse.ok(TokenResponse.from_token(token))


@router.put("/user/{user_id}", response_model=ApiResponse[TokenResponse])
async def update_token(
    user_id: UUID,
    body: UpdateTokenRequest,
    service: TokenService = Depends(get_token_service),
):
    try:
        token = await service.update(str(user_id), body.to_update())
    except TokenNotFound:
        raise _token_not_found() from None

    return ApiResponse.ok(TokenResponse.from_token(token))


@router.delete("/user/{user_id}", response_model=ApiResponse[str])
async def delete_token(user_id: UUID, service: TokenService = Depends(get_token_service)):
    try:
        await service.delete(str(user_id))
    except TokenNotFound:
        raise _token_not_found() from None

    return ApiResponse.ok("Token deleted successfully")
