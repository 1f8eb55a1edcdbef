"""
User management endpoints.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from app.dependencies import get_org_service, get_user_service
from app.models.api.common import ApiResponse
from app.models.domain.org_domain import Organization
from app.models.domain.user_domain import User, UserCreate, UserStats, UserUpdate
from app.services.org_service import OrgService
from app.services.user_service import DuplicateDiscordUser, UserNotFound, UserService

router = APIRouter(prefix="/api/users", tags=["users"])


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")


@router.post("", response_model=ApiResponse[User])
async def create_user(body: UserCreate, service: UserService = Depends(get_user_service)):
    try:
        user = await service.create(body)
    except DuplicateDiscordUser as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from None

    return ApiResponse.ok(user)


# declared before /{user_id} so "stats" is not parsed as an id
@router.get("/stats", response_model=ApiResponse[UserStats])
async def user_stats(service: UserService = Depends(get_user_service)):
    return ApiResponse.ok(await service.stats())


@router.get("/discord/{discord_id}", response_model=ApiResponse[User])
async def get_user_by_discord_id(
    discord_id: str, service: UserService = Depends(get_user_service)
):
    try:
        return ApiResponse.ok(await service.get_by_discord_id(discord_id))
    except UserNotFound:
        raise _not_found() from None


@router.get("/{user_id}", response_model=ApiResponse[User])
async def get_user(user_id: UUID, service: UserService = Depends(get_user_service)):
    try:
        return ApiResponse.ok(await service.get(str(user_id)))
    except UserNotFound:
        raise _not_found() from None


@router.put("/{user_id}", response_model=ApiResponse[User])
async def update_user(
    user_id: UUID, body: UserUpdate, service: UserService = Depends(get_user_service)
):
    try:
        return ApiResponse.ok(await service.update(str(user_id), body))
    except UserNotFound:
        raise _not_found() from None


@router.delete("/{user_id}", response_model=ApiResponse[str])
async def delete_user(user_id: UUID, service: UserService = Depends(get_user_service)):
    try:
        await service.delete(str(user_id))
    except UserNotFound:
        raise _not_found() from None

    return ApiResponse.ok("User deleted successfully")


@router.get("/{user_id}/orgs", response_model=ApiResponse[list[Organization]])
async def get_user_orgs(user_id: UUID, service: OrgService = Depends(get_org_service)):
    """Organizations the user owns or is a member of."""
    return ApiResponse.ok(await service.orgs_for_user(str(user_id)))
