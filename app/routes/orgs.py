"""
Organization and membership endpoints.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from app.dependencies import get_org_service
from app.models.api.common import ApiResponse
from app.models.domain.org_domain import (
    Membership,
    MembershipCreate,
    MembershipUpdate,
    Organization,
    OrganizationCreate,
    OrganizationUpdate,
)
from app.services.org_service import (
    DuplicateMembership,
    InvalidReference,
    MembershipNotFound,
    OrgNotFound,
    OrgService,
)

router = APIRouter(prefix="/api/orgs", tags=["orgs"])
members_router = APIRouter(prefix="/api/members", tags=["members"])


@router.post("", response_model=ApiResponse[Organization])
async def create_org(body: OrganizationCreate, service: OrgService = Depends(get_org_service)):
    try:
        return ApiResponse.ok(await service.create_org(body))
    except InvalidReference as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from None


@router.get("/{org_id}", response_model=ApiResponse[Organization])
async def get_org(org_id: UUID, service: OrgService = Depends(get_org_service)):
    try:
        return ApiResponse.ok(await service.get_org(str(org_id)))
    except OrgNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from None


@router.put("/{org_id}", response_model=ApiResponse[Organization])
async def update_org(
    org_id: UUID, body: OrganizationUpdate, service: OrgService = Depends(get_org_service)
):
    try:
        return ApiResponse.ok(await service.update_org(str(org_id), body))
    except OrgNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from None


@router.delete("/{org_id}", response_model=ApiResponse[str])
async def delete_org(org_id: UUID, service: OrgService = Depends(get_org_service)):
    try:
        await service.delete_org(str(org_id))
    except OrgNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from None

    return ApiResponse.ok("Organization deleted successfully")


@router.get("/{org_id}/members", response_model=ApiResponse[list[Membership]])
async def get_org_members(org_id: UUID, service: OrgService = Depends(get_org_service)):
    try:
        return ApiResponse.ok(await service.members_of(str(org_id)))
    except OrgNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from None


@members_router.post("", response_model=ApiResponse[Membership])
async def add_member(body: MembershipCreate, service: OrgService = Depends(get_org_service)):
    try:
        return ApiResponse.ok(await service.add_member(body))
    except InvalidReference as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from None
    except DuplicateMembership as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from None


@members_router.get("/{member_id}", response_model=ApiResponse[Membership])
async def get_member(member_id: UUID, service: OrgService = Depends(get_org_service)):
    try:
        return ApiResponse.ok(await service.get_member(str(member_id)))
    except MembershipNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from None


@members_router.put("/{member_id}", response_model=ApiResponse[Membership])
async def update_member(
    member_id: UUID, body: MembershipUpdate, service: OrgService = Depends(get_org_service)
):
    try:
        return ApiResponse.ok(await service.update_member(str(member_id), body))
    except MembershipNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from None


@members_router.delete("/{member_id}", response_model=ApiResponse[str])
async def remove_member(member_id: UUID, service: OrgService = Depends(get_org_service)):
    try:
        await service.remove_member(str(member_id))
    except MembershipNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from None

    return ApiResponse.ok("Member removed successfully")
