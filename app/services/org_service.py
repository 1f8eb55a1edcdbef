"""
Organizations and memberships.
"""

from app.db.helpers import DuplicateKeyError, ForeignKeyError
from app.infrastructure.observability.logging import get_logger
from app.models.domain.org_domain import (
    Membership,
    MembershipCreate,
    MembershipUpdate,
    Organization,
    OrganizationCreate,
    OrganizationUpdate,
)
from app.repositories.org_repository import MemberRepository, OrgRepository

logger = get_logger(__name__)


class OrgServiceError(Exception):
    """Base exception for organization operations."""


class OrgNotFound(OrgServiceError):
    pass


class MembershipNotFound(OrgServiceError):
    pass


class InvalidReference(OrgServiceError):
    """A referenced user or organization does not exist."""


class DuplicateMembership(OrgServiceError):
    pass


class OrgService:
    def __init__(self, org_repository: OrgRepository, member_repository: MemberRepository):
        self.orgs = org_repository
        self.members = member_repository

    async def create_org(self, data: OrganizationCreate) -> Organization:
        try:
            org = await self.orgs.create(data)
        except ForeignKeyError:
            raise InvalidReference("User not found") from None

        logger.info("Organization created", org_id=org.id, owner_id=org.owner_id)
        return org

    async def get_org(self, org_id: str) -> Organization:
        org = await self.orgs.get_by_id(org_id)
        if org is None:
            raise OrgNotFound("Organization not found")
        return org

    async def update_org(self, org_id: str, data: OrganizationUpdate) -> Organization:
        org = await self.orgs.update(org_id, data)
        if org is None:
            raise OrgNotFound("Organization not found")
        return org

    async def delete_org(self, org_id: str) -> None:
        if not await self.orgs.delete(org_id):
            raise OrgNotFound("Organization not found")
        logger.info("Organization deleted", org_id=org_id)

    async def orgs_for_user(self, user_id: str) -> list[Organization]:
        return await self.orgs.list_for_user(user_id)

    async def members_of(self, org_id: str) -> list[Membership]:
        await self.get_org(org_id)
        return await self.members.list_for_org(org_id)

    async def add_member(self, data: MembershipCreate) -> Membership:
        try:
            membership = await self.members.create(data)
        except ForeignKeyError:
            raise InvalidReference("User or organization not found") from None
        except DuplicateKeyError:
            raise DuplicateMembership("User is already a member of this organization") from None

        logger.info(
            "Member added",
            member_id=membership.id,
            org_id=membership.discord_org_id,
            status=membership.status.value,
        )
        return membership

    async def get_member(self, member_id: str) -> Membership:
        membership = await self.members.get_by_id(member_id)
        if membership is None:
            raise MembershipNotFound("Member not found")
        return membership

    async def update_member(self, member_id: str, data: MembershipUpdate) -> Membership:
        membership = await self.members.update_status(member_id, data)
        if membership is None:
            raise MembershipNotFound("Member not found")
        return membership

    async def remove_member(self, member_id: str) -> None:
        if not await self.members.delete(member_id):
            raise MembershipNotFound("Member not found")
