"""
Persistence for organizations and their memberships.
"""

from app.db.helpers import DatabaseError, execute_query, fetch_all, fetch_one
from app.models.domain.org_domain import (
    Membership,
    MembershipCreate,
    MembershipUpdate,
    Organization,
    OrganizationCreate,
    OrganizationUpdate,
)


class OrgRepositoryError(DatabaseError):
    """More specific exception for organization persistence failures."""


class OrgRepository:
    SELECT_COLUMNS = "id, owner_id, name, avatar_url, description, created_at, updated_at"

    @classmethod
    def _row_to_org(cls, row: dict | None) -> Organization | None:
        if not row:
            return None

        return Organization(
            id=str(row["id"]),
            owner_id=str(row["owner_id"]),
            name=row["name"],
            avatar_url=row.get("avatar_url"),
            description=row.get("description"),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    async def create(self, data: OrganizationCreate) -> Organization:
        query = f"""
            INSERT INTO discord_orgs (owner_id, name, avatar_url, description)
            VALUES (%s, %s, %s, %s)
            RETURNING {self.SELECT_COLUMNS}
        """
        row = await fetch_one(
            query, (data.owner_id, data.name, data.avatar_url, data.description)
        )
        org = self._row_to_org(row)
        if org is None:
            raise OrgRepositoryError("Insert returned no row", operation="create_org")
        return org

    async def get_by_id(self, org_id: str) -> Organization | None:
        query = f"SELECT {self.SELECT_COLUMNS} FROM discord_orgs WHERE id = %s"
        return self._row_to_org(await fetch_one(query, (org_id,)))

    async def update(self, org_id: str, data: OrganizationUpdate) -> Organization | None:
        query = f"""
            UPDATE discord_orgs
            SET name = COALESCE(%s, name),
                avatar_url = COALESCE(%s, avatar_url),
                description = COALESCE(%s, description),
                updated_at = NOW()
            WHERE id = %s
            RETURNING {self.SELECT_COLUMNS}
        """
        row = await fetch_one(query, (data.name, data.avatar_url, data.description, org_id))
        return self._row_to_org(row)

    async def delete(self, org_id: str) -> bool:
        deleted = await execute_query("DELETE FROM discord_orgs WHERE id = %s", (org_id,))
        return deleted > 0

    async def list_for_user(self, user_id: str) -> list[Organization]:
        """Organizations the user owns or belongs to."""
        query = f"""
            SELECT DISTINCT o.id, o.owner_id, o.name, o.avatar_url, o.description,
                o.created_at, o.updated_at
            FROM discord_orgs o
            LEFT JOIN members m ON m.discord_org_id = o.id
            WHERE o.owner_id = %s OR m.user_id = %s
            ORDER BY o.created_at
        """
        rows = await fetch_all(query, (user_id, user_id))
        return [self._row_to_org(row) for row in rows]


class MemberRepository:
    SELECT_COLUMNS = "id, user_id, discord_org_id, status, created_at, updated_at"

    @classmethod
    def _row_to_membership(cls, row: dict | None) -> Membership | None:
        if not row:
            return None

        return Membership(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            discord_org_id=str(row["discord_org_id"]),
            status=row["status"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    async def create(self, data: MembershipCreate) -> Membership:
        query = f"""
            INSERT INTO members (user_id, discord_org_id, status)
            VALUES (%s, %s, %s)
            RETURNING {self.SELECT_COLUMNS}
        """
        row = await fetch_one(query, (data.user_id, data.discord_org_id, data.status.value))
        membership = self._row_to_membership(row)
        if membership is None:
            raise OrgRepositoryError("Insert returned no row", operation="create_member")
        return membership

    async def get_by_id(self, member_id: str) -> Membership | None:
        query = f"SELECT {self.SELECT_COLUMNS} FROM members WHERE id = %s"
        return self._row_to_membership(await fetch_one(query, (member_id,)))

    async def update_status(self, member_id: str, data: MembershipUpdate) -> Membership | None:
        query = f"""
            UPDATE members
            SET status = %s, updated_at = NOW()
            WHERE id = %s
            RETURNING {self.SELECT_COLUMNS}
        """
        row = await fetch_one(query, (data.status.value, member_id))
        return self._row_to_membership(row)

    async def delete(self, member_id: str) -> bool:
        deleted = await execute_query("DELETE FROM members WHERE id = %s", (member_id,))
        return deleted > 0

    async def list_for_org(self, org_id: str) -> list[Membership]:
        query = f"""
            SELECT {self.SELECT_COLUMNS}
            FROM members
            WHERE discord_org_id = %s
            ORDER BY created_at
        """
        rows = await fetch_all(query, (org_id,))
        return [self._row_to_membership(row) for row in rows]
