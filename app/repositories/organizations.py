from __future__ import annotations

from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Membership, Organization
from app.schemas.organizations import MembershipOut, OrganizationOut


class OrganizationRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create_organization(self, *, name: str) -> OrganizationOut:
        stmt = (
            insert(Organization)
            .values(name=name)
            .returning(Organization.id, Organization.name, Organization.created_at)
        )
        result = await self.db.execute(stmt)
        return OrganizationOut.model_validate(dict(result.one()._mapping))

    async def create_membership(
        self, *, organization_id: int, user_id: int, role: str, is_default: bool = False
    ) -> MembershipOut:
        stmt = (
            insert(Membership)
            .values(organization_id=organization_id, user_id=user_id, role=role, is_default=is_default)
            .returning(
                Membership.organization_id,
                Membership.user_id,
                Membership.role,
                Membership.is_default,
            )
        )
        result = await self.db.execute(stmt)
        return MembershipOut.model_validate(dict(result.one()._mapping))
