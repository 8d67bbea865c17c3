"""Comptoir: ScopeService, which companies and orders a user may act on."""
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.identity import CurrentUser
from app.models.account import Company, User, UserRole
from app.models.order import Order


class ScopeService:
    """Ownership for clients, company assignment for salespeople."""

    @staticmethod
    async def list_company_ids_for_salesperson(db: AsyncSession, salesperson_id: UUID) -> list[UUID]:
        result = await db.execute(
            select(Company.id).where(Company.salesperson_id == salesperson_id).order_by(Company.name)
        )
        return list(result.scalars().all())

    @staticmethod
    async def can_access_company(db: AsyncSession, user: CurrentUser, company_id: UUID | None) -> bool:
        """Clients reach their own company; salespeople the companies assigned to them."""
        if company_id is None:
            return False
        if user.role is UserRole.CLIENT:
            return user.company_id is not None and user.company_id == company_id
        if user.role is UserRole.SALESPERSON:
            return company_id in await ScopeService.list_company_ids_for_salesperson(db, user.id)
        return False

    @staticmethod
    async def is_in_scope(db: AsyncSession, user: CurrentUser, order: Order) -> bool:
        """Whether `user` may act on `order` at all. Status gating is left to the permission matrix."""
        if user.role is UserRole.CLIENT:
            return order.user_id == user.id
        if user.role is UserRole.SALESPERSON:
            result = await db.execute(select(User.company_id).where(User.id == order.user_id))
            return await ScopeService.can_access_company(db, user, result.scalar_one_or_none())
        if user.role is UserRole.LOGISTICS:
            return True
        return False
