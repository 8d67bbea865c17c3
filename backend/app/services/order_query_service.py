"""Comptoir: OrderQueryService, role-scoped order reads."""
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.identity import CurrentUser
from app.models.account import Company, User, UserRole
from app.models.order import Order, OrderStatus
from app.models.stock import Product
from app.schemas.order import AddressView, OrderLineView, OrderView
from app.services.ledger_service import shortfall_label


class OrderQueryService:
    """Clients see their company's orders, salespeople their companies', logistics everything VALIDATED."""

    @staticmethod
    def scoped_select(user: CurrentUser) -> Select | None:
        """Orders visible to `user`, or None for a role with no visibility."""
        stmt = select(Order)
        if user.role is UserRole.CLIENT:
            if user.company_id is None:
                return stmt.where(Order.user_id == user.id)
            return stmt.join(User, User.id == Order.user_id).where(User.company_id == user.company_id)
        if user.role is UserRole.SALESPERSON:
            return (
                stmt.join(User, User.id == Order.user_id)
                .join(Company, Company.id == User.company_id)
                .where(Company.salesperson_id == user.id)
            )
        if user.role is UserRole.LOGISTICS:
            return stmt.where(Order.status == OrderStatus.VALIDATED.value)
        return None

    @staticmethod
    async def list_orders(db: AsyncSession, user: CurrentUser) -> list[OrderView]:
        stmt = OrderQueryService.scoped_select(user)
        if stmt is None:
            return []
        orders = await OrderQueryService._fetch(db, stmt.order_by(Order.created_at.desc()))
        return await OrderQueryService._to_views(db, orders)

    @staticmethod
    async def get_order(db: AsyncSession, user: CurrentUser, order_id: UUID) -> OrderView | None:
        stmt = OrderQueryService.scoped_select(user)
        if stmt is None:
            return None
        orders = await OrderQueryService._fetch(db, stmt.where(Order.id == order_id))
        views = await OrderQueryService._to_views(db, orders)
        return views[0] if views else None

    @staticmethod
    async def _fetch(db: AsyncSession, stmt: Select) -> list[Order]:
        result = await db.execute(
            stmt.options(selectinload(Order.lines), selectinload(Order.address))
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().unique().all())

    @staticmethod
    async def _to_views(db: AsyncSession, orders: list[Order]) -> list[OrderView]:
        product_ids = {line.product_id for order in orders for line in order.lines}
        products: dict[UUID, Product] = {}
        if product_ids:
            result = await db.execute(select(Product).where(Product.id.in_(product_ids)))
            products = {p.id: p for p in result.scalars().all()}
        return [OrderQueryService._to_view(order, products) for order in orders]

    @staticmethod
    def _to_view(order: Order, products: dict[UUID, Product]) -> OrderView:
        quantities: dict[UUID, int] = {}
        for line in order.lines:
            quantities[line.product_id] = quantities.get(line.product_id, 0) + line.quantity

        lines = []
        for product_id, quantity in quantities.items():
            product = products.get(product_id)
            price = product.price if product else Decimal("0")
            lines.append(OrderLineView(
                product_id=product_id,
                product_name=shortfall_label(product_id, product.name if product else None),
                unit_price=price,
                quantity=quantity,
                line_total=price * quantity,
            ))
        lines.sort(key=lambda line: line.product_name)

        status = OrderStatus(order.status)
        return OrderView(
            id=order.id,
            user_id=order.user_id,
            status=status.value,
            status_code=status.legacy_code,
            delivery_date=order.delivery_date,
            created_at=order.created_at,
            updated_at=order.updated_at,
            address=AddressView.model_validate(order.address) if order.address else None,
            lines=lines,
            total_before_vat=sum((line.line_total for line in lines), Decimal("0")),
        )
