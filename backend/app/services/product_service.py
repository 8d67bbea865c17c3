"""Comptoir: ProductCatalog, read-only access to stock items."""
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.stock import Product


class ProductCatalog:
    @staticmethod
    async def list_products(db: AsyncSession) -> list[Product]:
        result = await db.execute(
            select(Product).order_by(Product.name).execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_product(db: AsyncSession, product_id: UUID) -> Product | None:
        result = await db.execute(
            select(Product).where(Product.id == product_id).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()
