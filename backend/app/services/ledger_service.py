"""Comptoir: StockLedger, guarded stock decrement for order shipment."""
import logging
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.order import OrderLine
from app.models.stock import Product, StockEventType, StockMovement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerOutcome:
    """ok=False with shortfalls: not enough stock. ok=False without: a concurrent write won."""

    ok: bool
    shortfalls: list[str] = field(default_factory=list)

    @property
    def conflict(self) -> bool:
        return not self.ok and not self.shortfalls


@dataclass(frozen=True)
class StockLevel:
    name: str | None
    quantity: int


def shortfall_label(product_id: UUID, name: str | None) -> str:
    return name or f"product-{product_id}"


class StockLedger:
    """Two-phase shipment decrement: pre-flight read, then per-row conditional writes."""

    @staticmethod
    async def required_quantities(db: AsyncSession, order_id: UUID) -> dict[UUID, int]:
        """Sum the order's lines per product."""
        result = await db.execute(
            select(OrderLine.product_id, func.sum(OrderLine.quantity))
            .where(OrderLine.order_id == order_id)
            .group_by(OrderLine.product_id)
        )
        return {product_id: int(total) for product_id, total in result.all()}

    @staticmethod
    async def fetch_on_hand(db: AsyncSession, product_ids: list[UUID]) -> dict[UUID, StockLevel]:
        """Current quantity of every product, in one read."""
        if not product_ids:
            return {}
        result = await db.execute(
            select(Product.id, Product.name, Product.quantity).where(Product.id.in_(product_ids))
        )
        return {pid: StockLevel(name=name, quantity=qty) for pid, name, qty in result.all()}

    @staticmethod
    def find_shortfalls(required: dict[UUID, int], on_hand: dict[UUID, StockLevel]) -> list[str]:
        shortfalls = []
        for product_id, needed in required.items():
            level = on_hand.get(product_id)
            available = level.quantity if level else 0
            if needed > available:
                shortfalls.append(shortfall_label(product_id, level.name if level else None))
        return sorted(shortfalls)

    @staticmethod
    async def apply_shipment_decrement(
        db: AsyncSession,
        order_id: UUID,
        actor_id: UUID | None = None,
    ) -> LedgerOutcome:
        """Take the order's units off the shelf, all or nothing.

        On success the decrements and SHIP_OUT movements are flushed into the
        caller's transaction, which the caller commits. On failure the
        transaction is rolled back.
        """
        required = await StockLedger.required_quantities(db, order_id)
        on_hand = await StockLedger.fetch_on_hand(db, list(required))

        shortfalls = StockLedger.find_shortfalls(required, on_hand)
        if shortfalls:
            await db.rollback()
            logger.warning("Shipment of order %s short on: %s", order_id, ", ".join(shortfalls))
            return LedgerOutcome(ok=False, shortfalls=shortfalls)

        # Fixed order so overlapping shipments take row locks in the same sequence.
        for product_id in sorted(required, key=str):
            needed = required[product_id]
            result = await db.execute(
                update(Product)
                .where(Product.id == product_id, Product.quantity >= needed)
                .values(quantity=Product.quantity - needed)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                await db.rollback()
                logger.warning(
                    "Stock of product %s changed while shipping order %s; rolled back", product_id, order_id
                )
                return LedgerOutcome(ok=False)

            db.add(StockMovement(
                product_id=product_id,
                order_id=order_id,
                event_type=StockEventType.SHIP_OUT.value,
                quantity_delta=-needed,
                actor_id=actor_id,
                notes=f"Shipped order {order_id}",
            ))

        await db.flush()
        return LedgerOutcome(ok=True)
