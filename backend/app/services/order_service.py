"""Comptoir: OrderService, the order lifecycle state machine.

PENDING -> VALIDATED -> SHIPPED. Every public operation is one transaction and
returns a Result; no store exception leaves this module.
"""
import logging
from collections.abc import Awaitable, Mapping
from datetime import date, datetime, time
from typing import TypeVar
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import (
    ConcurrencyConflict,
    InsufficientStock,
    NotFound,
    OrderError,
    PermissionDenied,
    Result,
    StoreUnavailable,
    ValidationFailed,
)
from app.core.identity import CurrentUser
from app.core.permissions import OrderAction, can_perform
from app.db.base import utcnow
from app.models.account import UserRole
from app.models.order import MAX_QUANTITY, Order, OrderLine, OrderStatus
from app.models.stock import Product
from app.services.address_service import AddressResolver
from app.services.audit_service import (
    ACTION_ORDER_CREATED,
    ACTION_ORDER_DELETED,
    ACTION_ORDER_SHIPPED,
    ACTION_ORDER_UPDATED,
    ACTION_ORDER_VALIDATED,
    log_audit,
)
from app.services.ledger_service import StockLedger
from app.services.scope_service import ScopeService

logger = logging.getLogger(__name__)

T = TypeVar("T")


def parse_delivery_date(value: date | str | None) -> date:
    """A calendar day. Datetimes are accepted only at midnight."""
    if isinstance(value, datetime):
        if value.time() != time.min:
            raise ValidationFailed(f"Delivery date must be a day, not a time: {value.isoformat()}")
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            raise ValidationFailed(f"Invalid delivery date: {value!r}")
    raise ValidationFailed("A delivery date is required")


def _parse_quantity(raw) -> int:
    if isinstance(raw, bool):
        raise ValueError("boolean quantity")
    if isinstance(raw, float) and not raw.is_integer():
        raise ValueError("fractional quantity")
    if isinstance(raw, str):
        raw = raw.strip() or 0
    quantity = int(raw)
    if quantity > MAX_QUANTITY:
        raise ValueError("quantity out of range")
    return quantity


def merge_lines(lines_data: list[Mapping] | None) -> dict[UUID, int]:
    """Positive quantities per product; duplicates are summed, zero and negative entries dropped."""
    merged: dict[UUID, int] = {}
    for line in lines_data or []:
        try:
            product_id = line["product_id"]
            if not isinstance(product_id, UUID):
                product_id = UUID(str(product_id))
            quantity = _parse_quantity(line.get("quantity", 0))
        except (KeyError, TypeError, ValueError, OverflowError, AttributeError):
            raise ValidationFailed(
                f"Each line needs a product_id and a whole-number quantity up to {MAX_QUANTITY}"
            )
        if quantity <= 0:
            continue
        merged[product_id] = merged.get(product_id, 0) + quantity
        if merged[product_id] > MAX_QUANTITY:
            raise ValidationFailed(f"Quantity of product {product_id} exceeds {MAX_QUANTITY}")

    if not merged:
        raise ValidationFailed("Select at least one product")
    return merged


class OrderService:
    """Create, modify, delete, validate and send orders."""

    # ── Public operations ─────────────────────────────────────────────────────

    @staticmethod
    async def create_order(
        db: AsyncSession,
        user: CurrentUser,
        delivery_date: date | str | None,
        lines: list[Mapping] | None,
        address: Mapping | None = None,
    ) -> Result[UUID]:
        """Place a PENDING order owned by `user`. Returns the new order id."""
        return await OrderService._guarded(
            db, "create", OrderService._create(db, user, delivery_date, lines, address)
        )

    @staticmethod
    async def modify_order(
        db: AsyncSession,
        user: CurrentUser,
        order_id: UUID,
        delivery_date: date | str | None,
        lines: list[Mapping] | None = None,
        address: Mapping | None = None,
    ) -> Result[None]:
        """Replace delivery date, address and (when given) the line set. Status is kept."""
        return await OrderService._guarded(
            db, "modify", OrderService._modify(db, user, order_id, delivery_date, lines, address)
        )

    @staticmethod
    async def delete_order(db: AsyncSession, user: CurrentUser, order_id: UUID) -> Result[None]:
        return await OrderService._guarded(db, "delete", OrderService._delete(db, user, order_id))

    @staticmethod
    async def validate_order(db: AsyncSession, user: CurrentUser, order_id: UUID) -> Result[None]:
        """Salesperson moves an in-scope PENDING order to VALIDATED."""
        return await OrderService._guarded(db, "validate", OrderService._validate(db, user, order_id))

    @staticmethod
    async def send_order(db: AsyncSession, user: CurrentUser, order_id: UUID) -> Result[None]:
        """Logistics ships a VALIDATED order: stock first, then SHIPPED."""
        return await OrderService._guarded(db, "send", OrderService._send(db, user, order_id))

    # ── Transaction boundary ──────────────────────────────────────────────────

    @staticmethod
    async def _guarded(db: AsyncSession, operation: str, work: Awaitable[T]) -> Result[T]:
        try:
            value = await work
            await db.commit()
        except OrderError as exc:
            await OrderService._rollback(db)
            logger.warning("Order %s rejected (%s): %s", operation, exc.kind.value, exc.message)
            return Result.failure(exc)
        except SQLAlchemyError as exc:
            await OrderService._rollback(db)
            logger.error("Order %s failed in the store: %s", operation, exc, exc_info=True)
            return Result.failure(StoreUnavailable())
        return Result.success(value)

    @staticmethod
    async def _rollback(db: AsyncSession) -> None:
        try:
            await db.rollback()
        except SQLAlchemyError as exc:
            logger.error("Rollback failed: %s", exc, exc_info=True)

    # ── Helpers ───────────────────────────────────────────────────────────────

    @staticmethod
    async def _load_order(db: AsyncSession, order_id: UUID) -> Order:
        result = await db.execute(
            select(Order).where(Order.id == order_id).execution_options(populate_existing=True)
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFound(f"Order {order_id} not found")
        return order

    @staticmethod
    async def _authorize(db: AsyncSession, user: CurrentUser, order: Order, action: OrderAction) -> None:
        if user.role is None or not await ScopeService.is_in_scope(db, user, order):
            raise PermissionDenied(f"You cannot {action.value} this order")
        if not can_perform(user.role, order.status, action):
            raise PermissionDenied(f"Cannot {action.value} an order that is {order.status}")

    @staticmethod
    async def _ensure_products_exist(db: AsyncSession, product_ids: list[UUID]) -> None:
        result = await db.execute(select(Product.id).where(Product.id.in_(product_ids)))
        missing = set(product_ids) - set(result.scalars().all())
        if missing:
            raise NotFound(f"Unknown product(s): {', '.join(sorted(str(pid) for pid in missing))}")

    @staticmethod
    async def _resolve_address(db: AsyncSession, address: Mapping | None) -> UUID | None:
        """None when no address was supplied; ValidationFailed when it is incomplete."""
        if AddressResolver.is_blank(address):
            return None
        address_id = await AddressResolver.find_or_create(db, address)
        if address_id is None:
            raise ValidationFailed("Street, city and postal code are required for a delivery address")
        return address_id

    @staticmethod
    def _add_lines(db: AsyncSession, order_id: UUID, quantities: dict[UUID, int]) -> None:
        for product_id, quantity in quantities.items():
            db.add(OrderLine(order_id=order_id, product_id=product_id, quantity=quantity))

    @staticmethod
    async def _transition(db: AsyncSession, order: Order, expected: OrderStatus, target: OrderStatus) -> None:
        """Status write guarded on the prior status."""
        result = await db.execute(
            update(Order)
            .where(Order.id == order.id, Order.status == expected.value)
            .values(status=target.value, updated_at=utcnow())
            .execution_options(synchronize_session="evaluate")
        )
        if result.rowcount == 0:
            raise ConcurrencyConflict(f"Order {order.id} is no longer {expected.value}")

    # ── Transitions ───────────────────────────────────────────────────────────

    @staticmethod
    async def _create(
        db: AsyncSession,
        user: CurrentUser,
        delivery_date: date | str | None,
        lines: list[Mapping] | None,
        address: Mapping | None,
    ) -> UUID:
        if user.role is not UserRole.CLIENT:
            raise PermissionDenied("Only clients can place orders")

        when = parse_delivery_date(delivery_date)
        quantities = merge_lines(lines)
        await OrderService._ensure_products_exist(db, list(quantities))
        address_id = await OrderService._resolve_address(db, address)

        order = Order(
            user_id=user.id,
            status=OrderStatus.PENDING.value,
            delivery_date=when,
            address_id=address_id,
        )
        db.add(order)
        await db.flush()

        OrderService._add_lines(db, order.id, quantities)
        await db.flush()

        await log_audit(
            db, user.id, ACTION_ORDER_CREATED, "order", order.id,
            {"lines": {str(pid): qty for pid, qty in quantities.items()}},
        )
        logger.info("Order %s created by %s (%d units)", order.id, user.id, sum(quantities.values()))
        return order.id

    @staticmethod
    async def _modify(
        db: AsyncSession,
        user: CurrentUser,
        order_id: UUID,
        delivery_date: date | str | None,
        lines: list[Mapping] | None,
        address: Mapping | None,
    ) -> None:
        order = await OrderService._load_order(db, order_id)
        await OrderService._authorize(db, user, order, OrderAction.MODIFY)

        when = parse_delivery_date(delivery_date)
        quantities = merge_lines(lines) if lines is not None else None
        if quantities is not None:
            await OrderService._ensure_products_exist(db, list(quantities))
        address_id = await OrderService._resolve_address(db, address)
        if address_id is None:
            address_id = order.address_id

        result = await db.execute(
            update(Order)
            .where(Order.id == order.id, Order.status == order.status)
            .values(delivery_date=when, address_id=address_id, updated_at=utcnow())
            .execution_options(synchronize_session="evaluate")
        )
        if result.rowcount == 0:
            raise ConcurrencyConflict(f"Order {order.id} changed while being modified")

        if quantities is not None:
            await db.execute(
                delete(OrderLine)
                .where(OrderLine.order_id == order.id)
                .execution_options(synchronize_session=False)
            )
            OrderService._add_lines(db, order.id, quantities)
            await db.flush()

        payload = {"delivery_date": when.isoformat()}
        if quantities is not None:
            payload["lines"] = {str(pid): qty for pid, qty in quantities.items()}
        await log_audit(db, user.id, ACTION_ORDER_UPDATED, "order", order.id, payload)
        logger.info("Order %s modified by %s", order.id, user.id)

    @staticmethod
    async def _delete(db: AsyncSession, user: CurrentUser, order_id: UUID) -> None:
        order = await OrderService._load_order(db, order_id)
        await OrderService._authorize(db, user, order, OrderAction.DELETE)
        status = order.status

        await db.execute(
            delete(OrderLine)
            .where(OrderLine.order_id == order.id)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(
            delete(Order)
            .where(Order.id == order.id, Order.status == status)
            .execution_options(synchronize_session="evaluate")
        )
        if result.rowcount == 0:
            raise ConcurrencyConflict(f"Order {order_id} changed while being deleted")

        await log_audit(db, user.id, ACTION_ORDER_DELETED, "order", order_id, {"status": status})
        logger.info("Order %s deleted by %s", order_id, user.id)

    @staticmethod
    async def _validate(db: AsyncSession, user: CurrentUser, order_id: UUID) -> None:
        order = await OrderService._load_order(db, order_id)
        await OrderService._authorize(db, user, order, OrderAction.VALIDATE)

        await OrderService._transition(db, order, OrderStatus.PENDING, OrderStatus.VALIDATED)
        await log_audit(db, user.id, ACTION_ORDER_VALIDATED, "order", order.id)
        logger.info("Order %s validated by %s", order.id, user.id)

    @staticmethod
    async def _send(db: AsyncSession, user: CurrentUser, order_id: UUID) -> None:
        order = await OrderService._load_order(db, order_id)
        await OrderService._authorize(db, user, order, OrderAction.SEND)

        outcome = await StockLedger.apply_shipment_decrement(db, order.id, actor_id=user.id)
        if outcome.conflict:
            raise ConcurrencyConflict("Stock changed during shipment, please retry")
        if not outcome.ok:
            raise InsufficientStock(outcome.shortfalls)

        await OrderService._transition(db, order, OrderStatus.VALIDATED, OrderStatus.SHIPPED)
        await log_audit(db, user.id, ACTION_ORDER_SHIPPED, "order", order.id)
        logger.info("Order %s shipped by %s", order.id, user.id)
