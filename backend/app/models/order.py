"""Comptoir: Order, OrderLine and DeliveryAddress models."""
import uuid
from datetime import date, datetime
from enum import Enum

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, utcnow

# Upper bound of the INTEGER quantity columns.
MAX_QUANTITY = 2_147_483_647


class OrderStatus(str, Enum):
    """PENDING -> VALIDATED -> SHIPPED. Never compare by legacy code."""

    PENDING = "PENDING"
    VALIDATED = "VALIDATED"
    SHIPPED = "SHIPPED"

    @property
    def legacy_code(self) -> int:
        return _STATUS_CODES[self]

    @classmethod
    def from_code(cls, code: int) -> "OrderStatus | None":
        for status, status_code in _STATUS_CODES.items():
            if status_code == code:
                return status
        return None

    @classmethod
    def coerce(cls, value: "OrderStatus | str | int | None") -> "OrderStatus | None":
        if isinstance(value, OrderStatus):
            return value
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return cls.from_code(value)
        if isinstance(value, str):
            try:
                return cls(value.upper())
            except ValueError:
                return None
        return None


# Historical identifiers: the initial state is 3.
_STATUS_CODES: dict[OrderStatus, int] = {
    OrderStatus.PENDING: 3,
    OrderStatus.VALIDATED: 1,
    OrderStatus.SHIPPED: 2,
}


class DeliveryAddress(Base):
    """Shared delivery address; identity is its normalized content."""

    __tablename__ = "delivery_addresses"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    street: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str] = mapped_column(String(255), nullable=False)
    postal_code: Mapped[str] = mapped_column(String(20), nullable=False)
    country: Mapped[str] = mapped_column(String(100), nullable=False, default="France")
    additional_info: Mapped[str | None] = mapped_column(Text, nullable=True)


class Order(Base):
    """Purchase request placed by a client."""

    __tablename__ = "orders"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=OrderStatus.PENDING.value, index=True)
    delivery_date: Mapped[date] = mapped_column(Date, nullable=False)
    address_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("delivery_addresses.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    lines: Mapped[list["OrderLine"]] = relationship("OrderLine", back_populates="order", cascade="all, delete-orphan")
    address: Mapped["DeliveryAddress | None"] = relationship("DeliveryAddress")


class OrderLine(Base):
    """One product of an order with its ordered quantity."""

    __tablename__ = "order_lines"
    __table_args__ = (
        UniqueConstraint("order_id", "product_id", name="uq_order_lines_order_product"),
        CheckConstraint("quantity > 0", name="ck_order_lines_quantity_positive"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    product_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    order: Mapped["Order"] = relationship("Order", back_populates="lines")
