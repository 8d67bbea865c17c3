"""Comptoir: order schemas."""
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.order import MAX_QUANTITY

# --- Input ---

class AddressIn(BaseModel):
    street: str = ""
    city: str = ""
    postal_code: str = ""
    country: str | None = None
    additional_info: str | None = None


class OrderLineIn(BaseModel):
    product_id: UUID
    quantity: int = Field(default=0, ge=0, le=MAX_QUANTITY)


class OrderCreate(BaseModel):
    delivery_date: date | None = None
    address: AddressIn | None = None
    lines: list[OrderLineIn] = Field(default_factory=list)


class OrderUpdate(BaseModel):
    delivery_date: date | None = None
    address: AddressIn | None = None
    # None keeps the current lines; a list replaces them all
    lines: list[OrderLineIn] | None = None


# --- Views ---

class AddressView(BaseModel):
    id: UUID
    street: str
    city: str
    postal_code: str
    country: str
    additional_info: str | None

    model_config = {"from_attributes": True}


class OrderLineView(BaseModel):
    product_id: UUID
    product_name: str
    unit_price: Decimal
    quantity: int
    line_total: Decimal


class OrderView(BaseModel):
    id: UUID
    user_id: UUID
    status: str
    status_code: int
    delivery_date: date
    created_at: datetime
    updated_at: datetime
    address: AddressView | None = None
    lines: list[OrderLineView] = []
    total_before_vat: Decimal


class OrderStatusResponse(BaseModel):
    id: UUID
    status: str
