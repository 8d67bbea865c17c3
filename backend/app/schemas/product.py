"""Comptoir: product schemas."""
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel


class ProductResponse(BaseModel):
    id: UUID
    name: str
    quantity: int
    price: Decimal

    model_config = {"from_attributes": True}
