"""Comptoir: API v1 router aggregation."""
from fastapi import APIRouter

from app.api.v1.endpoints import orders, products

api_router = APIRouter()

api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(products.router, prefix="/products", tags=["products"])
