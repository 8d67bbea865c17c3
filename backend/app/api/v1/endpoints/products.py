"""Comptoir: Product catalog endpoints (read-only)."""
from typing import Any
from uuid import UUID

from fastapi import APIRouter, HTTPException

from app.api.deps import AuthUser, DbSession
from app.schemas.common import ApiResponse
from app.schemas.product import ProductResponse
from app.services.product_service import ProductCatalog

router = APIRouter()


@router.get("", response_model=ApiResponse[list[ProductResponse]])
async def list_products(db: DbSession, current_user: AuthUser) -> Any:
    products = await ProductCatalog.list_products(db)
    return ApiResponse(data=[ProductResponse.model_validate(p) for p in products])


@router.get("/{product_id}", response_model=ApiResponse[ProductResponse])
async def get_product(product_id: UUID, db: DbSession, current_user: AuthUser) -> Any:
    product = await ProductCatalog.get_product(db, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return ApiResponse(data=ProductResponse.model_validate(product))
