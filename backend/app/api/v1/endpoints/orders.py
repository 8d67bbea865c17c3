"""Comptoir: Orders API endpoints."""
from typing import Any
from uuid import UUID

from fastapi import APIRouter, HTTPException

from app.api.deps import AuthUser, DbSession
from app.core.responses import order_error_response
from app.models.order import OrderStatus
from app.schemas.common import ApiResponse
from app.schemas.order import OrderCreate, OrderStatusResponse, OrderUpdate, OrderView
from app.services.order_query_service import OrderQueryService
from app.services.order_service import OrderService

router = APIRouter()


def _lines(lines) -> list[dict] | None:
    if lines is None:
        return None
    return [line.model_dump() for line in lines]


@router.get("", response_model=ApiResponse[list[OrderView]])
async def list_orders(db: DbSession, current_user: AuthUser) -> Any:
    """List the orders visible to the current user."""
    orders = await OrderQueryService.list_orders(db, current_user)
    return ApiResponse(data=orders, meta={"count": len(orders)})


@router.get("/{order_id}", response_model=ApiResponse[OrderView])
async def get_order(order_id: UUID, db: DbSession, current_user: AuthUser) -> Any:
    order = await OrderQueryService.get_order(db, current_user, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return ApiResponse(data=order)


@router.post("", response_model=ApiResponse[OrderView])
async def create_order(request: OrderCreate, db: DbSession, current_user: AuthUser) -> Any:
    """Create a new order in PENDING state."""
    result = await OrderService.create_order(
        db,
        current_user,
        request.delivery_date,
        _lines(request.lines),
        address=request.address.model_dump() if request.address else None,
    )
    if not result.ok:
        return order_error_response(result.error)
    order = await OrderQueryService.get_order(db, current_user, result.value)
    return ApiResponse(data=order, meta={"message": "Order created"})


@router.put("/{order_id}", response_model=ApiResponse[OrderView])
async def modify_order(order_id: UUID, request: OrderUpdate, db: DbSession, current_user: AuthUser) -> Any:
    result = await OrderService.modify_order(
        db,
        current_user,
        order_id,
        request.delivery_date,
        lines=_lines(request.lines),
        address=request.address.model_dump() if request.address else None,
    )
    if not result.ok:
        return order_error_response(result.error)
    order = await OrderQueryService.get_order(db, current_user, order_id)
    return ApiResponse(data=order, meta={"message": "Order updated"})


@router.delete("/{order_id}", response_model=ApiResponse[None])
async def delete_order(order_id: UUID, db: DbSession, current_user: AuthUser) -> Any:
    result = await OrderService.delete_order(db, current_user, order_id)
    if not result.ok:
        return order_error_response(result.error)
    return ApiResponse(data=None, meta={"message": "Order deleted"})


@router.post("/{order_id}/validate", response_model=ApiResponse[OrderStatusResponse])
async def validate_order(order_id: UUID, db: DbSession, current_user: AuthUser) -> Any:
    """Salesperson validates a PENDING order."""
    result = await OrderService.validate_order(db, current_user, order_id)
    if not result.ok:
        return order_error_response(result.error)
    return ApiResponse(
        data=OrderStatusResponse(id=order_id, status=OrderStatus.VALIDATED.value),
        meta={"message": "Order VALIDATED"},
    )


@router.post("/{order_id}/send", response_model=ApiResponse[OrderStatusResponse])
async def send_order(order_id: UUID, db: DbSession, current_user: AuthUser) -> Any:
    """Logistics ships a VALIDATED order, taking its units out of stock."""
    result = await OrderService.send_order(db, current_user, order_id)
    if not result.ok:
        return order_error_response(result.error)
    return ApiResponse(
        data=OrderStatusResponse(id=order_id, status=OrderStatus.SHIPPED.value),
        meta={"message": "Order SHIPPED successfully"},
    )
