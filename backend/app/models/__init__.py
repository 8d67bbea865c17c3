"""Comptoir: SQLAlchemy models."""
from app.models.account import Company, User, UserRole
from app.models.audit import AuditLog
from app.models.order import DeliveryAddress, Order, OrderLine, OrderStatus
from app.models.stock import Product, StockEventType, StockMovement

__all__ = [
    "Company", "User", "UserRole",
    "AuditLog",
    "DeliveryAddress", "Order", "OrderLine", "OrderStatus",
    "Product", "StockEventType", "StockMovement",
]
