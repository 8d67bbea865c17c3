"""Comptoir: order-core error taxonomy and the Result value returned by operations."""
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    CONCURRENCY_CONFLICT = "CONCURRENCY_CONFLICT"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


class OrderError(Exception):
    """Base exception for all order-core errors."""

    kind: ErrorKind
    default_message = "Order operation failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def shortfalls(self) -> list[str]:
        return []


class NotFound(OrderError):
    """Order, product or address missing."""

    kind = ErrorKind.NOT_FOUND
    default_message = "Not found"


class PermissionDenied(OrderError):
    """Role, ownership or status gate refused the action."""

    kind = ErrorKind.PERMISSION_DENIED
    default_message = "Permission denied"


class ValidationFailed(OrderError):
    kind = ErrorKind.VALIDATION_FAILED
    default_message = "Invalid order data"


class InsufficientStock(OrderError):
    """Raised when at least one product cannot cover the shipment."""

    kind = ErrorKind.INSUFFICIENT_STOCK
    default_message = "Insufficient stock"

    def __init__(self, shortfalls: list[str], message: str | None = None):
        if not shortfalls:
            raise ValueError("InsufficientStock requires at least one shortfall")
        self._shortfalls = list(shortfalls)
        super().__init__(message or f"Insufficient stock for: {', '.join(self._shortfalls)}")

    @property
    def shortfalls(self) -> list[str]:
        return list(self._shortfalls)


class ConcurrencyConflict(OrderError):
    """A guarded write matched no row: a concurrent update got there first."""

    kind = ErrorKind.CONCURRENCY_CONFLICT
    default_message = "A concurrent update interfered, please retry"


class StoreUnavailable(OrderError):
    kind = ErrorKind.STORE_UNAVAILABLE
    default_message = "The order store is unavailable"


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of an order operation: a value or an OrderError, never both."""

    value: T | None = None
    error: OrderError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> ErrorKind | None:
        return self.error.kind if self.error else None

    @classmethod
    def success(cls, value: T | None = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: OrderError) -> "Result[T]":
        return cls(error=error)
