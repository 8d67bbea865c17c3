"""Comptoir: common response envelope."""
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Standard response envelope: {data, error, meta}."""

    data: T | None = None
    error: dict[str, Any] | None = None
    meta: dict[str, Any] | None = None
