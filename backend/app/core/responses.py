"""Comptoir: API error helpers."""
from typing import Any

from fastapi import status
from fastapi.responses import JSONResponse

from app.core.errors import ErrorKind, OrderError

ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorKind.VALIDATION_FAILED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INSUFFICIENT_STOCK: status.HTTP_409_CONFLICT,
    ErrorKind.CONCURRENCY_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.STORE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def error_response(
    code: str,
    message: str,
    shortfalls: list[str] | None = None,
    meta: dict | None = None,
) -> dict[str, Any]:
    return {
        "data": None,
        "error": {
            "code": code,
            "message": message,
            "shortfalls": shortfalls or [],
        },
        "meta": meta,
    }


def order_error_response(error: OrderError) -> JSONResponse:
    """Translate an order-core error into its HTTP response."""
    return JSONResponse(
        status_code=ERROR_STATUS.get(error.kind, status.HTTP_400_BAD_REQUEST),
        content=error_response(error.kind.value, error.message, error.shortfalls),
    )
