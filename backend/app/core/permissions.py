"""Comptoir: order permission matrix (role x order status x action)."""
from enum import Enum

from app.models.account import UserRole
from app.models.order import OrderStatus


class OrderAction(str, Enum):
    MODIFY = "modify"
    DELETE = "delete"
    VALIDATE = "validate"
    SEND = "send"


_NEVER: frozenset[OrderStatus] = frozenset()

# ── Role → action → statuses in which the action is allowed ──────────────────
# Scope (ownership for clients, company assignment for salespeople) is checked
# by the caller before consulting this table.
PERMISSION_MATRIX: dict[UserRole, dict[OrderAction, frozenset[OrderStatus]]] = {
    UserRole.CLIENT: {
        OrderAction.MODIFY: frozenset({OrderStatus.PENDING}),
        OrderAction.DELETE: frozenset({OrderStatus.PENDING}),
        OrderAction.VALIDATE: _NEVER,
        OrderAction.SEND: _NEVER,
    },
    UserRole.SALESPERSON: {
        OrderAction.MODIFY: frozenset({OrderStatus.PENDING, OrderStatus.VALIDATED}),
        OrderAction.DELETE: frozenset({OrderStatus.PENDING, OrderStatus.VALIDATED}),
        OrderAction.VALIDATE: frozenset({OrderStatus.PENDING}),
        OrderAction.SEND: _NEVER,
    },
    UserRole.LOGISTICS: {
        OrderAction.MODIFY: _NEVER,
        OrderAction.DELETE: _NEVER,
        OrderAction.VALIDATE: _NEVER,
        OrderAction.SEND: frozenset({OrderStatus.VALIDATED}),
    },
}


def _coerce_action(action: OrderAction | str) -> OrderAction | None:
    if isinstance(action, OrderAction):
        return action
    if isinstance(action, str):
        try:
            return OrderAction(action.lower())
        except ValueError:
            return None
    return None


def can_perform(
    role: UserRole | str | int | None,
    status: OrderStatus | str | int | None,
    action: OrderAction | str,
) -> bool:
    """True when `role` may apply `action` to an order in `status`. Unknown inputs deny."""
    role_ = UserRole.coerce(role)
    status_ = OrderStatus.coerce(status)
    action_ = _coerce_action(action)
    if role_ is None or status_ is None or action_ is None:
        return False
    return status_ in PERMISSION_MATRIX.get(role_, {}).get(action_, _NEVER)
