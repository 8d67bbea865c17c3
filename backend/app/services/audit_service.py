"""Comptoir: AuditService."""
import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit import AuditLog

logger = logging.getLogger(__name__)

# ── Audit action constants ────────────────────────────────────────────────────
ACTION_ORDER_CREATED = "order.created"
ACTION_ORDER_UPDATED = "order.updated"
ACTION_ORDER_DELETED = "order.deleted"
ACTION_ORDER_VALIDATED = "order.validated"
ACTION_ORDER_SHIPPED = "order.shipped"


async def log_audit(
    db: AsyncSession,
    actor_id: UUID | None,
    action: str,
    target_type: str | None = None,
    target_id: UUID | None = None,
    payload: dict | None = None,
) -> None:
    """Write an audit log entry. Call this from services after the main action."""
    try:
        entry = AuditLog(
            actor_id=actor_id,
            action=action,
            target_type=target_type,
            target_id=target_id,
            payload=payload,
        )
        db.add(entry)
        # No flush: the row commits atomically with the main action.
    except Exception as exc:
        # Never allow audit failure to break the main request
        logger.error("Audit log write failed: %s", exc, exc_info=True)
