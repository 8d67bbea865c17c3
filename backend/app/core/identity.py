"""Comptoir: the current-user value passed into every order operation."""
from uuid import UUID

from app.models.account import UserRole


class CurrentUser:
    """Validated identity supplied by the auth layer for one call."""

    def __init__(
        self,
        id: UUID,
        role: UserRole | str | int,
        company_id: UUID | None = None,
        email: str | None = None,
    ):
        self.id = id
        # None when the auth layer hands over a role this core does not know
        self.role: UserRole | None = UserRole.coerce(role)
        self.company_id = company_id
        self.email = email

    def __repr__(self) -> str:
        role = self.role.value if self.role else None
        return f"CurrentUser(id={self.id}, role={role}, company_id={self.company_id})"
