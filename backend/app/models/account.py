"""Comptoir: Company, User and UserRole models."""
import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, utcnow


class UserRole(str, Enum):
    SALESPERSON = "SALESPERSON"
    CLIENT = "CLIENT"
    LOGISTICS = "LOGISTICS"

    @property
    def legacy_code(self) -> int:
        return _ROLE_CODES[self]

    @classmethod
    def from_code(cls, code: int) -> "UserRole | None":
        """Map the historical function ids (1, 2, 3) to a role."""
        for role, role_code in _ROLE_CODES.items():
            if role_code == code:
                return role
        return None

    @classmethod
    def coerce(cls, value: "UserRole | str | int | None") -> "UserRole | None":
        """Accept a member, its value or a legacy code. Unknown -> None."""
        if isinstance(value, UserRole):
            return value
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return cls.from_code(value)
        if isinstance(value, str):
            try:
                return cls(value.upper())
            except ValueError:
                return None
        return None


_ROLE_CODES: dict[UserRole, int] = {
    UserRole.SALESPERSON: 1,
    UserRole.CLIENT: 2,
    UserRole.LOGISTICS: 3,
}


class Company(Base):
    """Client company; scoped to at most one salesperson."""

    __tablename__ = "companies"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    salesperson_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL", use_alter=True, name="fk_companies_salesperson_id"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(50), nullable=False, default=UserRole.CLIENT.value)
    company_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("companies.id", ondelete="SET NULL"), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())
