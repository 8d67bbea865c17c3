"""Comptoir: AddressResolver, find-or-create for delivery addresses."""
from collections.abc import Mapping
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models.order import DeliveryAddress

ADDRESS_FIELDS = ("street", "city", "postal_code", "country", "additional_info")
REQUIRED_FIELDS = ("street", "city", "postal_code")


def _normalized(column):
    return func.lower(func.trim(column))


class AddressResolver:
    """Deduplicates delivery addresses by case-insensitive, trimmed content.

    Two concurrent resolutions of the same new address may both insert; rows
    are not unique at this layer.
    """

    @staticmethod
    def is_blank(fields: Mapping | None) -> bool:
        """True when no address field carries any text."""
        if not fields:
            return True
        return not any(str(fields.get(name) or "").strip() for name in ADDRESS_FIELDS)

    @staticmethod
    def normalize(fields: Mapping) -> dict | None:
        """Trim every field, default the country, drop blank additional info.

        Returns None when a required field is blank.
        """
        clean = {name: str(fields.get(name) or "").strip() for name in ADDRESS_FIELDS}
        if any(not clean[name] for name in REQUIRED_FIELDS):
            return None
        if not clean["country"]:
            clean["country"] = get_settings().DEFAULT_COUNTRY
        if not clean["additional_info"]:
            clean["additional_info"] = None
        return clean

    @staticmethod
    async def find(db: AsyncSession, fields: Mapping) -> UUID | None:
        clean = AddressResolver.normalize(fields)
        if clean is None:
            return None

        stmt = select(DeliveryAddress.id).where(
            _normalized(DeliveryAddress.street) == func.lower(clean["street"]),
            _normalized(DeliveryAddress.city) == func.lower(clean["city"]),
            _normalized(DeliveryAddress.postal_code) == func.lower(clean["postal_code"]),
            _normalized(DeliveryAddress.country) == func.lower(clean["country"]),
        )
        info = _normalized(func.coalesce(DeliveryAddress.additional_info, ""))
        if clean["additional_info"] is None:
            stmt = stmt.where(or_(DeliveryAddress.additional_info.is_(None), info == ""))
        else:
            stmt = stmt.where(info == func.lower(clean["additional_info"]))

        result = await db.execute(stmt.limit(1))
        return result.scalar_one_or_none()

    @staticmethod
    async def find_or_create(db: AsyncSession, fields: Mapping) -> UUID | None:
        """Return the id of an equivalent stored address, inserting one if needed.

        None signals "no address": street, city or postal code is blank.
        Runs inside the caller's transaction (flush, no commit).
        """
        clean = AddressResolver.normalize(fields)
        if clean is None:
            return None

        existing = await AddressResolver.find(db, clean)
        if existing is not None:
            return existing

        address = DeliveryAddress(**clean)
        db.add(address)
        await db.flush()
        return address.id
