"""Tests for delivery address find-or-create."""
import pytest

from app.models.order import DeliveryAddress
from app.services.address_service import AddressResolver
from tests.conftest import count_rows

HQ = {"street": "12 rue de la Paix", "city": "Paris", "postal_code": "75002"}


class TestNormalize:
    def test_defaults_country_and_drops_blank_info(self):
        clean = AddressResolver.normalize({**HQ, "country": "  ", "additional_info": "   "})
        assert clean["country"] == "France"
        assert clean["additional_info"] is None

    def test_trims_fields(self):
        clean = AddressResolver.normalize({"street": " 1 Main St ", "city": " Lyon", "postal_code": "69001 "})
        assert clean["street"] == "1 Main St"
        assert clean["city"] == "Lyon"
        assert clean["postal_code"] == "69001"

    @pytest.mark.parametrize("missing", ["street", "city", "postal_code"])
    def test_required_field_blank(self, missing):
        assert AddressResolver.normalize({**HQ, missing: "  "}) is None

    def test_is_blank(self):
        assert AddressResolver.is_blank(None)
        assert AddressResolver.is_blank({"street": " ", "country": ""})
        assert not AddressResolver.is_blank({"city": "Paris"})


class TestFindOrCreate:
    async def test_equivalent_input_returns_same_id(self, db, session_maker):
        first = await AddressResolver.find_or_create(db, HQ)
        second = await AddressResolver.find_or_create(
            db,
            {"street": "  12 RUE DE LA PAIX ", "city": "paris", "postal_code": " 75002", "country": "france"},
        )
        await db.commit()

        assert first is not None
        assert first == second
        assert await count_rows(session_maker, DeliveryAddress) == 1

    async def test_additional_info_distinguishes_addresses(self, db, session_maker):
        plain = await AddressResolver.find_or_create(db, HQ)
        floor = await AddressResolver.find_or_create(db, {**HQ, "additional_info": "3rd floor"})
        floor_again = await AddressResolver.find_or_create(db, {**HQ, "additional_info": " 3RD FLOOR "})
        blank_info = await AddressResolver.find_or_create(db, {**HQ, "additional_info": "  "})
        await db.commit()

        assert plain != floor
        assert floor == floor_again
        assert blank_info == plain
        assert await count_rows(session_maker, DeliveryAddress) == 2

    async def test_country_distinguishes_addresses(self, db):
        france = await AddressResolver.find_or_create(db, HQ)
        belgium = await AddressResolver.find_or_create(db, {**HQ, "country": "Belgique"})
        assert france != belgium

    async def test_incomplete_address_creates_nothing(self, db, session_maker):
        assert await AddressResolver.find_or_create(db, {"street": "1 Main St", "city": "Lyon"}) is None
        await db.commit()
        assert await count_rows(session_maker, DeliveryAddress) == 0

    async def test_stored_fields_are_normalized(self, db):
        address_id = await AddressResolver.find_or_create(db, {**HQ, "street": "  12 rue de la Paix  "})
        address = await db.get(DeliveryAddress, address_id)
        assert address.street == "12 rue de la Paix"
        assert address.country == "France"
        assert address.additional_info is None
