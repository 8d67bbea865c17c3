"""Tests for role-scoped order reads."""
from decimal import Decimal
from uuid import uuid4

from app.core.identity import CurrentUser
from app.services.order_query_service import OrderQueryService
from app.services.order_service import OrderService

HQ = {"street": "12 rue de la Paix", "city": "Paris", "postal_code": "75002"}


async def visible_ids(db, user):
    return {view.id for view in await OrderQueryService.list_orders(db, user)}


class TestListOrders:
    async def test_client_sees_company_orders(self, db, world, place_order):
        own = await place_order()
        colleagues = await place_order(user=world.colleague)
        await place_order(user=world.outsider)

        assert await visible_ids(db, world.client) == {own, colleagues}

    async def test_salesperson_sees_assigned_companies(self, db, world, place_order):
        acme = await place_order()
        globex = await place_order(user=world.outsider)

        assert await visible_ids(db, world.salesperson) == {acme}
        assert await visible_ids(db, world.other_salesperson) == {globex}

    async def test_logistics_sees_only_validated(self, db, world, place_order, validated_order):
        await place_order()
        ready = await validated_order()
        shipped = await validated_order()
        assert (await OrderService.send_order(db, world.logistics, shipped)).ok

        assert await visible_ids(db, world.logistics) == {ready}

    async def test_client_without_company_sees_own(self, db, world, place_order):
        lone = CurrentUser(id=world.client.id, role="CLIENT", company_id=None)
        own = await place_order()
        await place_order(user=world.colleague)

        assert await visible_ids(db, lone) == {own}

    async def test_unknown_role_sees_nothing(self, db, world, place_order):
        await place_order()
        assert await OrderQueryService.list_orders(db, CurrentUser(id=uuid4(), role="AUDITOR")) == []

    async def test_newest_first(self, db, world, place_order):
        first = await place_order(delivery_date="2026-11-02")
        second = await place_order(delivery_date="2026-11-03")

        views = await OrderQueryService.list_orders(db, world.client)
        assert [view.id for view in views] == [second, first]


class TestOrderView:
    async def test_totals_and_lines(self, db, world, place_order):
        order_id = await place_order(
            lines=[
                {"product_id": world.p2_id, "quantity": 1},
                {"product_id": world.p1_id, "quantity": 2},
            ],
            address=HQ,
        )

        view = await OrderQueryService.get_order(db, world.client, order_id)

        assert view.status == "PENDING"
        assert view.status_code == 3
        assert view.total_before_vat == Decimal("25.50")
        assert [(line.product_name, line.quantity, line.line_total) for line in view.lines] == [
            ("P1", 2, Decimal("20.00")),
            ("P2", 1, Decimal("5.50")),
        ]
        assert view.address.city == "Paris"
        assert view.address.country == "France"

    async def test_get_order_respects_scope(self, db, world, place_order):
        order_id = await place_order()

        assert await OrderQueryService.get_order(db, world.colleague, order_id) is not None
        assert await OrderQueryService.get_order(db, world.outsider, order_id) is None
        assert await OrderQueryService.get_order(db, world.other_salesperson, order_id) is None
        assert await OrderQueryService.get_order(db, world.logistics, order_id) is None

    async def test_get_unknown_order(self, db, world):
        assert await OrderQueryService.get_order(db, world.client, uuid4()) is None
