"""Tests for the shipment stock ledger."""
import asyncio
import random

import pytest
from sqlalchemy import select

from app.models.stock import StockEventType, StockMovement
from app.services.ledger_service import LedgerOutcome, StockLedger, StockLevel
from app.services.order_service import OrderService
from tests.conftest import count_rows, set_stock, stock_of


class TestFindShortfalls:
    def test_reports_by_name(self, world):
        required = {world.p1_id: 5, world.p2_id: 1}
        on_hand = {world.p1_id: StockLevel("P1", 3), world.p2_id: StockLevel("P2", 1)}
        assert StockLedger.find_shortfalls(required, on_hand) == ["P1"]

    def test_missing_product_gets_synthetic_name(self, world):
        shortfalls = StockLedger.find_shortfalls({world.p1_id: 1}, {})
        assert shortfalls == [f"product-{world.p1_id}"]

    def test_exact_quantity_is_enough(self, world):
        assert StockLedger.find_shortfalls({world.p1_id: 3}, {world.p1_id: StockLevel("P1", 3)}) == []


class TestApplyShipmentDecrement:
    async def test_decrements_every_product(self, db, session_maker, world, place_order):
        order_id = await place_order(lines=[
            {"product_id": world.p1_id, "quantity": 2},
            {"product_id": world.p2_id, "quantity": 1},
        ])

        outcome = await StockLedger.apply_shipment_decrement(db, order_id, actor_id=world.logistics.id)
        await db.commit()

        assert outcome == LedgerOutcome(ok=True)
        assert await stock_of(session_maker, world.p1_id) == 98
        assert await stock_of(session_maker, world.p2_id) == 99

        movements = (await db.execute(select(StockMovement).order_by(StockMovement.quantity_delta))).scalars().all()
        assert sorted(m.quantity_delta for m in movements) == [-2, -1]
        assert {m.event_type for m in movements} == {StockEventType.SHIP_OUT.value}
        assert {m.order_id for m in movements} == {order_id}

    async def test_shortfall_writes_nothing(self, db, session_maker, world, place_order):
        order_id = await place_order(lines=[
            {"product_id": world.p1_id, "quantity": 5},
            {"product_id": world.p2_id, "quantity": 1},
        ])
        await set_stock(session_maker, world.p1_id, 3)

        outcome = await StockLedger.apply_shipment_decrement(db, order_id)

        assert outcome.ok is False
        assert outcome.shortfalls == ["P1"]
        assert outcome.conflict is False
        assert await stock_of(session_maker, world.p1_id) == 3
        assert await stock_of(session_maker, world.p2_id) == 100
        assert await count_rows(session_maker, StockMovement) == 0

    async def test_lost_race_rolls_back_earlier_decrements(self, db, session_maker, world, place_order, monkeypatch):
        order_id = await place_order(lines=[
            {"product_id": world.p1_id, "quantity": 2},
            {"product_id": world.p2_id, "quantity": 2},
        ])
        # Another shipment drained both products after our pre-flight read.
        await set_stock(session_maker, world.p1_id, 1)
        await set_stock(session_maker, world.p2_id, 1)
        # Keep one product decrementable so the failure happens mid-way.
        first, second = sorted([world.p1_id, world.p2_id], key=str)
        await set_stock(session_maker, first, 5)

        async def stale_read(db, product_ids):
            return {pid: StockLevel(name="stale", quantity=100) for pid in product_ids}

        monkeypatch.setattr(StockLedger, "fetch_on_hand", staticmethod(stale_read))

        outcome = await StockLedger.apply_shipment_decrement(db, order_id)

        assert outcome.ok is False
        assert outcome.shortfalls == []
        assert outcome.conflict is True
        assert await stock_of(session_maker, first) == 5
        assert await stock_of(session_maker, second) == 1
        assert await count_rows(session_maker, StockMovement) == 0


@pytest.mark.parametrize("seed", [3, 11, 42])
async def test_concurrent_shipments_never_oversell(session_maker, world, validated_order, seed):
    rng = random.Random(seed)
    initial = {world.p1_id: 10, world.p2_id: 7}
    for product_id, quantity in initial.items():
        await set_stock(session_maker, product_id, quantity)

    orders = {}
    for _ in range(6):
        lines = [
            {"product_id": world.p1_id, "quantity": rng.randint(1, 4)},
            {"product_id": world.p2_id, "quantity": rng.randint(0, 3)},
        ]
        order_id = await validated_order(lines=lines)
        orders[order_id] = {line["product_id"]: line["quantity"] for line in lines}

    async def ship(order_id):
        async with session_maker() as session:
            return order_id, await OrderService.send_order(session, world.logistics, order_id)

    results = await asyncio.gather(*(ship(order_id) for order_id in orders))

    shipped = [order_id for order_id, result in results if result.ok]
    for product_id, quantity in initial.items():
        used = sum(orders[order_id].get(product_id, 0) for order_id in shipped)
        remaining = await stock_of(session_maker, product_id)
        assert remaining >= 0
        assert remaining == quantity - used
