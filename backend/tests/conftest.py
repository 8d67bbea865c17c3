"""Pytest fixtures for Comptoir tests."""
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

import pytest
import pytest_asyncio
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import app.models  # noqa: F401
from app.core.identity import CurrentUser
from app.db.base import Base
from app.models import Company, Product, User, UserRole
from app.services.order_service import OrderService


@pytest_asyncio.fixture
async def engine(tmp_path):
    """File-backed SQLite so separate sessions get separate connections."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'comptoir.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@dataclass
class World:
    salesperson: CurrentUser
    other_salesperson: CurrentUser
    client: CurrentUser
    colleague: CurrentUser
    outsider: CurrentUser
    logistics: CurrentUser
    acme_id: UUID
    globex_id: UUID
    p1_id: UUID
    p2_id: UUID


def as_current_user(user: User) -> CurrentUser:
    return CurrentUser(id=user.id, role=user.role, company_id=user.company_id, email=user.email)


@pytest_asyncio.fixture
async def world(session_maker) -> World:
    """Two salespeople, each with one client company; P1 (10.00) and P2 (5.50) in stock."""
    async with session_maker() as session:
        sales = User(email="sales@comptoir.test", role=UserRole.SALESPERSON.value)
        other_sales = User(email="sales2@comptoir.test", role=UserRole.SALESPERSON.value)
        logistics = User(email="logistics@comptoir.test", role=UserRole.LOGISTICS.value)
        session.add_all([sales, other_sales, logistics])
        await session.flush()

        acme = Company(name="Acme", salesperson_id=sales.id)
        globex = Company(name="Globex", salesperson_id=other_sales.id)
        session.add_all([acme, globex])
        await session.flush()

        client = User(email="client@acme.test", role=UserRole.CLIENT.value, company_id=acme.id)
        colleague = User(email="colleague@acme.test", role=UserRole.CLIENT.value, company_id=acme.id)
        outsider = User(email="buyer@globex.test", role=UserRole.CLIENT.value, company_id=globex.id)
        p1 = Product(name="P1", quantity=100, price=Decimal("10.00"))
        p2 = Product(name="P2", quantity=100, price=Decimal("5.50"))
        session.add_all([client, colleague, outsider, p1, p2])
        await session.commit()

        return World(
            salesperson=as_current_user(sales),
            other_salesperson=as_current_user(other_sales),
            client=as_current_user(client),
            colleague=as_current_user(colleague),
            outsider=as_current_user(outsider),
            logistics=as_current_user(logistics),
            acme_id=acme.id,
            globex_id=globex.id,
            p1_id=p1.id,
            p2_id=p2.id,
        )


async def set_stock(session_maker, product_id: UUID, quantity: int) -> None:
    async with session_maker() as session:
        await session.execute(update(Product).where(Product.id == product_id).values(quantity=quantity))
        await session.commit()


async def stock_of(session_maker, product_id: UUID) -> int:
    async with session_maker() as session:
        result = await session.execute(select(Product.quantity).where(Product.id == product_id))
        return result.scalar_one()


async def count_rows(session_maker, model) -> int:
    async with session_maker() as session:
        result = await session.execute(select(func.count()).select_from(model))
        return result.scalar_one()


@pytest.fixture
def place_order(session_maker, world):
    """Create an order through the lifecycle and return its id."""

    async def _place(lines=None, user=None, address=None, delivery_date="2026-11-02"):
        if lines is None:
            lines = [{"product_id": world.p1_id, "quantity": 1}]
        async with session_maker() as session:
            result = await OrderService.create_order(
                session, user or world.client, delivery_date, lines, address=address
            )
        assert result.ok, result.error
        return result.value

    return _place


@pytest.fixture
def validated_order(session_maker, world, place_order):
    """Create an order and have the assigned salesperson validate it."""

    async def _validated(lines=None, user=None):
        order_id = await place_order(lines=lines, user=user)
        async with session_maker() as session:
            result = await OrderService.validate_order(session, world.salesperson, order_id)
        assert result.ok, result.error
        return order_id

    return _validated
