"""Tests for company and order scope."""
from uuid import uuid4

from app.core.identity import CurrentUser
from app.services.scope_service import ScopeService


async def test_salesperson_companies(db, world):
    assert await ScopeService.list_company_ids_for_salesperson(db, world.salesperson.id) == [world.acme_id]


async def test_can_access_company(db, world):
    assert await ScopeService.can_access_company(db, world.client, world.acme_id)
    assert not await ScopeService.can_access_company(db, world.client, world.globex_id)
    assert await ScopeService.can_access_company(db, world.salesperson, world.acme_id)
    assert not await ScopeService.can_access_company(db, world.salesperson, world.globex_id)
    assert not await ScopeService.can_access_company(db, world.logistics, world.acme_id)
    assert not await ScopeService.can_access_company(db, world.client, None)


async def test_client_without_company(db, world):
    lone = CurrentUser(id=uuid4(), role="CLIENT")
    assert not await ScopeService.can_access_company(db, lone, world.acme_id)
