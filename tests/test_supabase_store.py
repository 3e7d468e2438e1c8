from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from supabase import PostgrestAPIError

from app.core.exceptions import StoreError
from app.integrations.supabase_store import SupabaseSubscriberStore, open_supabase_store


def _client(response=None, error=None):
    """Mock of the chained PostgREST query builder."""
    query = MagicMock()
    for name in ('select', 'update', 'eq', 'maybe_single'):
        getattr(query, name).return_value = query
    query.execute = AsyncMock(return_value=response, side_effect=error)
    client = MagicMock()
    client.table.return_value = query
    return client, query


@pytest.mark.asyncio
async def test_find_by_customer_id_returns_subscriber():
    client, query = _client(response=MagicMock(data={'email': 'grace@example.com', 'subscription_tier': 'pro'}))
    subscriber = await SupabaseSubscriberStore(client).find_by_customer_id('cus_grace')

    assert subscriber.email == 'grace@example.com'
    assert subscriber.subscription_tier == 'pro'
    client.table.assert_called_once_with('unlocked_users')
    query.select.assert_called_once_with('email, subscription_tier')
    query.eq.assert_called_once_with('stripe_customer_id', 'cus_grace')
    query.maybe_single.assert_called_once_with()


@pytest.mark.asyncio
async def test_find_by_customer_id_without_row():
    client, _ = _client(response=None)
    assert await SupabaseSubscriberStore(client).find_by_customer_id('cus_x') is None

    client, _ = _client(response=MagicMock(data=None))
    assert await SupabaseSubscriberStore(client).find_by_customer_id('cus_x') is None


@pytest.mark.asyncio
async def test_find_by_customer_id_treats_204_as_miss():
    error = PostgrestAPIError({'message': 'Missing response', 'code': '204', 'hint': None, 'details': None})
    client, _ = _client(error=error)
    assert await SupabaseSubscriberStore(client).find_by_customer_id('cus_x') is None


@pytest.mark.asyncio
async def test_find_by_customer_id_wraps_api_errors():
    error = PostgrestAPIError({'message': 'JWT expired', 'code': 'PGRST301', 'hint': None, 'details': None})
    client, _ = _client(error=error)
    with pytest.raises(StoreError, match='JWT expired'):
        await SupabaseSubscriberStore(client).find_by_customer_id('cus_x')


@pytest.mark.asyncio
async def test_update_by_email_targets_table():
    client, query = _client(response=MagicMock(data=[]))
    store = SupabaseSubscriberStore(client, table='members')
    await store.update_by_email('ada@example.com', {'verified': True})

    client.table.assert_called_once_with('members')
    query.update.assert_called_once_with({'verified': True})
    query.eq.assert_called_once_with('email', 'ada@example.com')
    query.execute.assert_awaited_once()


@pytest.mark.asyncio
async def test_update_by_email_wraps_errors():
    error = PostgrestAPIError({'message': 'permission denied', 'code': '42501', 'hint': None, 'details': None})
    client, _ = _client(error=error)
    with pytest.raises(StoreError, match='permission denied'):
        await SupabaseSubscriberStore(client).update_by_email('ada@example.com', {})

    client, _ = _client(error=httpx.ConnectError('connection refused'))
    with pytest.raises(StoreError, match='connection refused'):
        await SupabaseSubscriberStore(client).update_by_email('ada@example.com', {})


@pytest.fixture
def created_client(monkeypatch):
    client, _ = _client()
    client.postgrest.aclose = AsyncMock()
    create = AsyncMock(return_value=client)
    monkeypatch.setattr('app.integrations.supabase_store.acreate_client', create)
    return client, create


@pytest.mark.asyncio
async def test_open_supabase_store_closes_session(created_client):
    client, create = created_client
    async with open_supabase_store('https://example.supabase.co', 'service-role-test', table='members') as store:
        assert store.table == 'members'
        client.postgrest.aclose.assert_not_awaited()

    create.assert_awaited_once_with('https://example.supabase.co', 'service-role-test')
    client.postgrest.aclose.assert_awaited_once_with()


@pytest.mark.asyncio
async def test_open_supabase_store_closes_session_on_error(created_client):
    client, _ = created_client
    with pytest.raises(StoreError):
        async with open_supabase_store('https://example.supabase.co', 'service-role-test'):
            raise StoreError('timeout')

    client.postgrest.aclose.assert_awaited_once_with()
