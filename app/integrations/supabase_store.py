"""
Subscriber table access through the Supabase (PostgREST) API.

The client is authenticated with the service-role key, so row level
security does not apply to these reads and writes.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional, Protocol

import httpx
from supabase import AsyncClient, PostgrestAPIError, acreate_client

from app.core.exceptions import StoreError
from app.models.subscriber import Subscriber

DEFAULT_TABLE = "unlocked_users"

# PostgREST answers a maybe_single() miss with this code on older clients.
_NO_ROWS_CODE = "204"


class SubscriberStore(Protocol):
    async def find_by_customer_id(self, customer_id: str) -> Optional[Subscriber]:
        ...

    async def update_by_email(self, email: str, fields: Dict[str, Any]) -> None:
        ...


class SupabaseSubscriberStore:
    def __init__(self, client: AsyncClient, table: str = DEFAULT_TABLE):
        self.client = client
        self.table = table

    async def find_by_customer_id(self, customer_id: str) -> Optional[Subscriber]:
        try:
            response = await (
                self.client.table(self.table)
                .select("email, subscription_tier")
                .eq("stripe_customer_id", customer_id)
                .maybe_single()
                .execute()
            )
        except PostgrestAPIError as exc:
            if str(exc.code) == _NO_ROWS_CODE:
                return None
            raise StoreError(exc.message or str(exc)) from exc
        except httpx.HTTPError as exc:
            raise StoreError(str(exc)) from exc

        if response is None or not response.data:
            return None
        return Subscriber.from_row(response.data)

    async def update_by_email(self, email: str, fields: Dict[str, Any]) -> None:
        try:
            await self.client.table(self.table).update(fields).eq("email", email).execute()
        except PostgrestAPIError as exc:
            raise StoreError(exc.message or str(exc)) from exc
        except httpx.HTTPError as exc:
            raise StoreError(str(exc)) from exc

    async def aclose(self) -> None:
        """Close the PostgREST HTTP session held by the client."""
        await self.client.postgrest.aclose()


@asynccontextmanager
async def open_supabase_store(
    url: str,
    key: str,
    table: str = DEFAULT_TABLE,
) -> AsyncIterator[SupabaseSubscriberStore]:
    """Service-role client scoped to a single request."""
    client = await acreate_client(url, key)
    store = SupabaseSubscriberStore(client, table=table)
    try:
        yield store
    finally:
        await store.aclose()
