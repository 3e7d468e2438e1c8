import json
import os
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault('APP_ENV', 'test')
os.environ.setdefault('STRIPE_WEBHOOK_SECRET', 'whsec_test')
os.environ.setdefault('SUPABASE_URL', 'https://example.supabase.co')
os.environ.setdefault('SERVICE_ROLE_KEY', 'service-role-test')

from app.core.exceptions import SignatureVerificationFailed, StoreError  # noqa: E402
from app.models.subscriber import Subscriber  # noqa: E402
from app.services.webhook_handler import WebhookConfig, WebhookHandler  # noqa: E402

GOOD_SIGNATURE = 't=1700000000,v1=good'
FIXED_NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeVerifier:
    """Accepts GOOD_SIGNATURE and decodes the body as JSON."""

    def __init__(self, signature=GOOD_SIGNATURE):
        self.signature = signature
        self.calls = []

    def verify(self, body, signature, secret):
        self.calls.append((body, signature, secret))
        if signature != self.signature:
            raise SignatureVerificationFailed('No signatures found matching the expected signature for payload')
        return json.loads(body)


class InMemorySubscriberStore:
    def __init__(self, rows=None):
        self.rows = {row['email']: dict(row) for row in rows or []}
        self.updates = []
        self.lookups = []
        self.fail_updates = None
        self.fail_lookups = None

    async def find_by_customer_id(self, customer_id):
        self.lookups.append(customer_id)
        if self.fail_lookups:
            raise StoreError(self.fail_lookups)
        for row in self.rows.values():
            if row.get('stripe_customer_id') == customer_id:
                return Subscriber.from_row(row)
        return None

    async def update_by_email(self, email, fields):
        if self.fail_updates:
            raise StoreError(self.fail_updates)
        self.updates.append((email, dict(fields)))
        if email in self.rows:
            self.rows[email].update(fields)


@pytest.fixture
def store():
    return InMemorySubscriberStore(
        rows=[
            {
                'email': 'ada@example.com',
                'verified': False,
                'subscription_tier': 'trial',
                'subscription_expires_at': None,
                'stripe_customer_id': None,
            },
            {
                'email': 'grace@example.com',
                'verified': True,
                'subscription_tier': 'pro',
                'subscription_expires_at': '2024-02-15T00:00:00+00:00',
                'payment_method': 'stripe',
                'stripe_customer_id': 'cus_grace',
                'stripe_subscription_id': 'sub_grace',
            },
        ]
    )


@pytest.fixture
def verifier():
    return FakeVerifier()


@pytest.fixture
def webhook_config():
    return WebhookConfig(
        signing_secret='whsec_test',
        store_url='https://example.supabase.co',
        store_credential='service-role-test',
    )


@pytest.fixture
def make_handler(store, verifier, webhook_config):
    def factory(config=None):
        opened = []
        closed = []

        @asynccontextmanager
        async def store_factory(url, key):
            opened.append((url, key))
            try:
                yield store
            finally:
                closed.append((url, key))

        handler = WebhookHandler(
            config=config or webhook_config,
            verifier=verifier,
            store_factory=store_factory,
            clock=lambda: FIXED_NOW,
        )
        handler.opened_stores = opened
        handler.closed_stores = closed
        return handler

    return factory


@pytest.fixture
def event_body():
    def build(event_type, obj=None, event_id='evt_test'):
        return json.dumps({'id': event_id, 'type': event_type, 'data': {'object': obj or {}}}).encode()

    return build
