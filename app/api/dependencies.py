"""Shared API dependencies."""
from functools import partial

from fastapi import Depends

from app.config import Settings, get_settings
from app.integrations.stripe_verifier import StripeVerifier
from app.integrations.supabase_store import open_supabase_store
from app.services.webhook_handler import WebhookHandler


def get_webhook_handler(settings: Settings = Depends(get_settings)) -> WebhookHandler:
    """Build a handler per request from the current settings."""
    return WebhookHandler(
        config=settings.webhook_config(),
        verifier=StripeVerifier(tolerance=settings.stripe_signature_tolerance),
        store_factory=partial(open_supabase_store, table=settings.subscribers_table),
    )


__all__ = ["get_webhook_handler"]
