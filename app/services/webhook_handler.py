"""
Stripe webhook handling for subscriber records.

One call handles one request: method and header checks, signature
verification, event decoding and a single update of the subscriber row.
Nothing is kept between calls.
"""
from __future__ import annotations

import traceback
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, AsyncContextManager, Callable, Dict, Optional, Union

from app.core.exceptions import (
    InvalidSignature,
    MethodNotAllowed,
    MisconfiguredSecret,
    MisconfiguredStore,
    MissingEmail,
    MissingSignature,
    SignatureVerificationFailed,
    StoreError,
    StoreUpdateFailed,
    UnhandledFault,
    UserNotFound,
    WebhookError,
)
from app.core.logger import get_logger
from app.integrations.stripe_verifier import Verifier
from app.integrations.supabase_store import SubscriberStore
from app.schemas.stripe_events import (
    CheckoutSessionCompleted,
    SubscriptionDeleted,
    SubscriptionUpdated,
    decode_event,
)
from app.services import subscription_rules as rules

logger = get_logger(__name__)

StoreFactory = Callable[[str, str], AsyncContextManager[SubscriberStore]]
Clock = Callable[[], datetime]


@dataclass(frozen=True)
class WebhookConfig:
    signing_secret: Optional[str] = None
    store_url: Optional[str] = None
    store_credential: Optional[str] = None
    subscription_days: int = 30


@dataclass
class WebhookResult:
    status_code: int
    body: Dict[str, Any]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class WebhookHandler:
    """Applies verified Stripe events to the subscriber table."""

    def __init__(
        self,
        config: WebhookConfig,
        verifier: Verifier,
        store_factory: StoreFactory,
        clock: Clock = utc_now,
    ):
        self.config = config
        self.verifier = verifier
        self.store_factory = store_factory
        self.clock = clock

    async def handle(
        self,
        method: str,
        signature: Optional[str],
        body: Union[bytes, str],
    ) -> WebhookResult:
        try:
            return await self._handle(method, signature, body)
        except WebhookError as exc:
            logger.warning("Webhook rejected with %s: %s", exc.status_code, exc.message)
            return WebhookResult(exc.status_code, exc.to_body())
        except Exception as exc:
            logger.exception("Webhook error: %s", exc)
            fault = UnhandledFault(str(exc), stack=traceback.format_exc())
            return WebhookResult(fault.status_code, fault.to_body())

    async def _handle(
        self,
        method: str,
        signature: Optional[str],
        body: Union[bytes, str],
    ) -> WebhookResult:
        if method.upper() != "POST":
            raise MethodNotAllowed()
        if not signature:
            raise MissingSignature()
        if not self.config.signing_secret:
            raise MisconfiguredSecret()

        try:
            payload = self.verifier.verify(body, signature, self.config.signing_secret)
        except SignatureVerificationFailed as exc:
            raise InvalidSignature(str(exc)) from exc
        event = decode_event(payload)

        if not (self.config.store_url and self.config.store_credential):
            raise MisconfiguredStore()

        logger.info("Received webhook event: %s", event.type)

        if isinstance(event, CheckoutSessionCompleted):
            return await self._activate(event)
        if isinstance(event, SubscriptionUpdated):
            async with self._open_store() as store:
                return await self._renew(store, event)
        if isinstance(event, SubscriptionDeleted):
            async with self._open_store() as store:
                return await self._cancel(store, event)
        return WebhookResult(200, {"received": True})

    def _open_store(self) -> AsyncContextManager[SubscriberStore]:
        return self.store_factory(self.config.store_url, self.config.store_credential)

    async def _activate(self, event: CheckoutSessionCompleted) -> WebhookResult:
        if not event.email:
            raise MissingEmail()

        tier = rules.tier_for_amount(event.amount_total)
        expires_at = rules.expiry_from(self.clock(), self.config.subscription_days)
        logger.info(
            "Activating %s subscription for %s (amount: %s cents)",
            tier.value,
            event.email,
            event.amount_total,
        )

        fields = rules.activation_fields(tier, expires_at, event.customer_id, event.subscription_id)
        try:
            async with self._open_store() as store:
                await store.update_by_email(event.email, fields)
        except StoreError as exc:
            raise StoreUpdateFailed(details=str(exc)) from exc

        return WebhookResult(
            200,
            {
                "success": True,
                "tier": tier.value,
                "email": event.email,
                "expiresAt": expires_at.isoformat(),
            },
        )

    async def _renew(self, store: SubscriberStore, event: SubscriptionUpdated) -> WebhookResult:
        logger.info("Processing subscription update for customer: %s", event.customer_id)
        try:
            subscriber = await store.find_by_customer_id(event.customer_id) if event.customer_id else None
        except StoreError as exc:
            logger.error("Subscriber lookup failed for customer %s: %s", event.customer_id, exc)
            subscriber = None
        if subscriber is None:
            raise UserNotFound()

        if event.current_period_end is None:
            raise ValueError("Subscription event has no current_period_end")
        expires_at = rules.period_end_to_datetime(event.current_period_end)
        fields = rules.renewal_fields(expires_at, rules.is_active_status(event.status))
        try:
            await store.update_by_email(subscriber.email, fields)
        except StoreError as exc:
            raise StoreUpdateFailed("Failed to update subscription", details=str(exc)) from exc

        logger.info("Updated subscription for %s (status: %s)", subscriber.email, event.status)
        return WebhookResult(200, {"success": True})

    async def _cancel(self, store: SubscriberStore, event: SubscriptionDeleted) -> WebhookResult:
        logger.info("Processing subscription cancellation for customer: %s", event.customer_id)
        try:
            subscriber = await store.find_by_customer_id(event.customer_id) if event.customer_id else None
        except StoreError as exc:
            logger.warning("Subscriber lookup failed for customer %s: %s", event.customer_id, exc)
            subscriber = None

        if subscriber is not None:
            # Best effort; a failed write still acknowledges the event.
            try:
                await store.update_by_email(subscriber.email, rules.cancellation_fields())
                logger.info("Cancelled subscription for %s", subscriber.email)
            except StoreError as exc:
                logger.warning("Cancellation update failed for %s: %s", subscriber.email, exc)

        return WebhookResult(200, {"success": True})
