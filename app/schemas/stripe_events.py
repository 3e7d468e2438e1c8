"""
Decoded Stripe webhook events.

Each handled event type has its own model carrying only the fields its
branch reads. Everything else decodes to ``UnknownEvent``.
"""
from __future__ import annotations

from typing import Any, Dict, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict

CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"
SUBSCRIPTION_UPDATED = "customer.subscription.updated"
SUBSCRIPTION_DELETED = "customer.subscription.deleted"


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_id: Optional[str] = None


class CheckoutSessionCompleted(_Event):
    type: Literal["checkout.session.completed"] = CHECKOUT_SESSION_COMPLETED
    email: Optional[str] = None
    amount_total: Optional[int] = None
    customer_id: Optional[str] = None
    subscription_id: Optional[str] = None


class SubscriptionUpdated(_Event):
    type: Literal["customer.subscription.updated"] = SUBSCRIPTION_UPDATED
    customer_id: Optional[str] = None
    current_period_end: Optional[int] = None
    status: Optional[str] = None


class SubscriptionDeleted(_Event):
    type: Literal["customer.subscription.deleted"] = SUBSCRIPTION_DELETED
    customer_id: Optional[str] = None


class UnknownEvent(_Event):
    type: str = ""


StripeEvent = Union[CheckoutSessionCompleted, SubscriptionUpdated, SubscriptionDeleted, UnknownEvent]


def _reference_id(value: Any) -> Optional[str]:
    """Stripe references are ids unless expanded into objects."""
    if isinstance(value, Mapping):
        value = value.get("id")
    return value or None


def _period_end(subscription: Mapping[str, Any]) -> Optional[int]:
    # Newer API versions only report the billing period on subscription items.
    if subscription.get("current_period_end") is not None:
        return subscription["current_period_end"]
    items = (subscription.get("items") or {}).get("data") or []
    if items:
        return items[0].get("current_period_end")
    return None


def decode_event(payload: Mapping[str, Any]) -> StripeEvent:
    """Decode a verified event payload into its typed variant."""
    event_type = payload.get("type") or ""
    event_id = payload.get("id")
    obj: Dict[str, Any] = (payload.get("data") or {}).get("object") or {}

    if event_type == CHECKOUT_SESSION_COMPLETED:
        details = obj.get("customer_details") or {}
        return CheckoutSessionCompleted(
            event_id=event_id,
            email=details.get("email") or obj.get("customer_email") or None,
            amount_total=obj.get("amount_total"),
            customer_id=_reference_id(obj.get("customer")),
            subscription_id=_reference_id(obj.get("subscription")),
        )
    if event_type == SUBSCRIPTION_UPDATED:
        return SubscriptionUpdated(
            event_id=event_id,
            customer_id=_reference_id(obj.get("customer")),
            current_period_end=_period_end(obj),
            status=obj.get("status"),
        )
    if event_type == SUBSCRIPTION_DELETED:
        return SubscriptionDeleted(
            event_id=event_id,
            customer_id=_reference_id(obj.get("customer")),
        )
    return UnknownEvent(event_id=event_id, type=event_type)
