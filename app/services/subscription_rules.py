"""
Subscription field rules: price to tier, expiry dates and the column
values written for activation, renewal and cancellation.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from app.models.subscriber import SubscriptionTier

# Payment link prices in cents: Basic $5.00, Pro $10.00.
PRICE_TIERS: Dict[int, SubscriptionTier] = {
    500: SubscriptionTier.BASIC,
    1000: SubscriptionTier.PRO,
}
DEFAULT_TIER = SubscriptionTier.BASIC
ACTIVE_STATUSES = frozenset({"active", "trialing"})
PAYMENT_METHOD = "stripe"


def tier_for_amount(amount_total: Optional[int]) -> SubscriptionTier:
    """Unknown amounts fall back to basic."""
    return PRICE_TIERS.get(amount_total, DEFAULT_TIER)


def expiry_from(now: datetime, days: int) -> datetime:
    return now + timedelta(days=days)


def period_end_to_datetime(epoch_seconds: int) -> datetime:
    return datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)


def is_active_status(status: Optional[str]) -> bool:
    return status in ACTIVE_STATUSES


def activation_fields(
    tier: SubscriptionTier,
    expires_at: datetime,
    customer_id: Optional[str],
    subscription_id: Optional[str],
) -> Dict[str, Any]:
    return {
        "verified": True,
        "subscription_tier": tier.value,
        "subscription_expires_at": expires_at.isoformat(),
        "payment_method": PAYMENT_METHOD,
        "stripe_customer_id": customer_id,
        "stripe_subscription_id": subscription_id,
    }


def renewal_fields(expires_at: datetime, active: bool) -> Dict[str, Any]:
    return {
        "subscription_expires_at": expires_at.isoformat(),
        "verified": active,
    }


def cancellation_fields() -> Dict[str, Any]:
    return {
        "verified": False,
        "subscription_tier": SubscriptionTier.TRIAL.value,
        "subscription_expires_at": None,
    }
