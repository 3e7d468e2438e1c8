"""Subscriber record as stored in the Supabase table."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional


class SubscriptionTier(str, Enum):
    TRIAL = "trial"
    BASIC = "basic"
    PRO = "pro"


@dataclass
class Subscriber:
    email: str
    verified: bool = False
    subscription_tier: Optional[str] = None
    subscription_expires_at: Optional[str] = None
    payment_method: Optional[str] = None
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Subscriber":
        return cls(
            email=row["email"],
            verified=bool(row.get("verified", False)),
            subscription_tier=row.get("subscription_tier"),
            subscription_expires_at=row.get("subscription_expires_at"),
            payment_method=row.get("payment_method"),
            stripe_customer_id=row.get("stripe_customer_id"),
            stripe_subscription_id=row.get("stripe_subscription_id"),
        )
