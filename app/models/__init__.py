"""
Record types for the subscriber table.
"""
from .subscriber import Subscriber, SubscriptionTier

__all__ = ["Subscriber", "SubscriptionTier"]
