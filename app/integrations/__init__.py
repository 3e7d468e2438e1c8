"""External integration adapters."""

from .stripe_verifier import StripeVerifier, Verifier
from .supabase_store import SubscriberStore, SupabaseSubscriberStore, open_supabase_store

__all__ = [
    "StripeVerifier",
    "Verifier",
    "SubscriberStore",
    "SupabaseSubscriberStore",
    "open_supabase_store",
]
