from __future__ import annotations

import json
import logging
from typing import Any, Dict, Protocol, Union

import stripe

from app.core.exceptions import SignatureVerificationFailed

logger = logging.getLogger(__name__)


class Verifier(Protocol):
    def verify(self, body: Union[bytes, str], signature: str, secret: str) -> Dict[str, Any]:
        """Return the decoded event payload or raise SignatureVerificationFailed."""


class StripeVerifier:
    """Stripe-Signature verification through the Stripe SDK."""

    def __init__(self, tolerance: int = stripe.Webhook.DEFAULT_TOLERANCE):
        self.tolerance = tolerance

    def verify(self, body: Union[bytes, str], signature: str, secret: str) -> Dict[str, Any]:
        try:
            payload = body.decode("utf-8") if isinstance(body, bytes) else body
        except UnicodeDecodeError as exc:
            raise SignatureVerificationFailed(f"Invalid payload: {exc}") from exc

        try:
            stripe.WebhookSignature.verify_header(payload, signature, secret, self.tolerance)
        except stripe.SignatureVerificationError as exc:
            logger.warning("Webhook signature verification failed: %s", exc.user_message or exc)
            raise SignatureVerificationFailed(exc.user_message or str(exc)) from exc

        try:
            event = json.loads(payload)
        except ValueError as exc:
            raise SignatureVerificationFailed(f"Invalid payload: {exc}") from exc
        if not isinstance(event, dict):
            raise SignatureVerificationFailed("Invalid payload: expected a JSON object")
        return event
