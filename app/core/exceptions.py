"""Custom exception types for domain and API layers."""
from __future__ import annotations

from typing import Any, Dict, Optional


class AppError(Exception):
    """Base app exception."""


class IntegrationError(AppError):
    """External integration call failure."""


class StoreError(IntegrationError):
    """Subscriber store query or update failure."""


class SignatureVerificationFailed(IntegrationError):
    """Webhook payload did not verify against the signing secret."""


class WebhookError(AppError):
    """Terminal webhook failure that maps to one HTTP status and JSON body."""

    status_code: int = 500
    message: str = "Webhook processing failed"

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None):
        if message is not None:
            self.message = message
        self.details = details
        super().__init__(self.message)

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class MethodNotAllowed(WebhookError):
    status_code = 405
    message = "Method not allowed"


class MissingSignature(WebhookError):
    status_code = 400
    message = "No signature provided"


class MisconfiguredSecret(WebhookError):
    status_code = 500
    message = "Webhook secret not configured"


class InvalidSignature(WebhookError):
    status_code = 400

    def __init__(self, reason: str):
        super().__init__(f"Webhook Error: {reason}")


class MisconfiguredStore(WebhookError):
    status_code = 500
    message = "Supabase credentials not configured"


class MissingEmail(WebhookError):
    status_code = 400
    message = "No email found in session"


class UserNotFound(WebhookError):
    status_code = 404
    message = "User not found"


class StoreUpdateFailed(WebhookError):
    status_code = 500
    message = "Failed to update user"


class UnhandledFault(WebhookError):
    """Catch-all for unexpected errors; carries a traceback for diagnostics."""

    status_code = 500

    def __init__(self, message: str, stack: Optional[str] = None):
        super().__init__(message)
        self.stack = stack

    def to_body(self) -> Dict[str, Any]:
        return {"error": self.message, "stack": self.stack}
