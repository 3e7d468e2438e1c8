from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.api.dependencies import get_webhook_handler
from app.services.webhook_handler import WebhookHandler

router = APIRouter()

# Non-POST methods are routed too so they get the JSON 405 body.
WEBHOOK_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@router.api_route("/stripe", methods=WEBHOOK_METHODS)
async def stripe_webhook(
    request: Request,
    handler: WebhookHandler = Depends(get_webhook_handler),
) -> JSONResponse:
    """Receive Stripe events and reconcile the subscriber record."""
    body = await request.body()
    result = await handler.handle(
        request.method,
        request.headers.get("stripe-signature"),
        body,
    )
    return JSONResponse(status_code=result.status_code, content=result.body)
