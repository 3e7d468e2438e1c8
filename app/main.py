"""
Stripe Subscription Webhook - FastAPI Application
Receives Stripe events and keeps Supabase subscriber records in sync
"""
from fastapi import FastAPI
from contextlib import asynccontextmanager
import logging
from datetime import datetime, timezone
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from app.config import settings
from app.core.logger import configure_logging
from app.api.routes import health
from app.api.v1 import stripe_webhook

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    configure_logging(settings.log_level)
    logger.info("Starting %s...", settings.app_name)
    logger.info(f"API running on {settings.app_env} environment")
    missing = settings.missing_settings()
    if missing:
        logger.warning("Webhook requests will fail until configured: %s", ", ".join(missing))
    yield
    logger.info("Shutting down %s...", settings.app_name)


app = FastAPI(
    title=settings.app_name,
    description="Stripe webhook receiver for subscriber records",
    version="1.0.0",
    debug=settings.app_debug,
    lifespan=lifespan,
)

# Respect proxy forwarded proto/host so redirects don't downgrade to http.
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")


@app.get("/")
async def root() -> dict:
    return {
        "name": settings.app_name,
        "environment": settings.app_env,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


app.include_router(health.router, prefix=settings.api_v1_prefix, tags=["Health"])
app.include_router(
    stripe_webhook.router,
    prefix=f"{settings.api_v1_prefix}/webhooks",
    tags=["Webhooks"],
)
