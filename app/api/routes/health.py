"""
Health API Routes
"""
from fastapi import APIRouter, Depends
from fastapi import status
from fastapi.responses import JSONResponse

from app.config import Settings, get_settings

router = APIRouter()


@router.get("/health")
async def health_check(settings: Settings = Depends(get_settings)) -> JSONResponse:
    """Report whether the webhook secret and store credentials are present."""
    missing = settings.missing_settings()
    checks = {
        "stripe_webhook_secret": "STRIPE_WEBHOOK_SECRET" not in missing,
        "supabase": "SUPABASE_URL" not in missing and "SERVICE_ROLE_KEY" not in missing,
    }
    ok = not missing
    return JSONResponse(
        status_code=status.HTTP_200_OK if ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if ok else "degraded",
            "environment": settings.app_env,
            "checks": checks,
            "missing": missing,
        },
    )
