# app/routers/health.py

from fastapi import APIRouter

from app.config import get_settings
from app.integrations import claude

settings = get_settings()
router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "service": "lookup-validation-api",
    }


@router.get("/ready")
async def readiness_check():
    """Readiness check - reports which collaborators are configured."""
    signature_service = "ok" if claude.is_configured() else "not_configured"
    if not settings.enable_signature_authentication:
        signature_service = "disabled"

    return {
        "status": "ready",
        "checks": {
            "database": "ok" if settings.supabase_url else "not_configured",
            "signature_service": signature_service,
            "global_registry": "ok" if settings.global_registry_customer_id else "not_configured",
        }
    }
