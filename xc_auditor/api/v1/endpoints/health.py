"""
Health check endpoint for monitoring and diagnostics.
"""
from fastapi import APIRouter

from xc_auditor.core.config import get_settings

router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Report service health and whether tenant credentials are present.

    Does not call the config store.

    Returns:
        {
            "ok": true,
            "environment": "local",
            "xc_configured": false
        }
    """
    config = get_settings()
    return {
        "ok": True,
        "environment": config.APP_ENV,
        "xc_configured": config.is_xc_configured(),
    }
