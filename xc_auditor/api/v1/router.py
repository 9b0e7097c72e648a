"""
API v1 router.
"""
from fastapi import APIRouter

from xc_auditor.api.v1.endpoints import audit, health, rules

api_router = APIRouter()

# Health check endpoint (no prefix, so it's /api/v1/health)
api_router.include_router(health.router, tags=["health"])

api_router.include_router(audit.router, prefix="/audit", tags=["audit"])
api_router.include_router(rules.router, prefix="/rules", tags=["rules"])
