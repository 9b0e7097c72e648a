"""
Shared FastAPI dependencies.
"""
import logging

from fastapi import HTTPException, status

from xc_auditor.core.config import get_settings
from xc_auditor.services.xc_client import ConfigStoreClient

logger = logging.getLogger(__name__)


def get_config_store_client():
    """Dependency for getting a config store client; closed after the request."""
    config = get_settings()
    if not config.is_xc_configured():
        logger.warning("Audit requested but XC_TENANT/XC_API_TOKEN are not configured")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Config store is not configured. Set XC_TENANT and XC_API_TOKEN.",
        )
    client = ConfigStoreClient.from_settings(config)
    try:
        yield client
    finally:
        client.close()
