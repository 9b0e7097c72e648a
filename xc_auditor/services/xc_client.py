"""
HTTP client for the tenant configuration store (F5 Distributed Cloud config API).
"""
import logging
from typing import Any, Dict, Optional

import requests

from xc_auditor.core.config import Settings, settings as default_settings
from xc_auditor.core.exceptions import ConfigStoreError
from xc_auditor.models.enums import ObjectType

logger = logging.getLogger(__name__)


# REST collection names per object type (the API pluralises "policy" as "policys")
OBJECT_TYPE_PATHS = {
    ObjectType.HTTP_LOADBALANCER: "http_loadbalancers",
    ObjectType.ORIGIN_POOL: "origin_pools",
    ObjectType.APP_FIREWALL: "app_firewalls",
    ObjectType.HEALTHCHECK: "healthchecks",
    ObjectType.SERVICE_POLICY: "service_policys",
    ObjectType.ALERT_POLICY: "alert_policys",
    ObjectType.ALERT_RECEIVER: "alert_receivers",
    ObjectType.USER_IDENTIFICATION: "user_identifications",
    ObjectType.CERTIFICATE: "certificates",
    ObjectType.GLOBAL_LOG_RECEIVER: "global_log_receivers",
}


class ConfigStoreClient:
    """Read-only client for listing and fetching configuration objects."""

    def __init__(
        self,
        tenant: str,
        api_token: str,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize config store client.

        Args:
            tenant: Tenant short name
            api_token: API token for the tenant
            base_url: API base URL; defaults to the tenant console URL
            timeout: Per-request timeout in seconds
            session: Optional requests session (injected in tests)
        """
        self.tenant = tenant
        self.base_url = (base_url or f"https://{tenant}.console.ves.volterra.io").rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            "Authorization": f"APIToken {api_token}",
            "Accept": "application/json",
        })

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "ConfigStoreClient":
        """Build a client from application settings."""
        config = config or default_settings
        if not config.is_xc_configured():
            raise ValueError("Config store is not configured: set XC_TENANT (or XC_API_URL) and XC_API_TOKEN")
        return cls(
            tenant=config.XC_TENANT or "",
            api_token=config.XC_API_TOKEN,
            base_url=config.xc_api_base_url,
            timeout=config.XC_REQUEST_TIMEOUT,
        )

    def _collection_url(self, namespace: str, object_type: ObjectType) -> str:
        path = OBJECT_TYPE_PATHS[ObjectType(object_type)]
        return f"{self.base_url}/api/config/namespaces/{namespace}/{path}"

    def _get_json(self, url: str, namespace: str, object_type: ObjectType) -> Dict[str, Any]:
        """GET a URL and return the decoded JSON body, raising ConfigStoreError on any failure."""
        type_name = ObjectType(object_type).value
        try:
            response = self._session.get(url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise ConfigStoreError(namespace, type_name, f"request failed: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = None

        if not response.ok:
            message = None
            if isinstance(data, dict):
                message = data.get("message") or data.get("error")
            raise ConfigStoreError(
                namespace,
                type_name,
                message or f"API Error: {response.status_code} {response.reason}",
                status_code=response.status_code,
            )

        if not isinstance(data, dict):
            raise ConfigStoreError(namespace, type_name, "response body is not a JSON object",
                                   status_code=response.status_code)

        # Some endpoints answer 200 with an error field
        if data.get("error"):
            raise ConfigStoreError(namespace, type_name, str(data["error"]),
                                   status_code=response.status_code)

        return data

    def list_objects(self, namespace: str, object_type: ObjectType) -> Dict[str, Any]:
        """
        List objects of one type in a namespace.

        Returns:
            Dictionary with an 'items' list of object summaries
        """
        data = self._get_json(self._collection_url(namespace, object_type), namespace, object_type)
        items = data.get("items")
        return {"items": items if isinstance(items, list) else []}

    def get_object(self, namespace: str, object_type: ObjectType, name: str) -> Dict[str, Any]:
        """Fetch the full object by name."""
        url = f"{self._collection_url(namespace, object_type)}/{name}"
        return self._get_json(url, namespace, object_type)

    def close(self) -> None:
        self._session.close()
