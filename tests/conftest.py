"""
Pytest configuration and fixtures.
"""
import copy
import threading

import pytest
from fastapi.testclient import TestClient

from xc_auditor.api.deps import get_config_store_client
from xc_auditor.core.exceptions import ConfigStoreError
from xc_auditor.main import app
from xc_auditor.models.enums import ObjectType
from xc_auditor.services.audit_context import AuditContext, make_key


class FakeConfigStoreClient:
    """
    In-memory config store.

    Objects are registered per (namespace, object type). Listing returns name
    summaries; get_object returns a deep copy of the full object, like the API.
    """

    def __init__(self, tenant="acme"):
        self.tenant = tenant
        self._objects = {}
        self.fail_list = set()  # (namespace, object_type) pairs whose listing raises
        self.fail_get = set()  # (namespace, object_type, name) triples whose get raises
        self.on_list = None  # optional hook(namespace, object_type), called before each listing
        self.list_calls = []
        self.get_calls = []
        self._lock = threading.Lock()

    def add(self, namespace, object_type, obj):
        self._objects.setdefault((namespace, ObjectType(object_type)), []).append(obj)
        return obj

    def list_objects(self, namespace, object_type):
        with self._lock:
            self.list_calls.append((namespace, object_type))
        if self.on_list:
            self.on_list(namespace, object_type)
        if (namespace, object_type) in self.fail_list:
            raise ConfigStoreError(namespace, object_type.value, "API Error: 500 Internal Server Error", 500)
        items = []
        for obj in self._objects.get((namespace, object_type), []):
            metadata = obj.get("metadata", {})
            items.append({"name": metadata.get("name"), "namespace": metadata.get("namespace", namespace)})
        return {"items": items}

    def get_object(self, namespace, object_type, name):
        with self._lock:
            self.get_calls.append((namespace, object_type, name))
        if (namespace, object_type, name) in self.fail_get:
            raise ConfigStoreError(namespace, object_type.value, "API Error: 404 Not Found", 404)
        for obj in self._objects.get((namespace, object_type), []):
            if obj.get("metadata", {}).get("name") == name:
                return copy.deepcopy(obj)
        raise ConfigStoreError(namespace, object_type.value, f"{name} not found", 404)

    def close(self):
        pass


def make_object(name, namespace="default", **spec):
    """Build a config object the way the config store returns it."""
    return {"metadata": {"name": name, "namespace": namespace}, "spec": spec}


def make_context(objects, tenant="acme"):
    """
    Build an AuditContext from {ObjectType: [objects]}.

    Objects are keyed by their metadata namespace and name.
    """
    configs = {}
    for object_type, items in objects.items():
        configs[object_type] = {
            make_key(obj["metadata"].get("namespace", "default"), obj["metadata"]["name"]): obj
            for obj in items
        }
    return AuditContext(tenant=tenant, configs=configs)


@pytest.fixture
def fake_store():
    """Config store with a small, mixed-quality tenant."""
    store = FakeConfigStoreClient()
    store.add("default", ObjectType.HTTP_LOADBALANCER, make_object(
        "secure-lb", "default",
        https={"http_redirect": True, "add_hsts": True},
        app_firewall={"name": "blocking-waf", "namespace": "default"},
    ))
    store.add("default", ObjectType.HTTP_LOADBALANCER, make_object(
        "plain-lb", "default",
        http={"port": 80},
        disable_waf={},
    ))
    store.add("default", ObjectType.APP_FIREWALL, make_object(
        "blocking-waf", "default",
        blocking={},
        default_detection_settings={},
    ))
    store.add("default", ObjectType.ORIGIN_POOL, make_object(
        "backend", "default",
        origin_servers=[{"private_ip": {"ip": "10.0.0.5"}}],
        port=443,
        use_tls={"tls_config": {"default_security": {}}},
    ))
    store.add("shared", ObjectType.GLOBAL_LOG_RECEIVER, make_object(
        "siem", "shared",
        splunk_receiver={"endpoint": "https://splunk.example.com"},
    ))
    return store


@pytest.fixture(scope="function")
def client(fake_store):
    """
    Create a test client with the config store dependency overridden.

    The get_config_store_client dependency yields the in-memory fake store.
    """
    def override_get_config_store_client():
        yield fake_store

    app.dependency_overrides[get_config_store_client] = override_get_config_store_client

    yield TestClient(app)

    # Clean up: clear dependency overrides after test
    app.dependency_overrides.clear()
