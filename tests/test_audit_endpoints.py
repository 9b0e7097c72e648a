"""
Tests for the audit and rule catalogue endpoints.
"""
from unittest.mock import patch

from fastapi import status
from fastapi.testclient import TestClient

from conftest import FakeConfigStoreClient
from xc_auditor.api.deps import get_config_store_client
from xc_auditor.core.exceptions import AuditAbortedError
from xc_auditor.main import app
from xc_auditor.models.enums import ObjectType
from xc_auditor.rules import ALL_RULES


def test_audit_returns_report(client):
    response = client.post("/api/v1/audit", json={"namespaces": ["default"]})

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["tenant"] == "acme"
    assert data["namespaces"] == ["default"]
    assert 0 <= data["score"] <= 100
    assert data["config_snapshot"]["http_loadbalancer"] == 2
    assert all(f["status"] != "PASS" for f in data["findings"])
    assert data["summary"]["total"] >= len(data["findings"])


def test_audit_with_filters(client):
    response = client.post("/api/v1/audit", json={
        "namespaces": ["default"],
        "categories": ["TLS_SSL"],
        "include_passed_checks": True,
    })

    assert response.status_code == status.HTTP_200_OK
    findings = response.json()["findings"]
    assert findings
    assert {f["category"] for f in findings} == {"TLS_SSL"}
    assert any(f["status"] == "PASS" for f in findings)


def test_audit_rejects_empty_namespace_list(client):
    response = client.post("/api/v1/audit", json={"namespaces": []})

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_audit_rejects_unknown_category(client):
    response = client.post("/api/v1/audit", json={"namespaces": ["default"], "categories": ["NOPE"]})

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_audit_returns_502_when_nothing_could_be_fetched():
    store = FakeConfigStoreClient()
    store.fail_list.update((ns, t) for ns in ("default", "shared") for t in ObjectType)

    def override():
        yield store

    app.dependency_overrides[get_config_store_client] = override
    try:
        response = TestClient(app).post("/api/v1/audit", json={"namespaces": ["default"]})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    assert "Could not fetch any configuration" in response.json()["detail"]


def test_audit_returns_409_when_aborted(client):
    with patch("xc_auditor.api.v1.endpoints.audit.AuditEngine.run_audit", side_effect=AuditAbortedError()):
        response = client.post("/api/v1/audit", json={"namespaces": ["default"]})

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["detail"] == "Audit aborted"


def test_audit_returns_503_when_not_configured():
    with patch("xc_auditor.core.config.settings.XC_TENANT", None), \
            patch("xc_auditor.core.config.settings.XC_API_URL", None), \
            patch("xc_auditor.core.config.settings.XC_API_TOKEN", None):
        response = TestClient(app).post("/api/v1/audit", json={"namespaces": ["default"]})

    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE


def test_list_rules(client):
    response = client.get("/api/v1/rules")

    assert response.status_code == status.HTTP_200_OK
    assert len(response.json()) == len(ALL_RULES)


def test_list_rules_with_filters(client):
    response = client.get("/api/v1/rules", params={"category": "WAF", "severity": "CRITICAL"})

    assert response.status_code == status.HTTP_200_OK
    assert {rule["id"] for rule in response.json()} == {"SEC-008", "SEC-008-LB"}

    response = client.get("/api/v1/rules", params={"object_type": "global_log_receiver"})
    assert [rule["id"] for rule in response.json()] == ["SEC-024"]


def test_rule_stats(client):
    data = client.get("/api/v1/rules/stats").json()

    assert data["total"] == len(ALL_RULES)
    assert data["by_category"]["WAF"] == 4


def test_rule_categories(client):
    data = client.get("/api/v1/rules/categories").json()

    labels = {item["category"]: item["label"] for item in data}
    assert labels["TLS_SSL"] == "TLS/SSL Security"
    assert len(data) == 12


def test_get_rule(client):
    response = client.get("/api/v1/rules/SEC-024-TENANT")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["tenant_wide"] is True
    assert data["applies_to"] == ["http_loadbalancer"]


def test_get_unknown_rule_returns_404(client):
    response = client.get("/api/v1/rules/SEC-999")

    assert response.status_code == status.HTTP_404_NOT_FOUND
