"""
End-to-end tests for the audit engine.
"""
import threading

import pytest

from conftest import FakeConfigStoreClient, make_object
from xc_auditor.core.exceptions import AuditAbortedError, SnapshotFetchError
from xc_auditor.models.enums import AuditPhase, AuditState, CheckStatus, ObjectType, RuleCategory, Severity
from xc_auditor.rules.base import SecurityRule
from xc_auditor.rules.tls_ssl import HttpRedirectRule
from xc_auditor.schemas.audit import AuditOptions
from xc_auditor.services.audit_service import AuditEngine


class ExplodingOriginRule(SecurityRule):
    id = "TEST-EXPLODE"
    name = "Explodes on one pool"
    description = "Test rule"
    category = RuleCategory.ORIGIN
    severity = Severity.MEDIUM
    applies_to = (ObjectType.ORIGIN_POOL,)

    def check(self, obj, context):
        if obj["metadata"]["name"] == "x":
            raise RuntimeError("unexpected shape")
        return self.passed("fine")


@pytest.fixture
def redirect_store():
    store = FakeConfigStoreClient()
    store.add("default", ObjectType.HTTP_LOADBALANCER, make_object(
        "with-redirect", "default", https={"http_redirect": True},
    ))
    store.add("default", ObjectType.HTTP_LOADBALANCER, make_object(
        "without-redirect", "default", http={"port": 80},
    ))
    return store


def test_redirect_scenario_scores_fifty(redirect_store):
    engine = AuditEngine(redirect_store, rules=[HttpRedirectRule()])

    report = engine.run_audit(["default"], AuditOptions(include_passed_checks=True))

    assert {(f.object_name, f.status) for f in report.findings} == {
        ("with-redirect", CheckStatus.PASS),
        ("without-redirect", CheckStatus.FAIL),
    }
    assert report.summary.passed == 1
    assert report.summary.high == 1
    assert report.score == 50
    assert engine.state == AuditState.COMPLETE


def test_throwing_check_is_excluded_from_score():
    store = FakeConfigStoreClient()
    store.add("default", ObjectType.ORIGIN_POOL, make_object("x", "default"))
    store.add("default", ObjectType.ORIGIN_POOL, make_object("y", "default"))

    report = AuditEngine(store, rules=[ExplodingOriginRule()]).run_audit(["default"])

    errors = [f for f in report.findings if f.status == CheckStatus.ERROR]
    assert len(errors) == 1
    assert errors[0].object_name == "x"
    assert "unexpected shape" in errors[0].message
    assert report.summary.errors == 1
    assert report.score == 100


def test_progress_walks_every_phase(redirect_store):
    events = []
    engine = AuditEngine(redirect_store, rules=[HttpRedirectRule()], on_progress=events.append)

    engine.run_audit(["default"])

    phases = [e.phase for e in events]
    assert phases[0] == AuditPhase.FETCHING
    assert phases[-1] == AuditPhase.COMPLETE
    assert phases.index(AuditPhase.SCANNING) < phases.index(AuditPhase.REPORTING)
    assert [e.progress for e in events if e.phase == AuditPhase.FETCHING] == [0, 20]
    assert [e.progress for e in events if e.phase == AuditPhase.REPORTING] == [95]
    assert events[-1].progress == 100
    progress = [e.progress for e in events]
    assert progress == sorted(progress)


def test_abort_mid_fetch_raises_without_report():
    store = FakeConfigStoreClient()
    store.add("default", ObjectType.HTTP_LOADBALANCER, make_object("lb", "default"))
    engine = AuditEngine(store, max_workers=1)

    def abort_from_worker(namespace, object_type):
        engine.abort()

    store.on_list = abort_from_worker

    with pytest.raises(AuditAbortedError):
        engine.run_audit(["default", "prod"])

    assert engine.state == AuditState.ABORTED


def test_abort_from_another_thread():
    store = FakeConfigStoreClient()
    listing_started = threading.Event()
    release = threading.Event()

    def block_first_listing(namespace, object_type):
        listing_started.set()
        release.wait(timeout=5)

    store.on_list = block_first_listing
    engine = AuditEngine(store, max_workers=1)
    outcome = {}

    def run():
        try:
            outcome["report"] = engine.run_audit(["default"])
        except AuditAbortedError as e:
            outcome["error"] = e

    worker = threading.Thread(target=run)
    worker.start()
    assert listing_started.wait(timeout=5)
    engine.abort()
    release.set()
    worker.join(timeout=10)

    assert "report" not in outcome
    assert isinstance(outcome["error"], AuditAbortedError)
    assert engine.state == AuditState.ABORTED


def test_abort_when_idle_is_noop(redirect_store):
    engine = AuditEngine(redirect_store, rules=[HttpRedirectRule()])

    engine.abort()
    report = engine.run_audit(["default"])

    assert engine.state == AuditState.COMPLETE
    assert report.summary.total == 2


def test_engine_can_run_again_after_abort(redirect_store):
    engine = AuditEngine(redirect_store, rules=[HttpRedirectRule()])
    armed = threading.Event()
    armed.set()

    def abort_once(namespace, object_type):
        if armed.is_set():
            armed.clear()
            engine.abort()

    redirect_store.on_list = abort_once

    with pytest.raises(AuditAbortedError):
        engine.run_audit(["default"])

    report = engine.run_audit(["default"])

    assert engine.state == AuditState.COMPLETE
    assert report.score == 50


def test_total_fetch_failure_propagates():
    store = FakeConfigStoreClient()
    store.fail_list.update((ns, t) for ns in ("default", "shared") for t in ObjectType)
    engine = AuditEngine(store)

    with pytest.raises(SnapshotFetchError):
        engine.run_audit(["default"])

    assert engine.state == AuditState.FETCHING


def test_options_filter_rules_and_listing(fake_store):
    report = AuditEngine(fake_store).run_audit(
        ["default"], AuditOptions(categories=[RuleCategory.WAF], min_severity=Severity.CRITICAL)
    )

    assert {f.rule_id for f in report.findings} <= {"SEC-008", "SEC-008-LB"}
    assert all(f.status != CheckStatus.PASS for f in report.findings)
    # blocking-waf passes SEC-008, secure-lb passes SEC-008-LB, plain-lb fails it
    assert report.summary.passed == 2
    assert report.summary.critical == 1
    assert report.score == 67


def test_full_catalogue_against_sample_tenant(fake_store):
    report = AuditEngine(fake_store).run_audit(["default"], AuditOptions(include_passed_checks=True))

    assert report.summary.errors == 0
    assert 0 <= report.score <= 100
    tenant_findings = [f for f in report.findings if f.namespace == "tenant-wide"]
    assert [(f.rule_id, f.status) for f in tenant_findings] == [("SEC-024-TENANT", CheckStatus.PASS)]
    assert report.config_snapshot["global_log_receiver"] == 1
