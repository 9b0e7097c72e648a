"""
Tests for the rule executor.
"""
import pytest

from conftest import make_context, make_object
from xc_auditor.core.cancellation import CancellationToken
from xc_auditor.core.exceptions import AuditAbortedError
from xc_auditor.models.enums import AuditPhase, CheckStatus, ObjectType, RuleCategory, Severity
from xc_auditor.rules import ALL_RULES
from xc_auditor.rules.base import SecurityRule
from xc_auditor.schemas.audit import AuditOptions
from xc_auditor.services.audit_context import AuditContext
from xc_auditor.services.rule_executor import RuleExecutor, filter_rules


class AlwaysPass(SecurityRule):
    id = "TEST-PASS"
    name = "Always passes"
    description = "Test rule"
    category = RuleCategory.ORIGIN
    severity = Severity.LOW
    applies_to = (ObjectType.ORIGIN_POOL, ObjectType.HTTP_LOADBALANCER)

    def check(self, obj, context):
        return self.passed("ok")


class FailsOnBadPool(SecurityRule):
    id = "TEST-BOOM"
    name = "Raises for one object"
    description = "Test rule"
    category = RuleCategory.ORIGIN
    severity = Severity.HIGH
    applies_to = (ObjectType.ORIGIN_POOL,)

    def check(self, obj, context):
        if obj["metadata"]["name"] == "bad":
            raise KeyError("servers")
        return self.failed("not ok")


class TenantCounter(SecurityRule):
    id = "TEST-TENANT-COUNT"
    name = "Counts pools once"
    description = "Test rule"
    category = RuleCategory.LOGGING
    severity = Severity.MEDIUM
    applies_to = (ObjectType.HTTP_LOADBALANCER, ObjectType.ORIGIN_POOL)

    def __init__(self):
        self.calls = []

    def check(self, obj, context):
        self.calls.append(obj)
        return self.warned(f"{context.count(ObjectType.ORIGIN_POOL)} pools")


@pytest.fixture
def context():
    return make_context({
        ObjectType.ORIGIN_POOL: [make_object("good", "default"), make_object("bad", "prod")],
        ObjectType.HTTP_LOADBALANCER: [make_object("lb", "default")],
    })


def test_non_tenant_rule_runs_once_per_applicable_object(context):
    findings = RuleExecutor().execute([AlwaysPass()], context)

    assert len(findings) == 3
    assert {(f.namespace, f.object_type, f.object_name) for f in findings} == {
        ("default", ObjectType.ORIGIN_POOL, "good"),
        ("prod", ObjectType.ORIGIN_POOL, "bad"),
        ("default", ObjectType.HTTP_LOADBALANCER, "lb"),
    }


def test_exception_in_check_becomes_error_finding(context):
    findings = RuleExecutor().execute([FailsOnBadPool()], context)

    by_name = {f.object_name: f for f in findings}
    assert by_name["bad"].status == CheckStatus.ERROR
    assert by_name["bad"].message.startswith("Error running check:")
    assert "servers" in by_name["bad"].message
    assert by_name["good"].status == CheckStatus.FAIL


def test_tenant_wide_rule_runs_exactly_once(context):
    rule = TenantCounter()

    findings = RuleExecutor().execute([rule, rule], context)

    assert len(rule.calls) == 1
    assert rule.calls[0] == {}
    assert len(findings) == 1
    finding = findings[0]
    assert finding.namespace == "tenant-wide"
    assert finding.object_name == "Tenant Configuration"
    assert finding.object_type == ObjectType.HTTP_LOADBALANCER
    assert finding.message == "2 pools"


def test_finding_carries_rule_metadata(context):
    finding = RuleExecutor().execute([FailsOnBadPool()], context)[0]

    assert finding.rule_id == "TEST-BOOM"
    assert finding.rule_name == "Raises for one object"
    assert finding.severity == Severity.HIGH
    assert finding.category == RuleCategory.ORIGIN


def test_object_without_name_is_reported_as_unknown():
    context = AuditContext(tenant="acme", configs={ObjectType.ORIGIN_POOL: {"default/p": {"spec": {}}}})

    findings = RuleExecutor().execute([AlwaysPass()], context)

    assert findings[0].object_name == "unknown"
    assert findings[0].namespace == "default"


def test_progress_occupies_scanning_band(context):
    events = []

    RuleExecutor().execute([AlwaysPass(), FailsOnBadPool()], context, on_progress=events.append)

    assert [e.phase for e in events] == [AuditPhase.SCANNING, AuditPhase.SCANNING]
    assert [e.progress for e in events] == [55, 90]
    assert [e.rules_checked for e in events] == [1, 2]
    assert events[-1].total_rules == 2
    # Running FAIL count: AlwaysPass adds none, FailsOnBadPool fails "good" only
    assert [e.findings_count for e in events] == [0, 1]


def test_cancelled_token_raises(context):
    token = CancellationToken()
    token.cancel()

    with pytest.raises(AuditAbortedError):
        RuleExecutor().execute([AlwaysPass()], context, token=token)


def test_filter_rules_by_category_and_min_severity():
    rules = [AlwaysPass(), FailsOnBadPool(), TenantCounter()]

    assert filter_rules(rules, None) == rules
    assert [r.id for r in filter_rules(rules, AuditOptions(categories=[RuleCategory.ORIGIN]))] == [
        "TEST-PASS", "TEST-BOOM",
    ]
    assert [r.id for r in filter_rules(rules, AuditOptions(min_severity=Severity.MEDIUM))] == [
        "TEST-BOOM", "TEST-TENANT-COUNT",
    ]
    assert filter_rules(rules, AuditOptions(categories=[])) == rules


def test_filtered_execution_skips_other_categories(context):
    findings = RuleExecutor().execute(
        [AlwaysPass(), TenantCounter()], context, options=AuditOptions(categories=[RuleCategory.LOGGING])
    )

    assert [f.rule_id for f in findings] == ["TEST-TENANT-COUNT"]


def test_full_catalogue_is_deterministic(fake_store):
    from xc_auditor.services.snapshot_builder import SnapshotBuilder

    context = SnapshotBuilder(fake_store).build(["default"])
    first = RuleExecutor().execute(ALL_RULES, context)
    second = RuleExecutor().execute(ALL_RULES, context)

    assert {f.model_dump_json() for f in first} == {f.model_dump_json() for f in second}
    assert not [f for f in first if f.status == CheckStatus.ERROR]
