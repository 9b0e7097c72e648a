"""
Rule executor: evaluates the rule catalogue against a configuration snapshot.
"""
import logging
from typing import Any, Callable, List, Optional, Sequence, Set

from xc_auditor.core.cancellation import CancellationToken
from xc_auditor.models.enums import (
    TENANT_WIDE_NAMESPACE,
    TENANT_WIDE_OBJECT_NAME,
    AuditPhase,
    CheckStatus,
    ObjectType,
)
from xc_auditor.rules.base import SecurityRule
from xc_auditor.schemas.audit import AuditOptions, AuditProgress, CheckResult, Finding
from xc_auditor.services.audit_context import AuditContext
from xc_auditor.utils.config_object import object_name
from xc_auditor.utils.progress import progress_percent

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[AuditProgress], None]

SCAN_PROGRESS_BASE = 20
SCAN_PROGRESS_SHARE = 70


def filter_rules(rules: Sequence[SecurityRule], options: Optional[AuditOptions] = None) -> List[SecurityRule]:
    """
    Select the rules an audit run should evaluate.

    Args:
        rules: Candidate rules
        options: Category and minimum severity filters; None keeps every rule

    Returns:
        Rules in catalogue order
    """
    if options is None:
        return list(rules)

    selected = []
    for rule in rules:
        if options.categories and rule.category not in options.categories:
            continue
        if options.min_severity and not rule.severity.at_least(options.min_severity):
            continue
        selected.append(rule)
    return selected


class RuleExecutor:
    """Runs rules over every applicable object and records one finding per evaluation."""

    def execute(
        self,
        rules: Sequence[SecurityRule],
        context: AuditContext,
        options: Optional[AuditOptions] = None,
        token: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[Finding]:
        """
        Evaluate the filtered catalogue.

        A check that raises produces an ERROR finding for that object and the
        run carries on. Tenant-wide rules run once, against an empty object.

        Args:
            rules: Rule catalogue
            context: Snapshot built for this run
            options: Rule filters
            token: Cancellation token, checked before each rule
            on_progress: Optional progress sink

        Returns:
            Findings in evaluation order (unfiltered by status)

        Raises:
            AuditAbortedError: If the token was cancelled
        """
        token = token or CancellationToken()
        selected = filter_rules(rules, options)
        total_rules = len(selected)

        findings: List[Finding] = []
        executed_tenant_rules: Set[str] = set()
        rules_checked = 0
        failures = 0

        for rule in selected:
            token.raise_if_cancelled()

            if rule.is_tenant_wide:
                if rule.id not in executed_tenant_rules:
                    executed_tenant_rules.add(rule.id)
                    finding = self._evaluate(
                        rule, {}, context, TENANT_WIDE_NAMESPACE, rule.applies_to[0], TENANT_WIDE_OBJECT_NAME
                    )
                    findings.append(finding)
                    failures += finding.status == CheckStatus.FAIL
            else:
                for object_type in rule.applies_to:
                    for namespace, _, obj in context.iter_objects(object_type):
                        finding = self._evaluate(
                            rule, obj, context, namespace, object_type, object_name(obj) or "unknown"
                        )
                        findings.append(finding)
                        failures += finding.status == CheckStatus.FAIL

            rules_checked += 1
            if on_progress:
                on_progress(AuditProgress(
                    phase=AuditPhase.SCANNING,
                    message=f"Checked {rule.id}: {rule.name}",
                    progress=progress_percent(rules_checked, total_rules, SCAN_PROGRESS_BASE, SCAN_PROGRESS_SHARE),
                    rules_checked=rules_checked,
                    total_rules=total_rules,
                    findings_count=failures,
                ))

        logger.info(f"Evaluated {rules_checked} rule(s): {len(findings)} finding(s), {failures} failure(s)")
        return findings

    @staticmethod
    def _evaluate(
        rule: SecurityRule,
        obj: Any,
        context: AuditContext,
        namespace: str,
        object_type: ObjectType,
        name: str,
    ) -> Finding:
        try:
            result = rule.check(obj, context)
            if not isinstance(result, CheckResult):
                raise TypeError(f"check returned {type(result).__name__}, expected CheckResult")
        except Exception as e:
            logger.warning(f"Rule {rule.id} failed on {object_type.value} {namespace}/{name}: {e}")
            result = CheckResult(status=CheckStatus.ERROR, message=f"Error running check: {e}")

        return Finding(
            rule_id=rule.id,
            rule_name=rule.name,
            severity=rule.severity,
            category=rule.category,
            namespace=namespace,
            object_type=object_type,
            object_name=name,
            status=result.status,
            message=result.message,
            current_value=result.current_value,
            expected_value=result.expected_value,
            details=result.details,
            remediation=rule.remediation,
            reference_url=rule.reference_url,
        )
