"""
Report aggregator: turns raw findings into a scored, sorted audit report.
"""
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from xc_auditor.models.enums import CheckStatus, Severity
from xc_auditor.schemas.audit import AuditOptions, AuditReport, AuditSummary, Finding
from xc_auditor.services.audit_context import AuditContext
from xc_auditor.utils.progress import round_half_up

logger = logging.getLogger(__name__)


def summarize(findings: Sequence[Finding]) -> AuditSummary:
    """Count findings; severity buckets only count failures."""
    failed_by_severity = {severity: 0 for severity in Severity}
    by_status = {status: 0 for status in CheckStatus}
    for finding in findings:
        by_status[finding.status] += 1
        if finding.status == CheckStatus.FAIL:
            failed_by_severity[finding.severity] += 1

    return AuditSummary(
        total=len(findings),
        critical=failed_by_severity[Severity.CRITICAL],
        high=failed_by_severity[Severity.HIGH],
        medium=failed_by_severity[Severity.MEDIUM],
        low=failed_by_severity[Severity.LOW],
        info=failed_by_severity[Severity.INFO],
        passed=by_status[CheckStatus.PASS],
        warnings=by_status[CheckStatus.WARN],
        errors=by_status[CheckStatus.ERROR],
        skipped=by_status[CheckStatus.SKIP],
    )


def calculate_score(summary: AuditSummary) -> int:
    """
    Percentage of evaluable checks that passed.

    SKIP and ERROR findings are left out of the denominator. With no evaluable
    checks the score is 0.
    """
    total_checks = summary.total - summary.skipped - summary.errors
    if total_checks <= 0:
        return 0
    return round_half_up(100 * summary.passed / total_checks)


def sort_findings(findings: Sequence[Finding]) -> List[Finding]:
    """Most severe first, then FAIL, WARN, ERROR, PASS, SKIP. Stable."""
    return sorted(findings, key=lambda finding: (finding.severity.rank, finding.status.rank))


class ReportAggregator:
    """Builds the AuditReport for a completed scan."""

    def aggregate(
        self,
        findings: Sequence[Finding],
        context: AuditContext,
        namespaces: Sequence[str],
        start_time: float,
        options: Optional[AuditOptions] = None,
    ) -> AuditReport:
        """
        Aggregate findings into a report.

        Args:
            findings: Every finding of the run
            context: Snapshot the findings were produced from
            namespaces: Namespaces the caller asked for
            start_time: time.time() at the start of the run
            options: include_passed_checks decides whether PASS findings are listed

        Returns:
            AuditReport; summary and score always cover every finding
        """
        include_passed = bool(options and options.include_passed_checks)

        summary = summarize(findings)
        score = calculate_score(summary)

        listed = findings if include_passed else [f for f in findings if f.status != CheckStatus.PASS]

        report = AuditReport(
            id=str(uuid.uuid4()),
            timestamp=datetime.now(timezone.utc).isoformat(),
            tenant=context.tenant,
            namespaces=list(namespaces),
            duration_ms=max(0, int((time.time() - start_time) * 1000)),
            summary=summary,
            score=score,
            findings=sort_findings(listed),
            config_snapshot=context.snapshot_counts(),
        )
        logger.info(
            f"Audit report {report.id}: score={score}, findings={summary.total}, "
            f"failed={summary.critical + summary.high + summary.medium + summary.low + summary.info}"
        )
        return report
