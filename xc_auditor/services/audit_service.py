"""
Audit engine: fetch, scan and report for one tenant.
"""
import logging
import threading
import time
from typing import Callable, List, Optional, Sequence

from xc_auditor.core.cancellation import CancellationToken
from xc_auditor.core.exceptions import AuditAbortedError
from xc_auditor.models.enums import AuditPhase, AuditState
from xc_auditor.rules import ALL_RULES
from xc_auditor.rules.base import SecurityRule
from xc_auditor.schemas.audit import AuditOptions, AuditProgress, AuditReport
from xc_auditor.services.report_aggregator import ReportAggregator
from xc_auditor.services.rule_executor import RuleExecutor, filter_rules
from xc_auditor.services.snapshot_builder import SnapshotBuilder

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[AuditProgress], None]


class AuditEngine:
    """
    Runs audits against a config store.

    One engine runs one audit at a time. abort() may be called from any thread;
    the run stops at its next cancellation check and raises AuditAbortedError.
    """

    def __init__(
        self,
        client,
        rules: Optional[Sequence[SecurityRule]] = None,
        on_progress: Optional[ProgressCallback] = None,
        max_workers: Optional[int] = None,
    ):
        """
        Initialize audit engine.

        Args:
            client: Config store client exposing list_objects() and get_object()
            rules: Rule catalogue (defaults to every built-in rule)
            on_progress: Optional progress sink, called from the run_audit thread
            max_workers: Fetch threads (defaults to settings.FETCH_MAX_WORKERS)
        """
        self.client = client
        self.rules: List[SecurityRule] = list(rules) if rules is not None else list(ALL_RULES)
        self.on_progress = on_progress
        self.snapshot_builder = SnapshotBuilder(client, max_workers=max_workers)
        self.rule_executor = RuleExecutor()
        self.report_aggregator = ReportAggregator()

        self._state = AuditState.IDLE
        self._token: Optional[CancellationToken] = None
        self._lock = threading.Lock()

    @property
    def state(self) -> AuditState:
        return self._state

    def abort(self) -> None:
        """Cancel the run in progress. No-op when idle or finished."""
        with self._lock:
            token = self._token
        if token is not None:
            logger.info("Abort requested")
            token.cancel()

    def run_audit(self, namespaces: Sequence[str], options: Optional[AuditOptions] = None) -> AuditReport:
        """
        Run a full audit.

        Args:
            namespaces: Namespaces to audit
            options: Category / severity filters and report options

        Returns:
            Complete AuditReport

        Raises:
            AuditAbortedError: If abort() was called during the run
            SnapshotFetchError: If no configuration could be fetched at all
        """
        options = options or AuditOptions()
        token = CancellationToken()
        with self._lock:
            self._token = token
        self._state = AuditState.IDLE

        start_time = time.time()
        namespaces = list(namespaces)
        logger.info(f"Starting audit of {len(namespaces)} namespace(s) for tenant {getattr(self.client, 'tenant', '')}")

        try:
            self._state = AuditState.FETCHING
            self._emit(AuditPhase.FETCHING, "Fetching configuration", 0)
            context = self.snapshot_builder.build(namespaces, token=token, on_progress=self.on_progress)

            token.raise_if_cancelled()
            self._state = AuditState.SCANNING
            selected = filter_rules(self.rules, options)
            self._emit(AuditPhase.SCANNING, f"Running {len(selected)} security rule(s)", 20, total_rules=len(selected))
            findings = self.rule_executor.execute(
                selected, context, options=None, token=token, on_progress=self.on_progress
            )

            token.raise_if_cancelled()
            self._state = AuditState.REPORTING
            self._emit(AuditPhase.REPORTING, "Generating report", 95)
            report = self.report_aggregator.aggregate(findings, context, namespaces, start_time, options)

            self._state = AuditState.COMPLETE
            self._emit(AuditPhase.COMPLETE, f"Audit complete: score {report.score}", 100,
                       findings_count=report.summary.total)
            logger.info(f"Audit {report.id} complete in {report.duration_ms}ms")
            return report
        except AuditAbortedError:
            self._state = AuditState.ABORTED
            logger.info("Audit aborted")
            raise
        finally:
            with self._lock:
                if self._token is token:
                    self._token = None

    def _emit(self, phase: AuditPhase, message: str, progress: int, **extra) -> None:
        if self.on_progress:
            self.on_progress(AuditProgress(phase=phase, message=message, progress=progress, **extra))
