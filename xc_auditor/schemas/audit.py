"""Schemas for security audit operations."""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from xc_auditor.models.enums import AuditPhase, CheckStatus, ObjectType, RuleCategory, Severity


class CheckResult(BaseModel):
    """Result of running one rule against one configuration object."""

    model_config = ConfigDict(frozen=True)

    status: CheckStatus
    message: str = ""
    current_value: Any = None
    expected_value: Any = None
    details: Optional[Dict[str, Any]] = None


class Finding(BaseModel):
    """Recorded outcome of one (rule, object) evaluation."""

    model_config = ConfigDict(frozen=True)

    rule_id: str
    rule_name: str
    severity: Severity
    category: RuleCategory
    namespace: str  # or "tenant-wide"
    object_type: ObjectType
    object_name: str  # or "Tenant Configuration"
    status: CheckStatus
    message: str
    current_value: Any = None
    expected_value: Any = None
    details: Optional[Dict[str, Any]] = None
    remediation: str
    reference_url: Optional[str] = None


class AuditSummary(BaseModel):
    """Finding counts. Severity buckets count FAIL findings only."""

    model_config = ConfigDict(frozen=True)

    total: int = 0
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    info: int = 0
    passed: int = 0
    warnings: int = 0
    errors: int = 0
    skipped: int = 0


class AuditOptions(BaseModel):
    """Caller options for a run."""
    categories: Optional[List[RuleCategory]] = None
    min_severity: Optional[Severity] = None
    include_passed_checks: bool = False


class AuditReport(BaseModel):
    """Final audit report; model_dump(mode="json") is the export format."""

    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: str
    tenant: str
    namespaces: List[str]
    duration_ms: int
    summary: AuditSummary
    score: int = Field(ge=0, le=100)
    findings: List[Finding]
    config_snapshot: Dict[str, int]  # object type -> objects fetched


class AuditProgress(BaseModel):
    """Progress event pushed to the progress sink."""
    phase: AuditPhase
    message: str
    progress: int = Field(ge=0, le=100)
    current_namespace: Optional[str] = None
    rules_checked: Optional[int] = None
    total_rules: Optional[int] = None
    findings_count: Optional[int] = None


class AuditRequest(AuditOptions):
    """Request body for POST /audit."""
    namespaces: List[str] = Field(..., min_length=1, description="Namespaces to audit")
