"""Domain enumerations."""
from xc_auditor.models.enums import (
    AuditPhase,
    AuditState,
    CheckStatus,
    ObjectType,
    RuleCategory,
    Severity,
)

__all__ = [
    "AuditPhase",
    "AuditState",
    "CheckStatus",
    "ObjectType",
    "RuleCategory",
    "Severity",
]
