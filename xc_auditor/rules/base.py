"""
Base class for security rules.
"""
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Optional, Tuple

from xc_auditor.models.enums import CheckStatus, ObjectType, RuleCategory, Severity
from xc_auditor.schemas.audit import CheckResult
from xc_auditor.schemas.rule import RuleInfo
from xc_auditor.services.audit_context import AuditContext

# Marker in a rule id that makes the rule run once per audit instead of once per object
TENANT_MARKER = "TENANT"


class SecurityRule(ABC):
    """
    A catalogue entry: static metadata plus a pure check.

    Subclasses set the class attributes and implement check(). check() must not
    mutate the object or the context; it may raise, in which case the executor
    records an ERROR finding for that object.
    """

    id: ClassVar[str]
    name: ClassVar[str]
    description: ClassVar[str]
    category: ClassVar[RuleCategory]
    severity: ClassVar[Severity]
    applies_to: ClassVar[Tuple[ObjectType, ...]]
    remediation: ClassVar[str] = ""
    reference_url: ClassVar[Optional[str]] = None

    @abstractmethod
    def check(self, obj: Any, context: AuditContext) -> CheckResult:
        """Evaluate the rule against one configuration object."""
        pass

    @property
    def is_tenant_wide(self) -> bool:
        return TENANT_MARKER in self.id

    def info(self) -> RuleInfo:
        """Serialisable metadata for listings."""
        return RuleInfo(
            id=self.id,
            name=self.name,
            description=self.description,
            category=self.category,
            severity=self.severity,
            applies_to=list(self.applies_to),
            tenant_wide=self.is_tenant_wide,
            remediation=self.remediation,
            reference_url=self.reference_url,
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id}>"

    # Result shorthands for subclasses

    @staticmethod
    def passed(message: str, current: Any = None, expected: Any = None, **details: Any) -> CheckResult:
        return CheckResult(status=CheckStatus.PASS, message=message, current_value=current,
                           expected_value=expected, details=details or None)

    @staticmethod
    def failed(message: str, current: Any = None, expected: Any = None, **details: Any) -> CheckResult:
        return CheckResult(status=CheckStatus.FAIL, message=message, current_value=current,
                           expected_value=expected, details=details or None)

    @staticmethod
    def warned(message: str, current: Any = None, expected: Any = None, **details: Any) -> CheckResult:
        return CheckResult(status=CheckStatus.WARN, message=message, current_value=current,
                           expected_value=expected, details=details or None)

    @staticmethod
    def skipped(message: str, current: Any = None, expected: Any = None, **details: Any) -> CheckResult:
        return CheckResult(status=CheckStatus.SKIP, message=message, current_value=current,
                           expected_value=expected, details=details or None)
