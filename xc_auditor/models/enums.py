"""
Enumerations shared by rules, findings and reports.
"""
import enum


class Severity(str, enum.Enum):
    """Rule severity levels, most severe first."""
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    INFO = "INFO"

    @property
    def rank(self) -> int:
        """Fixed ordering rank (CRITICAL=0 ... INFO=4)."""
        return SEVERITY_ORDER[self]

    def at_least(self, minimum: "Severity") -> bool:
        """True when this severity is at or above ``minimum``."""
        return self.rank <= minimum.rank


class RuleCategory(str, enum.Enum):
    """Rule categories."""
    TLS_SSL = "TLS_SSL"
    WAF = "WAF"
    BOT_DEFENSE = "BOT_DEFENSE"
    API_SECURITY = "API_SECURITY"
    DDOS = "DDOS"
    ORIGIN = "ORIGIN"
    ACCESS_CONTROL = "ACCESS_CONTROL"
    LOGGING = "LOGGING"
    ALERTING = "ALERTING"
    USER_IDENTIFICATION = "USER_IDENTIFICATION"
    RATE_LIMITING = "RATE_LIMITING"
    CLIENT_SECURITY = "CLIENT_SECURITY"


class ObjectType(str, enum.Enum):
    """Configuration object types the auditor knows how to fetch."""
    HTTP_LOADBALANCER = "http_loadbalancer"
    ORIGIN_POOL = "origin_pool"
    APP_FIREWALL = "app_firewall"
    HEALTHCHECK = "healthcheck"
    SERVICE_POLICY = "service_policy"
    ALERT_POLICY = "alert_policy"
    ALERT_RECEIVER = "alert_receiver"
    USER_IDENTIFICATION = "user_identification"
    CERTIFICATE = "certificate"
    GLOBAL_LOG_RECEIVER = "global_log_receiver"


class CheckStatus(str, enum.Enum):
    """Outcome of one rule evaluated against one object."""
    PASS = "PASS"
    FAIL = "FAIL"
    WARN = "WARN"
    SKIP = "SKIP"
    ERROR = "ERROR"

    @property
    def rank(self) -> int:
        """Fixed ordering rank (FAIL=0, WARN=1, ERROR=2, PASS=3, SKIP=4)."""
        return STATUS_ORDER[self]


class AuditPhase(str, enum.Enum):
    """Phases reported to the progress sink."""
    FETCHING = "fetching"
    SCANNING = "scanning"
    REPORTING = "reporting"
    COMPLETE = "complete"


class AuditState(str, enum.Enum):
    """Lifecycle of one engine run."""
    IDLE = "idle"
    FETCHING = "fetching"
    SCANNING = "scanning"
    REPORTING = "reporting"
    COMPLETE = "complete"
    ABORTED = "aborted"


SEVERITY_ORDER = {
    Severity.CRITICAL: 0,
    Severity.HIGH: 1,
    Severity.MEDIUM: 2,
    Severity.LOW: 3,
    Severity.INFO: 4,
}

STATUS_ORDER = {
    CheckStatus.FAIL: 0,
    CheckStatus.WARN: 1,
    CheckStatus.ERROR: 2,
    CheckStatus.PASS: 3,
    CheckStatus.SKIP: 4,
}

# Object types listed once per namespace; global log receivers live in the shared namespace
NAMESPACED_OBJECT_TYPES = (
    ObjectType.HTTP_LOADBALANCER,
    ObjectType.ORIGIN_POOL,
    ObjectType.APP_FIREWALL,
    ObjectType.HEALTHCHECK,
    ObjectType.SERVICE_POLICY,
    ObjectType.ALERT_POLICY,
    ObjectType.ALERT_RECEIVER,
    ObjectType.USER_IDENTIFICATION,
    ObjectType.CERTIFICATE,
)

TENANT_WIDE_NAMESPACE = "tenant-wide"
TENANT_WIDE_OBJECT_NAME = "Tenant Configuration"
