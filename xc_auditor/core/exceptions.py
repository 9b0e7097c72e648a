"""
Exception types raised by the audit engine.
"""
from typing import Optional


class AuditorError(Exception):
    """Base class for audit engine errors."""


class ConfigStoreError(AuditorError):
    """A config store call failed (transport, HTTP status, or malformed body).

    Attributes:
        namespace: Namespace the call targeted.
        object_type: Object type the call targeted.
        status_code: HTTP status code when the server answered, else None.
    """

    def __init__(
        self,
        namespace: str,
        object_type: str,
        message: str,
        status_code: Optional[int] = None,
    ) -> None:
        self.namespace = namespace
        self.object_type = object_type
        self.status_code = status_code
        super().__init__(f"{object_type} in namespace '{namespace}': {message}")


class SnapshotFetchError(AuditorError):
    """Every listing call of the fetch phase failed; there is nothing to audit."""

    def __init__(self, errors: list) -> None:
        self.errors = errors
        detail = "; ".join(str(e) for e in errors[:5])
        super().__init__(
            f"Could not fetch any configuration ({len(errors)} failed request(s)): {detail}"
        )


class AuditAbortedError(AuditorError):
    """The audit run was cancelled via abort(); no report is produced."""

    def __init__(self, message: str = "Audit aborted") -> None:
        super().__init__(message)
