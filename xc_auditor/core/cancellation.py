"""
Cooperative cancellation for audit runs.
"""
import threading

from xc_auditor.core.exceptions import AuditAbortedError


class CancellationToken:
    """Abort flag shared between the caller and the worker threads of one run.

    The token is polled at every namespace and rule boundary and before each
    hydrate request. Setting it never interrupts a request already in flight.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation. Safe to call from any thread, any number of times."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise AuditAbortedError if cancellation was requested."""
        if self._event.is_set():
            raise AuditAbortedError()
