"""
Security audit endpoint.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from xc_auditor.api.deps import get_config_store_client
from xc_auditor.core.exceptions import AuditAbortedError, SnapshotFetchError
from xc_auditor.schemas.audit import AuditOptions, AuditReport, AuditRequest
from xc_auditor.services.audit_service import AuditEngine

logger = logging.getLogger(__name__)

router = APIRouter()


# Sync endpoint: run_audit blocks, FastAPI runs it in the threadpool
@router.post("", response_model=AuditReport)
def run_audit(
    request: AuditRequest,
    client=Depends(get_config_store_client),
):
    """
    Audit the given namespaces of the configured tenant.

    Fetches a fresh configuration snapshot, runs the rule catalogue and
    returns the scored report.
    """
    options = AuditOptions(
        categories=request.categories,
        min_severity=request.min_severity,
        include_passed_checks=request.include_passed_checks,
    )
    engine = AuditEngine(client)
    try:
        report = engine.run_audit(request.namespaces, options)
    except SnapshotFetchError as e:
        logger.error(f"Audit failed, no configuration fetched: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e),
        )
    except AuditAbortedError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        )

    logger.info(
        f"Audit completed: id={report.id}, namespaces={report.namespaces}, "
        f"score={report.score}, findings={report.summary.total}"
    )
    return report
