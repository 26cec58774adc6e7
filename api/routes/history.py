"""
History Router.

Read access to the audit log.
"""

import logging

from fastapi import APIRouter, Depends, Query

from api.deps import get_audit_logger
from patchgate.audit import AuditLogEntry, JsonlAuditLogger

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/history", response_model=list[AuditLogEntry])
async def get_history(
    limit: int = Query(10, ge=1, le=500),
    audit_logger: JsonlAuditLogger = Depends(get_audit_logger),
) -> list[AuditLogEntry]:
    """Most recent runs, newest first."""
    return audit_logger.read()[-limit:][::-1]
