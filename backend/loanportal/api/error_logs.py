"""Error log endpoints for administrators."""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from loanportal.auth_utils import require_admin
from loanportal.database import get_db
from loanportal.models.error_log import ErrorLog, ErrorSeverity
from loanportal.models.user import User
from loanportal.schemas import ErrorLogResolveRequest

logger = logging.getLogger(__name__)
router = APIRouter()


def _log_to_dict(log: ErrorLog, include_traceback: bool = False) -> dict:
    data = {
        "id": log.id,
        "severity": log.severity.value if hasattr(log.severity, "value") else log.severity,
        "error_type": log.error_type,
        "message": log.message,
        "module": log.module,
        "function_name": log.function_name,
        "request_method": log.request_method,
        "request_path": log.request_path,
        "status_code": log.status_code,
        "response_time_ms": log.response_time_ms,
        "user_id": log.user_id,
        "resolved": log.resolved,
        "resolved_by": log.resolved_by,
        "resolved_at": log.resolved_at.isoformat() if log.resolved_at else None,
        "resolution_notes": log.resolution_notes,
        "created_at": log.created_at.isoformat() if log.created_at else None,
    }
    if include_traceback:
        data["traceback"] = log.traceback
    return data


@router.get("")
async def list_error_logs(
    severity: Optional[ErrorSeverity] = Query(None),
    resolved: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    q = select(ErrorLog).order_by(desc(ErrorLog.created_at), desc(ErrorLog.id))
    if severity:
        q = q.where(ErrorLog.severity == severity)
    if resolved is not None:
        q = q.where(ErrorLog.resolved == resolved)
    if search:
        pattern = f"%{search}%"
        q = q.where(
            ErrorLog.message.ilike(pattern)
            | ErrorLog.error_type.ilike(pattern)
            | ErrorLog.request_path.ilike(pattern)
        )

    total = (await db.execute(select(func.count()).select_from(q.subquery()))).scalar() or 0
    result = await db.execute(q.offset(offset).limit(limit))
    return {
        "total": total,
        "offset": offset,
        "limit": limit,
        "items": [_log_to_dict(log) for log in result.scalars().all()],
    }


@router.get("/{error_id}")
async def get_error_log(
    error_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(ErrorLog).where(ErrorLog.id == error_id))
    log = result.scalar_one_or_none()
    if not log:
        raise HTTPException(404, "Error log not found")
    return _log_to_dict(log, include_traceback=True)


@router.patch("/{error_id}/resolve")
async def resolve_error(
    error_id: int,
    body: ErrorLogResolveRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(ErrorLog).where(ErrorLog.id == error_id))
    log = result.scalar_one_or_none()
    if not log:
        raise HTTPException(404, "Error log not found")

    log.resolved = True
    log.resolved_by = admin.id
    log.resolved_at = datetime.now(timezone.utc)
    log.resolution_notes = body.resolution_notes
    await db.flush()
    return _log_to_dict(log)
