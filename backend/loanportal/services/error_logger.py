"""Error logging for the portal: Python logger first, `error_logs` table second.

Routers call `log_error` with their own session after a failed read or write:

    except SQLAlchemyError as e:
        await log_error(e, db=db, module="api.payouts", function_name="create_payout")
        raise HTTPException(status_code=500, detail=f"Error saving report: {e}")

The middleware has no session of its own and uses `log_error_standalone`.
"""

from __future__ import annotations

import logging
import traceback
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from loanportal.models.error_log import ErrorLog, ErrorSeverity

logger = logging.getLogger("loanportal.errors")

_MESSAGE_LIMIT = 2000
_TRACEBACK_LIMIT = 10000
_QUIET = (ErrorSeverity.INFO, ErrorSeverity.WARNING)


def _sanitize_text(value: object, *, max_len: Optional[int] = None) -> str:
    """Replace control characters (except newlines and tabs) with spaces."""
    text = "".join(ch if (ch >= " " or ch in "\n\r\t") else " " for ch in str(value))
    return text[:max_len] if max_len is not None else text


def _innermost_function(exc: BaseException) -> Optional[str]:
    tb = exc.__traceback__
    if tb is None:
        return None
    while tb.tb_next:
        tb = tb.tb_next
    return tb.tb_frame.f_code.co_name


def _clip(value: Optional[str], max_len: int) -> Optional[str]:
    return _sanitize_text(value, max_len=max_len) if value else None


def _build_entry(exc: BaseException, severity: ErrorSeverity, context: dict[str, Any]) -> ErrorLog:
    formatted = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return ErrorLog(
        severity=severity,
        error_type=type(exc).__name__,
        message=_sanitize_text(exc, max_len=_MESSAGE_LIMIT),
        traceback=_sanitize_text(formatted, max_len=_TRACEBACK_LIMIT),
        module=_clip(context.get("module"), 300),
        function_name=_clip(context.get("function_name"), 200),
        request_method=context.get("request_method"),
        request_path=_clip(context.get("request_path"), 500),
        status_code=context.get("status_code"),
        response_time_ms=context.get("response_time_ms"),
        user_id=context.get("user_id"),
    )


async def log_error(
    exc: BaseException,
    *,
    db: Optional[AsyncSession] = None,
    severity: ErrorSeverity = ErrorSeverity.ERROR,
    module: Optional[str] = None,
    function_name: Optional[str] = None,
    request_method: Optional[str] = None,
    request_path: Optional[str] = None,
    status_code: Optional[int] = None,
    response_time_ms: Optional[float] = None,
    user_id: Optional[int] = None,
) -> Optional[ErrorLog]:
    """Log `exc`, and store it when a session is given.

    The session is usually in a failed state after a rejected statement, so
    it is rolled back before the row is added. Returns the stored row, or
    None when nothing was stored.
    """
    context = {
        "module": module,
        "function_name": function_name or _innermost_function(exc),
        "request_method": request_method,
        "request_path": request_path,
        "status_code": status_code,
        "response_time_ms": response_time_ms,
        "user_id": user_id,
    }

    where = f"{request_method or '?'} {request_path}" if request_path else (module or "-")
    if severity in _QUIET:
        logger.warning("%s: %s: %s", where, type(exc).__name__, exc)
    else:
        logger.error("%s: %s: %s", where, type(exc).__name__, exc, exc_info=exc)

    if db is None:
        return None

    try:
        await db.rollback()
        entry = _build_entry(exc, severity, context)
        db.add(entry)
        await db.commit()
        return entry
    except Exception as db_err:
        # The request outcome must not depend on the log write
        logger.warning("Could not store error log: %s", db_err)
        return None


async def log_error_standalone(exc: BaseException, **kwargs: Any) -> Optional[ErrorLog]:
    """`log_error` on a session of its own, for callers outside a request scope."""
    from loanportal.database import async_session

    try:
        async with async_session() as db:
            return await log_error(exc, db=db, **kwargs)
    except Exception as db_err:
        logger.warning("Could not open a session for the error log: %s", db_err)
        return None
