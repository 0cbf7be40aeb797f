"""Middleware that records failed requests in the error_logs table.

5xx responses are stored as errors, 4xx (other than 401/403) as warnings.
Unhandled exceptions are stored and turned into a plain 500 response.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from fastapi import Request, Response
from jose import JWTError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse

from loanportal.auth_utils import decode_token
from loanportal.models.error_log import ErrorSeverity
from loanportal.services.error_logger import log_error_standalone

logger = logging.getLogger("loanportal.middleware")

_IGNORED_STATUS = (401, 403)


def _request_user_id(request: Request) -> Optional[int]:
    auth_header = request.headers.get("authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    try:
        payload = decode_token(auth_header[7:])
        return int(payload.get("sub", 0)) or None
    except (JWTError, ValueError, TypeError):
        return None


class ErrorCaptureMiddleware(BaseHTTPMiddleware):
    """Catches unhandled exceptions, returns 500, and persists the error."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start = time.time()
        user_id = _request_user_id(request)
        method = request.method
        path = str(request.url.path)

        try:
            response = await call_next(request)
        except Exception as exc:
            elapsed_ms = round((time.time() - start) * 1000, 2)
            logger.exception("Unhandled exception on %s %s", method, path)
            await log_error_standalone(
                exc,
                severity=ErrorSeverity.CRITICAL if "database" in str(exc).lower() else ErrorSeverity.ERROR,
                module="middleware.error_capture",
                request_method=method,
                request_path=path,
                status_code=500,
                response_time_ms=elapsed_ms,
                user_id=user_id,
            )
            return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})

        status_code = response.status_code
        if status_code >= 400 and status_code not in _IGNORED_STATUS:
            elapsed_ms = round((time.time() - start) * 1000, 2)
            await log_error_standalone(
                Exception(f"HTTP {status_code} on {method} {path}"),
                severity=ErrorSeverity.ERROR if status_code >= 500 else ErrorSeverity.WARNING,
                module="middleware.error_capture",
                function_name="dispatch",
                request_method=method,
                request_path=path,
                status_code=status_code,
                response_time_ms=elapsed_ms,
                user_id=user_id,
            )
        return response
