"""Loan Verification Portal - FastAPI Entry Point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from loanportal.config import settings
from loanportal.database import engine, Base, async_session
from loanportal.middleware.error_capture import ErrorCaptureMiddleware
from loanportal.api import (
    auth,
    dashboard,
    error_logs,
    inspections,
    payouts,
    reference,
    settings as settings_api,
    users,
)
from loanportal.seed_users import seed_default_admin

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and seed the admin on startup (dev only)."""
    if settings.environment == "development":
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        async with async_session() as db:
            await seed_default_admin(db)
    logger.info("Loan Verification Portal API started (%s)", settings.environment)
    yield
    await engine.dispose()


app = FastAPI(
    title="Loan Verification Portal API",
    description="Field inspection and payout reporting for loan verification agencies",
    version=API_VERSION,
    lifespan=lifespan,
)

app.state.limiter = auth.limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# ── Security headers middleware ──────────────────────────────────
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds standard security headers to every response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if settings.environment != "development":
            response.headers["Strict-Transport-Security"] = "max-age=63072000; includeSubDomains"
        return response


# Middleware added last runs first
app.add_middleware(ErrorCaptureMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept"],
)

# Routers
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(users.router, prefix="/api/users", tags=["User Management"])
app.include_router(inspections.router, prefix="/api/inspections", tags=["Inspection Reports"])
app.include_router(payouts.router, prefix="/api/payouts", tags=["Payout Reports"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"])
app.include_router(settings_api.router, prefix="/api/settings", tags=["Settings"])
app.include_router(reference.router, prefix="/api/reference", tags=["Reference Data"])
app.include_router(error_logs.router, prefix="/api/error-logs", tags=["Error Monitoring"])


@app.get("/api/health")
async def health_check():
    return {"status": "healthy", "service": "loanportal-api", "version": API_VERSION}
