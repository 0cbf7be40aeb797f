"""Authentication endpoints: login, refresh, me."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request
from jose import JWTError
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from loanportal.auth_utils import (
    create_access_token,
    create_refresh_token,
    decode_token,
    get_current_user,
    token_claims,
    verify_password,
)
from loanportal.config import settings
from loanportal.database import get_db
from loanportal.models.user import User
from loanportal.schemas import RefreshRequest, TokenResponse, UserLogin, UserResponse
from loanportal.services.error_logger import log_error

logger = logging.getLogger(__name__)
router = APIRouter()
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


def _issue_tokens(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(token_claims(user)),
        refresh_token=create_refresh_token({"sub": str(user.id)}),
        user=UserResponse.model_validate(user),
    )


# ── Login ────────────────────────────────────────────────────


@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.login_rate_limit)
async def login(
    data: UserLogin,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    try:
        result = await db.execute(select(User).where(User.email == data.email))
        user = result.scalar_one_or_none()

        if not user or not verify_password(data.password, user.hashed_password):
            logger.info("Failed login for %s", data.email)
            raise HTTPException(status_code=401, detail="Invalid login credentials")

        if not user.is_status_active():
            raise HTTPException(status_code=403, detail=f"Account is {user.status}")

        user.last_login_at = datetime.now(timezone.utc)
        await db.flush()
        logger.info("User %s signed in", user.id)
        return _issue_tokens(user)
    except HTTPException:
        raise
    except Exception as e:
        await log_error(e, db=db, module="api.auth", function_name="login")
        raise


# ── Refresh ──────────────────────────────────────────────────


@router.post("/refresh", response_model=TokenResponse)
async def refresh(data: RefreshRequest, db: AsyncSession = Depends(get_db)):
    """Exchange a refresh token for a new token pair."""
    invalid = HTTPException(status_code=401, detail="Invalid refresh token")
    try:
        payload = decode_token(data.refresh_token)
        if payload.get("type") != "refresh":
            raise invalid
        user_id = int(payload["sub"])
    except (JWTError, KeyError, ValueError, TypeError):
        raise invalid

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise invalid
    if not user.is_status_active():
        raise HTTPException(status_code=403, detail=f"Account is {user.status}")
    return _issue_tokens(user)


# ── Me ───────────────────────────────────────────────────────


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    return current_user
