"""User management: directory listing for everyone, account changes for admins."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from loanportal.auth_utils import (
    get_current_user,
    hash_password,
    require_admin,
    validate_password_strength,
)
from loanportal.database import get_db
from loanportal.models.user import User, UserStatus
from loanportal.schemas import AdminUserCreate, AdminUserUpdate, UserResponse
from loanportal.services.error_logger import log_error

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=list[UserResponse])
async def list_users(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """All user profiles; report tables use this to label creators."""
    result = await db.execute(select(User).order_by(User.full_name))
    return result.scalars().all()


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(
    data: AdminUserCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    pwd_error = validate_password_strength(data.password)
    if pwd_error:
        raise HTTPException(status_code=400, detail=pwd_error)

    existing = await db.execute(select(User).where(User.email == data.email))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="A user with this email already exists")

    user = User(
        email=data.email,
        hashed_password=hash_password(data.password),
        full_name=data.full_name,
        role=data.role,
    )
    try:
        db.add(user)
        await db.flush()
        await db.refresh(user)
    except SQLAlchemyError as e:
        await log_error(e, db=db, module="api.users", function_name="create_user", user_id=admin.id)
        raise HTTPException(status_code=500, detail=f"Error creating user: {e}")

    logger.info("Admin %s created user %s (%s)", admin.id, user.id, user.role.value)
    return user


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    data: AdminUserUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    if data.full_name is not None:
        user.full_name = data.full_name
    if data.role is not None:
        user.role = data.role
    if data.status is not None:
        user.status = data.status.value
        user.is_active = data.status == UserStatus.ACTIVE

    try:
        await db.flush()
        await db.refresh(user)
    except SQLAlchemyError as e:
        await log_error(e, db=db, module="api.users", function_name="update_user", user_id=admin.id)
        raise HTTPException(status_code=500, detail=f"Error updating user: {e}")

    logger.info("Admin %s updated user %s", admin.id, user.id)
    return user
