"""Seed the bootstrap administrator account for development databases."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from loanportal.auth_utils import hash_password
from loanportal.config import settings
from loanportal.models.user import User, UserRole

logger = logging.getLogger(__name__)


async def seed_default_admin(db: AsyncSession) -> User | None:
    """Create the configured admin when the users table is empty.

    Returns the new user, or None when accounts already exist.
    """
    count = (await db.execute(select(func.count(User.id)))).scalar() or 0
    if count:
        return None

    admin = User(
        email=settings.seed_admin_email,
        hashed_password=hash_password(settings.seed_admin_password),
        full_name=settings.seed_admin_name,
        role=UserRole.ADMIN,
    )
    db.add(admin)
    await db.commit()
    logger.info("Seeded default admin %s", settings.seed_admin_email)
    return admin
