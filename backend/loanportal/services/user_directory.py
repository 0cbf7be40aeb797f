"""Creator-name lookups for report listings and exports."""

from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from loanportal.models.user import User

UNKNOWN_CREATOR = "Unknown"


async def creator_names(db: AsyncSession, user_ids: Optional[Iterable[int]] = None) -> dict[int, str]:
    """Map user id to full name, optionally restricted to `user_ids`."""
    q = select(User.id, User.full_name)
    if user_ids is not None:
        ids = set(user_ids)
        if not ids:
            return {}
        q = q.where(User.id.in_(ids))
    result = await db.execute(q)
    return {row.id: row.full_name for row in result.all()}


def creator_label(names: dict[int, str], user_id: Optional[int]) -> str:
    return names.get(user_id) or UNKNOWN_CREATOR
