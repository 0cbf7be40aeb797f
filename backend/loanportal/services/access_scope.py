"""Role-based visibility for report queries.

Every read of inspection or payout reports goes through `scope_query` before
it reaches the database: administrators see all rows, everyone else only the
rows they created. User metadata and header details are not scoped.
"""

from typing import Any

from sqlalchemy import Select

from loanportal.models.user import User, UserRole


def scope_query(query: Select, model: Any, role: UserRole | str, user_id: int) -> Select:
    """Constrain `query` to rows owned by `user_id` unless `role` is ADMIN."""
    if UserRole(role) == UserRole.ADMIN:
        return query
    return query.where(model.created_by_user_id == user_id)


def scope_for(query: Select, model: Any, user: User) -> Select:
    return scope_query(query, model, user.role, user.id)


def can_edit(record: Any, user: User) -> bool:
    """Creators may edit their own reports; admins may edit any."""
    return user.role == UserRole.ADMIN or record.created_by_user_id == user.id
