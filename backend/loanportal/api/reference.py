"""Pick-list values for the report forms and dashboard filters."""

from fastapi import APIRouter, Depends

from loanportal.auth_utils import get_current_user
from loanportal.models.user import User
from loanportal.services.reference_data import DEFAULT_LAR_REMARKS, DEFAULT_STATE, reference_lists

router = APIRouter()


@router.get("")
async def get_reference_data(user: User = Depends(get_current_user)):
    return {
        **reference_lists(),
        "defaults": {"state": DEFAULT_STATE, "lar_remarks": DEFAULT_LAR_REMARKS},
    }
