"""Portal header (branding) settings."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from loanportal.auth_utils import require_admin
from loanportal.config import settings
from loanportal.database import get_db
from loanportal.models.header import HeaderDetails
from loanportal.models.user import User
from loanportal.schemas import HeaderDetailsResponse, HeaderDetailsUpdate
from loanportal.services.error_logger import log_error

logger = logging.getLogger(__name__)
router = APIRouter()


def _default_header() -> HeaderDetailsResponse:
    return HeaderDetailsResponse(
        id=None,
        company_name=settings.company_name,
        address=settings.company_address,
        contact_email=settings.company_contact_email,
        logo_url=settings.company_logo_url,
    )


async def _load_header(db: AsyncSession) -> HeaderDetails | None:
    result = await db.execute(select(HeaderDetails).order_by(HeaderDetails.id).limit(1))
    return result.scalar_one_or_none()


@router.get("/header", response_model=HeaderDetailsResponse)
async def get_header(db: AsyncSession = Depends(get_db)):
    """Public: the login page shows the branding too."""
    try:
        header = await _load_header(db)
    except SQLAlchemyError as e:
        await log_error(e, db=db, module="api.settings", function_name="get_header")
        return _default_header()
    if header is None:
        return _default_header()
    return header


@router.put("/header", response_model=HeaderDetailsResponse)
async def update_header(
    data: HeaderDetailsUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    admin_id = admin.id
    header = await _load_header(db)
    if header is None:
        header = HeaderDetails()
        db.add(header)

    for field, value in data.model_dump().items():
        setattr(header, field, value)

    try:
        await db.flush()
        await db.refresh(header)
    except SQLAlchemyError as e:
        await log_error(e, db=db, module="api.settings", function_name="update_header", user_id=admin_id)
        raise HTTPException(status_code=500, detail=f"Error saving header details: {e}")

    logger.info("Admin %s updated header details", admin_id)
    return header
