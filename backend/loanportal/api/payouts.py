"""Payout report endpoints.

Derived amounts (amount paid, TDS, nett) are never accepted from the client;
they are recomputed from loan amount and payout percentage on every save.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from loanportal.auth_utils import get_current_user, require_admin
from loanportal.config import settings
from loanportal.database import get_db
from loanportal.models.payout import PayoutReport
from loanportal.models.user import User
from loanportal.schemas import (
    MailLinkResponse,
    PayoutCalculationRequest,
    PayoutCalculationResponse,
    PayoutReportCreate,
    PayoutReportResponse,
    PayoutReportUpdate,
)
from loanportal.services import payout_calculator
from loanportal.services.access_scope import can_edit, scope_for
from loanportal.services.error_logger import log_error
from loanportal.services.export_service import (
    ATTACHMENT_NOTE,
    PAYOUT_EXPORT_NAME,
    PAYOUT_MAIL,
    XLSX_CONTENT_TYPE,
    build_mailto,
    export_excel,
    export_filename,
    payout_rows,
)
from loanportal.services.user_directory import creator_label, creator_names

logger = logging.getLogger(__name__)
router = APIRouter()

_INPUT_FIELDS = ("loan_amount", "payout_percentage")


def _list_query(user: User):
    q = scope_for(select(PayoutReport), PayoutReport, user)
    return q.order_by(PayoutReport.month.desc(), PayoutReport.id.desc())


def _to_response(report: PayoutReport, names: dict[int, str]) -> PayoutReportResponse:
    resp = PayoutReportResponse.model_validate(report)
    resp.creator_name = creator_label(names, report.created_by_user_id)
    return resp


def _assign(report: PayoutReport, data: PayoutReportCreate | PayoutReportUpdate) -> None:
    for field, value in data.model_dump(exclude=set(_INPUT_FIELDS)).items():
        setattr(report, field, value)
    payout_calculator.apply_to(report, data.loan_amount, data.payout_percentage)


@router.get("", response_model=list[PayoutReportResponse])
async def list_payouts(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Payouts visible to the caller, latest month first."""
    try:
        result = await db.execute(_list_query(user))
        reports = result.scalars().all()
        names = await creator_names(db, {r.created_by_user_id for r in reports})
    except SQLAlchemyError as e:
        await log_error(e, db=db, module="api.payouts", function_name="list_payouts", user_id=user.id)
        return []
    return [_to_response(r, names) for r in reports]


@router.post("/calculate", response_model=PayoutCalculationResponse)
async def calculate_payout(
    data: PayoutCalculationRequest,
    user: User = Depends(get_current_user),
):
    return payout_calculator.rounded_payout(data.loan_amount, data.payout_percentage)


@router.get("/export")
async def export_payouts(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        result = await db.execute(_list_query(user))
        reports = result.scalars().all()
        names = await creator_names(db, {r.created_by_user_id for r in reports})
    except SQLAlchemyError as e:
        await log_error(e, db=db, module="api.payouts", function_name="export_payouts", user_id=user.id)
        reports, names = [], {}

    content = export_excel(payout_rows(reports, names))
    filename = export_filename(PAYOUT_EXPORT_NAME)
    return Response(
        content=content,
        media_type=XLSX_CONTENT_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/email-link", response_model=MailLinkResponse)
async def payout_email_link(admin: User = Depends(require_admin)):
    return MailLinkResponse(
        mailto=build_mailto(settings.report_mail_recipient, PAYOUT_MAIL["subject"], PAYOUT_MAIL["body"]),
        export_url="/api/payouts/export",
        note=ATTACHMENT_NOTE,
    )


@router.get("/{report_id}", response_model=PayoutReportResponse)
async def get_payout(
    report_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    q = scope_for(select(PayoutReport), PayoutReport, user).where(PayoutReport.id == report_id)
    result = await db.execute(q)
    report = result.scalar_one_or_none()
    if not report:
        raise HTTPException(status_code=404, detail="Payout report not found")
    names = await creator_names(db, [report.created_by_user_id])
    return _to_response(report, names)


@router.post("", response_model=PayoutReportResponse, status_code=201)
async def create_payout(
    data: PayoutReportCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    report = PayoutReport(created_by_user_id=user.id)
    _assign(report, data)
    try:
        db.add(report)
        await db.flush()
        await db.refresh(report)
    except SQLAlchemyError as e:
        await log_error(e, db=db, module="api.payouts", function_name="create_payout", user_id=user.id)
        raise HTTPException(status_code=500, detail=f"Error saving report: {e}")

    logger.info("User %s created payout report %s (%s)", user.id, report.id, report.month)
    return _to_response(report, {user.id: user.full_name})


@router.put("/{report_id}", response_model=PayoutReportResponse)
async def update_payout(
    report_id: int,
    data: PayoutReportUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(PayoutReport).where(PayoutReport.id == report_id))
    report = result.scalar_one_or_none()
    if not report:
        raise HTTPException(status_code=404, detail="Payout report not found")
    if not can_edit(report, user):
        raise HTTPException(status_code=403, detail="You can only edit reports you created")

    _assign(report, data)
    try:
        await db.flush()
        await db.refresh(report)
    except SQLAlchemyError as e:
        await log_error(e, db=db, module="api.payouts", function_name="update_payout", user_id=user.id)
        raise HTTPException(status_code=500, detail=f"Error saving report: {e}")

    names = await creator_names(db, [report.created_by_user_id])
    return _to_response(report, names)
