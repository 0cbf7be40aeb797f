"""Field inspection report endpoints: list, fetch, create, update, export, mail link."""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from loanportal.auth_utils import get_current_user, require_admin
from loanportal.config import settings
from loanportal.database import get_db
from loanportal.models.inspection import InspectionReport, PaymentStatus
from loanportal.models.user import User
from loanportal.schemas import (
    InspectionReportCreate,
    InspectionReportResponse,
    InspectionReportUpdate,
    MailLinkResponse,
)
from loanportal.services.access_scope import can_edit, scope_for
from loanportal.services.error_logger import log_error
from loanportal.services.export_service import (
    ATTACHMENT_NOTE,
    INSPECTION_EXPORT_NAME,
    INSPECTION_MAIL,
    XLSX_CONTENT_TYPE,
    build_mailto,
    export_excel,
    export_filename,
    inspection_rows,
)
from loanportal.services.user_directory import creator_label, creator_names

logger = logging.getLogger(__name__)
router = APIRouter()


def _list_query(
    user: User,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    payment_status: Optional[PaymentStatus] = None,
):
    q = scope_for(select(InspectionReport), InspectionReport, user)
    if start_date:
        q = q.where(InspectionReport.date >= start_date)
    if end_date:
        q = q.where(InspectionReport.date <= end_date)
    if payment_status:
        q = q.where(InspectionReport.payment_status == payment_status)
    return q.order_by(InspectionReport.date.desc(), InspectionReport.id.desc())


def _to_response(report: InspectionReport, names: dict[int, str]) -> InspectionReportResponse:
    resp = InspectionReportResponse.model_validate(report)
    resp.creator_name = creator_label(names, report.created_by_user_id)
    return resp


@router.get("", response_model=list[InspectionReportResponse])
async def list_inspections(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    payment_status: Optional[PaymentStatus] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Reports visible to the caller, newest first."""
    try:
        result = await db.execute(_list_query(user, start_date, end_date, payment_status))
        reports = result.scalars().all()
        names = await creator_names(db, {r.created_by_user_id for r in reports})
    except SQLAlchemyError as e:
        await log_error(e, db=db, module="api.inspections", function_name="list_inspections", user_id=user.id)
        return []
    return [_to_response(r, names) for r in reports]


@router.get("/export")
async def export_inspections(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    payment_status: Optional[PaymentStatus] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        result = await db.execute(_list_query(user, start_date, end_date, payment_status))
        reports = result.scalars().all()
        names = await creator_names(db, {r.created_by_user_id for r in reports})
    except SQLAlchemyError as e:
        await log_error(e, db=db, module="api.inspections", function_name="export_inspections", user_id=user.id)
        reports, names = [], {}

    content = export_excel(inspection_rows(reports, names))
    filename = export_filename(INSPECTION_EXPORT_NAME)
    return Response(
        content=content,
        media_type=XLSX_CONTENT_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/email-link", response_model=MailLinkResponse)
async def inspection_email_link(admin: User = Depends(require_admin)):
    return MailLinkResponse(
        mailto=build_mailto(
            settings.report_mail_recipient, INSPECTION_MAIL["subject"], INSPECTION_MAIL["body"],
        ),
        export_url="/api/inspections/export",
        note=ATTACHMENT_NOTE,
    )


@router.get("/{report_id}", response_model=InspectionReportResponse)
async def get_inspection(
    report_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    q = scope_for(select(InspectionReport), InspectionReport, user).where(InspectionReport.id == report_id)
    result = await db.execute(q)
    report = result.scalar_one_or_none()
    if not report:
        raise HTTPException(status_code=404, detail="Inspection report not found")
    names = await creator_names(db, [report.created_by_user_id])
    return _to_response(report, names)


@router.post("", response_model=InspectionReportResponse, status_code=201)
async def create_inspection(
    data: InspectionReportCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    report = InspectionReport(**data.model_dump(), created_by_user_id=user.id)
    try:
        db.add(report)
        await db.flush()
        await db.refresh(report)
    except SQLAlchemyError as e:
        await log_error(e, db=db, module="api.inspections", function_name="create_inspection", user_id=user.id)
        raise HTTPException(status_code=500, detail=f"Error saving report: {e}")

    logger.info("User %s created inspection report %s", user.id, report.id)
    return _to_response(report, {user.id: user.full_name})


@router.put("/{report_id}", response_model=InspectionReportResponse)
async def update_inspection(
    report_id: int,
    data: InspectionReportUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(InspectionReport).where(InspectionReport.id == report_id))
    report = result.scalar_one_or_none()
    if not report:
        raise HTTPException(status_code=404, detail="Inspection report not found")
    if not can_edit(report, user):
        raise HTTPException(status_code=403, detail="You can only edit reports you created")

    for field, value in data.model_dump().items():
        setattr(report, field, value)

    try:
        await db.flush()
        await db.refresh(report)
    except SQLAlchemyError as e:
        await log_error(e, db=db, module="api.inspections", function_name="update_inspection", user_id=user.id)
        raise HTTPException(status_code=500, detail=f"Error saving report: {e}")

    names = await creator_names(db, [report.created_by_user_id])
    return _to_response(report, names)
