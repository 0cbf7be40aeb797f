"""Dashboard endpoint: KPIs and chart series over the caller's visible reports."""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from loanportal.auth_utils import get_current_user
from loanportal.database import get_db
from loanportal.models.inspection import InspectionReport
from loanportal.models.payout import PayoutReport
from loanportal.models.user import User
from loanportal.schemas import DashboardResponse
from loanportal.services.access_scope import scope_for
from loanportal.services.aggregator import (
    AggregateResult,
    DashboardTab,
    DashboardView,
    ReportFilters,
    aggregate_view,
)
from loanportal.services.display import format_inr, rate_label
from loanportal.services.error_logger import log_error

logger = logging.getLogger(__name__)
router = APIRouter()

_TAB_MODELS = {
    DashboardTab.INSPECTION: (InspectionReport, InspectionReport.date),
    DashboardTab.PAYOUT: (PayoutReport, PayoutReport.month),
}


def _display(tab: DashboardTab, kpis: dict[str, float]) -> dict[str, str]:
    if tab == DashboardTab.INSPECTION:
        return {
            "total_inspections": str(int(kpis["total_inspections"])),
            "inspection_volume": format_inr(kpis["inspection_volume"]),
            "pending_reports": str(int(kpis["pending_reports"])),
            "positive_remarks": str(int(kpis["positive_remarks"])),
            "positive_rate": rate_label(kpis["positive_rate"]),
        }
    return {
        "total_payout_amount": format_inr(kpis["total_payout_amount"]),
        "total_nett_paid": format_inr(kpis["total_nett_paid"]),
        "tds_deducted": format_inr(kpis["tds_deducted"]),
        "pending_payouts": str(int(kpis["pending_payouts"])),
    }


def build_dashboard(view: DashboardView, result: AggregateResult) -> DashboardResponse:
    return DashboardResponse(
        tab=view.tab.value,
        filters={
            "region": view.filters.region,
            "start_date": view.filters.start_date,
            "end_date": view.filters.end_date,
        },
        record_count=len(result.filtered),
        kpis=result.kpis,
        display=_display(view.tab, result.kpis),
        trend=[{"name": p.name, "value": p.value} for p in result.get_series("trend").points],
        category=[{"name": p.name, "value": p.value} for p in result.get_series("category").points],
        status=[{"name": p.name, "value": p.value} for p in result.get_series("status").points],
    )


@router.get("", response_model=DashboardResponse)
async def get_dashboard(
    tab: DashboardTab = Query(DashboardTab.INSPECTION),
    region: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    view = DashboardView(tab=tab, filters=ReportFilters(region, start_date, end_date))
    model, period = _TAB_MODELS[view.tab]
    user_id = user.id

    try:
        result = await db.execute(scope_for(select(model), model, user).order_by(period, model.id))
        records = result.scalars().all()
    except SQLAlchemyError as e:
        await log_error(e, db=db, module="api.dashboard", function_name="get_dashboard", user_id=user_id)
        records = []

    return build_dashboard(view, aggregate_view(records, view))
