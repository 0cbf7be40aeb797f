"""Pydantic schemas for request/response validation."""

from datetime import datetime, date
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from loanportal.models.inspection import InvoiceStatus, PaymentStatus
from loanportal.models.user import UserRole, UserStatus
from loanportal.services.reference_data import DEFAULT_LAR_REMARKS, DEFAULT_STATE


# ── Auth ──────────────────────────────────────────────

class UserLogin(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class UserResponse(BaseModel):
    id: int
    email: str
    full_name: str
    role: UserRole
    status: str = "active"
    is_active: bool
    is_admin: bool = False
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: Optional[UserResponse] = None


# ── User management ──────────────────────────────────

class AdminUserCreate(BaseModel):
    email: EmailStr
    password: str
    full_name: str = Field(min_length=1, max_length=200)
    role: UserRole = UserRole.FIELD_AGENT


class AdminUserUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None


# ── Inspection reports ───────────────────────────────

class InspectionReportBase(BaseModel):
    date: date
    loan_account_number: str = Field(min_length=1, max_length=50)
    customer_name: str = Field(min_length=1, max_length=200)
    loan_amount: float = Field(ge=0)
    location: str = Field(min_length=1, max_length=200)
    bob_region: Optional[str] = Field(None, max_length=100)
    our_region: Optional[str] = Field(None, max_length=100)
    lar_remarks: Optional[str] = DEFAULT_LAR_REMARKS
    zone: Optional[str] = Field(None, max_length=100)
    state: str = Field(DEFAULT_STATE, min_length=1, max_length=100)
    payment_status: PaymentStatus = PaymentStatus.PENDING
    invoice_status: InvoiceStatus = InvoiceStatus.PENDING


class InspectionReportCreate(InspectionReportBase):
    pass


class InspectionReportUpdate(InspectionReportBase):
    """Full-record replacement; every editable field is sent."""


class InspectionReportResponse(InspectionReportBase):
    id: int
    created_by_user_id: int
    created_at: Optional[datetime] = None
    creator_name: Optional[str] = None

    model_config = {"from_attributes": True}


# ── Payout reports ───────────────────────────────────

class PayoutReportBase(BaseModel):
    month: str = Field(pattern=r"^\d{4}-(0[1-9]|1[0-2])$", description="YYYY-MM")
    customer_name: str = Field(min_length=1, max_length=200)
    location: str = Field(min_length=1, max_length=200)
    financier: str = Field(min_length=1, max_length=200)
    our_region: Optional[str] = Field(None, max_length=100)
    loan_amount: float = 0
    payout_percentage: float = 0

    beneficiary_name: Optional[str] = Field("", max_length=200)
    account_no: Optional[str] = Field("", max_length=50)
    ifsc_code: Optional[str] = Field("", max_length=20)
    bank_name: Optional[str] = Field("", max_length=200)
    pan_no: Optional[str] = Field("", max_length=20)
    sm_name: Optional[str] = Field("", max_length=200)
    contact_no: Optional[str] = Field("", max_length=30)

    # Free text, e.g. "SENT ON 07-01-2025"
    mail_sent: Optional[str] = Field("", max_length=200)
    payment_status: Optional[str] = Field("Pending", max_length=200)


class PayoutReportCreate(PayoutReportBase):
    pass


class PayoutReportUpdate(PayoutReportBase):
    """Full-record replacement; derived amounts are recomputed server-side."""


class PayoutReportResponse(PayoutReportBase):
    id: int
    amount_paid: float
    less_tds: float
    nett_amount: float
    created_by_user_id: int
    created_at: Optional[datetime] = None
    creator_name: Optional[str] = None

    model_config = {"from_attributes": True}


class PayoutCalculationRequest(BaseModel):
    loan_amount: float = 0
    payout_percentage: float = 0


class PayoutCalculationResponse(BaseModel):
    amount_paid: float
    less_tds: float
    nett_amount: float


# ── Export / mail ────────────────────────────────────

class MailLinkResponse(BaseModel):
    mailto: str
    export_url: str
    note: str


# ── Header / settings ────────────────────────────────

class HeaderDetailsUpdate(BaseModel):
    company_name: str = Field("", max_length=200)
    address: str = ""
    contact_email: str = Field("", max_length=255)
    logo_url: str = Field("", max_length=500)


class HeaderDetailsResponse(HeaderDetailsUpdate):
    id: Optional[int] = None

    model_config = {"from_attributes": True}


# ── Dashboard ────────────────────────────────────────

class ChartPointResponse(BaseModel):
    name: str
    value: float


class DashboardFilters(BaseModel):
    region: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class DashboardResponse(BaseModel):
    tab: str
    filters: DashboardFilters
    record_count: int
    kpis: dict[str, float]
    display: dict[str, str]
    trend: list[ChartPointResponse]
    category: list[ChartPointResponse]
    status: list[ChartPointResponse]


# ── Error logs ───────────────────────────────────────

class ErrorLogResolveRequest(BaseModel):
    resolution_notes: Optional[str] = None
