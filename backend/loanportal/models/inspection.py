"""Field inspection report model."""

import enum
from datetime import datetime, date as date_type

from sqlalchemy import String, Numeric, Enum, DateTime, Date, ForeignKey, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from loanportal.database import Base


class PaymentStatus(str, enum.Enum):
    PENDING = "Pending"
    PAID = "Paid"
    OVERDUE = "Overdue"


class InvoiceStatus(str, enum.Enum):
    PENDING = "Pending"
    RAISED = "Raised"
    CLEARED = "Cleared"


class InspectionReport(Base):
    __tablename__ = "field_inspection_reports"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    date: Mapped[date_type] = mapped_column(Date, nullable=False, index=True)
    loan_account_number: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    customer_name: Mapped[str] = mapped_column(String(200), nullable=False)
    loan_amount: Mapped[float] = mapped_column(Numeric(14, 2, asdecimal=False), nullable=False, default=0)
    location: Mapped[str] = mapped_column(String(200), nullable=False)

    # Classification
    bob_region: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    our_region: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    zone: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str] = mapped_column(String(100), nullable=False)

    lar_remarks: Mapped[str | None] = mapped_column(Text, nullable=True)

    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False,
    )
    invoice_status: Mapped[InvoiceStatus] = mapped_column(
        Enum(InvoiceStatus), default=InvoiceStatus.PENDING, nullable=False,
    )

    created_by_user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(),
    )
