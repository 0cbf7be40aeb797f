"""Payout report model."""

from datetime import datetime

from sqlalchemy import String, Numeric, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column

from loanportal.database import Base


class PayoutReport(Base):
    __tablename__ = "payout_reports"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    month: Mapped[str] = mapped_column(String(7), nullable=False, index=True)  # YYYY-MM
    customer_name: Mapped[str] = mapped_column(String(200), nullable=False)
    location: Mapped[str] = mapped_column(String(200), nullable=False)
    financier: Mapped[str | None] = mapped_column(String(200), nullable=True, index=True)
    our_region: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)

    # Financials; the last three are always derived from the first two
    loan_amount: Mapped[float] = mapped_column(Numeric(14, 2, asdecimal=False), nullable=False, default=0)
    payout_percentage: Mapped[float] = mapped_column(Numeric(7, 3, asdecimal=False), nullable=False, default=0)
    amount_paid: Mapped[float] = mapped_column(Numeric(14, 2, asdecimal=False), nullable=False, default=0)
    less_tds: Mapped[float] = mapped_column(Numeric(14, 2, asdecimal=False), nullable=False, default=0)
    nett_amount: Mapped[float] = mapped_column(Numeric(14, 2, asdecimal=False), nullable=False, default=0)

    # Beneficiary bank details
    beneficiary_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    account_no: Mapped[str | None] = mapped_column(String(50), nullable=True)
    ifsc_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    bank_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    pan_no: Mapped[str | None] = mapped_column(String(20), nullable=True)
    sm_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    contact_no: Mapped[str | None] = mapped_column(String(30), nullable=True)

    # Free-text status notes, e.g. "SENT ON 07-01-2025" / "PAID ON 07-01-2025"
    mail_sent: Mapped[str | None] = mapped_column(String(200), nullable=True)
    payment_status: Mapped[str | None] = mapped_column(String(200), nullable=True, default="Pending")

    created_by_user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(),
    )
