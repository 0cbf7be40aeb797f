"""SQLAlchemy models for the loan verification portal."""

from loanportal.models.user import User, UserRole, UserStatus
from loanportal.models.inspection import InspectionReport, PaymentStatus, InvoiceStatus
from loanportal.models.payout import PayoutReport
from loanportal.models.header import HeaderDetails
from loanportal.models.error_log import ErrorLog, ErrorSeverity

__all__ = [
    "User",
    "UserRole",
    "UserStatus",
    "InspectionReport",
    "PaymentStatus",
    "InvoiceStatus",
    "PayoutReport",
    "HeaderDetails",
    "ErrorLog",
    "ErrorSeverity",
]
