"""Spreadsheet export and mail-compose links for report lists.

The workbook has a single sheet named "Report" whose columns follow the key
order of the supplied rows. Mail links only pre-fill recipient, subject and
body; the exported file has to be attached by hand.
"""

import io
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Mapping
from urllib.parse import quote

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

logger = logging.getLogger(__name__)

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
SHEET_NAME = "Report"

INSPECTION_EXPORT_NAME = "Inspection_Reports"
PAYOUT_EXPORT_NAME = "Payout_Reports"

INSPECTION_MAIL = {
    "subject": "Field Inspection Report",
    "body": "Please find the attached Field Inspection Report.",
}
PAYOUT_MAIL = {
    "subject": "Payout Report",
    "body": "Attached is the payout report.",
}
ATTACHMENT_NOTE = (
    "Download the Excel file first, then attach it manually in the mail window that opens."
)

_MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
               "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


# ---------------------------------------------------------------------------
# Workbook rendering
# ---------------------------------------------------------------------------

def export_excel(rows: list[Mapping[str, Any]], sheet_name: str = SHEET_NAME) -> bytes:
    """Render flat rows as .xlsx bytes; headers are the row keys in order."""
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name

    cols = list(rows[0].keys()) if rows else []

    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(start_color="1F4E79", end_color="1F4E79", fill_type="solid")
    for col_idx, col_name in enumerate(cols, 1):
        cell = ws.cell(row=1, column=col_idx, value=col_name)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal="center")

    for row_idx, row in enumerate(rows, 2):
        for col_idx, col_name in enumerate(cols, 1):
            value = row.get(col_name)
            if isinstance(value, Decimal):
                value = float(value)
            cell = ws.cell(row=row_idx, column=col_idx, value=value)
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                cell.alignment = Alignment(horizontal="right")

    if cols:
        ws.auto_filter.ref = f"A1:{get_column_letter(len(cols))}{len(rows) + 1}"
    ws.freeze_panes = "A2"

    for col_idx, col_name in enumerate(cols, 1):
        max_len = max(
            [len(str(col_name))] + [len(str(row.get(col_name) or "")) for row in rows[:100]]
        )
        ws.column_dimensions[get_column_letter(col_idx)].width = min(max_len + 2, 40)

    output = io.BytesIO()
    wb.save(output)
    logger.info("Rendered workbook with %d rows and %d columns", len(rows), len(cols))
    return output.getvalue()


def export_filename(name: str) -> str:
    return f"{name}.xlsx"


# ---------------------------------------------------------------------------
# Row builders
# ---------------------------------------------------------------------------

def _text(value: Any) -> Any:
    return getattr(value, "value", value)


def _en_gb_date(value: Any) -> str:
    """DD/MM/YYYY like the on-screen table."""
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, str):
        try:
            value = date.fromisoformat(value[:10])
        except ValueError:
            return value
    if isinstance(value, date):
        return value.strftime("%d/%m/%Y")
    return ""


def _month_abbr(month: str | None) -> str:
    if not month:
        return ""
    try:
        return _MONTH_ABBR[int(month[5:7]) - 1]
    except (ValueError, IndexError):
        return month


def _percent(value: Any) -> str:
    return f"{float(value or 0):g}%"


def inspection_rows(reports: Iterable[Any], creator_names: Mapping[int, str]) -> list[dict]:
    rows = []
    for index, r in enumerate(reports, 1):
        rows.append({
            "SL.No": index,
            "Date": _en_gb_date(r.date),
            "Loan A/C No": r.loan_account_number,
            "Name": r.customer_name,
            "Loan Amount": r.loan_amount,
            "Location": r.location,
            "BOB Region": r.bob_region,
            "Our Region": r.our_region,
            "LAR Remarks": r.lar_remarks,
            "Zone": r.zone,
            "State": r.state,
            "Payment Status": _text(r.payment_status),
            "Invoice Status": _text(r.invoice_status),
            "Created By": creator_names.get(r.created_by_user_id) or "System",
        })
    return rows


def payout_rows(reports: Iterable[Any], creator_names: Mapping[int, str]) -> list[dict]:
    rows = []
    for index, r in enumerate(reports, 1):
        rows.append({
            "Sr No": index,
            "Name": r.customer_name,
            "Month": _month_abbr(r.month),
            "Location": r.location,
            "Financier": r.financier,
            "Our Region": r.our_region,
            "Loan Amount": r.loan_amount,
            "Payout %": _percent(r.payout_percentage),
            "Amount paid": r.amount_paid,
            "less TDS": r.less_tds,
            "Nett": r.nett_amount,
            "Name as per Bank Account Holder 1": r.beneficiary_name,
            "A/C No": r.account_no,
            "IFSC": r.ifsc_code,
            "Bank": r.bank_name,
            "PAN": r.pan_no,
            "SM NAME": r.sm_name,
            "CUSTOMER CONTACT NO.": r.contact_no,
            "Mail sent to Accounts/Paid": r.mail_sent,
            "Payment status": r.payment_status,
            "Created By": creator_names.get(r.created_by_user_id) or "System",
        })
    return rows


# ---------------------------------------------------------------------------
# Mail compose
# ---------------------------------------------------------------------------

def _encode_component(value: str) -> str:
    # Same reserved set as JavaScript's encodeURIComponent
    return quote(value, safe="-_.!~*'()")


def build_mailto(recipient: str, subject: str, body: str) -> str:
    return (
        f"mailto:{recipient}"
        f"?subject={_encode_component(subject)}&body={_encode_component(body)}"
    )
