"""Payout split for a payout report: amount paid, TDS withheld, nett payable."""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import TypedDict

logger = logging.getLogger(__name__)

# Tax deducted at source, applied to the amount paid
TDS_RATE = 0.10

# Column scales of the stored payout fields
AMOUNT_STEP = Decimal("0.01")
PERCENT_STEP = Decimal("0.001")


class PayoutAmounts(TypedDict):
    amount_paid: float
    less_tds: float
    nett_amount: float


def recompute(loan_amount: float, payout_percentage: float) -> PayoutAmounts:
    """Derive the three payout amounts from the loan amount and payout percentage.

    amount_paid = loan_amount * payout_percentage / 100
    less_tds    = amount_paid * TDS_RATE
    nett_amount = amount_paid - less_tds

    Inputs are not range-checked: negative or zero values flow through the
    arithmetic unchanged. Missing values count as zero.
    """
    amount = float(loan_amount or 0)
    pct = float(payout_percentage or 0)
    paid = amount * pct / 100
    tds = paid * TDS_RATE
    return {
        "amount_paid": paid,
        "less_tds": tds,
        "nett_amount": paid - tds,
    }


def _quantize(value, step: Decimal) -> Decimal:
    return Decimal(str(value or 0)).quantize(step, rounding=ROUND_HALF_UP)


def rounded_payout(loan_amount: float, payout_percentage: float) -> dict[str, float]:
    """Inputs and split as they are stored.

    Inputs are rounded to the column scales (paise, and three places for the
    percentage) before the split is taken, and each derived amount is rounded
    to the paisa, with nett_amount = amount_paid - less_tds exactly.
    """
    loan = _quantize(loan_amount, AMOUNT_STEP)
    pct = _quantize(payout_percentage, PERCENT_STEP)
    paid = _quantize(loan * pct / 100, AMOUNT_STEP)
    tds = _quantize(paid * Decimal(str(TDS_RATE)), AMOUNT_STEP)
    return {
        "loan_amount": float(loan),
        "payout_percentage": float(pct),
        "amount_paid": float(paid),
        "less_tds": float(tds),
        "nett_amount": float(paid - tds),
    }


def apply_to(report, loan_amount: float, payout_percentage: float) -> None:
    """Set inputs and overwrite the derived amounts on a payout report in place."""
    for field, value in rounded_payout(loan_amount, payout_percentage).items():
        setattr(report, field, value)
    logger.debug(
        "Payout recomputed: loan=%s pct=%s -> nett=%s",
        report.loan_amount, report.payout_percentage, report.nett_amount,
    )
