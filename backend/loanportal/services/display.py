"""Display strings for dashboard KPIs (Indian rupee notation)."""

from decimal import Decimal, ROUND_HALF_UP

CRORE = 10_000_000
LAKH = 100_000


def _indian_grouping(digits: str) -> str:
    """'5000000.5' -> '50,00,000.5': last three digits, then pairs."""
    whole, _, frac = digits.partition(".")
    if len(whole) > 3:
        head, groups = whole[:-3], [whole[-3:]]
        while head:
            groups.insert(0, head[-2:])
            head = head[:-2]
        whole = ",".join(groups)
    return f"{whole}.{frac}" if frac else whole


def format_inr(value: float) -> str:
    """₹1.25 Cr / ₹3.40 L / ₹45,500, switching to crore and lakh above the thresholds.

    Negative sums keep the plain form with the sign ahead of the symbol,
    e.g. -₹50,00,000.
    """
    value = float(value or 0)
    if value >= CRORE:
        return f"₹{value / CRORE:.2f} Cr"
    if value >= LAKH:
        return f"₹{value / LAKH:.2f} L"
    sign = "-" if value < 0 else ""
    text = f"{abs(value):.3f}".rstrip("0").rstrip(".")
    return f"{sign}₹{_indian_grouping(text)}"


def rate_label(rate: float) -> str:
    """Whole-percent label for a rate, e.g. '33% Rate'."""
    rounded = Decimal(str(rate or 0)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{rounded}% Rate"
