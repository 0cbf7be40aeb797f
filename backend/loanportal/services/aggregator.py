"""Dashboard aggregation for inspection and payout reports.

Pure functions over an in-memory record set: filtering, KPI reduction and
chart series. Records may be ORM rows or plain mappings with the same field
names. Nothing here touches the database; callers load the scoped records
first and hand them over together with an immutable `DashboardView`.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Optional

logger = logging.getLogger(__name__)

REGION_BUCKET_LIMIT = 8
UNKNOWN_REGION = "Unknown"
OTHER_FINANCIER = "Other"
POSITIVE_MARKERS = ("yes", "positive")
INVOICE_STATUS_BUCKETS = ("Cleared", "Raised", "Pending")

_MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
               "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


class DashboardTab(str, enum.Enum):
    INSPECTION = "inspection"
    PAYOUT = "payout"


@dataclass(frozen=True)
class ReportFilters:
    """Region and date bounds; empty values mean no constraint."""
    region: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    def __post_init__(self):
        for name in ("region", "start_date", "end_date"):
            value = getattr(self, name)
            if isinstance(value, date):
                value = value.isoformat()
            object.__setattr__(self, name, value or None)

    @property
    def is_empty(self) -> bool:
        return not (self.region or self.start_date or self.end_date)


@dataclass(frozen=True)
class DashboardView:
    """Current dashboard selection: which tab and which filters."""
    tab: DashboardTab = DashboardTab.INSPECTION
    filters: ReportFilters = field(default_factory=ReportFilters)

    def with_tab(self, tab: DashboardTab | str) -> "DashboardView":
        return replace(self, tab=DashboardTab(tab))

    def with_filters(self, **changes: Any) -> "DashboardView":
        return replace(self, filters=replace(self.filters, **changes))

    def cleared(self) -> "DashboardView":
        return replace(self, filters=ReportFilters())


@dataclass(frozen=True)
class ChartPoint:
    name: str
    value: float


@dataclass(frozen=True)
class ChartSeries:
    name: str       # trend | category | status
    metric: str     # count | amount
    points: tuple[ChartPoint, ...]

    def as_dict(self) -> dict[str, float]:
        return {p.name: p.value for p in self.points}


@dataclass(frozen=True)
class AggregateResult:
    filtered: list
    kpis: dict[str, float]
    series: tuple[ChartSeries, ...]

    def get_series(self, name: str) -> ChartSeries:
        for s in self.series:
            if s.name == name:
                return s
        raise KeyError(name)


# ── Field access ────────────────────────────────────────────


def _get(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _num(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, enum.Enum):
        return str(value.value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _date_key(record: Any) -> str:
    return _text(_get(record, "date"))[:10]


def _month_start(record: Any) -> str:
    month = _text(_get(record, "month"))
    return f"{month}-01" if month else ""


def _day_label(iso: str) -> str:
    try:
        d = date.fromisoformat(iso[:10])
    except ValueError:
        return iso or UNKNOWN_REGION
    return f"{d.day:02d} {_MONTH_ABBR[d.month - 1]}"


# ── Filtering ───────────────────────────────────────────────


def filter_by_region(records: Sequence, region: Optional[str], tab: DashboardTab) -> list:
    """Inspections match on either region column; payouts on `our_region`."""
    if not region:
        return list(records)
    if tab == DashboardTab.INSPECTION:
        return [
            r for r in records
            if _get(r, "bob_region") == region or _get(r, "our_region") == region
        ]
    return [r for r in records if _get(r, "our_region") == region]


def filter_by_date_range(
    records: Sequence,
    start_date: Optional[str],
    end_date: Optional[str],
    tab: DashboardTab,
) -> list:
    """Compare ISO strings; payouts are compared by the first day of their month.

    Records with no date (or month) are excluded whenever a bound is set.
    """
    if not start_date and not end_date:
        return list(records)
    key = _date_key if tab == DashboardTab.INSPECTION else _month_start
    out = []
    for r in records:
        k = key(r)
        if not k:
            continue
        if start_date and k < start_date:
            continue
        if end_date and k > end_date:
            continue
        out.append(r)
    return out


def apply_filters(records: Sequence, filters: ReportFilters, tab: DashboardTab) -> list:
    filtered = filter_by_region(records, filters.region, tab)
    return filter_by_date_range(filtered, filters.start_date, filters.end_date, tab)


# ── KPIs ────────────────────────────────────────────────────


def is_positive_remark(remarks: Any) -> bool:
    text = _text(remarks).lower()
    return any(marker in text for marker in POSITIVE_MARKERS)


def positive_rate(positive: float, total: float) -> float:
    """Percentage of positive remarks; 0 for an empty set."""
    if not total:
        return 0.0
    return positive / total * 100


def inspection_kpis(records: Sequence) -> dict[str, float]:
    total = len(records)
    positive = sum(1 for r in records if is_positive_remark(_get(r, "lar_remarks")))
    return {
        "total_inspections": total,
        "inspection_volume": sum(_num(_get(r, "loan_amount")) for r in records),
        "pending_reports": sum(1 for r in records if _text(_get(r, "invoice_status")) == "Pending"),
        "positive_remarks": positive,
        "positive_rate": positive_rate(positive, total),
    }


def payout_kpis(records: Sequence) -> dict[str, float]:
    return {
        "total_payout_amount": sum(_num(_get(r, "loan_amount")) for r in records),
        "total_nett_paid": sum(_num(_get(r, "nett_amount")) for r in records),
        "tds_deducted": sum(_num(_get(r, "less_tds")) for r in records),
        "pending_payouts": sum(1 for r in records if _text(_get(r, "payment_status")) == "Pending"),
    }


# ── Series ──────────────────────────────────────────────────


def _points(buckets: Mapping[str, float]) -> tuple[ChartPoint, ...]:
    return tuple(ChartPoint(name=k, value=v) for k, v in buckets.items())


def inspection_trend(records: Sequence) -> ChartSeries:
    """Inspections per calendar day, in order of first appearance."""
    counts: dict[str, float] = {}
    for r in records:
        label = _day_label(_date_key(r))
        counts[label] = counts.get(label, 0) + 1
    return ChartSeries("trend", "count", _points(counts))


def payout_trend(records: Sequence) -> ChartSeries:
    """Nett payout per month, months sorted chronologically."""
    sums: dict[str, float] = {}
    for r in records:
        month = _text(_get(r, "month"))
        sums[month] = sums.get(month, 0.0) + _num(_get(r, "nett_amount"))
    return ChartSeries("trend", "amount", _points({k: sums[k] for k in sorted(sums)}))


def inspection_by_region(records: Sequence) -> ChartSeries:
    """Loan volume per BOB region, first eight regions encountered."""
    sums: dict[str, float] = {}
    for r in records:
        region = _get(r, "bob_region") or UNKNOWN_REGION
        sums[region] = sums.get(region, 0.0) + _num(_get(r, "loan_amount"))
    kept = list(sums)[:REGION_BUCKET_LIMIT]
    return ChartSeries(
        "category", "amount",
        tuple(ChartPoint(name=k.replace(" REGION", ""), value=sums[k]) for k in kept),
    )


def payout_by_financier(records: Sequence) -> ChartSeries:
    sums: dict[str, float] = {}
    for r in records:
        financier = _get(r, "financier") or OTHER_FINANCIER
        sums[financier] = sums.get(financier, 0.0) + _num(_get(r, "nett_amount"))
    return ChartSeries("category", "amount", _points(sums))


def inspection_status(records: Sequence) -> ChartSeries:
    counts = {status: 0 for status in INVOICE_STATUS_BUCKETS}
    for r in records:
        status = _text(_get(r, "invoice_status"))
        if status in counts:
            counts[status] += 1
    return ChartSeries("status", "count", _points(counts))


def payout_status(records: Sequence) -> ChartSeries:
    """'Paid' when the free-text status mentions paid; everything else is pending."""
    paid = sum(1 for r in records if "paid" in _text(_get(r, "payment_status")).lower())
    return ChartSeries("status", "count", _points({"Paid": paid, "Pending": len(records) - paid}))


# ── Entry point ─────────────────────────────────────────────


def aggregate(
    records: Sequence,
    filters: ReportFilters | None = None,
    tab: DashboardTab | str = DashboardTab.INSPECTION,
) -> AggregateResult:
    """Filter `records` and derive KPIs plus trend, category and status series."""
    tab = DashboardTab(tab)
    filters = filters or ReportFilters()
    filtered = apply_filters(records, filters, tab)

    if tab == DashboardTab.INSPECTION:
        kpis = inspection_kpis(filtered)
        series = (inspection_trend(filtered), inspection_by_region(filtered), inspection_status(filtered))
    else:
        kpis = payout_kpis(filtered)
        series = (payout_trend(filtered), payout_by_financier(filtered), payout_status(filtered))

    logger.debug(
        "Aggregated %s: %d of %d records after filters %s",
        tab.value, len(filtered), len(records), filters,
    )
    return AggregateResult(filtered=filtered, kpis=kpis, series=series)


def aggregate_view(records: Sequence, view: DashboardView) -> AggregateResult:
    return aggregate(records, view.filters, view.tab)
