# BizPulse - Financial tracking dashboard for multi-location small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Core aggregation engine for BizPulse.

This module reduces collections of sales and expense records into the
figures shown on the dashboard and report pages. It is a library of pure
functions: inputs are never mutated and every call recomputes from scratch.

1. Filtering
   ---------
   ``filter_records()`` keeps the records that satisfy all of:
   - the record date (a sale instant or an expense month) falls inside the
     reporting window, both bounds inclusive,
   - the injected access scope accepts the record's business id,
   - the business filter is ``"all"`` or equals the record's business id.

   Dates are read on the local calendar of the window (see periods.py).

2. Reduction
   ---------
   ``aggregate()`` sums sales, gross profit and expenses and derives net
   profit, margin and expense ratio. Sums run left to right in input order
   so results are reproducible. Ratios are 0 when there is no revenue.

3. Grouping
   --------
   - ``group_by_business()`` : per-business totals ranked by revenue,
   - ``business_leaders()``  : revenue leader and margin leader,
   - ``group_by_day()``      : daily sums on the local calendar,
   - ``daily_business_rows()``: one row per business per day,
   - ``monthly_comparison()``: day-by-day sales of each business this month,
   - ``product_performance()``: item-wise summary of checkout lines.

Notes
-----
Amounts are assumed to be clean floats. Coercion of missing or non-numeric
values happens when records are read (io.py), not here.
"""

from __future__ import annotations

from calendar import monthrange
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, TypeVar, Union

from .models import (
    ALL_BUSINESSES,
    AccessScope,
    BusinessUnit,
    DateLike,
    Expense,
    Sale,
)
from .periods import Window, local_day, month_window, record_instant

MoneyRecord = Union[Sale, Expense]
R = TypeVar("R", Sale, Expense)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Totals:
    """
    Headline figures for one window.

    Attributes
    ----------
    total_sales :
        Sum of ``sales_amount``.
    total_profit :
        Sum of ``profit_amount`` (gross profit).
    total_expenses :
        Sum of expense ``amount``.
    net_profit :
        ``total_profit - total_expenses``.
    margin_percent :
        Gross margin in percent, 0 when there is no revenue.
    expense_ratio_percent :
        Expenses as a percentage of revenue, 0 when there is no revenue.
    """

    total_sales: float = 0.0
    total_profit: float = 0.0
    total_expenses: float = 0.0
    net_profit: float = 0.0
    margin_percent: float = 0.0
    expense_ratio_percent: float = 0.0


@dataclass(frozen=True)
class BusinessRanking:
    business_id: str
    name: str
    location: str
    total_sales: float
    total_profit: float
    total_expenses: float
    net_profit: float
    margin_percent: float


@dataclass(frozen=True)
class Leaders:
    """Best business by revenue and best business by margin."""

    by_revenue: Optional[BusinessRanking]
    by_margin: Optional[BusinessRanking]


@dataclass(frozen=True)
class DailyPoint:
    day: date
    total_sales: float
    total_profit: float
    transaction_count: int

    @property
    def date_label(self) -> str:
        return self.day.isoformat()


@dataclass(frozen=True)
class DailyBusinessRow:
    """Per-transaction sales collapsed to one row per business per day."""

    business_id: str
    day: date
    sales_amount: float
    profit_amount: float
    transaction_count: int

    @property
    def key(self) -> str:
        return f"{self.business_id}_{self.day.isoformat()}"


@dataclass(frozen=True)
class ComparisonDay:
    """Sales of every business on one day of the month."""

    day: date
    sales_by_business: dict[str, float] = field(default_factory=dict)

    @property
    def day_label(self) -> str:
        return f"{self.day.day}/{self.day.month}"


@dataclass(frozen=True)
class ProductStat:
    product_id: str
    sku: str
    name: str
    quantity: float
    revenue: float
    profit: float


@dataclass(frozen=True)
class ProductPerformance:
    ranked: list[ProductStat]
    by_volume: Optional[ProductStat]
    by_revenue: Optional[ProductStat]
    by_profit: Optional[ProductStat]

    def top(self, n: int = 5) -> list[ProductStat]:
        return self.ranked[:n]


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


def record_date(record: MoneyRecord) -> DateLike:
    if isinstance(record, Expense):
        return record.month
    return record.date


def _matches_business(business_id: str, business_filter: str) -> bool:
    return business_filter == ALL_BUSINESSES or business_id == business_filter


def filter_records(
    records: Iterable[R],
    window: Window,
    scope: AccessScope,
    business_filter: str = ALL_BUSINESSES,
) -> list[R]:
    """
    Keep the records inside ``window`` that are visible and selected.

    The cheap business-id checks run before date parsing. Records whose
    date cannot be parsed are dropped. Input order is preserved.
    """
    tz = window.start.tzinfo
    kept: list[R] = []
    for record in records:
        if not _matches_business(record.business_id, business_filter):
            continue
        if not scope(record.business_id):
            continue
        instant = record_instant(record_date(record), tz)
        if instant is None or not window.contains(instant):
            continue
        kept.append(record)
    return kept


# ---------------------------------------------------------------------------
# Reduction
# ---------------------------------------------------------------------------


def _percent_of_sales(value: float, total_sales: float) -> float:
    if total_sales <= 0:
        return 0.0
    return value / total_sales * 100


def summarize(sales: Iterable[Sale], expenses: Iterable[Expense]) -> Totals:
    """Reduce already-filtered records into Totals."""
    total_sales = 0.0
    total_profit = 0.0
    for sale in sales:
        total_sales += sale.sales_amount
        total_profit += sale.profit_amount

    total_expenses = 0.0
    for expense in expenses:
        total_expenses += expense.amount

    return Totals(
        total_sales=total_sales,
        total_profit=total_profit,
        total_expenses=total_expenses,
        net_profit=total_profit - total_expenses,
        margin_percent=_percent_of_sales(total_profit, total_sales),
        expense_ratio_percent=_percent_of_sales(total_expenses, total_sales),
    )


def aggregate(
    sales: Iterable[Sale],
    expenses: Iterable[Expense],
    window: Window,
    scope: AccessScope,
    business_filter: str = ALL_BUSINESSES,
) -> Totals:
    """Filter sales and expenses to ``window`` and reduce them to Totals."""
    return summarize(
        filter_records(sales, window, scope, business_filter),
        filter_records(expenses, window, scope, business_filter),
    )


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------


def group_by_business(
    sales: Iterable[Sale],
    expenses: Iterable[Expense],
    businesses: Sequence[BusinessUnit],
    window: Window,
    scope: AccessScope,
    business_filter: str = ALL_BUSINESSES,
) -> list[BusinessRanking]:
    """
    Per-business totals ranked by revenue, highest first.

    Only businesses that are visible through ``scope`` and selected by
    ``business_filter`` appear. Businesses without records appear with zero
    totals. Ties keep the order of ``businesses``. Records that reference a
    business missing from ``businesses`` are ignored.
    """
    visible = [
        b for b in businesses if scope(b.id) and _matches_business(b.id, business_filter)
    ]

    sales_by_business: dict[str, list[Sale]] = {b.id: [] for b in visible}
    expenses_by_business: dict[str, list[Expense]] = {b.id: [] for b in visible}

    for sale in filter_records(sales, window, scope, business_filter):
        if sale.business_id in sales_by_business:
            sales_by_business[sale.business_id].append(sale)

    for expense in filter_records(expenses, window, scope, business_filter):
        if expense.business_id in expenses_by_business:
            expenses_by_business[expense.business_id].append(expense)

    ranking: list[BusinessRanking] = []
    for business in visible:
        totals = summarize(
            sales_by_business[business.id], expenses_by_business[business.id]
        )
        ranking.append(
            BusinessRanking(
                business_id=business.id,
                name=business.name,
                location=business.location,
                total_sales=totals.total_sales,
                total_profit=totals.total_profit,
                total_expenses=totals.total_expenses,
                net_profit=totals.net_profit,
                margin_percent=totals.margin_percent,
            )
        )

    # sorted() is stable, including with reverse=True.
    return sorted(ranking, key=lambda r: r.total_sales, reverse=True)


def business_leaders(ranking: Sequence[BusinessRanking]) -> Leaders:
    """Pick the revenue leader and the margin leader independently."""
    if not ranking:
        return Leaders(by_revenue=None, by_margin=None)
    by_revenue = sorted(ranking, key=lambda r: r.total_sales, reverse=True)[0]
    by_margin = sorted(ranking, key=lambda r: r.margin_percent, reverse=True)[0]
    return Leaders(by_revenue=by_revenue, by_margin=by_margin)


def group_by_day(
    sales: Iterable[Sale],
    window: Window,
    scope: AccessScope,
    business_filter: str = ALL_BUSINESSES,
) -> list[DailyPoint]:
    """
    Daily sums of sales and profit on the local calendar, oldest day first.

    Several checkouts on the same local day collapse into one point; a
    single pre-aggregated row per day passes through unchanged.
    """
    tz = window.start.tzinfo
    sums: dict[date, list[float]] = {}
    counts: dict[date, int] = {}

    for sale in filter_records(sales, window, scope, business_filter):
        day = local_day(sale.date, tz)
        if day is None:
            continue
        bucket = sums.setdefault(day, [0.0, 0.0])
        bucket[0] += sale.sales_amount
        bucket[1] += sale.profit_amount
        counts[day] = counts.get(day, 0) + 1

    return [
        DailyPoint(
            day=day,
            total_sales=sums[day][0],
            total_profit=sums[day][1],
            transaction_count=counts[day],
        )
        for day in sorted(sums)
    ]


def daily_business_rows(
    sales: Iterable[Sale],
    window: Window,
    scope: AccessScope,
    business_filter: str = ALL_BUSINESSES,
) -> list[DailyBusinessRow]:
    """One row per (business, local day), newest day first."""
    tz = window.start.tzinfo
    sums: dict[tuple[str, date], list[float]] = {}
    counts: dict[tuple[str, date], int] = {}

    for sale in filter_records(sales, window, scope, business_filter):
        day = local_day(sale.date, tz)
        if day is None:
            continue
        key = (sale.business_id, day)
        bucket = sums.setdefault(key, [0.0, 0.0])
        bucket[0] += sale.sales_amount
        bucket[1] += sale.profit_amount
        counts[key] = counts.get(key, 0) + 1

    rows = [
        DailyBusinessRow(
            business_id=business_id,
            day=day,
            sales_amount=amounts[0],
            profit_amount=amounts[1],
            transaction_count=counts[(business_id, day)],
        )
        for (business_id, day), amounts in sums.items()
    ]
    return sorted(rows, key=lambda r: r.day, reverse=True)


def monthly_comparison(
    sales: Iterable[Sale],
    businesses: Sequence[BusinessUnit],
    now: datetime,
    scope: AccessScope,
) -> list[ComparisonDay]:
    """
    Day-by-day sales of each visible business over the month of ``now``.

    Every day of the month is present, including future days, so that the
    chart always spans the whole month. Missing values are 0.
    """
    tz = now.tzinfo
    window = month_window(now.year, now.month, tz)
    visible = [b for b in businesses if scope(b.id)]
    visible_ids = {b.id for b in visible}

    per_day: dict[tuple[str, date], float] = {}
    for sale in filter_records(sales, window, scope):
        if sale.business_id not in visible_ids:
            continue
        day = local_day(sale.date, tz)
        if day is None:
            continue
        key = (sale.business_id, day)
        per_day[key] = per_day.get(key, 0.0) + sale.sales_amount

    days_in_month = monthrange(now.year, now.month)[1]
    comparison: list[ComparisonDay] = []
    for day_number in range(1, days_in_month + 1):
        day = date(now.year, now.month, day_number)
        comparison.append(
            ComparisonDay(
                day=day,
                sales_by_business={b.id: per_day.get((b.id, day), 0.0) for b in visible},
            )
        )
    return comparison


def product_performance(
    sales: Iterable[Sale],
    window: Window,
    scope: AccessScope,
    business_filter: str = ALL_BUSINESSES,
) -> ProductPerformance:
    """
    Item-wise summary of the checkout lines attached to sales.

    For each line, the net quantity is ``quantity - refunded_quantity``;
    revenue is ``price_at_sale * qty - discount`` and profit is revenue
    minus ``cost_at_sale * qty``. Lines with a zero net quantity are
    ignored. Products are keyed by product id, or by SKU when the id is
    empty.
    """
    stats: dict[str, dict] = {}

    for sale in filter_records(sales, window, scope, business_filter):
        for item in sale.items:
            key = item.product_id or item.sku
            entry = stats.setdefault(
                key,
                {
                    "product_id": item.product_id,
                    "sku": item.sku,
                    "name": item.name or "Unknown Item",
                    "quantity": 0.0,
                    "revenue": 0.0,
                    "profit": 0.0,
                },
            )
            qty = item.net_quantity
            if qty == 0:
                continue
            net_revenue = item.price_at_sale * qty - item.discount
            entry["quantity"] += qty
            entry["revenue"] += net_revenue
            entry["profit"] += net_revenue - item.cost_at_sale * qty

    products = [ProductStat(**values) for values in stats.values()]
    ranked = sorted(products, key=lambda p: p.revenue, reverse=True)

    def _best(attr: str) -> Optional[ProductStat]:
        if not products:
            return None
        return sorted(products, key=lambda p: getattr(p, attr), reverse=True)[0]

    return ProductPerformance(
        ranked=ranked,
        by_volume=_best("quantity"),
        by_revenue=_best("revenue"),
        by_profit=_best("profit"),
    )
