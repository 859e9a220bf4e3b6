# BizPulse - Financial tracking dashboard for multi-location small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Dashboard orchestration.

``build_dashboard()`` is the single entry point used by the CLI (and by any
page that needs headline figures). For one filter selection it:

1. resolves the current and previous windows (periods.py),
2. aggregates sales and expenses for both windows (aggregation.py),
3. computes trends, suppressed entirely when the period has no meaningful
   comparison window (lifetime views),
4. ranks businesses and picks the revenue and margin leaders,
5. groups sales by local day and summarizes checkout lines per product,
6. converts every monetary amount into the display currency.

Percentages (margin, expense ratio, trends) are currency independent and
are left untouched by the conversion step.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from datetime import datetime

from .aggregation import (
    BusinessRanking,
    DailyPoint,
    Leaders,
    ProductPerformance,
    Totals,
    aggregate,
    business_leaders,
    group_by_business,
    group_by_day,
    product_performance,
)
from .currency import Currency, convert
from .models import AccessScope, BusinessUnit, Expense, Filters, Sale
from .periods import ResolvedPeriod, resolve_period
from .trends import Trends, compute_trends


@dataclass(frozen=True)
class DashboardReport:
    """
    Everything the dashboard displays for one filter selection.

    Attributes
    ----------
    period :
        Resolved current and previous windows.
    target :
        Display currency of every monetary amount below.
    rate :
        Exchange rate applied when ``target`` is the secondary currency.
    totals, previous_totals :
        Headline figures of the current and previous windows.
    trends :
        Period-over-period trends (all None when not comparable).
    ranking :
        Per-business totals, highest revenue first.
    leaders :
        Revenue leader and margin leader taken from ``ranking``.
    daily :
        Daily sales and profit, oldest day first.
    products :
        Item-wise summary of checkout lines.
    """

    period: ResolvedPeriod
    target: Currency
    rate: float
    totals: Totals
    previous_totals: Totals
    trends: Trends
    ranking: list[BusinessRanking]
    leaders: Leaders
    daily: list[DailyPoint]
    products: ProductPerformance


def convert_totals(totals: Totals, target: Currency, rate: float) -> Totals:
    return replace(
        totals,
        total_sales=convert(totals.total_sales, target, rate),
        total_profit=convert(totals.total_profit, target, rate),
        total_expenses=convert(totals.total_expenses, target, rate),
        net_profit=convert(totals.net_profit, target, rate),
    )


def convert_ranking(
    ranking: Sequence[BusinessRanking], target: Currency, rate: float
) -> list[BusinessRanking]:
    return [
        replace(
            row,
            total_sales=convert(row.total_sales, target, rate),
            total_profit=convert(row.total_profit, target, rate),
            total_expenses=convert(row.total_expenses, target, rate),
            net_profit=convert(row.net_profit, target, rate),
        )
        for row in ranking
    ]


def convert_daily(
    points: Sequence[DailyPoint], target: Currency, rate: float
) -> list[DailyPoint]:
    return [
        replace(
            point,
            total_sales=convert(point.total_sales, target, rate),
            total_profit=convert(point.total_profit, target, rate),
        )
        for point in points
    ]


def convert_products(
    performance: ProductPerformance, target: Currency, rate: float
) -> ProductPerformance:
    def _convert(stat):
        if stat is None:
            return None
        return replace(
            stat,
            revenue=convert(stat.revenue, target, rate),
            profit=convert(stat.profit, target, rate),
        )

    return ProductPerformance(
        ranked=[_convert(p) for p in performance.ranked],
        by_volume=_convert(performance.by_volume),
        by_revenue=_convert(performance.by_revenue),
        by_profit=_convert(performance.by_profit),
    )


def build_dashboard(
    sales: Sequence[Sale],
    expenses: Sequence[Expense],
    businesses: Sequence[BusinessUnit],
    filters: Filters,
    now: datetime,
    scope: AccessScope,
    target: Currency = Currency.BASE,
    rate: float = 1.0,
) -> DashboardReport:
    """
    Compute the full dashboard for ``filters`` as seen at ``now``.

    Parameters
    ----------
    sales, expenses, businesses :
        Full record collections as returned by the record store.
    filters :
        Filter panel selection.
    now :
        Current wall-clock instant; its tzinfo is the local calendar.
    scope :
        Access predicate on business ids.
    target, rate :
        Display currency and exchange rate.

    Returns
    -------
    DashboardReport
    """
    period = resolve_period(filters, now)
    business_filter = filters.business_id

    current = aggregate(sales, expenses, period.current, scope, business_filter)
    previous = aggregate(sales, expenses, period.previous, scope, business_filter)

    if period.comparable:
        trends = compute_trends(current, previous)
    else:
        trends = Trends()

    ranking = convert_ranking(
        group_by_business(
            sales, expenses, businesses, period.current, scope, business_filter
        ),
        target,
        rate,
    )

    return DashboardReport(
        period=period,
        target=Currency(target),
        rate=rate,
        totals=convert_totals(current, target, rate),
        previous_totals=convert_totals(previous, target, rate),
        trends=trends,
        ranking=ranking,
        leaders=business_leaders(ranking),
        daily=convert_daily(
            group_by_day(sales, period.current, scope, business_filter), target, rate
        ),
        products=convert_products(
            product_performance(sales, period.current, scope, business_filter),
            target,
            rate,
        ),
    )
