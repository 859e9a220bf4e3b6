# BizPulse - Financial tracking dashboard for multi-location small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
View utilities for BizPulse.

This module turns the result objects produced by the aggregation engine and
the dashboard orchestration into pandas DataFrames, ready to be printed as
console tables or written to CSV by the CLI. Amounts are rounded to the
requested number of decimals here and nowhere else.
"""

from collections import Counter
from collections.abc import Sequence
from typing import Optional

import pandas as pd

from .aggregation import BusinessRanking, ComparisonDay, DailyPoint, ProductPerformance
from .cashflow import ShiftBalance
from .dashboard import DashboardReport
from .models import BusinessUnit
from .tiers import MrrBreakdown
from .trends import Trend

TOTALS_COLUMNS = ["key", "label", "value", "unit", "trend"]
RANKING_COLUMNS = [
    "business_id",
    "name",
    "location",
    "total_sales",
    "total_profit",
    "total_expenses",
    "net_profit",
    "margin_percent",
]
DAILY_COLUMNS = ["date", "total_sales", "total_profit", "transactions"]
PRODUCT_COLUMNS = ["product_id", "sku", "name", "quantity", "revenue", "profit"]
MRR_COLUMNS = ["tier", "label", "organizations", "mrr"]
SHIFT_COLUMNS = [
    "shift_id",
    "business",
    "status",
    "opening_float",
    "cash_sales",
    "float_added",
    "dropped",
    "paid_out",
    "expected_cash",
    "counted",
    "variance",
]


def format_trend(trend: Optional[Trend]) -> str:
    """'+12%' / '-5%', or '' when there is no trend."""
    if trend is None:
        return ""
    sign = "+" if trend.is_up else "-"
    return f"{sign}{trend.value}%"


def totals_to_dataframe(report: DashboardReport, decimals: int = 2) -> pd.DataFrame:
    """
    Headline figures of a dashboard report, one row per measure.

    Columns: key, label, value, unit ('amount' or 'percent'), trend.
    """
    t = report.totals
    trends = report.trends
    rows = [
        ("total_sales", "Total sales", t.total_sales, "amount", trends.sales),
        ("total_profit", "Gross profit", t.total_profit, "amount", trends.profit),
        ("total_expenses", "Expenses", t.total_expenses, "amount", trends.expenses),
        ("net_profit", "Net profit", t.net_profit, "amount", trends.net),
        ("margin_percent", "Gross margin (%)", t.margin_percent, "percent", None),
        (
            "expense_ratio_percent",
            "Expense ratio (%)",
            t.expense_ratio_percent,
            "percent",
            None,
        ),
    ]
    return pd.DataFrame(
        [
            {
                "key": key,
                "label": label,
                "value": round(value, decimals),
                "unit": unit,
                "trend": format_trend(trend),
            }
            for key, label, value, unit, trend in rows
        ],
        columns=TOTALS_COLUMNS,
    )


def ranking_to_dataframe(
    ranking: Sequence[BusinessRanking], decimals: int = 2
) -> pd.DataFrame:
    """Business ranking, keeping the ranking order."""
    if not ranking:
        return pd.DataFrame(columns=RANKING_COLUMNS)

    df = pd.DataFrame([{col: getattr(r, col) for col in RANKING_COLUMNS} for r in ranking])
    amount_cols = RANKING_COLUMNS[3:]
    df[amount_cols] = df[amount_cols].round(decimals)
    return df[RANKING_COLUMNS]


def daily_to_dataframe(points: Sequence[DailyPoint], decimals: int = 2) -> pd.DataFrame:
    if not points:
        return pd.DataFrame(columns=DAILY_COLUMNS)

    return pd.DataFrame(
        [
            {
                "date": p.date_label,
                "total_sales": round(p.total_sales, decimals),
                "total_profit": round(p.total_profit, decimals),
                "transactions": p.transaction_count,
            }
            for p in points
        ],
        columns=DAILY_COLUMNS,
    )


def products_to_dataframe(
    performance: ProductPerformance,
    decimals: int = 2,
    limit: Optional[int] = None,
) -> pd.DataFrame:
    """Products ranked by revenue, optionally truncated to ``limit`` rows."""
    products = performance.ranked if limit is None else performance.top(limit)
    if not products:
        return pd.DataFrame(columns=PRODUCT_COLUMNS)

    df = pd.DataFrame([{col: getattr(p, col) for col in PRODUCT_COLUMNS} for p in products])
    df[["revenue", "profit"]] = df[["revenue", "profit"]].round(decimals)
    return df[PRODUCT_COLUMNS]


def comparison_to_dataframe(
    days: Sequence[ComparisonDay], businesses: Sequence[BusinessUnit]
) -> pd.DataFrame:
    """
    Wide table of the monthly comparison: one row per day, one column per
    business labelled 'Name (Location)'. Businesses sharing a label get their
    id appended so that no column is overwritten.
    """
    labels = {
        b.id: f"{b.name} ({b.location})" if b.location else b.name for b in businesses
    }
    counts = Counter(labels.values())
    labels = {
        business_id: f"{label} [{business_id}]" if counts[label] > 1 else label
        for business_id, label in labels.items()
    }
    rows = []
    for day in days:
        row: dict[str, object] = {"day": day.day_label}
        for business_id, amount in day.sales_by_business.items():
            row[labels.get(business_id, business_id)] = amount
        rows.append(row)
    return pd.DataFrame(rows)


def mrr_to_dataframe(breakdown: MrrBreakdown) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "tier": b.tier,
                "label": b.label,
                "organizations": b.organizations,
                "mrr": b.mrr,
            }
            for b in breakdown.buckets
        ],
        columns=MRR_COLUMNS,
    )


def shifts_to_dataframe(
    balances: Sequence[ShiftBalance],
    businesses: Sequence[BusinessUnit],
    decimals: int = 2,
) -> pd.DataFrame:
    """Cash-shift ledger; open shifts have empty counted and variance cells."""
    if not balances:
        return pd.DataFrame(columns=SHIFT_COLUMNS)

    names = {b.id: b.name for b in businesses}

    def _amount(value: Optional[float]) -> Optional[float]:
        return None if value is None else round(value, decimals)

    return pd.DataFrame(
        [
            {
                "shift_id": b.shift_id,
                "business": names.get(b.business_id, b.business_id),
                "status": "OPEN" if b.is_open else "CLOSED",
                "opening_float": _amount(b.opening_float),
                "cash_sales": _amount(b.cash_sales),
                "float_added": _amount(b.float_added),
                "dropped": _amount(b.dropped),
                "paid_out": _amount(b.paid_out),
                "expected_cash": _amount(b.expected_cash),
                "counted": _amount(b.counted),
                "variance": _amount(b.variance),
            }
            for b in balances
        ],
        columns=SHIFT_COLUMNS,
    )
