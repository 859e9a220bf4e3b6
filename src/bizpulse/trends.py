# BizPulse - Financial tracking dashboard for multi-location small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Period-over-period trend helpers.

A trend is the rounded percentage change between the current and the
previous value of a measure. It is only defined against a strictly
positive baseline: comparing against zero or a negative value yields
``None`` so that callers render "no trend" instead of 0% or infinity.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .aggregation import Totals


@dataclass(frozen=True)
class Trend:
    """Absolute percentage change (whole number) and its direction."""

    value: int
    is_up: bool


@dataclass(frozen=True)
class Trends:
    """Trends of the four headline measures. Missing when undefined."""

    sales: Optional[Trend] = None
    profit: Optional[Trend] = None
    expenses: Optional[Trend] = None
    net: Optional[Trend] = None


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_trend(current: float, previous: float) -> Optional[Trend]:
    """
    Compute the trend of ``current`` relative to ``previous``.

    Examples:
        compute_trend(150, 100) -> Trend(value=50, is_up=True)
        compute_trend(50, 100)  -> Trend(value=50, is_up=False)
        compute_trend(0, 0)     -> None
    """
    if previous <= 0:
        return None
    change = (current - previous) / previous * 100
    return Trend(value=abs(round_half_up(change)), is_up=current >= previous)


def compute_trends(current: "Totals", previous: "Totals") -> Trends:
    return Trends(
        sales=compute_trend(current.total_sales, previous.total_sales),
        profit=compute_trend(current.total_profit, previous.total_profit),
        expenses=compute_trend(current.total_expenses, previous.total_expenses),
        net=compute_trend(current.net_profit, previous.net_profit),
    )
