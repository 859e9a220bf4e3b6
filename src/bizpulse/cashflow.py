# BizPulse - Financial tracking dashboard for multi-location small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Cash-shift reconciliation.

A till shift opens with a cash float. During the shift, cash sales come in
and cash movements are recorded against the shift:

- FLOAT_ADD : extra change put into the till,
- DROP      : cash removed from the till for banking,
- PAYOUT    : cash paid out of the till (petty expenses).

The cash expected in the till is::

    expected = opening_float + cash_sales + float_added - dropped - paid_out

and the variance of a closed shift is ``counted - expected`` (negative when
cash is missing). Cash sales are the sales of the shift's business paid in
cash between the opening instant and the closing instant (``now`` for an
open shift), both read on the local calendar of ``now``.

Like the aggregation engine, these functions are pure and never mutate
their inputs.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .aggregation import filter_records
from .models import (
    ALL_BUSINESSES,
    AccessScope,
    CashMovement,
    CashShift,
    MovementType,
    Sale,
)
from .periods import Window, record_instant

CASH_PAYMENT_METHOD = "CASH"


@dataclass(frozen=True)
class ShiftBalance:
    """
    Reconciled figures of one shift.

    ``counted`` and ``variance`` are None while the shift is open or when no
    closing count was recorded.
    """

    shift_id: str
    business_id: str
    is_open: bool
    opening_float: float
    cash_sales: float
    float_added: float
    dropped: float
    paid_out: float
    expected_cash: float
    counted: Optional[float]
    variance: Optional[float]


@dataclass(frozen=True)
class CashPosition:
    """Cash currently held in open tills and cash dropped but not banked."""

    open_shifts: int
    live_balance: float
    unbanked_cash: float


def is_cash_sale(sale: Sale) -> bool:
    return (sale.payment_method or "").strip().upper() == CASH_PAYMENT_METHOD


def shift_window(shift: CashShift, now: datetime) -> Optional[Window]:
    """Instants covered by ``shift``, or None when its dates cannot be read."""
    tz = now.tzinfo
    opened = record_instant(shift.opened_at, tz)
    if opened is None:
        return None
    closed = record_instant(shift.closed_at, tz) if shift.closed_at else None
    return Window(start=opened, end=closed or now)


def shift_cash_sales(sales: Iterable[Sale], shift: CashShift, now: datetime) -> float:
    """Cash takings of the shift's business while the shift was open."""
    window = shift_window(shift, now)
    if window is None:
        return 0.0
    total = 0.0
    for sale in filter_records(sales, window, lambda _: True, shift.business_id):
        if is_cash_sale(sale):
            total += sale.sales_amount
    return total


def shift_balance(
    shift: CashShift, movements: Iterable[CashMovement], cash_sales: float
) -> ShiftBalance:
    """
    Expected cash and variance of ``shift``.

    Only the movements recorded against ``shift.id`` are counted. For a
    closed shift without a closing count the stored variance is kept.
    """
    added = dropped = paid_out = 0.0
    for movement in movements:
        if movement.shift_id != shift.id:
            continue
        if movement.type == MovementType.FLOAT_ADD:
            added += movement.amount
        elif movement.type == MovementType.DROP:
            dropped += movement.amount
        elif movement.type == MovementType.PAYOUT:
            paid_out += movement.amount

    expected = shift.opening_float + cash_sales + added - dropped - paid_out

    counted = None if shift.is_open else shift.closing_cash_counted
    if counted is not None:
        variance: Optional[float] = counted - expected
    elif shift.is_open:
        variance = None
    else:
        variance = shift.variance

    return ShiftBalance(
        shift_id=shift.id,
        business_id=shift.business_id,
        is_open=shift.is_open,
        opening_float=shift.opening_float,
        cash_sales=cash_sales,
        float_added=added,
        dropped=dropped,
        paid_out=paid_out,
        expected_cash=expected,
        counted=counted,
        variance=variance,
    )


def reconcile_shifts(
    shifts: Iterable[CashShift],
    movements: Sequence[CashMovement],
    sales: Sequence[Sale],
    now: datetime,
    scope: AccessScope,
    business_filter: str = ALL_BUSINESSES,
) -> list[ShiftBalance]:
    """Balance every visible shift, keeping the input order of ``shifts``."""
    balances: list[ShiftBalance] = []
    for shift in shifts:
        if business_filter != ALL_BUSINESSES and shift.business_id != business_filter:
            continue
        if not scope(shift.business_id):
            continue
        cash_sales = shift_cash_sales(sales, shift, now)
        balances.append(shift_balance(shift, movements, cash_sales))
    return balances


def total_variance(balances: Iterable[ShiftBalance]) -> float:
    """Sum of shift variances; shifts without a variance count as 0."""
    total = 0.0
    for balance in balances:
        total += balance.variance or 0.0
    return total


def cash_position(balances: Iterable[ShiftBalance]) -> CashPosition:
    """Live balance and unbanked drops summed over the open shifts."""
    open_shifts = 0
    live = 0.0
    unbanked = 0.0
    for balance in balances:
        if not balance.is_open:
            continue
        open_shifts += 1
        live += balance.expected_cash
        unbanked += balance.dropped
    return CashPosition(open_shifts=open_shifts, live_balance=live, unbanked_cash=unbanked)
