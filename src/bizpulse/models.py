# BizPulse - Financial tracking dashboard for multi-location small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Record types consumed by the BizPulse aggregation library.

All records are plain frozen dataclasses. They are produced by a record
store (see storage.py / io.py) and are treated as read-only snapshots by
every computation module.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Callable, Optional, Union

# A sale date may be an ISO string ("2024-03-05", "2024-03-05T10:00:00Z"),
# a date or a datetime. Expense months are "YYYY-MM" strings.
DateLike = Union[str, date, datetime]

# Predicate answering "is this business visible to the current actor".
AccessScope = Callable[[str], bool]

ALL_BUSINESSES = "all"


class Timeframe(str, Enum):
    """Named period presets offered by the filter panel."""

    TODAY = "today"
    YESTERDAY = "yesterday"
    THIS_MONTH = "this_month"
    SELECT_MONTH = "select_month"
    CUSTOM_RANGE = "custom_range"
    LIFETIME = "lifetime"


class MovementType(str, Enum):
    """Kinds of cash movement recorded against an open till shift."""

    FLOAT_ADD = "FLOAT_ADD"
    DROP = "DROP"
    PAYOUT = "PAYOUT"


class ShiftStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


@dataclass(frozen=True)
class SaleItem:
    """One line of a point-of-sale checkout."""

    product_id: str
    name: str
    quantity: float
    price_at_sale: float
    cost_at_sale: float
    sku: str = ""
    refunded_quantity: float = 0.0
    discount: float = 0.0

    @property
    def net_quantity(self) -> float:
        return self.quantity - self.refunded_quantity


@dataclass(frozen=True)
class Sale:
    """
    A sales record: either a pre-aggregated daily entry or a single checkout.

    ``profit_amount`` is the source of truth for profit. ``profit_percentage``
    is kept only as the value stored upstream; use ``margin_percent`` for a
    value that is consistent with the amounts.
    """

    id: str
    business_id: str
    date: DateLike
    sales_amount: float
    profit_amount: float
    profit_percentage: Optional[float] = None
    payment_method: Optional[str] = None
    items: tuple[SaleItem, ...] = ()
    org_id: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def margin_percent(self) -> float:
        if self.sales_amount <= 0:
            return 0.0
        return self.profit_amount / self.sales_amount * 100


@dataclass(frozen=True)
class Expense:
    """A monthly expense. ``month`` follows the 'YYYY-MM' convention."""

    id: str
    business_id: str
    month: str
    amount: float
    description: str = ""
    org_id: Optional[str] = None


@dataclass(frozen=True)
class BusinessUnit:
    id: str
    name: str
    location: str = ""
    org_id: Optional[str] = None


@dataclass(frozen=True)
class Organization:
    """A tenant account holding a subscription tier."""

    id: str
    name: str
    tier: str = "starter"
    is_active: bool = True
    subscription_end_date: Optional[date] = None


@dataclass(frozen=True)
class DateRange:
    """Explicit date range override. Empty strings mean 'unset'."""

    start: str = ""
    end: str = ""

    @property
    def is_set(self) -> bool:
        return bool(self.start or self.end)


@dataclass(frozen=True)
class Filters:
    """
    Period and business selection coming from the filter panel.

    Attributes
    ----------
    business_id:
        ``"all"`` or a specific business id.
    date_range:
        Explicit range. When either bound is non-empty it wins over
        ``timeframe``.
    selected_month:
        'YYYY-MM', only read when ``timeframe`` is ``select_month``.
    timeframe:
        One of the ``Timeframe`` presets.
    """

    business_id: str = ALL_BUSINESSES
    date_range: DateRange = field(default_factory=DateRange)
    selected_month: str = ""
    timeframe: Timeframe = Timeframe.TODAY


@dataclass(frozen=True)
class CashShift:
    """
    A till shift: opened with a cash float, closed with a counted amount.

    ``expected_cash`` and ``variance`` are the values stored when the shift
    was closed; they are None for open shifts.
    """

    id: str
    business_id: str
    opened_at: DateLike
    opening_float: float = 0.0
    closed_at: Optional[DateLike] = None
    closing_cash_counted: Optional[float] = None
    expected_cash: Optional[float] = None
    variance: Optional[float] = None
    status: ShiftStatus = ShiftStatus.OPEN
    user_name: str = ""
    notes: str = ""
    org_id: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.status == ShiftStatus.OPEN


@dataclass(frozen=True)
class CashMovement:
    """Cash added to or taken out of the till during a shift."""

    id: str
    shift_id: str
    business_id: str
    type: MovementType
    amount: float
    reason: str = ""
    created_at: Optional[str] = None
    org_id: Optional[str] = None
