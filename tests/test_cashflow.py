from datetime import datetime

import pytest

from bizpulse.access import allow_all, allow_only
from bizpulse.cashflow import (
    cash_position,
    is_cash_sale,
    reconcile_shifts,
    shift_balance,
    shift_cash_sales,
    total_variance,
)
from bizpulse.models import CashMovement, CashShift, MovementType, Sale, ShiftStatus

NOW = datetime(2024, 3, 5, 20, 0)

CLOSED_SHIFT = CashShift(
    id="s1",
    business_id="A",
    opened_at="2024-03-05T08:00:00",
    closed_at="2024-03-05T17:00:00",
    opening_float=500.0,
    closing_cash_counted=940.0,
    status=ShiftStatus.CLOSED,
)
OPEN_SHIFT = CashShift(
    id="s2",
    business_id="B",
    opened_at="2024-03-05T09:00:00",
    opening_float=200.0,
)

SALES = [
    Sale(id="1", business_id="A", date="2024-03-05T10:00:00", sales_amount=1000,
         profit_amount=100, payment_method="CASH"),
    Sale(id="2", business_id="A", date="2024-03-05T11:00:00", sales_amount=300,
         profit_amount=30, payment_method="CARD"),
    # After the shift was closed.
    Sale(id="3", business_id="A", date="2024-03-05T18:00:00", sales_amount=200,
         profit_amount=20, payment_method="cash"),
    Sale(id="4", business_id="B", date="2024-03-05T12:00:00", sales_amount=50,
         profit_amount=5, payment_method="Cash"),
    # Before the shift was opened.
    Sale(id="5", business_id="B", date="2024-03-05T07:00:00", sales_amount=70,
         profit_amount=7, payment_method="CASH"),
]

MOVEMENTS = [
    CashMovement(id="m1", shift_id="s1", business_id="A", type=MovementType.FLOAT_ADD, amount=100),
    CashMovement(id="m2", shift_id="s1", business_id="A", type=MovementType.DROP, amount=600),
    CashMovement(id="m3", shift_id="s1", business_id="A", type=MovementType.PAYOUT, amount=50),
    CashMovement(id="m4", shift_id="s2", business_id="B", type=MovementType.DROP, amount=100),
]


def test_is_cash_sale_ignores_case_and_missing_method() -> None:
    assert is_cash_sale(SALES[0])
    assert is_cash_sale(SALES[2])
    assert not is_cash_sale(SALES[1])
    assert not is_cash_sale(
        Sale(id="x", business_id="A", date="2024-03-05", sales_amount=1, profit_amount=0)
    )


def test_shift_cash_sales_only_counts_cash_taken_while_open() -> None:
    assert shift_cash_sales(SALES, CLOSED_SHIFT, NOW) == 1000.0
    assert shift_cash_sales(SALES, OPEN_SHIFT, NOW) == 50.0


def test_shift_balance_expected_cash_and_variance() -> None:
    balance = shift_balance(CLOSED_SHIFT, MOVEMENTS, cash_sales=1000.0)

    assert balance.float_added == 100.0
    assert balance.dropped == 600.0
    assert balance.paid_out == 50.0
    # 500 + 1000 + 100 - 600 - 50
    assert balance.expected_cash == 950.0
    assert balance.counted == 940.0
    assert balance.variance == -10.0


def test_open_shift_has_no_variance() -> None:
    balance = shift_balance(OPEN_SHIFT, MOVEMENTS, cash_sales=50.0)

    assert balance.is_open
    assert balance.expected_cash == 150.0
    assert balance.counted is None
    assert balance.variance is None


def test_closed_shift_without_count_keeps_stored_variance() -> None:
    shift = CashShift(
        id="s3",
        business_id="A",
        opened_at="2024-03-04T08:00:00",
        closed_at="2024-03-04T17:00:00",
        variance=5.0,
        status=ShiftStatus.CLOSED,
    )
    assert shift_balance(shift, [], cash_sales=0.0).variance == 5.0


def test_reconcile_shifts_totals_and_live_position() -> None:
    balances = reconcile_shifts([CLOSED_SHIFT, OPEN_SHIFT], MOVEMENTS, SALES, NOW, allow_all())

    assert [b.shift_id for b in balances] == ["s1", "s2"]
    assert total_variance(balances) == pytest.approx(-10.0)

    position = cash_position(balances)
    assert position.open_shifts == 1
    assert position.live_balance == 150.0
    assert position.unbanked_cash == 100.0


def test_reconcile_shifts_applies_scope_and_business_filter() -> None:
    shifts = [CLOSED_SHIFT, OPEN_SHIFT]

    assert [b.shift_id for b in reconcile_shifts(shifts, MOVEMENTS, SALES, NOW, allow_only(["A"]))] == ["s1"]
    assert [b.shift_id for b in reconcile_shifts(shifts, MOVEMENTS, SALES, NOW, allow_all(), "B")] == ["s2"]


def test_unreadable_opening_date_yields_no_cash_sales() -> None:
    shift = CashShift(id="s9", business_id="A", opened_at="not a date")
    assert shift_cash_sales(SALES, shift, NOW) == 0.0


def test_empty_inputs() -> None:
    assert reconcile_shifts([], [], [], NOW, allow_all()) == []
    assert total_variance([]) == 0.0
    position = cash_position([])
    assert (position.open_shifts, position.live_balance, position.unbanked_cash) == (0, 0.0, 0.0)
