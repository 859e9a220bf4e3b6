# BizPulse - Financial tracking dashboard for multi-location small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
I/O module for BizPulse.

This module reads the record collections (sales, expenses, businesses,
organizations) from CSV exports of the hosted backend and turns them into
the dataclasses defined in models.py.

Column names
------------
Exports use either snake_case (``business_id``, ``sales_amount``) or
camelCase (``businessId``, ``salesAmount``). Both are accepted: every column
name is normalized to lowercase snake_case before validation.

Expected columns
----------------
- sales:          id, business_id, date, sales_amount, profit_amount
                  (optional: profit_percentage, payment_method, items,
                  org_id, created_at)
- expenses:       id, business_id, month, amount
                  (optional: description, org_id)
- businesses:     id, name (optional: location, org_id)
- organizations:  id, name (optional: tier, is_active,
                  subscription_end_date)
- cash shifts:    id, business_id, opened_at (optional: opening_float,
                  closed_at, closing_cash_counted, expected_cash,
                  variance, status, user_name, notes, org_id)
- cash movements: id, shift_id, type, amount (optional: business_id,
                  reason, created_at, org_id)

``items`` holds the JSON list of checkout lines of a point-of-sale sale.

Numeric coercion
----------------
The aggregation engine expects clean floats. Missing or non-numeric amounts
are coerced to 0.0 here, at the boundary. Dates are kept as the raw strings
exported by the backend; their interpretation on the local calendar is
done by periods.py. A missing ``profit_percentage`` is derived from the
amounts (``Sale.margin_percent``).

If a file lacks a required column, a ValueError is raised.
"""

import json
import os
import re
from dataclasses import replace
from typing import Any, Optional, Union

import pandas as pd

from .models import (
    BusinessUnit,
    CashMovement,
    CashShift,
    Expense,
    MovementType,
    Organization,
    Sale,
    SaleItem,
    ShiftStatus,
)
from .periods import parse_day

PathLike = Union[str, "os.PathLike[str]"]

SALES_COLUMNS = {"id", "business_id", "date", "sales_amount", "profit_amount"}
EXPENSES_COLUMNS = {"id", "business_id", "month", "amount"}
BUSINESSES_COLUMNS = {"id", "name"}
ORGANIZATIONS_COLUMNS = {"id", "name"}
CASH_SHIFTS_COLUMNS = {"id", "business_id", "opened_at"}
CASH_MOVEMENTS_COLUMNS = {"id", "shift_id", "type", "amount"}

_CAMEL_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_TRUE_VALUES = {"true", "1", "yes", "y", "t"}


def to_snake_case(name: str) -> str:
    """'salesAmount' -> 'sales_amount', ' Business ID ' -> 'business_id'."""
    text = _CAMEL_RE.sub("_", str(name).strip())
    return re.sub(r"[\s\-]+", "_", text).lower()


def to_float(value: Any) -> float:
    """Best-effort float conversion, 0.0 for anything unusable."""
    try:
        result = float(value)
    except (TypeError, ValueError):
        return 0.0
    if result != result:  # NaN
        return 0.0
    return result


def _read_csv(path: PathLike, required: set[str], kind: str) -> pd.DataFrame:
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = [to_snake_case(c) for c in df.columns]

    missing = required - set(df.columns)
    if missing:
        raise ValueError(
            f"Invalid {kind} file {path}: missing column(s) "
            f"{', '.join(sorted(missing))}."
        )
    return df


def _coerce_numeric(df: pd.DataFrame, columns: list[str]) -> pd.DataFrame:
    d = df.copy()
    for col in columns:
        if col in d.columns:
            d[col] = pd.to_numeric(d[col], errors="coerce").fillna(0.0).astype(float)
    return d


def _optional(row: pd.Series, col: str) -> Any:
    value = row.get(col, "")
    if value is None or value == "":
        return None
    return value


def parse_sale_items(raw: str) -> tuple[SaleItem, ...]:
    """
    Parse the JSON ``items`` column of a point-of-sale sale.

    Raises:
        ValueError: if the content is not a JSON list of objects.
    """
    if not raw or not raw.strip():
        return ()

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in 'items' column: {raw[:40]!r}") from exc

    if not isinstance(data, list):
        raise ValueError("The 'items' column must contain a JSON list.")

    items: list[SaleItem] = []
    for entry in data:
        if not isinstance(entry, dict):
            raise ValueError("Each sale item must be a JSON object.")
        item = {to_snake_case(k): v for k, v in entry.items()}
        items.append(
            SaleItem(
                product_id=str(item.get("product_id") or ""),
                name=str(item.get("name") or item.get("description") or ""),
                quantity=to_float(item.get("quantity")),
                price_at_sale=to_float(item.get("price_at_sale")),
                cost_at_sale=to_float(item.get("cost_at_sale")),
                sku=str(item.get("sku") or ""),
                refunded_quantity=to_float(item.get("refunded_quantity")),
                discount=to_float(item.get("discount")),
            )
        )
    return tuple(items)


def read_sales(path: PathLike) -> list[Sale]:
    """
    Read sales records from a CSV file.

    Returns
    -------
    list[Sale]
        One Sale per row, in file order.

    Raises
    ------
    ValueError
        If required columns are missing or the ``items`` JSON is malformed.
    """
    df = _read_csv(path, SALES_COLUMNS, "sales")
    df = _coerce_numeric(df, ["sales_amount", "profit_amount"])

    sales: list[Sale] = []
    for _, row in df.iterrows():
        percentage = _optional(row, "profit_percentage")
        sale = Sale(
            id=str(row["id"]),
            business_id=str(row["business_id"]),
            date=str(row["date"]),
            sales_amount=float(row["sales_amount"]),
            profit_amount=float(row["profit_amount"]),
            profit_percentage=to_float(percentage) if percentage is not None else None,
            payment_method=_optional(row, "payment_method"),
            items=parse_sale_items(str(row.get("items", ""))),
            org_id=_optional(row, "org_id"),
            created_at=_optional(row, "created_at"),
        )
        if sale.profit_percentage is None:
            sale = replace(sale, profit_percentage=sale.margin_percent)
        sales.append(sale)
    return sales


def read_expenses(path: PathLike) -> list[Expense]:
    """Read monthly expense records from a CSV file."""
    df = _read_csv(path, EXPENSES_COLUMNS, "expenses")
    df = _coerce_numeric(df, ["amount"])

    return [
        Expense(
            id=str(row["id"]),
            business_id=str(row["business_id"]),
            month=str(row["month"]).strip(),
            amount=float(row["amount"]),
            description=str(row.get("description", "")),
            org_id=_optional(row, "org_id"),
        )
        for _, row in df.iterrows()
    ]


def read_businesses(path: PathLike) -> list[BusinessUnit]:
    """Read business units from a CSV file, in file order."""
    df = _read_csv(path, BUSINESSES_COLUMNS, "businesses")
    return [
        BusinessUnit(
            id=str(row["id"]),
            name=str(row["name"]),
            location=str(row.get("location", "")),
            org_id=_optional(row, "org_id"),
        )
        for _, row in df.iterrows()
    ]


def read_organizations(path: PathLike) -> list[Organization]:
    """Read tenant organizations from a CSV file."""
    df = _read_csv(path, ORGANIZATIONS_COLUMNS, "organizations")
    organizations: list[Organization] = []
    for _, row in df.iterrows():
        active_raw = str(row.get("is_active", "")).strip().lower() or "true"
        organizations.append(
            Organization(
                id=str(row["id"]),
                name=str(row["name"]),
                tier=str(row.get("tier", "") or "starter").lower(),
                is_active=active_raw in _TRUE_VALUES,
                subscription_end_date=parse_day(str(row.get("subscription_end_date", ""))),
            )
        )
    return organizations


def _optional_float(row: pd.Series, col: str) -> Optional[float]:
    value = _optional(row, col)
    return None if value is None else to_float(value)


def read_cash_shifts(path: PathLike) -> list[CashShift]:
    """
    Read till shifts from a CSV file.

    A shift with an empty ``status`` is CLOSED when it has a ``closed_at``
    value and OPEN otherwise.

    Raises
    ------
    ValueError
        If required columns are missing or a status is unknown.
    """
    df = _read_csv(path, CASH_SHIFTS_COLUMNS, "cash shifts")
    shifts: list[CashShift] = []
    for _, row in df.iterrows():
        closed_at = _optional(row, "closed_at")
        status_raw = str(row.get("status", "")).strip().upper()
        if not status_raw:
            status_raw = ShiftStatus.CLOSED.value if closed_at else ShiftStatus.OPEN.value
        try:
            status = ShiftStatus(status_raw)
        except ValueError as exc:
            raise ValueError(
                f"Invalid cash shifts file {path}: unknown status {status_raw!r} "
                f"for shift {row['id']!r}."
            ) from exc

        shifts.append(
            CashShift(
                id=str(row["id"]),
                business_id=str(row["business_id"]),
                opened_at=str(row["opened_at"]),
                opening_float=to_float(row.get("opening_float", "")),
                closed_at=closed_at,
                closing_cash_counted=_optional_float(row, "closing_cash_counted"),
                expected_cash=_optional_float(row, "expected_cash"),
                variance=_optional_float(row, "variance"),
                status=status,
                user_name=str(row.get("user_name", "")),
                notes=str(row.get("notes", "")),
                org_id=_optional(row, "org_id"),
            )
        )
    return shifts


def read_cash_movements(path: PathLike) -> list[CashMovement]:
    """
    Read cash movements (FLOAT_ADD, DROP, PAYOUT) from a CSV file.

    Raises
    ------
    ValueError
        If required columns are missing or a movement type is unknown.
    """
    df = _read_csv(path, CASH_MOVEMENTS_COLUMNS, "cash movements")
    df = _coerce_numeric(df, ["amount"])

    movements: list[CashMovement] = []
    for _, row in df.iterrows():
        type_raw = str(row["type"]).strip().upper()
        try:
            movement_type = MovementType(type_raw)
        except ValueError as exc:
            raise ValueError(
                f"Invalid cash movements file {path}: unknown type {type_raw!r} "
                f"for movement {row['id']!r}."
            ) from exc

        movements.append(
            CashMovement(
                id=str(row["id"]),
                shift_id=str(row["shift_id"]),
                business_id=str(row.get("business_id", "")),
                type=movement_type,
                amount=float(row["amount"]),
                reason=str(row.get("reason", "")),
                created_at=_optional(row, "created_at"),
                org_id=_optional(row, "org_id"),
            )
        )
    return movements
