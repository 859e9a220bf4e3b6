# BizPulse - Financial tracking dashboard for multi-location small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Record store used by the CLI.

The dashboard always works on full collections: the store returns every
record and all scoping happens in the aggregation engine. ``RecordStore``
describes that contract; ``CsvRecordStore`` implements it on top of CSV
exports. A store that cannot find one of its files returns an empty
collection and logs a warning, so that a partial export still produces a
report.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional, Protocol, TypeVar

from .config import DataPaths
from .io import (
    read_businesses,
    read_cash_movements,
    read_cash_shifts,
    read_expenses,
    read_organizations,
    read_sales,
)
from .models import BusinessUnit, CashMovement, CashShift, Expense, Organization, Sale

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RecordStore(Protocol):
    def get_sales(self) -> list[Sale]: ...

    def get_expenses(self) -> list[Expense]: ...

    def get_businesses(self) -> list[BusinessUnit]: ...

    def get_organizations(self) -> list[Organization]: ...

    def get_cash_shifts(self) -> list[CashShift]: ...

    def get_cash_movements(self) -> list[CashMovement]: ...


class CsvRecordStore:
    """Record store reading the CSV files configured in [data]."""

    def __init__(self, paths: DataPaths) -> None:
        self.paths = paths

    def _load(
        self, path: Optional[Path], reader: Callable[[Path], list[T]], kind: str
    ) -> list[T]:
        if path is None:
            logger.debug("No %s file configured", kind)
            return []
        if not path.is_file():
            logger.warning("%s file not found: %s", kind.capitalize(), path)
            return []
        records = reader(path)
        logger.info("Loaded %d %s from %s", len(records), kind, path)
        return records

    def get_sales(self) -> list[Sale]:
        return self._load(self.paths.sales, read_sales, "sales")

    def get_expenses(self) -> list[Expense]:
        return self._load(self.paths.expenses, read_expenses, "expenses")

    def get_businesses(self) -> list[BusinessUnit]:
        return self._load(self.paths.businesses, read_businesses, "businesses")

    def get_organizations(self) -> list[Organization]:
        return self._load(self.paths.organizations, read_organizations, "organizations")

    def get_cash_shifts(self) -> list[CashShift]:
        return self._load(self.paths.cash_shifts, read_cash_shifts, "cash shifts")

    def get_cash_movements(self) -> list[CashMovement]:
        return self._load(self.paths.cash_movements, read_cash_movements, "cash movements")
