# BizPulse - Financial tracking dashboard for multi-location small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-line interface for BizPulse.

The CLI loads the configuration, reads the record collections from the CSV
record store, resolves the reporting period from the filter options,
aggregates everything through ``build_dashboard()`` and renders the selected
scope as console tables and/or CSV files.

Examples
--------
    bizpulse --timeframe this_month
    bizpulse --timeframe select_month --month 2024-02 --currency SECONDARY
    bizpulse --from-date 2024-03-01 --to-date 2024-03-15 --business shop-1
    bizpulse --scope mrr --organizations data/organizations.csv
    bizpulse --scope cash --business shop-1
"""

import argparse
import logging
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import pandas as pd

from . import __version__
from .access import scope_for_role
from .aggregation import monthly_comparison
from .cashflow import cash_position, reconcile_shifts, total_variance
from .config import DEFAULT_CONFIG_FILE, AppConfig, DataPaths, load_app_config
from .currency import Currency, currency_code, fetch_exchange_rate, format_currency
from .dashboard import build_dashboard
from .logging_config import configure_logging
from .models import ALL_BUSINESSES, DateRange, Filters, Timeframe
from .periods import current_time
from .storage import CsvRecordStore
from .tiers import compute_mrr, expiring_organizations
from .views import (
    comparison_to_dataframe,
    daily_to_dataframe,
    mrr_to_dataframe,
    products_to_dataframe,
    ranking_to_dataframe,
    shifts_to_dataframe,
    totals_to_dataframe,
)

logger = logging.getLogger(__name__)

SCOPES = ["totals", "ranking", "daily", "products", "comparison", "mrr", "cash", "all"]


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="bizpulse",
        description=(
            "BizPulse - Financial tracking dashboard for multi-location small "
            "businesses. Aggregates sales and expenses per period, business "
            "and day, with period-over-period trends."
        ),
    )

    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of bizpulse and exit.",
    )
    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the TOML configuration file. If omitted, "
            f"'{DEFAULT_CONFIG_FILE}' in the current directory is used when "
            "it exists, built-in defaults otherwise."
        ),
    )
    ap.add_argument(
        "--log-level",
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override the logging.level setting from the configuration file.",
    )

    # Data file overrides
    ap.add_argument("--sales", help="Sales CSV file (overrides [data].sales).")
    ap.add_argument("--expenses", help="Expenses CSV file (overrides [data].expenses).")
    ap.add_argument(
        "--businesses", help="Businesses CSV file (overrides [data].businesses)."
    )
    ap.add_argument(
        "--organizations",
        help="Organizations CSV file (overrides [data].organizations).",
    )
    ap.add_argument(
        "--cash-shifts",
        dest="cash_shifts",
        help="Cash shifts CSV file (overrides [data].cash_shifts).",
    )
    ap.add_argument(
        "--cash-movements",
        dest="cash_movements",
        help="Cash movements CSV file (overrides [data].cash_movements).",
    )

    # Period selection
    ap.add_argument(
        "--timeframe",
        choices=[t.value for t in Timeframe],
        default=Timeframe.TODAY.value,
        help="Named reporting period. Ignored when --from-date/--to-date is set.",
    )
    ap.add_argument(
        "--month",
        dest="selected_month",
        default="",
        help="Month to report on (YYYY-MM), used with --timeframe select_month.",
    )
    ap.add_argument(
        "--from-date",
        dest="from_date",
        default="",
        help="Custom range start (YYYY-MM-DD). Overrides --timeframe.",
    )
    ap.add_argument(
        "--to-date",
        dest="to_date",
        default="",
        help="Custom range end (YYYY-MM-DD). Overrides --timeframe.",
    )
    ap.add_argument(
        "--now",
        help=(
            "Evaluate the report as if the current time were this ISO "
            "timestamp. Naive values are read in the configured time zone, or as "
            "system wall-clock time when none is configured."
        ),
    )

    # Business and access scope
    ap.add_argument(
        "--business",
        dest="business_id",
        default=ALL_BUSINESSES,
        help="Restrict to one business id (default: all).",
    )
    ap.add_argument(
        "--role",
        default="ADMIN",
        help="Role of the viewer. Non-elevated roles only see --assigned businesses.",
    )
    ap.add_argument(
        "--assigned",
        default="",
        help="Comma-separated business ids assigned to a non-elevated viewer.",
    )

    # Currency
    ap.add_argument(
        "--currency",
        choices=[c.value for c in Currency],
        default=Currency.BASE.value,
        help="Display currency: BASE (as recorded) or SECONDARY (converted).",
    )
    ap.add_argument(
        "--rate",
        type=float,
        help="Exchange rate to use instead of fetching it.",
    )

    # Output
    ap.add_argument(
        "--scope",
        choices=SCOPES,
        default="totals",
        help="Select what to render.",
    )
    ap.add_argument(
        "--display-mode",
        dest="display_mode",
        choices=["table", "csv", "both"],
        help="Override the display.mode setting from the configuration file.",
    )
    ap.add_argument(
        "--output",
        dest="output_dir",
        help="Directory for CSV files (default: 'data/output').",
    )
    return ap


def _load_config(parser: argparse.ArgumentParser, config_path: Optional[str]) -> AppConfig:
    if config_path is None and not Path(DEFAULT_CONFIG_FILE).is_file():
        return AppConfig()
    try:
        return load_app_config(config_path)
    except (FileNotFoundError, ValueError) as exc:
        parser.error(str(exc))


def _apply_data_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    def _pick(cli_value: Optional[str], configured: Optional[Path]) -> Optional[Path]:
        return Path(cli_value).resolve() if cli_value else configured

    data = DataPaths(
        sales=_pick(args.sales, config.data.sales),
        expenses=_pick(args.expenses, config.data.expenses),
        businesses=_pick(args.businesses, config.data.businesses),
        organizations=_pick(args.organizations, config.data.organizations),
        cash_shifts=_pick(args.cash_shifts, config.data.cash_shifts),
        cash_movements=_pick(args.cash_movements, config.data.cash_movements),
    )
    return replace(config, data=data)


def _resolve_now(
    parser: argparse.ArgumentParser, raw: Optional[str], timezone_name: Optional[str]
) -> datetime:
    try:
        if not raw:
            return current_time(timezone_name)
        now = datetime.fromisoformat(raw)
        if timezone_name:
            tz = ZoneInfo(timezone_name)
            return now.replace(tzinfo=tz) if now.tzinfo is None else now.astimezone(tz)
        # No configured zone: stay on naive system wall-clock time.
        if now.tzinfo is not None:
            now = now.astimezone().replace(tzinfo=None)
        return now
    except ValueError as exc:
        parser.error(f"Invalid --now value {raw!r}: {exc}")
    except ZoneInfoNotFoundError:
        parser.error(f"Unknown time zone in [locale].timezone: {timezone_name!r}")


def _print_table(title: str, df: pd.DataFrame) -> None:
    print()
    print(f"=== {title} ===")
    if df.empty:
        print("(no data)")
    else:
        print(df.to_string(index=False))


def main() -> None:
    """Entry point for the BizPulse CLI.

    Parses command-line arguments, loads the configuration, configures
    logging, reads the record collections, determines the exchange rate when
    a converted view is requested, builds the dashboard for the selected
    filters and renders the selected scope as console tables and/or CSV
    files.
    """
    parser = _build_parser()
    args = parser.parse_args()

    if args.version:
        print(f"bizpulse version {__version__}")
        return

    # 1) Configuration and logging
    config = _apply_data_overrides(_load_config(parser, args.config_path), args)
    configure_logging(config.log_file, args.log_level or config.log_level)

    # 2) Records
    store = CsvRecordStore(config.data)
    try:
        sales = store.get_sales()
        expenses = store.get_expenses()
        businesses = store.get_businesses()
    except ValueError as exc:
        parser.error(str(exc))

    if not sales and not expenses:
        print("Warning: no sales or expenses loaded, check the [data] section.")

    # 3) Filters, clock and access scope
    filters = Filters(
        business_id=args.business_id,
        date_range=DateRange(start=args.from_date, end=args.to_date),
        selected_month=args.selected_month,
        timeframe=Timeframe(args.timeframe),
    )
    now = _resolve_now(parser, args.now, config.timezone)
    assigned = [b.strip() for b in args.assigned.split(",") if b.strip()]
    scope = scope_for_role(args.role, assigned)

    # 4) Currency
    target = Currency(args.currency)
    rate = 1.0
    if target is Currency.SECONDARY:
        rate = args.rate if args.rate is not None else fetch_exchange_rate(config.currency)
    code = currency_code(target, config.currency)

    # 5) Aggregate
    report = build_dashboard(
        sales=sales,
        expenses=expenses,
        businesses=businesses,
        filters=filters,
        now=now,
        scope=scope,
        target=target,
        rate=rate,
    )

    period = report.period
    print(
        f"Applied period: {period.label} "
        f"({period.current.start.isoformat()} → {period.current.end.isoformat()})"
    )
    if target is Currency.SECONDARY:
        print(f"Currency: {code} (1 {config.currency.base} = {rate:.2f} {code})")
    else:
        print(f"Currency: {code}")

    leaders = report.leaders
    if leaders.by_revenue is not None:
        print(
            f"Top revenue: {leaders.by_revenue.name} "
            f"({format_currency(leaders.by_revenue.total_sales, code, config.decimals)})"
        )
    if leaders.by_margin is not None:
        print(
            f"Top margin: {leaders.by_margin.name} "
            f"({leaders.by_margin.margin_percent:.1f}%)"
        )

    # 6) Build requested tables
    wanted = set(SCOPES[:-1]) if args.scope == "all" else {args.scope}
    decimals = config.decimals
    tables: list[tuple[str, str, pd.DataFrame]] = []

    if "totals" in wanted:
        tables.append(("Totals", "totals", totals_to_dataframe(report, decimals)))
    if "ranking" in wanted:
        tables.append(
            ("Business ranking", "ranking", ranking_to_dataframe(report.ranking, decimals))
        )
    if "daily" in wanted:
        tables.append(("Daily sales", "daily", daily_to_dataframe(report.daily, decimals)))
    if "products" in wanted:
        tables.append(
            (
                "Product performance",
                "products",
                products_to_dataframe(report.products, decimals),
            )
        )
    if "comparison" in wanted:
        days = monthly_comparison(sales, businesses, now, scope)
        tables.append(
            ("Monthly comparison", "comparison", comparison_to_dataframe(days, businesses))
        )
    if "mrr" in wanted:
        try:
            organizations = store.get_organizations()
        except ValueError as exc:
            parser.error(str(exc))
        breakdown = compute_mrr(organizations, config.tiers)
        tables.append(("MRR by tier", "mrr", mrr_to_dataframe(breakdown)))
        print(
            f"MRR: {format_currency(breakdown.total, config.currency.base, decimals)} "
            f"from {breakdown.active_organizations} active organization(s)"
        )
        for org in expiring_organizations(organizations, now):
            status = "inactive" if not org.is_active else "expiring"
            print(f"Attention: {org.name} ({status}, ends {org.subscription_end_date})")
    if "cash" in wanted:
        try:
            shifts = store.get_cash_shifts()
            movements = store.get_cash_movements()
        except ValueError as exc:
            parser.error(str(exc))
        balances = reconcile_shifts(
            shifts, movements, sales, now, scope, filters.business_id
        )
        tables.append(
            ("Cash shifts", "cash_shifts", shifts_to_dataframe(balances, businesses, decimals))
        )
        position = cash_position(balances)
        base = config.currency.base
        print(
            f"Cash in open tills: {format_currency(position.live_balance, base, decimals)} "
            f"across {position.open_shifts} open shift(s), "
            f"unbanked drops {format_currency(position.unbanked_cash, base, decimals)}"
        )
        print(f"Total variance: {format_currency(total_variance(balances), base, decimals)}")

    # 7) Render
    display_mode = args.display_mode or config.display_mode

    if display_mode in {"table", "both"}:
        for title, _, df in tables:
            _print_table(title, df)

    if display_mode in {"csv", "both"}:
        output_dir = Path(args.output_dir) if args.output_dir else Path("data/output")
        output_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
        for _, name, df in tables:
            path = output_dir / f"{name}_{timestamp}.csv"
            df.to_csv(path, index=False)
            print(f"Wrote {path} ({len(df)} rows)")
            logger.debug("Wrote %s", path)


if __name__ == "__main__":
    main()
