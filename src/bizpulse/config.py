# BizPulse - Financial tracking dashboard for multi-location small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for BizPulse.

This module is responsible for:
- loading the application configuration from a TOML file,
- resolving data file paths relative to the configuration file,
- exposing typed dataclasses used by the rest of the application.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import tomllib  # Python 3.11+

DEFAULT_CONFIG_FILE = "bizpulse_config.toml"
DEFAULT_RATE_URL = "https://open.er-api.com/v6/latest/{base}"
DEFAULT_FALLBACK_RATE = 15.5


@dataclass(frozen=True)
class CurrencySettings:
    """
    Base / secondary currency pair and exchange-rate source.

    Attributes:
        base: Currency all amounts are recorded in.
        secondary: Optional display currency.
        fallback_rate: Rate used when the exchange-rate fetch fails.
        rate_url: Endpoint template; ``{base}`` is replaced by ``base``.
        timeout_seconds: HTTP timeout for the rate fetch.
    """

    base: str = "ZAR"
    secondary: str = "PKR"
    fallback_rate: float = DEFAULT_FALLBACK_RATE
    rate_url: str = DEFAULT_RATE_URL
    timeout_seconds: float = 10.0


@dataclass(frozen=True)
class DataPaths:
    """CSV files backing the record store. Missing entries are None."""

    sales: Optional[Path] = None
    expenses: Optional[Path] = None
    businesses: Optional[Path] = None
    organizations: Optional[Path] = None
    cash_shifts: Optional[Path] = None
    cash_movements: Optional[Path] = None


@dataclass(frozen=True)
class TierConfig:
    """
    One subscription tier.

    ``business_limit`` is None for unlimited tiers.
    """

    name: str
    label: str
    price: float
    business_limit: Optional[int]


DEFAULT_TIERS: dict[str, TierConfig] = {
    "starter": TierConfig(name="starter", label="Starter", price=300.0, business_limit=1),
    "growth": TierConfig(name="growth", label="Growth", price=550.0, business_limit=2),
    "enterprise": TierConfig(
        name="enterprise", label="Enterprise", price=1500.0, business_limit=None
    ),
}


@dataclass(frozen=True)
class AppConfig:
    """
    Application-wide configuration for BizPulse.

    This aggregates:
    - the currency pair and exchange-rate settings,
    - the data files used by the CSV record store,
    - the local time zone used for day and month boundaries,
    - the subscription tiers,
    - display and logging options.
    """

    currency: CurrencySettings = field(default_factory=CurrencySettings)
    data: DataPaths = field(default_factory=DataPaths)
    timezone: Optional[str] = None
    tiers: dict[str, TierConfig] = field(default_factory=lambda: dict(DEFAULT_TIERS))
    display_mode: str = "table"
    decimals: int = 2
    log_level: str = "INFO"
    log_file: Optional[Path] = None


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Failed to parse TOML config file: {path}") from exc

    return data


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, Mapping):
        return {}
    return value


def _parse_float(value: Any, key: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(
            f"Invalid value for '{key}' in the configuration. Expected a number."
        ) from exc


def _parse_currency(raw: Mapping[str, Any]) -> CurrencySettings:
    section = _section(raw, "currency")

    fallback_rate = _parse_float(
        section.get("fallback_rate", DEFAULT_FALLBACK_RATE), "currency.fallback_rate"
    )
    if fallback_rate <= 0:
        raise ValueError("'currency.fallback_rate' must be strictly positive.")

    return CurrencySettings(
        base=str(section.get("base") or "ZAR").upper(),
        secondary=str(section.get("secondary") or "PKR").upper(),
        fallback_rate=fallback_rate,
        rate_url=str(section.get("rate_url") or DEFAULT_RATE_URL),
        timeout_seconds=_parse_float(
            section.get("timeout_seconds", 10.0), "currency.timeout_seconds"
        ),
    )


def _parse_data_paths(raw: Mapping[str, Any], base_dir: Path) -> DataPaths:
    section = _section(raw, "data")

    def _resolve_optional(rel: Optional[str]) -> Optional[Path]:
        if not rel:
            return None
        return (base_dir / str(rel)).resolve()

    return DataPaths(
        sales=_resolve_optional(section.get("sales")),
        expenses=_resolve_optional(section.get("expenses")),
        businesses=_resolve_optional(section.get("businesses")),
        organizations=_resolve_optional(section.get("organizations")),
        cash_shifts=_resolve_optional(section.get("cash_shifts")),
        cash_movements=_resolve_optional(section.get("cash_movements")),
    )


def _parse_tiers(raw: Mapping[str, Any]) -> dict[str, TierConfig]:
    """
    Merge [tiers.<name>] tables over the default tier table.

    A ``business_limit`` of 0 or a negative number means unlimited.
    """
    tiers = dict(DEFAULT_TIERS)
    section = _section(raw, "tiers")

    for name, tier_raw in section.items():
        if not isinstance(tier_raw, Mapping):
            continue
        key = str(name).lower()
        default = tiers.get(key)

        price_raw = tier_raw.get("price", default.price if default else None)
        if price_raw is None:
            raise ValueError(f"Tier '{key}' is missing a price.")
        price = _parse_float(price_raw, f"tiers.{key}.price")

        if "business_limit" in tier_raw:
            try:
                limit_value = int(tier_raw["business_limit"])
            except (TypeError, ValueError) as exc:
                raise ValueError(
                    f"Invalid value for 'tiers.{key}.business_limit'. "
                    "Expected an integer."
                ) from exc
            business_limit = limit_value if limit_value > 0 else None
        else:
            business_limit = default.business_limit if default else None

        label = str(tier_raw.get("label") or (default.label if default else key.title()))
        tiers[key] = TierConfig(
            name=key, label=label, price=price, business_limit=business_limit
        )

    return tiers


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load the BizPulse application configuration from a TOML file.

    Expected top-level sections in the TOML file
    --------------------------------------------
    [currency]
        Base and secondary currency codes, fallback exchange rate,
        exchange-rate endpoint and HTTP timeout.

    [data]
        CSV files for sales, expenses, businesses, organizations, cash shifts
        and cash movements.

    [locale]
        ``timezone``: IANA zone name used for day and month boundaries.
        When omitted, naive system wall-clock time is used.

    [tiers.<name>]
        Optional overrides of the subscription tier table
        (``price``, ``business_limit``, ``label``).

    [display]
        Output mode ('table', 'csv', 'both') and number of decimals.

    [logging]
        Log level and optional log file.

    All file paths are resolved relative to the directory of the TOML file.

    Parameters
    ----------
    config_path : str, optional
        Path to the TOML configuration file. Defaults to
        'bizpulse_config.toml' in the current directory.

    Returns
    -------
    AppConfig
        Parsed and validated application configuration.
    """
    if config_path is None:
        config_file = Path(DEFAULT_CONFIG_FILE).resolve()
    else:
        config_file = Path(config_path).resolve()

    raw = _load_toml(config_file)
    base_dir = config_file.parent

    locale_section = _section(raw, "locale")
    timezone = locale_section.get("timezone") or None

    display_section = _section(raw, "display")
    display_mode = str(display_section.get("mode", "table"))
    if display_mode not in {"table", "csv", "both"}:
        raise ValueError(
            f"Invalid display.mode {display_mode!r}, expected table, csv or both."
        )
    try:
        decimals = int(display_section.get("decimals", 2))
    except (TypeError, ValueError):
        decimals = 2

    logging_section = _section(raw, "logging")
    log_level = str(logging_section.get("level", "INFO")).upper()
    log_file_raw = logging_section.get("file")
    log_file = (base_dir / str(log_file_raw)).resolve() if log_file_raw else None

    return AppConfig(
        currency=_parse_currency(raw),
        data=_parse_data_paths(raw, base_dir),
        timezone=str(timezone) if timezone else None,
        tiers=_parse_tiers(raw),
        display_mode=display_mode,
        decimals=decimals,
        log_level=log_level,
        log_file=log_file,
    )
