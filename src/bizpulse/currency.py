# BizPulse - Financial tracking dashboard for multi-location small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Currency handling for BizPulse.

Figures are stored in a base currency (ZAR by default) and can be displayed
in a secondary currency (PKR by default). Conversion is a plain multiplier:
the rate comes from a public exchange-rate endpoint, fetched by the caller
before aggregation, with a configured fallback when the fetch fails.
"""

from __future__ import annotations

import logging
from enum import Enum

import requests

from .config import CurrencySettings

logger = logging.getLogger(__name__)

_SYMBOLS = {
    "ZAR": "R",
    "PKR": "Rs",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}


class Currency(str, Enum):
    BASE = "BASE"
    SECONDARY = "SECONDARY"


def convert(amount: float, target: Currency, rate: float) -> float:
    """
    Convert a base-currency amount for display.

    ``rate`` is applied only when ``target`` is the secondary currency. It is
    not validated: supplying a sane value is the caller's job.
    """
    if Currency(target) is Currency.SECONDARY:
        return amount * rate
    return amount


def fetch_exchange_rate(settings: CurrencySettings) -> float:
    """
    Fetch the base → secondary exchange rate.

    Expects a JSON body shaped like ``{"rates": {"PKR": 15.7, ...}}``. Any
    network error, HTTP error, malformed payload or missing currency code
    falls back to ``settings.fallback_rate``.
    """
    url = settings.rate_url.format(base=settings.base)
    try:
        response = requests.get(url, timeout=settings.timeout_seconds)
        response.raise_for_status()
        payload = response.json()
        rate = float(payload["rates"][settings.secondary])
    except (requests.RequestException, ValueError, KeyError, TypeError) as exc:
        logger.warning(
            "Exchange rate fetch failed (%s), using fallback rate %s",
            exc,
            settings.fallback_rate,
        )
        return settings.fallback_rate

    logger.info("Exchange rate 1 %s = %s %s", settings.base, rate, settings.secondary)
    return rate


def currency_code(target: Currency, settings: CurrencySettings) -> str:
    if Currency(target) is Currency.SECONDARY:
        return settings.secondary
    return settings.base


def format_currency(amount: float, code: str, decimals: int = 2) -> str:
    """Format an amount with its currency symbol, e.g. 'R 1,234.50'."""
    symbol = _SYMBOLS.get(code.upper(), code.upper())
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol} {abs(amount):,.{decimals}f}"
