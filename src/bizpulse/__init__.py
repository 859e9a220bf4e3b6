# BizPulse - Financial tracking dashboard for multi-location small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
BizPulse
--------

A Python financial tracking library and CLI for small businesses that run
several shop locations under one organization. Staff record daily sales
(or individual point-of-sale checkouts) and monthly expenses; BizPulse turns
those records into dashboard figures.

Main capabilities:
- period resolution from timeframe presets, selected months or explicit
  date ranges, on the viewer's local calendar,
- revenue, gross profit, expense and net profit totals with margin and
  expense ratio,
- period-over-period trends against the preceding window,
- per-business ranking with revenue and margin leaders,
- daily rollups that collapse same-day checkouts,
- item-wise product performance,
- secondary-currency display with a fetched exchange rate,
- subscription tier / MRR metrics for the platform operator,
- cash-shift reconciliation of till floats, drops and payouts.

All computations are pure functions over in-memory records; access scoping
is supplied by the caller as a predicate.

Version: 0.2.0

Usage:
    bizpulse --help
"""

__all__ = ["aggregation", "cashflow", "dashboard", "periods", "trends", "currency"]

__version__ = "0.2.0"
