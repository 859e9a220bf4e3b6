# BizPulse - Financial tracking dashboard for multi-location small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Subscription tiers and platform-level metrics.

Used by the super-admin views: monthly recurring revenue bucketed by tier,
business-count limits per tier, subscriptions about to lapse, and the
organization leaderboard.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Union

from .config import DEFAULT_TIERS, TierConfig
from .models import BusinessUnit, Organization, Sale


@dataclass(frozen=True)
class TierBucket:
    tier: str
    label: str
    organizations: int
    mrr: float


@dataclass(frozen=True)
class MrrBreakdown:
    total: float
    active_organizations: int
    buckets: list[TierBucket]

    def for_tier(self, tier: str) -> Optional[TierBucket]:
        for bucket in self.buckets:
            if bucket.tier == tier:
                return bucket
        return None


@dataclass(frozen=True)
class OrganizationPerformance:
    org_id: str
    name: str
    tier: str
    is_active: bool
    revenue: float
    profit: float
    business_count: int


def _tier(tier: str, tiers: Mapping[str, TierConfig]) -> Optional[TierConfig]:
    return tiers.get(tier.lower())


def compute_mrr(
    organizations: Iterable[Organization],
    tiers: Mapping[str, TierConfig] = DEFAULT_TIERS,
) -> MrrBreakdown:
    """
    Monthly recurring revenue of active organizations, bucketed by tier.

    Every configured tier gets a bucket, even when empty, in the order of
    the tier table. Organizations on an unknown tier count as active but
    contribute nothing.
    """
    counts = {name: 0 for name in tiers}
    amounts = {name: 0.0 for name in tiers}
    active = 0

    for org in organizations:
        if not org.is_active:
            continue
        active += 1
        tier = _tier(org.tier, tiers)
        if tier is None:
            continue
        counts[tier.name] += 1
        amounts[tier.name] += tier.price

    buckets = [
        TierBucket(
            tier=name,
            label=tiers[name].label,
            organizations=counts[name],
            mrr=amounts[name],
        )
        for name in tiers
    ]
    return MrrBreakdown(
        total=sum(b.mrr for b in buckets),
        active_organizations=active,
        buckets=buckets,
    )


def business_limit(
    tier: str, tiers: Mapping[str, TierConfig] = DEFAULT_TIERS
) -> Optional[int]:
    """
    Maximum number of businesses for ``tier``; None means unlimited.

    An unknown tier allows no business at all.
    """
    config = _tier(tier, tiers)
    if config is None:
        return 0
    return config.business_limit


def can_add_business(
    organization: Organization,
    businesses: Iterable[BusinessUnit],
    tiers: Mapping[str, TierConfig] = DEFAULT_TIERS,
) -> bool:
    limit = business_limit(organization.tier, tiers)
    if limit is None:
        return True
    owned = sum(1 for b in businesses if b.org_id == organization.id)
    return owned < limit


def expiring_organizations(
    organizations: Iterable[Organization],
    now: Union[date, datetime],
    within_days: int = 30,
) -> list[Organization]:
    """
    Organizations needing attention: inactive, or whose subscription ends
    before ``now + within_days``. Soonest expiry first.
    """
    today = now.date() if isinstance(now, datetime) else now
    horizon = today + timedelta(days=within_days)

    flagged = [
        org
        for org in organizations
        if not org.is_active
        or (org.subscription_end_date is not None and org.subscription_end_date < horizon)
    ]
    return sorted(flagged, key=lambda o: o.subscription_end_date or date.max)


def organization_leaderboard(
    organizations: Sequence[Organization],
    businesses: Sequence[BusinessUnit],
    sales: Iterable[Sale],
) -> list[OrganizationPerformance]:
    """Lifetime revenue and profit per organization, highest revenue first."""
    org_by_business = {b.id: b.org_id for b in businesses}
    revenue: dict[str, float] = {org.id: 0.0 for org in organizations}
    profit: dict[str, float] = {org.id: 0.0 for org in organizations}

    for sale in sales:
        org_id = org_by_business.get(sale.business_id)
        if org_id in revenue:
            revenue[org_id] += sale.sales_amount
            profit[org_id] += sale.profit_amount

    board = [
        OrganizationPerformance(
            org_id=org.id,
            name=org.name,
            tier=org.tier,
            is_active=org.is_active,
            revenue=revenue[org.id],
            profit=profit[org.id],
            business_count=sum(1 for b in businesses if b.org_id == org.id),
        )
        for org in organizations
    ]
    return sorted(board, key=lambda p: p.revenue, reverse=True)
