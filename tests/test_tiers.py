from datetime import date, datetime

from bizpulse.access import allow_all, allow_only, scope_for_role
from bizpulse.config import TierConfig
from bizpulse.models import BusinessUnit, Organization, Sale
from bizpulse.tiers import (
    business_limit,
    can_add_business,
    compute_mrr,
    expiring_organizations,
    organization_leaderboard,
)

ORGS = [
    Organization(id="o1", name="One", tier="starter", is_active=True,
                 subscription_end_date=date(2024, 12, 31)),
    Organization(id="o2", name="Two", tier="growth", is_active=True,
                 subscription_end_date=date(2024, 6, 20)),
    Organization(id="o3", name="Three", tier="enterprise", is_active=False,
                 subscription_end_date=date(2025, 6, 1)),
    Organization(id="o4", name="Four", tier="Growth", is_active=True),
]


def test_compute_mrr_buckets_active_organizations_by_tier() -> None:
    mrr = compute_mrr(ORGS)

    assert mrr.total == 300 + 550 + 550
    assert mrr.active_organizations == 3
    assert [b.tier for b in mrr.buckets] == ["starter", "growth", "enterprise"]
    assert mrr.for_tier("growth").organizations == 2
    assert mrr.for_tier("growth").mrr == 1100
    assert mrr.for_tier("enterprise").mrr == 0
    assert mrr.for_tier("platinum") is None


def test_compute_mrr_with_custom_tiers() -> None:
    tiers = {"basic": TierConfig(name="basic", label="Basic", price=99.0, business_limit=1)}
    orgs = [Organization(id="x", name="X", tier="basic"), Organization(id="y", name="Y", tier="starter")]

    mrr = compute_mrr(orgs, tiers)

    assert mrr.total == 99.0
    assert mrr.active_organizations == 2


def test_business_limits() -> None:
    assert business_limit("starter") == 1
    assert business_limit("growth") == 2
    assert business_limit("enterprise") is None
    assert business_limit("unknown") == 0
    assert not can_add_business(Organization(id="ox", name="X", tier="platinum"), [])

    businesses = [BusinessUnit(id="b1", name="Shop", org_id="o2")]
    assert can_add_business(ORGS[1], businesses)
    assert not can_add_business(ORGS[0], [BusinessUnit(id="b2", name="S", org_id="o1")])
    assert can_add_business(ORGS[2], [BusinessUnit(id=str(i), name="S", org_id="o3") for i in range(50)])


def test_expiring_organizations_within_thirty_days() -> None:
    flagged = expiring_organizations(ORGS, datetime(2024, 6, 1, 9, 0))
    assert [o.id for o in flagged] == ["o2", "o3"]


def test_organization_leaderboard() -> None:
    businesses = [
        BusinessUnit(id="b1", name="S1", org_id="o1"),
        BusinessUnit(id="b2", name="S2", org_id="o2"),
        BusinessUnit(id="b3", name="S3", org_id="o2"),
    ]
    sales = [
        Sale(id="1", business_id="b1", date="2024-03-01", sales_amount=100, profit_amount=10),
        Sale(id="2", business_id="b2", date="2024-03-01", sales_amount=80, profit_amount=20),
        Sale(id="3", business_id="b3", date="2024-03-02", sales_amount=70, profit_amount=5),
        Sale(id="4", business_id="zz", date="2024-03-02", sales_amount=999, profit_amount=9),
    ]

    board = organization_leaderboard(ORGS, businesses, sales)

    assert [p.org_id for p in board][:2] == ["o2", "o1"]
    assert board[0].revenue == 150
    assert board[0].profit == 25
    assert board[0].business_count == 2


def test_access_scopes() -> None:
    assert allow_all()("anything")
    only = allow_only(["a", "b"])
    assert only("a") and not only("c")

    assert scope_for_role("SUPER_ADMIN")("x")
    assert scope_for_role("org_admin")("x")
    staff = scope_for_role("STAFF", ["s1"])
    assert staff("s1") and not staff("s2")
    assert not scope_for_role("VIEW_ONLY")("s1")
