# BizPulse - Financial tracking dashboard for multi-location small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Access scope builders.

The aggregation functions accept an ``AccessScope`` predicate and never
decide visibility themselves. These helpers build such predicates on the
caller side from data the caller already holds (role, assignment list).
"""

from collections.abc import Iterable
from typing import Optional

from .models import AccessScope

ELEVATED_ROLES = frozenset({"SUPER_ADMIN", "ADMIN", "ORG_ADMIN"})


def allow_all() -> AccessScope:
    return lambda business_id: True


def allow_only(business_ids: Iterable[str]) -> AccessScope:
    allowed = frozenset(business_ids)
    return lambda business_id: business_id in allowed


def scope_for_role(
    role: str, assigned_business_ids: Optional[Iterable[str]] = None
) -> AccessScope:
    """
    Full visibility for elevated roles, assignment list otherwise.

    A non-elevated actor without assignments sees nothing.
    """
    if role.upper() in ELEVATED_ROLES:
        return allow_all()
    return allow_only(assigned_business_ids or ())
