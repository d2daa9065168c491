"""Year initialization — policies for a user's new year, by copy or by default."""

from __future__ import annotations

import logging
from typing import Iterable

from leave_planner.balances.models import (
    AccrualSpec,
    CarryOverSpec,
    EntitlementType,
    UserPolicy,
    UserProfile,
)
from leave_planner.common.constants import AccrualPeriod, EntitlementCategory, HolidayWeekendRule

logger = logging.getLogger(__name__)


def default_policy(entitlement: EntitlementType, year: int) -> UserPolicy:
    """A policy seeded from the entitlement type's default rules."""
    return UserPolicy(
        entitlement_id=entitlement.id,
        year=year,
        is_active=True,
        is_unlimited=entitlement.is_unlimited,
        accrual=entitlement.accrual.model_copy(),
        carry_over=entitlement.carry_over.model_copy(),
    )


def initialize_year(
    user: UserProfile,
    entitlements: Iterable[EntitlementType],
    year: int,
    *,
    replicate: bool = True,
) -> list[UserPolicy]:
    """Policies to add for `year`; existing (entitlement, year) policies are never touched.

    With ``replicate`` and policies in ``year - 1`` they are copied forward,
    otherwise every entitlement type contributes a default policy. Under the
    lieu weekend rule a Lieu policy is always ensured.
    """
    entitlements = list(entitlements)
    existing = {p.key for p in user.policies}
    previous = user.policies_for_year(year - 1)

    if replicate and previous:
        candidates = [p.model_copy(update={"year": year}, deep=True) for p in previous]
    else:
        candidates = [default_policy(e, year) for e in entitlements]

    if user.holiday_weekend_rule == HolidayWeekendRule.lieu:
        lieu = next((e for e in entitlements if e.category == EntitlementCategory.lieu), None)
        if lieu is not None and not any(c.entitlement_id == lieu.id for c in candidates):
            candidates.append(UserPolicy(
                entitlement_id=lieu.id,
                year=year,
                accrual=AccrualSpec(period=AccrualPeriod.lump_sum, amount=0),
                carry_over=CarryOverSpec(),
            ))

    created: list[UserPolicy] = []
    for policy in candidates:
        if policy.key in existing:
            continue
        existing.add(policy.key)
        created.append(policy)

    logger.info(
        "Initialized %d policies for user %s in %d (%s)",
        len(created), user.id, year, "replicated" if replicate and previous else "defaults",
    )
    return created
