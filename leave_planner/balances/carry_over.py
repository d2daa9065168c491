"""Carry-Over Resolver — unused days eligible to roll into the next year.

``resolve_carry_over`` answers how much *could* carry over. Forfeiture after
expiry is a separate step (``enforce_carry_over_expiry``) applied by the
allowance calculator against an ``as_of`` date.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Protocol

from leave_planner.balances.models import CarryOverSpec
from leave_planner.common.constants import ExpiryType
from leave_planner.common.dates import add_months, month_day_in_year

UNLIMITED = Decimal("Infinity")
ZERO = Decimal("0")


class HasCarryOver(Protocol):
    carry_over: CarryOverSpec


def is_unlimited(amount: Decimal) -> bool:
    return amount.is_infinite()


def resolve_carry_over(policy: HasCarryOver, total_allowance: Decimal, used: Decimal) -> Decimal:
    """min(max(0, allowance - used), max_days); 0 when disabled or unlimited."""
    if not policy.carry_over.enabled:
        return ZERO
    if is_unlimited(total_allowance):
        return ZERO
    remaining = max(ZERO, total_allowance - used)
    return min(remaining, policy.carry_over.max_days)


def carry_over_expiry_date(policy: HasCarryOver, target_year: int) -> Optional[date]:
    """First date on which days carried into `target_year` are forfeited."""
    spec = policy.carry_over
    if spec.expiry_type == ExpiryType.months:
        return add_months(date(target_year, 1, 1), int(spec.expiry_value or 0))
    if spec.expiry_type == ExpiryType.fixed_date:
        return month_day_in_year(str(spec.expiry_value), target_year)
    return None


def expiry_label(policy: HasCarryOver) -> str:
    spec = policy.carry_over
    if spec.expiry_type == ExpiryType.months:
        return f"Expires after {spec.expiry_value} months"
    if spec.expiry_type == ExpiryType.fixed_date:
        return f"Expires on {spec.expiry_value}"
    return ""


def enforce_carry_over_expiry(
    carried: Decimal,
    expires_on: Optional[date],
    as_of: Optional[date],
    used_before_expiry: Decimal,
) -> Decimal:
    """Carried days still counted at `as_of`.

    Before expiry (or with no expiry / no as_of) everything counts. From the
    expiry date on, only the part already consumed before expiry is kept.
    """
    if expires_on is None or as_of is None or as_of < expires_on:
        return carried
    return min(carried, max(ZERO, used_before_expiry))
