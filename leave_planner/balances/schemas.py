"""Balance Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Request  → request bodies
  - *Out      → response bodies
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from leave_planner.balances.models import BalanceSnapshot, UserPolicy
from leave_planner.common.constants import (
    DayClass,
    EntitlementCategory,
    EntitlementColor,
    PolicySource,
)


# ═════════════════════════════════════════════════════════════════════
# Balance
# ═════════════════════════════════════════════════════════════════════


class CarryOverContribution(BaseModel):
    """Days flowing into a balance from one prior-year policy."""

    source_entitlement_id: str
    source_year: int
    eligible: Decimal
    counted: Decimal
    expires_on: Optional[date] = None
    expiry_label: str = ""


class BalanceBreakdown(BaseModel):
    """Where an allowance comes from."""

    base: Decimal = Decimal("0")
    carry_over: Decimal = Decimal("0")
    lieu_base: Decimal = Decimal("0")
    accrued_to_date: Optional[Decimal] = None
    forfeited: Decimal = Decimal("0")
    expiry_label: str = ""
    expires_on: Optional[date] = None
    contributions: list[CarryOverContribution] = Field(default_factory=list)


class BalanceOut(BaseModel):
    """Computed balance of one entitlement in one year. Never persisted."""

    entitlement_id: str
    name: str = "Unknown"
    category: Optional[EntitlementCategory] = None
    color: EntitlementColor = EntitlementColor.gray
    year: int
    policy_source: PolicySource
    used: Decimal
    is_unlimited: bool = False
    allowance: Optional[Decimal] = None
    remaining: Optional[Decimal] = None
    breakdown: BalanceBreakdown = Field(default_factory=BalanceBreakdown)


class BalanceWarningOut(BaseModel):
    kind: str
    message: str


class BalanceTotals(BaseModel):
    """Sums over bounded balances; unlimited entitlements are left out."""

    allowance: Decimal = Decimal("0")
    used: Decimal = Decimal("0")
    remaining: Decimal = Decimal("0")


class BalanceReportOut(BaseModel):
    """All balances of a user for a year."""

    user_id: str
    year: int
    as_of: Optional[date] = None
    balances: list[BalanceOut]
    totals: BalanceTotals
    warnings: list[BalanceWarningOut] = Field(default_factory=list)


# ═════════════════════════════════════════════════════════════════════
# Requests
# ═════════════════════════════════════════════════════════════════════


class BalanceComputeRequest(BaseModel):
    """Snapshot plus the year to report on."""

    snapshot: BalanceSnapshot
    year: int = Field(..., ge=1900, le=2200)
    as_of: Optional[date] = Field(
        None, description="Enforce carry-over expiry as of this date; omit to skip forfeiture."
    )
    entitlement_ids: Optional[list[str]] = Field(
        None, description="Defaults to the entitlements of the user's active policies for the year."
    )


class TripDaysRequest(BaseModel):
    """Snapshot plus the trip and year to classify."""

    snapshot: BalanceSnapshot
    trip_id: str
    year: Optional[int] = Field(None, ge=1900, le=2200)


class TripDayOut(BaseModel):
    date: date
    day_class: DayClass
    weight: Decimal


class TripDaysOut(BaseModel):
    trip_id: str
    year: Optional[int] = None
    total: Decimal
    days: list[TripDayOut]


class InitializeYearRequest(BaseModel):
    """Snapshot plus the year to create policies for."""

    snapshot: BalanceSnapshot
    year: int = Field(..., ge=1900, le=2200)
    replicate: bool = Field(
        True, description="Copy the previous year's policies when there are any."
    )


class InitializeYearOut(BaseModel):
    user_id: str
    year: int
    created: list[UserPolicy]
    policies: list[UserPolicy]
