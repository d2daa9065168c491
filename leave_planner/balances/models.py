"""Balance engine input models: entitlements, policies, trips, user, workspace.

These are immutable-by-convention snapshots of data owned by the surrounding
application. The engine never writes them back; every balance is recomputed
from them on each call.
"""

from __future__ import annotations

import calendar
from datetime import date
from decimal import Decimal
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from leave_planner.common.constants import (
    AccrualPeriod,
    DayPortion,
    DurationMode,
    EntitlementCategory,
    EntitlementColor,
    ExpiryType,
    HolidayWeekendRule,
    PolicySource,
    TripStatus,
)
from leave_planner.config import settings
from leave_planner.holidays.models import HolidayConfig


# ═════════════════════════════════════════════════════════════════════
# Accrual / carry-over rules
# ═════════════════════════════════════════════════════════════════════


class AccrualSpec(BaseModel):
    """How the base allowance of a year is generated."""

    period: AccrualPeriod = AccrualPeriod.lump_sum
    amount: Decimal = Field(Decimal("0"), ge=0)


class CarryOverSpec(BaseModel):
    """How unused days of a year roll into the next one."""

    enabled: bool = False
    max_days: Decimal = Field(Decimal("0"), ge=0)
    expiry_type: ExpiryType = ExpiryType.none
    expiry_value: Optional[Union[int, str]] = None
    target_entitlement_id: Optional[str] = None

    @model_validator(mode="after")
    def validate_expiry(self) -> CarryOverSpec:
        if self.expiry_type == ExpiryType.months:
            try:
                months = int(self.expiry_value if self.expiry_value is not None else 0)
            except (TypeError, ValueError):
                raise ValueError("expiry_value must be a whole number of months.")
            if months < 0:
                raise ValueError("expiry_value must not be negative.")
            self.expiry_value = months
        elif self.expiry_type == ExpiryType.fixed_date:
            self.expiry_value = _normalize_month_day(self.expiry_value)
        return self

    @property
    def redirects(self) -> bool:
        return self.target_entitlement_id is not None


def _normalize_month_day(value: object) -> str:
    """Accept 'MM-DD' or 'YYYY-MM-DD' and return 'MM-DD'."""
    if not isinstance(value, str):
        raise ValueError("expiry_value must be a 'MM-DD' string for fixed_date expiry.")
    parts = value.strip().split("-")
    if len(parts) == 3:
        parts = parts[1:]
    try:
        month, day = (int(p) for p in parts)
    except ValueError:
        raise ValueError(f"'{value}' is not a valid 'MM-DD' expiry date.")
    # 29 Feb is accepted and clamped per year when the expiry is evaluated
    if not 1 <= month <= 12 or not 1 <= day <= calendar.monthrange(2000, month)[1]:
        raise ValueError(f"'{value}' is not a valid 'MM-DD' expiry date.")
    return f"{month:02d}-{day:02d}"


# ═════════════════════════════════════════════════════════════════════
# Entitlements and policies
# ═════════════════════════════════════════════════════════════════════


class EntitlementType(BaseModel):
    """A leave category with default accrual and carry-over rules."""

    id: str
    name: str
    category: EntitlementCategory = EntitlementCategory.ordinary
    color: EntitlementColor = EntitlementColor.gray
    is_unlimited: bool = False
    accrual: AccrualSpec = Field(default_factory=AccrualSpec)
    carry_over: CarryOverSpec = Field(default_factory=CarryOverSpec)

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, v: object) -> object:
        if isinstance(v, str):
            for member in EntitlementCategory:
                if member.value.lower() == v.strip().lower():
                    return member
        return v

    @property
    def is_lieu(self) -> bool:
        return self.category == EntitlementCategory.lieu


class UserPolicy(BaseModel):
    """Per-user, per-entitlement, per-year override of the entitlement defaults."""

    entitlement_id: str
    year: int
    is_active: bool = True
    is_unlimited: Optional[bool] = None
    accrual: AccrualSpec = Field(default_factory=AccrualSpec)
    carry_over: CarryOverSpec = Field(default_factory=CarryOverSpec)

    @property
    def key(self) -> tuple[str, int]:
        return self.entitlement_id, self.year


class ResolvedPolicy(BaseModel):
    """A policy merged over its entitlement defaults for one (entitlement, year)."""

    entitlement_id: str
    year: int
    source: PolicySource
    category: Optional[EntitlementCategory] = None
    is_unlimited: bool = False
    accrual: AccrualSpec = Field(default_factory=AccrualSpec)
    carry_over: CarryOverSpec = Field(default_factory=CarryOverSpec)

    @property
    def base_amount(self) -> Decimal:
        # Only an explicit policy grants days; defaults are templates
        if self.source == PolicySource.policy:
            return self.accrual.amount
        return Decimal("0")

    @property
    def is_lieu(self) -> bool:
        return self.category == EntitlementCategory.lieu


def resolve_policy(
    entitlement: Optional[EntitlementType],
    policy: Optional[UserPolicy],
    entitlement_id: str,
    year: int,
) -> ResolvedPolicy:
    """Merge a user policy over entitlement defaults.

    - missing entitlement  → source=missing, nothing granted
    - no (active) policy   → source=default, entitlement defaults, base 0
    - policy               → policy values; is_unlimited=None inherits the default
    """
    if entitlement is None:
        return ResolvedPolicy(
            entitlement_id=entitlement_id, year=year, source=PolicySource.missing,
        )
    if policy is None or not policy.is_active:
        return ResolvedPolicy(
            entitlement_id=entitlement_id,
            year=year,
            source=PolicySource.default,
            category=entitlement.category,
            is_unlimited=entitlement.is_unlimited,
            accrual=entitlement.accrual,
            carry_over=entitlement.carry_over,
        )
    is_unlimited = (
        policy.is_unlimited if policy.is_unlimited is not None else entitlement.is_unlimited
    )
    return ResolvedPolicy(
        entitlement_id=entitlement_id,
        year=year,
        source=PolicySource.policy,
        category=entitlement.category,
        is_unlimited=is_unlimited,
        accrual=policy.accrual,
        carry_over=policy.carry_over,
    )


# ═════════════════════════════════════════════════════════════════════
# Trips
# ═════════════════════════════════════════════════════════════════════


class TripAllocation(BaseModel):
    """Explicit share of a trip charged to one entitlement (optionally one year)."""

    entitlement_id: str
    days: Decimal = Field(..., ge=0)
    target_year: Optional[int] = None


class Trip(BaseModel):
    """A leave request. Dates are inclusive calendar dates."""

    id: str
    name: str = ""
    start_date: date
    end_date: date
    status: TripStatus = TripStatus.upcoming
    participants: list[str] = Field(default_factory=list)
    duration_mode: DurationMode = DurationMode.all_full
    start_portion: DayPortion = DayPortion.full
    end_portion: DayPortion = DayPortion.full
    excluded_dates: set[date] = Field(default_factory=set)
    entitlement_id: Optional[str] = None
    allocations: list[TripAllocation] = Field(default_factory=list)

    @property
    def uses_allocations(self) -> bool:
        return bool(self.allocations)

    def involves(self, user_id: str) -> bool:
        """Trips without a participant list belong to the snapshot's user."""
        return not self.participants or user_id in self.participants


# ═════════════════════════════════════════════════════════════════════
# User / workspace / snapshot
# ═════════════════════════════════════════════════════════════════════


class UserProfile(BaseModel):
    """The slice of a user the engine needs."""

    id: str
    name: str = ""
    lieu_balance: Decimal = Decimal("0")
    policies: list[UserPolicy] = Field(default_factory=list)
    holiday_config_ids: list[str] = Field(default_factory=list)
    holiday_weekend_rule: HolidayWeekendRule = HolidayWeekendRule.none

    def policy_for(self, entitlement_id: str, year: int) -> Optional[UserPolicy]:
        return next(
            (p for p in self.policies if p.entitlement_id == entitlement_id and p.year == year),
            None,
        )

    def policies_for_year(self, year: int) -> list[UserPolicy]:
        return [p for p in self.policies if p.year == year]


class WorkspaceSettings(BaseModel):
    """Workspace-wide settings. Weekday indices follow date.weekday() (0=Mon … 6=Sun)."""

    working_days: set[int] = Field(default_factory=lambda: settings.default_working_days)

    @field_validator("working_days")
    @classmethod
    def validate_weekdays(cls, v: set[int]) -> set[int]:
        invalid = sorted(d for d in v if not 0 <= d <= 6)
        if invalid:
            raise ValueError(f"working_days must be weekday indices 0–6, got {invalid}.")
        return v


class BalanceSnapshot(BaseModel):
    """Everything one balance computation reads, fetched once per request."""

    user: UserProfile
    entitlements: list[EntitlementType] = Field(default_factory=list)
    trips: list[Trip] = Field(default_factory=list)
    holiday_configs: list[HolidayConfig] = Field(default_factory=list)
    workspace: WorkspaceSettings = Field(default_factory=WorkspaceSettings)

    def entitlement_map(self) -> dict[str, EntitlementType]:
        return {e.id: e for e in self.entitlements}
