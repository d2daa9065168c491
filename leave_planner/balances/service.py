"""Balance service layer — snapshot validation and the balance report.

Business logic:
  - Reject snapshots that break the one-policy-per-(entitlement, year) rule
    or span more years than the host allows
  - Build the holiday-aware weigher and the allowance calculator per request
  - Produce the per-entitlement balance report with totals and warnings
  - Day-by-day classification of one trip for calendar views
  - Year initialization of policies
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import date
from decimal import Decimal
from typing import Optional

from leave_planner.balances.allowance import AllowanceCalculator
from leave_planner.balances.models import BalanceSnapshot
from leave_planner.balances.policies import initialize_year
from leave_planner.balances.schemas import (
    BalanceReportOut,
    BalanceTotals,
    BalanceWarningOut,
    InitializeYearOut,
    TripDayOut,
    TripDaysOut,
)
from leave_planner.balances.weigher import ZERO, TripWeigher
from leave_planner.common.constants import SplitAllocationFallback
from leave_planner.common.exceptions import (
    ConflictError,
    NotFoundException,
    ValidationException,
)
from leave_planner.config import settings
from leave_planner.holidays.service import resolve_holidays

logger = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════
# BalanceService
# ═════════════════════════════════════════════════════════════════════


class BalanceService:
    """Stateless balance operations; every call recomputes from the snapshot."""

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _validate_snapshot(snapshot: BalanceSnapshot, year: int) -> None:
        """Enforce policy uniqueness and bound the policy-year span."""
        counts = Counter(p.key for p in snapshot.user.policies)
        duplicates = sorted(key for key, n in counts.items() if n > 1)
        if duplicates:
            entitlement_id, policy_year = duplicates[0]
            raise ConflictError("policy", f"{entitlement_id}/{policy_year}")

        years = [p.year for p in snapshot.user.policies] + [year]
        span = max(years) - min(years)
        if span > settings.MAX_POLICY_YEAR_SPAN:
            raise ValidationException({
                "policies": [
                    f"Policies span {span} years; at most "
                    f"{settings.MAX_POLICY_YEAR_SPAN} are supported."
                ],
            })

    @staticmethod
    def _build_weigher(snapshot: BalanceSnapshot) -> TripWeigher:
        # All years: an observed date can cross into the next year
        holidays = resolve_holidays(snapshot.holiday_configs, snapshot.user)
        return TripWeigher(holidays.non_working_dates(), snapshot.workspace.working_days)

    @staticmethod
    def build_calculator(
        snapshot: BalanceSnapshot,
        *,
        as_of: Optional[date] = None,
        max_depth: Optional[int] = None,
        fallback: Optional[SplitAllocationFallback] = None,
    ) -> AllowanceCalculator:
        """Allowance calculator over the snapshot with settings as defaults."""
        return AllowanceCalculator(
            snapshot.user,
            snapshot.entitlements,
            snapshot.trips,
            BalanceService._build_weigher(snapshot),
            holiday_configs=snapshot.holiday_configs,
            max_depth=settings.CARRY_OVER_MAX_DEPTH if max_depth is None else max_depth,
            as_of=as_of,
            fallback=fallback or SplitAllocationFallback(settings.SPLIT_ALLOCATION_FALLBACK),
        )

    # ─────────────────────────────────────────────────────────────────
    # Balance report
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def compute_balances(
        snapshot: BalanceSnapshot,
        year: int,
        *,
        as_of: Optional[date] = None,
        entitlement_ids: Optional[list[str]] = None,
    ) -> BalanceReportOut:
        """Balances of the requested entitlements (default: active policies of `year`)."""
        BalanceService._validate_snapshot(snapshot, year)
        calculator = BalanceService.build_calculator(snapshot, as_of=as_of)
        calculator.check_references()

        if entitlement_ids is None:
            entitlement_ids = [
                p.entitlement_id for p in snapshot.user.policies_for_year(year) if p.is_active
            ]
        # Keep first occurrence order
        entitlement_ids = list(dict.fromkeys(entitlement_ids))

        balances = [calculator.balance(eid, year) for eid in entitlement_ids]

        totals = BalanceTotals()
        for b in balances:
            totals.used += b.used
            if b.is_unlimited:
                continue
            totals.allowance += b.allowance or ZERO
            totals.remaining += b.remaining or ZERO

        logger.info(
            "Computed %d balances for user %s in %d (%d warnings)",
            len(balances), snapshot.user.id, year, len(calculator.warnings),
        )
        return BalanceReportOut(
            user_id=snapshot.user.id,
            year=year,
            as_of=as_of,
            balances=balances,
            totals=totals,
            warnings=[BalanceWarningOut(**w.as_dict()) for w in calculator.warnings],
        )

    # ─────────────────────────────────────────────────────────────────
    # Trip days
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def classify_trip(
        snapshot: BalanceSnapshot,
        trip_id: str,
        year: Optional[int] = None,
    ) -> TripDaysOut:
        """Day-by-day classification of one trip (InvalidDateError on an inverted range)."""
        trip = next((t for t in snapshot.trips if t.id == trip_id), None)
        if trip is None:
            raise NotFoundException("Trip", trip_id)

        days = BalanceService._build_weigher(snapshot).classify(trip, year)
        return TripDaysOut(
            trip_id=trip.id,
            year=year,
            total=sum((d.weight for d in days), Decimal("0")),
            days=[TripDayOut(date=d.day, day_class=d.day_class, weight=d.weight) for d in days],
        )

    # ─────────────────────────────────────────────────────────────────
    # Year initialization
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def initialize_year(
        snapshot: BalanceSnapshot,
        year: int,
        *,
        replicate: bool = True,
    ) -> InitializeYearOut:
        """New policies for `year` and the user's resulting policy list."""
        BalanceService._validate_snapshot(snapshot, year)
        created = initialize_year(
            snapshot.user, snapshot.entitlements, year, replicate=replicate,
        )
        return InitializeYearOut(
            user_id=snapshot.user.id,
            year=year,
            created=created,
            policies=[*snapshot.user.policies, *created],
        )
