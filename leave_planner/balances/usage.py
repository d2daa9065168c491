"""Usage Aggregator — days consumed per (entitlement, year) across a user's trips.

Per trip:
  - Cancelled / Planning trips, or trips the user is not on, consume nothing.
  - A trip with allocations is charged from them, never from ``entitlement_id``:
      * an allocation tagged with the year is taken literally;
      * otherwise an untagged allocation is charged when the trip has any
        chargeable day in the year, either in full or pro rata to the
        in-year share of chargeable days (``SplitAllocationFallback``).
  - Otherwise a trip whose ``entitlement_id`` matches is weighed by date.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, Optional

from leave_planner.balances.models import Trip
from leave_planner.balances.weigher import ZERO, TripWeigher
from leave_planner.common.constants import NON_CHARGING_STATUSES, SplitAllocationFallback
from leave_planner.common.exceptions import (
    BalanceWarning,
    DeprecatedAllocationWarning,
    InvalidDateError,
)

logger = logging.getLogger(__name__)

WarningSink = Callable[[BalanceWarning], None]


def _log_warning(warning: BalanceWarning) -> None:
    logger.warning("%s", warning.message)


def trip_usage(
    trip: Trip,
    entitlement_id: str,
    year: int,
    weigher: TripWeigher,
    *,
    fallback: SplitAllocationFallback = SplitAllocationFallback.full,
    until: Optional[date] = None,
    on_warning: WarningSink = _log_warning,
) -> Decimal:
    """Days of `entitlement_id` that a single trip consumes in `year`."""
    if trip.status in NON_CHARGING_STATUSES:
        return ZERO

    if not trip.uses_allocations:
        if trip.entitlement_id != entitlement_id:
            return ZERO
        return weigher(trip, year, until=until)

    tagged = [
        a for a in trip.allocations
        if a.entitlement_id == entitlement_id and a.target_year == year
    ]
    if tagged:
        if until is not None and trip.start_date >= until:
            return ZERO
        return sum((a.days for a in tagged), ZERO)

    untagged = next(
        (
            a for a in trip.allocations
            if a.entitlement_id == entitlement_id and a.target_year is None
        ),
        None,
    )
    if untagged is None:
        return ZERO

    in_year = weigher(trip, year, until=until)
    if in_year == ZERO:
        return ZERO

    on_warning(DeprecatedAllocationWarning(
        f"Trip {trip.id}: allocation of {untagged.days} day(s) to '{entitlement_id}' "
        f"has no target year; charged to {year} via the {fallback.value} fallback."
    ))
    if fallback == SplitAllocationFallback.prorate:
        total = weigher(trip, None)
        return untagged.days * in_year / total
    return untagged.days


def aggregate_usage(
    trips: Iterable[Trip],
    entitlement_id: str,
    year: int,
    weigher: TripWeigher,
    *,
    user_id: Optional[str] = None,
    fallback: SplitAllocationFallback = SplitAllocationFallback.full,
    until: Optional[date] = None,
    on_warning: WarningSink = _log_warning,
) -> Decimal:
    """Sum of ``trip_usage`` over all trips; always >= 0.

    A trip with an inverted date range is a malformed historical record: it
    is logged and contributes nothing instead of failing the whole report.
    """
    total = ZERO
    for trip in trips:
        if user_id is not None and not trip.involves(user_id):
            continue
        try:
            total += trip_usage(
                trip,
                entitlement_id,
                year,
                weigher,
                fallback=fallback,
                until=until,
                on_warning=on_warning,
            )
        except InvalidDateError as exc:
            logger.warning("Skipping trip %s in usage totals: %s", trip.id, exc.detail)
    return total


class UsageAggregator:
    """Usage totals for one user's trips, memoized per (entitlement, year, until)."""

    def __init__(
        self,
        trips: Iterable[Trip],
        weigher: TripWeigher,
        *,
        user_id: Optional[str] = None,
        fallback: SplitAllocationFallback = SplitAllocationFallback.full,
        on_warning: WarningSink = _log_warning,
    ) -> None:
        self.trips = list(trips)
        self.weigher = weigher
        self.user_id = user_id
        self.fallback = fallback
        self.on_warning = on_warning
        self._totals: dict[tuple[str, int, Optional[date]], Decimal] = {}

    def used(self, entitlement_id: str, year: int, *, until: Optional[date] = None) -> Decimal:
        key = (entitlement_id, year, until)
        if key not in self._totals:
            self._totals[key] = aggregate_usage(
                self.trips,
                entitlement_id,
                year,
                self.weigher,
                user_id=self.user_id,
                fallback=self.fallback,
                until=until,
                on_warning=self.on_warning,
            )
        return self._totals[key]
