"""Trip Day Weigher — chargeable (possibly fractional) days a trip consumes in a year."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, NamedTuple, Optional

from leave_planner.balances.models import Trip
from leave_planner.common.constants import DayClass, DayPortion, DurationMode
from leave_planner.common.dates import iter_dates
from leave_planner.common.exceptions import InvalidDateError

FULL_DAY = Decimal("1")
HALF_DAY = Decimal("0.5")
ZERO = Decimal("0")


class TripDay(NamedTuple):
    day: date
    day_class: DayClass
    weight: Decimal


def day_weight(trip: Trip, day: date) -> Decimal:
    """Weight of a chargeable date of `trip` by its duration mode."""
    if trip.duration_mode.is_half_day:
        return HALF_DAY
    if trip.duration_mode == DurationMode.custom:
        # A single-date trip matching both conditions is still one half day
        if day == trip.start_date and trip.start_portion == DayPortion.pm:
            return HALF_DAY
        if day == trip.end_date and trip.end_portion == DayPortion.am:
            return HALF_DAY
    return FULL_DAY


def classify_trip_days(
    trip: Trip,
    year: Optional[int],
    non_working_dates: set[date],
    working_weekdays: Iterable[int],
    *,
    until: Optional[date] = None,
) -> list[TripDay]:
    """Classify every date of the trip; only ``chargeable`` days carry weight.

    A date that is both a holiday and excluded counts once, as a holiday.
    ``year`` None accepts every year; ``until`` stops before that date.

    Raises:
        InvalidDateError: the trip ends before it starts.
    """
    if trip.end_date < trip.start_date:
        raise InvalidDateError.inverted_range(trip.start_date, trip.end_date)

    working = set(working_weekdays)
    last = trip.end_date
    if until is not None:
        last = min(last, until - timedelta(days=1))

    days: list[TripDay] = []
    for day in iter_dates(trip.start_date, last):
        if year is not None and day.year != year:
            days.append(TripDay(day, DayClass.out_of_year, ZERO))
        elif day.weekday() not in working:
            days.append(TripDay(day, DayClass.weekend, ZERO))
        elif day in non_working_dates:
            days.append(TripDay(day, DayClass.holiday, ZERO))
        elif day in trip.excluded_dates:
            days.append(TripDay(day, DayClass.excluded, ZERO))
        else:
            days.append(TripDay(day, DayClass.chargeable, day_weight(trip, day)))
    return days


def weigh_trip_in_year(
    trip: Trip,
    year: Optional[int],
    non_working_dates: set[date],
    working_weekdays: Iterable[int],
    *,
    until: Optional[date] = None,
) -> Decimal:
    """Sum of chargeable weights of `trip` falling in `year`."""
    days = classify_trip_days(trip, year, non_working_dates, working_weekdays, until=until)
    return sum((d.weight for d in days), ZERO)


class TripWeigher:
    """Binds the calendar context of one user so callers only pass (trip, year)."""

    def __init__(self, non_working_dates: set[date], working_weekdays: Iterable[int]) -> None:
        self.non_working_dates = frozenset(non_working_dates)
        self.working_weekdays = frozenset(working_weekdays)

    def __call__(
        self,
        trip: Trip,
        year: Optional[int],
        *,
        until: Optional[date] = None,
    ) -> Decimal:
        return weigh_trip_in_year(
            trip, year, self.non_working_dates, self.working_weekdays, until=until,
        )

    def classify(self, trip: Trip, year: Optional[int]) -> list[TripDay]:
        return classify_trip_days(trip, year, self.non_working_dates, self.working_weekdays)
