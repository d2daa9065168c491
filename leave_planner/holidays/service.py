"""Holiday Resolver — non-working dates of a user from their holiday calendars.

The user's ``holiday_weekend_rule`` decides what happens to a holiday that
lands on a Saturday or Sunday:

  - ``monday`` shifts the calendar: the next weekday is added to ``observed``
    labelled "<name> (Observed)", the original date stays in ``actual``.
  - ``lieu`` shifts the balance: no date moves, each such holiday earns one
    lieu day instead (see ``count_lieu_credits``).
  - ``none`` does neither.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Iterator, NamedTuple, Optional

from leave_planner.balances.models import UserProfile
from leave_planner.common.constants import OBSERVED_SUFFIX, HolidayWeekendRule
from leave_planner.common.dates import next_weekday
from leave_planner.holidays.models import HolidayConfig, PublicHoliday
from leave_planner.holidays.schemas import HolidayCalendarOut, HolidayDayOut

logger = logging.getLogger(__name__)


class ResolvedHolidays(NamedTuple):
    actual: dict[date, list[str]]
    observed: dict[date, list[str]]

    def non_working_dates(self) -> set[date]:
        return set(self.actual) | set(self.observed)


def _add_name(bucket: dict[date, list[str]], day: date, name: str) -> None:
    names = bucket.setdefault(day, [])
    if name not in names:
        names.append(name)


def subscribed_holidays(
    configs: Iterable[HolidayConfig],
    user: UserProfile,
    year: Optional[int] = None,
) -> Iterator[PublicHoliday]:
    """Included holidays from the configs the user subscribes to.

    ``year`` filters on the holiday's own date; None yields every year.
    """
    subscribed = set(user.holiday_config_ids)
    for config in configs:
        if config.id not in subscribed:
            continue
        for holiday in config.holidays:
            if not holiday.is_included:
                continue
            if year is not None and holiday.date.year != year:
                continue
            yield holiday


def resolve_holidays(
    configs: Iterable[HolidayConfig],
    user: UserProfile,
    year: Optional[int] = None,
) -> ResolvedHolidays:
    """Return (actual, observed) maps of date → holiday names.

    An observed date may fall in the following year (31 Dec on a Sunday is
    observed on 1 Jan).
    """
    actual: dict[date, list[str]] = {}
    observed: dict[date, list[str]] = {}
    shift = user.holiday_weekend_rule == HolidayWeekendRule.monday

    for holiday in subscribed_holidays(configs, user, year):
        _add_name(actual, holiday.date, holiday.name)
        if shift and holiday.falls_on_weekend:
            _add_name(observed, next_weekday(holiday.date), f"{holiday.name}{OBSERVED_SUFFIX}")

    logger.debug(
        "Resolved %d actual / %d observed holiday dates for user %s (year=%s)",
        len(actual), len(observed), user.id, year,
    )
    return ResolvedHolidays(actual=actual, observed=observed)


def count_lieu_credits(
    configs: Iterable[HolidayConfig],
    user: UserProfile,
    year: int,
) -> Decimal:
    """Lieu days earned in `year`: one per included weekend holiday under the lieu rule."""
    if user.holiday_weekend_rule != HolidayWeekendRule.lieu:
        return Decimal("0")
    earned = sum(1 for h in subscribed_holidays(configs, user, year) if h.falls_on_weekend)
    return Decimal(earned)


# ═════════════════════════════════════════════════════════════════════
# HolidayService
# ═════════════════════════════════════════════════════════════════════


class HolidayService:
    """Calendar-shading view over the resolver for presentation collaborators."""

    @staticmethod
    def _to_days(bucket: dict[date, list[str]]) -> list[HolidayDayOut]:
        return [HolidayDayOut(date=d, names=list(bucket[d])) for d in sorted(bucket)]

    @staticmethod
    def get_calendar(
        configs: list[HolidayConfig],
        user: UserProfile,
        year: int,
    ) -> HolidayCalendarOut:
        """Actual and observed holidays of `year` plus lieu days earned in it."""
        resolved = resolve_holidays(configs, user, year)
        return HolidayCalendarOut(
            user_id=user.id,
            year=year,
            weekend_rule=user.holiday_weekend_rule,
            actual=HolidayService._to_days(resolved.actual),
            observed=HolidayService._to_days(resolved.observed),
            lieu_credits=count_lieu_credits(configs, user, year),
        )
