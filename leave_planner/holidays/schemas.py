"""Holiday Pydantic v2 schemas — request / response validation."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from leave_planner.balances.models import UserProfile
from leave_planner.common.constants import HolidayWeekendRule
from leave_planner.holidays.models import HolidayConfig


class HolidayResolveRequest(BaseModel):
    """Payload for resolving a user's holiday calendar for one year."""

    user: UserProfile
    configs: list[HolidayConfig] = Field(default_factory=list)
    year: int = Field(..., ge=1900, le=2200)


class HolidayDayOut(BaseModel):
    """One non-working date and the holidays that fall on it."""

    date: date
    names: list[str]


class HolidayCalendarOut(BaseModel):
    """Holidays of a year as a calendar view shades them."""

    user_id: str
    year: int
    weekend_rule: HolidayWeekendRule
    actual: list[HolidayDayOut]
    observed: list[HolidayDayOut]
    lieu_credits: Decimal = Decimal("0")
