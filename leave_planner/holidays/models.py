"""Holiday calendar models: PublicHoliday, HolidayConfig."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from leave_planner.common.constants import CUSTOM_HOLIDAY_PREFIX, WEEKEND_WEEKDAYS


class PublicHoliday(BaseModel):
    """A calendar date tagged to a jurisdiction. User-added holidays share the shape."""

    id: str
    name: str
    date: date
    country_code: str = ""
    is_included: bool = True
    is_weekend: Optional[bool] = None
    config_id: Optional[str] = None

    @model_validator(mode="after")
    def fill_is_weekend(self) -> "PublicHoliday":
        if self.is_weekend is None:
            self.is_weekend = self.date.weekday() in WEEKEND_WEEKDAYS
        return self

    @property
    def is_custom(self) -> bool:
        return self.id.startswith(CUSTOM_HOLIDAY_PREFIX)

    @property
    def falls_on_weekend(self) -> bool:
        """Saturday/Sunday by the calendar, regardless of the stored flag."""
        return self.date.weekday() in WEEKEND_WEEKDAYS


class HolidayConfig(BaseModel):
    """A saved holiday calendar (one jurisdiction, one year)."""

    id: str
    country_code: str = ""
    country_name: str = ""
    year: int
    holidays: list[PublicHoliday] = Field(default_factory=list)

    @model_validator(mode="after")
    def claim_holidays(self) -> "HolidayConfig":
        # Holidays without an owner belong to the config that lists them
        self.holidays = [
            h if h.config_id else h.model_copy(update={"config_id": self.id})
            for h in self.holidays
        ]
        return self
