"""Enums and constants for the leave planner — closed vocabularies of the balance engine."""

from __future__ import annotations

import enum


# ── Trips ───────────────────────────────────────────────────────────

class TripStatus(str, enum.Enum):
    planning = "Planning"
    upcoming = "Upcoming"
    past = "Past"
    cancelled = "Cancelled"


class DurationMode(str, enum.Enum):
    all_full = "all_full"
    all_am = "all_am"
    all_pm = "all_pm"
    single_am = "single_am"
    single_pm = "single_pm"
    custom = "custom"

    @property
    def is_half_day(self) -> bool:
        return self in _HALF_DAY_MODES


_HALF_DAY_MODES = frozenset(
    {DurationMode.all_am, DurationMode.all_pm, DurationMode.single_am, DurationMode.single_pm}
)


class DayPortion(str, enum.Enum):
    full = "full"
    am = "am"
    pm = "pm"


class DayClass(str, enum.Enum):
    chargeable = "chargeable"
    weekend = "weekend"
    holiday = "holiday"
    excluded = "excluded"
    out_of_year = "out_of_year"


# Trips in these states never consume balance
NON_CHARGING_STATUSES = frozenset({TripStatus.cancelled, TripStatus.planning})


# ── Entitlements / Policies ─────────────────────────────────────────

class EntitlementCategory(str, enum.Enum):
    ordinary = "Ordinary"
    lieu = "Lieu"
    custom = "Custom"


class EntitlementColor(str, enum.Enum):
    blue = "blue"
    green = "green"
    amber = "amber"
    gray = "gray"
    purple = "purple"
    red = "red"
    indigo = "indigo"
    pink = "pink"
    teal = "teal"
    cyan = "cyan"


class AccrualPeriod(str, enum.Enum):
    lump_sum = "lump_sum"
    yearly = "yearly"
    monthly = "monthly"


class ExpiryType(str, enum.Enum):
    none = "none"
    months = "months"
    fixed_date = "fixed_date"


class PolicySource(str, enum.Enum):
    policy = "policy"
    default = "default"
    missing = "missing"


class SplitAllocationFallback(str, enum.Enum):
    full = "full"
    prorate = "prorate"


# ── Holidays ────────────────────────────────────────────────────────

class HolidayWeekendRule(str, enum.Enum):
    none = "none"
    monday = "monday"
    lieu = "lieu"


CUSTOM_HOLIDAY_PREFIX = "custom-"
OBSERVED_SUFFIX = " (Observed)"
WEEKEND_WEEKDAYS = frozenset({5, 6})  # Sat, Sun


# ── Misc constants ──────────────────────────────────────────────────

DATE_FORMAT = "%Y-%m-%d"
DEFAULT_MAX_DEPTH = 5
