"""Common module — shared constants, exceptions and helpers."""

from leave_planner.common.constants import (
    CUSTOM_HOLIDAY_PREFIX,
    DATE_FORMAT,
    DEFAULT_MAX_DEPTH,
    NON_CHARGING_STATUSES,
    OBSERVED_SUFFIX,
    AccrualPeriod,
    DayClass,
    DayPortion,
    DurationMode,
    EntitlementCategory,
    EntitlementColor,
    ExpiryType,
    HolidayWeekendRule,
    PolicySource,
    SplitAllocationFallback,
    TripStatus,
)
from leave_planner.common.dates import iter_dates, next_weekday, parse_iso_date
from leave_planner.common.exceptions import (
    AppException,
    BalanceWarning,
    ConflictError,
    CycleAbortedWarning,
    DanglingReferenceWarning,
    DeprecatedAllocationWarning,
    InvalidDateError,
    NotFoundException,
    ValidationException,
    register_exception_handlers,
)

__all__ = [
    # Constants / Enums
    "AccrualPeriod",
    "DayClass",
    "DayPortion",
    "DurationMode",
    "EntitlementCategory",
    "EntitlementColor",
    "ExpiryType",
    "HolidayWeekendRule",
    "PolicySource",
    "SplitAllocationFallback",
    "TripStatus",
    "CUSTOM_HOLIDAY_PREFIX",
    "DATE_FORMAT",
    "DEFAULT_MAX_DEPTH",
    "NON_CHARGING_STATUSES",
    "OBSERVED_SUFFIX",
    # Dates
    "iter_dates",
    "next_weekday",
    "parse_iso_date",
    # Exceptions / warnings
    "AppException",
    "ConflictError",
    "InvalidDateError",
    "NotFoundException",
    "ValidationException",
    "BalanceWarning",
    "CycleAbortedWarning",
    "DanglingReferenceWarning",
    "DeprecatedAllocationWarning",
    "register_exception_handlers",
]
