"""Shared test fixtures — app, client, snapshot factories.

Reusable across all test modules (holidays, weigher, usage, carry-over,
allowance, API). The engine is pure, so most tests build snapshots in memory
and call it directly; API tests go through httpx against the ASGI app.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient

from leave_planner.balances.models import (
    AccrualSpec,
    BalanceSnapshot,
    CarryOverSpec,
    EntitlementType,
    Trip,
    TripAllocation,
    UserPolicy,
    UserProfile,
    WorkspaceSettings,
)
from leave_planner.balances.weigher import TripWeigher
from leave_planner.common.constants import EntitlementCategory, HolidayWeekendRule
from leave_planner.holidays.models import HolidayConfig, PublicHoliday
from leave_planner.main import create_app

MON_FRI = {0, 1, 2, 3, 4}


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    from leave_planner.common.rate_limit import limiter
    try:
        if hasattr(limiter, "_storage"):
            limiter._storage.reset()
    except Exception:
        pass
    yield


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance."""
    yield create_app()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Model factories ─────────────────────────────────────────────────

def _make_entitlement(
    id: str = "vac",
    *,
    name: str = "Vacation",
    category: EntitlementCategory = EntitlementCategory.ordinary,
    is_unlimited: bool = False,
    amount: Decimal | int = 0,
) -> EntitlementType:
    return EntitlementType(
        id=id,
        name=name,
        category=category,
        is_unlimited=is_unlimited,
        accrual=AccrualSpec(amount=amount),
    )


def _make_policy(
    entitlement_id: str = "vac",
    year: int = 2024,
    *,
    amount: Decimal | int = 20,
    carry: bool = False,
    max_days: Decimal | int = 0,
    target: Optional[str] = None,
    is_active: bool = True,
    is_unlimited: Optional[bool] = None,
    **carry_kwargs,
) -> UserPolicy:
    return UserPolicy(
        entitlement_id=entitlement_id,
        year=year,
        is_active=is_active,
        is_unlimited=is_unlimited,
        accrual=AccrualSpec(amount=amount),
        carry_over=CarryOverSpec(
            enabled=carry,
            max_days=max_days,
            target_entitlement_id=target,
            **carry_kwargs,
        ),
    )


def _make_trip(
    start: date,
    end: Optional[date] = None,
    *,
    id: str = "t1",
    entitlement_id: Optional[str] = "vac",
    allocations: Optional[list[TripAllocation]] = None,
    **kwargs,
) -> Trip:
    return Trip(
        id=id,
        start_date=start,
        end_date=end or start,
        entitlement_id=entitlement_id,
        allocations=allocations or [],
        **kwargs,
    )


def _make_holiday(
    day: date,
    name: str = "Holiday",
    *,
    id: Optional[str] = None,
    is_included: bool = True,
) -> PublicHoliday:
    return PublicHoliday(
        id=id or f"nag-XX-{day.isoformat()}",
        name=name,
        date=day,
        country_code="XX",
        is_included=is_included,
    )


def _make_config(
    year: int,
    holidays: list[PublicHoliday],
    *,
    id: Optional[str] = None,
) -> HolidayConfig:
    return HolidayConfig(
        id=id or f"XX-{year}",
        country_code="XX",
        country_name="Testland",
        year=year,
        holidays=holidays,
    )


def _make_user(
    *,
    policies: Optional[list[UserPolicy]] = None,
    config_ids: Optional[list[str]] = None,
    rule: HolidayWeekendRule = HolidayWeekendRule.none,
    lieu_balance: Decimal | int = 0,
) -> UserProfile:
    return UserProfile(
        id="u1",
        name="Test User",
        lieu_balance=lieu_balance,
        policies=policies or [],
        holiday_config_ids=config_ids or [],
        holiday_weekend_rule=rule,
    )


def _make_snapshot(
    *,
    user: Optional[UserProfile] = None,
    entitlements: Optional[list[EntitlementType]] = None,
    trips: Optional[list[Trip]] = None,
    configs: Optional[list[HolidayConfig]] = None,
    working_days: Optional[set[int]] = None,
) -> BalanceSnapshot:
    return BalanceSnapshot(
        user=user or _make_user(),
        entitlements=entitlements if entitlements is not None else [_make_entitlement()],
        trips=trips or [],
        holiday_configs=configs or [],
        workspace=WorkspaceSettings(working_days=working_days or MON_FRI),
    )


@pytest.fixture
def weigher() -> TripWeigher:
    """Mon–Fri weigher with no holidays."""
    return TripWeigher(set(), MON_FRI)
