"""Balance router — balance report, trip day classification, year initialization.

Every endpoint is a stateless computation over the snapshot in the request body.
"""

from fastapi import APIRouter, Request

from leave_planner.balances.schemas import (
    BalanceComputeRequest,
    BalanceReportOut,
    InitializeYearOut,
    InitializeYearRequest,
    TripDaysOut,
    TripDaysRequest,
)
from leave_planner.balances.service import BalanceService
from leave_planner.common.rate_limit import COMPUTE_LIMIT, INITIALIZE_LIMIT, LOOKUP_LIMIT, limiter

router = APIRouter(prefix="", tags=["balances"])


# ── POST /compute ───────────────────────────────────────────────────

@router.post("/compute", response_model=BalanceReportOut)
@limiter.limit(COMPUTE_LIMIT)
async def compute_balances(request: Request, body: BalanceComputeRequest):
    """Allowance, usage and carry-over breakdown per entitlement for a year."""
    return BalanceService.compute_balances(
        body.snapshot,
        body.year,
        as_of=body.as_of,
        entitlement_ids=body.entitlement_ids,
    )


# ── POST /trip-days ─────────────────────────────────────────────────

@router.post("/trip-days", response_model=TripDaysOut)
@limiter.limit(LOOKUP_LIMIT)
async def trip_days(request: Request, body: TripDaysRequest):
    """Classify each date of a trip as chargeable, weekend, holiday, excluded or out of year."""
    return BalanceService.classify_trip(body.snapshot, body.trip_id, body.year)


# ── POST /initialize-year ───────────────────────────────────────────

@router.post("/initialize-year", response_model=InitializeYearOut)
@limiter.limit(INITIALIZE_LIMIT)
async def initialize_year(request: Request, body: InitializeYearRequest):
    """Policies for a new year, copied from the previous year or seeded from defaults."""
    return BalanceService.initialize_year(body.snapshot, body.year, replicate=body.replicate)
