"""Holiday router — resolve a user's actual and observed holidays for a year."""

from fastapi import APIRouter, Request

from leave_planner.common.rate_limit import LOOKUP_LIMIT, limiter
from leave_planner.holidays.schemas import HolidayCalendarOut, HolidayResolveRequest
from leave_planner.holidays.service import HolidayService

router = APIRouter(prefix="", tags=["holidays"])


# ── POST /resolve ───────────────────────────────────────────────────

@router.post("/resolve", response_model=HolidayCalendarOut)
@limiter.limit(LOOKUP_LIMIT)
async def resolve_holidays(request: Request, body: HolidayResolveRequest):
    """Actual and observed (weekend-shifted) holidays plus lieu days earned."""
    return HolidayService.get_calendar(body.configs, body.user, body.year)
