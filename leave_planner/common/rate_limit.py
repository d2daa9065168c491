"""slowapi limiter and per-endpoint budgets shared by the routers (wired in main.py)."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from leave_planner.config import settings

COMPUTE_LIMIT = "60/minute"
LOOKUP_LIMIT = "120/minute"
INITIALIZE_LIMIT = "30/minute"

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
)
