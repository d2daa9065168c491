#!/usr/bin/env python3
"""
Offline balance report from a JSON snapshot file.

Usage:
    python scripts/compute_balances.py snapshot.json --year 2025
    python scripts/compute_balances.py snapshot.json --year 2025 --as-of 2025-06-30
    python scripts/compute_balances.py snapshot.json --year 2025 --entitlement vac --entitlement sick

The snapshot file holds {"user": ..., "entitlements": [...], "trips": [...],
"holiday_configs": [...], "workspace": {...}} exactly as the
/api/v1/balances/compute endpoint accepts it under "snapshot".

Reads .env at project root for engine settings (CARRY_OVER_MAX_DEPTH, ...).
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# ── Path setup ────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from dotenv import load_dotenv

load_dotenv(PROJECT_ROOT / ".env")

from pydantic import ValidationError

from leave_planner.balances.models import BalanceSnapshot
from leave_planner.balances.service import BalanceService
from leave_planner.common.dates import parse_iso_date
from leave_planner.common.exceptions import AppException
from leave_planner.logging_config import configure_logging

logger = logging.getLogger("compute_balances")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compute leave balances from a snapshot file.")
    parser.add_argument("snapshot", type=Path, help="Path to the snapshot JSON file")
    parser.add_argument("--year", type=int, required=True, help="Year to report on")
    parser.add_argument("--as-of", dest="as_of", help="Enforce carry-over expiry as of YYYY-MM-DD")
    parser.add_argument(
        "--entitlement",
        dest="entitlements",
        action="append",
        help="Entitlement id to report (repeatable); defaults to the year's active policies",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    configure_logging(args.log_level)

    try:
        snapshot = BalanceSnapshot.model_validate_json(args.snapshot.read_text(encoding="utf-8"))
        as_of = parse_iso_date(args.as_of, "as_of") if args.as_of else None
        report = BalanceService.compute_balances(
            snapshot, args.year, as_of=as_of, entitlement_ids=args.entitlements,
        )
    except OSError as e:
        logger.error("Cannot read snapshot %s: %s", args.snapshot, e)
        return 2
    except ValidationError as e:
        logger.error("Snapshot is invalid:\n%s", e)
        return 2
    except AppException as e:
        logger.error("%s: %s", e.title, e.detail)
        return 1

    print(report.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
