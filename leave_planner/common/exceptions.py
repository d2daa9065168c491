"""Custom exceptions, recoverable engine warnings, and RFC 7807 Problem Detail handlers."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

BASE_ERROR_URI = "https://leave-planner.local/errors"


# ── Exception hierarchy ─────────────────────────────────────────────

class AppException(Exception):
    """Base for all application exceptions → RFC 7807 JSON."""

    def __init__(
        self,
        status_code: int,
        error_type: str,
        title: str,
        detail: str,
        errors: Optional[dict[str, Any]] = None,
    ) -> None:
        self.status_code = status_code
        self.error_type = error_type
        self.title = title
        self.detail = detail
        self.errors = errors
        super().__init__(detail)


class NotFoundException(AppException):
    """404 — a referenced record is not part of the snapshot."""

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(
            status_code=404,
            error_type="not-found",
            title=f"{entity_type} Not Found",
            detail=f"{entity_type} '{entity_id}' is not in the snapshot.",
        )


class ConflictError(AppException):
    """409 — the snapshot defines the same record twice."""

    def __init__(self, entity_type: str, key: Any) -> None:
        super().__init__(
            status_code=409,
            error_type="conflict",
            title="Conflict",
            detail=f"More than one {entity_type} is defined for '{key}'.",
            errors={entity_type: [f"'{key}' must be unique."]},
        )


class ValidationException(AppException):
    """422 — snapshot-level validation failures pydantic cannot see."""

    def __init__(self, errors: dict[str, list[str]]) -> None:
        super().__init__(
            status_code=422,
            error_type="validation-error",
            title="Validation Error",
            detail="The snapshot failed validation.",
            errors=errors,
        )


class InvalidDateError(ValidationException):
    """422 — unparseable ISO date or a range whose end precedes its start."""

    def __init__(
        self,
        field: str,
        value: Any,
        *,
        reason: str = "is not a valid ISO date (YYYY-MM-DD).",
    ) -> None:
        super().__init__(errors={field: [f"'{value}' {reason}"]})
        self.error_type = "invalid-date"
        self.title = "Invalid Date"
        self.detail = f"{field}: '{value}' {reason}"
        self.args = (self.detail,)

    @classmethod
    def inverted_range(cls, start: date, end: date) -> "InvalidDateError":
        return cls(
            "end_date",
            end.isoformat(),
            reason=f"is before start_date '{start.isoformat()}'.",
        )


# ── Recoverable warnings (logged and collected, never raised) ───────

class BalanceWarning(Warning):
    """Base for anomalies the balance engine recovers from locally."""

    kind = "balance"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def as_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "message": self.message}


class DanglingReferenceWarning(BalanceWarning):
    """A policy or allocation points at an entitlement that does not exist."""

    kind = "dangling-reference"


class CycleAbortedWarning(BalanceWarning):
    """The carry-over chain went deeper than the configured maximum depth."""

    kind = "cycle-aborted"


class DeprecatedAllocationWarning(BalanceWarning):
    """A split allocation without a target year was charged via the fallback path."""

    kind = "deprecated-allocation"


# ── RFC 7807 builder ────────────────────────────────────────────────

def _problem(
    request: Request,
    *,
    status: int,
    error_type: str,
    title: str,
    detail: str,
    errors: Optional[dict[str, Any]] = None,
) -> JSONResponse:
    body: dict[str, Any] = {
        "type": f"{BASE_ERROR_URI}/{error_type}",
        "title": title,
        "status": status,
        "detail": detail,
        "instance": str(request.url.path),
    }
    if errors:
        body["errors"] = errors
    return JSONResponse(status_code=status, content=body, media_type="application/problem+json")


# ── FastAPI handlers ────────────────────────────────────────────────

async def _handle_app_exception(
    request: Request,
    exc: AppException,
) -> JSONResponse:
    logger.info("%s %s → %d %s", request.method, request.url.path, exc.status_code, exc.detail)
    return _problem(
        request,
        status=exc.status_code,
        error_type=exc.error_type,
        title=exc.title,
        detail=exc.detail,
        errors=exc.errors,
    )


async def _handle_validation_error(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    field_errors: dict[str, list[str]] = {}
    for err in exc.errors():
        # Drop the leading "body" segment: snapshot.trips.0.start_date
        loc = [str(p) for p in err.get("loc", ())]
        name = ".".join(loc[1:] if len(loc) > 1 else loc) or "unknown"
        field_errors.setdefault(name, []).append(err.get("msg", "Invalid value"))

    return _problem(
        request,
        status=422,
        error_type="validation-error",
        title="Validation Error",
        detail="Request validation failed.",
        errors=field_errors,
    )


# ── Registration helper (called from main.py) ──────────────────────

def register_exception_handlers(app: FastAPI) -> None:
    """Attach the problem+json handlers to the FastAPI app."""
    app.add_exception_handler(AppException, _handle_app_exception)          # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
