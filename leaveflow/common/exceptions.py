"""Custom exceptions and RFC 7807 Problem Detail error handlers."""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

BASE_ERROR_URI = "https://leaveflow.local/errors"


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
        extra: Optional[dict[str, Any]] = None,
    ) -> None:
        self.status_code = status_code
        self.error_type = error_type
        self.title = title
        self.detail = detail
        self.errors = errors
        self.extra = extra or {}
        super().__init__(detail)


class NotFoundException(AppException):
    """404 — entity not found."""

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(
            status_code=404,
            error_type="not-found",
            title=f"{entity_type} Not Found",
            detail=f"{entity_type} with id '{entity_id}' does not exist.",
        )


class ForbiddenException(AppException):
    """403 — the acting employee may not perform this action."""

    def __init__(
        self,
        detail: str = "You do not have permission to perform this action.",
    ) -> None:
        super().__init__(
            status_code=403,
            error_type="forbidden",
            title="Forbidden",
            detail=detail,
        )


class ValidationException(AppException):
    """422 — business-logic validation failures, reported all at once."""

    def __init__(
        self,
        errors: dict[str, list[str]],
        issues: Optional[list[dict[str, Any]]] = None,
    ) -> None:
        super().__init__(
            status_code=422,
            error_type="validation-error",
            title="Validation Error",
            detail="One or more fields failed validation.",
            errors=errors,
            extra={"issues": issues} if issues else None,
        )
        self.issues = issues or []


class ConflictError(AppException):
    """409 — the requested span overlaps an active request."""

    def __init__(
        self,
        request_id: str,
        start_date: date,
        end_date: date,
        *,
        employee_id: Optional[str] = None,
        errors: Optional[dict[str, list[str]]] = None,
        issues: Optional[list[dict[str, Any]]] = None,
    ) -> None:
        who = f"Employee '{employee_id}'" if employee_id else "The employee"
        extra: dict[str, Any] = {
            "conflicting_request": {
                "id": request_id,
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
            },
        }
        if issues:
            extra["issues"] = issues
        super().__init__(
            status_code=409,
            error_type="conflict",
            title="Scheduling Conflict",
            detail=(
                f"{who} already holds request '{request_id}' "
                f"({start_date.isoformat()} to {end_date.isoformat()})."
            ),
            errors=errors,
            extra=extra,
        )
        self.request_id = request_id


class QuotaExceeded(AppException):
    """422 — casual leave already used in this calendar month."""

    def __init__(
        self,
        reset_date: date,
        *,
        issues: Optional[list[dict[str, Any]]] = None,
    ) -> None:
        extra: dict[str, Any] = {"reset_date": reset_date.isoformat()}
        if issues:
            extra["issues"] = issues
        super().__init__(
            status_code=422,
            error_type="quota-exceeded",
            title="Casual Leave Quota Exceeded",
            detail=(
                "Casual leave has already been used this month. "
                f"Next casual leave is available from {reset_date.isoformat()}."
            ),
            errors={"leave_mode": ["Monthly casual leave quota exhausted."]},
            extra=extra,
        )
        self.reset_date = reset_date


class InvalidTransition(AppException):
    """409 — approval action on a non-pending request or at the wrong level."""

    def __init__(self, detail: str, **extra: Any) -> None:
        super().__init__(
            status_code=409,
            error_type="invalid-transition",
            title="Invalid Transition",
            detail=detail,
            extra=extra or None,
        )


class InvalidSelector(AppException):
    """422 — day / week / month selector cannot be resolved."""

    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=422,
            error_type="invalid-selector",
            title="Invalid Selector",
            detail=detail,
        )


# ── RFC 7807 builder ────────────────────────────────────────────────

def _build_problem_detail(exc: AppException, request: Request) -> dict[str, Any]:
    body: dict[str, Any] = {
        "type": f"{BASE_ERROR_URI}/{exc.error_type}",
        "title": exc.title,
        "status": exc.status_code,
        "detail": exc.detail,
        "instance": str(request.url.path),
    }
    if exc.errors:
        body["errors"] = exc.errors
    body.update(exc.extra)
    return body


# ── FastAPI handlers ────────────────────────────────────────────────

async def _handle_app_exception(
    request: Request,
    exc: AppException,
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_build_problem_detail(exc, request),
        media_type="application/problem+json",
    )


async def _handle_validation_error(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    field_errors: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = err.get("loc", ())
        name = (
            ".".join(str(p) for p in loc[1:])
            if len(loc) > 1
            else str(loc[0]) if loc else "unknown"
        )
        field_errors.setdefault(name, []).append(err.get("msg", "Invalid value"))

    return JSONResponse(
        status_code=422,
        content={
            "type": f"{BASE_ERROR_URI}/validation-error",
            "title": "Validation Error",
            "status": 422,
            "detail": "Request validation failed.",
            "instance": str(request.url.path),
            "errors": field_errors,
        },
        media_type="application/problem+json",
    )


# ── Registration helper (called from main.py) ──────────────────────

def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""
    app.add_exception_handler(AppException, _handle_app_exception)          # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
