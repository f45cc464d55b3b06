"""Custom exceptions and RFC 7807 Problem Detail error handlers."""

from __future__ import annotations

from typing import Any, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

BASE_ERROR_URI = "https://hr-console.local/errors"


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


class ForbiddenException(AppException):
    """403 — insufficient permissions."""

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
    """422 — business-logic validation failures."""

    def __init__(
        self,
        errors: dict[str, list[str]],
        *,
        error_type: str = "validation-error",
        detail: str = "One or more fields failed validation.",
    ) -> None:
        super().__init__(
            status_code=422,
            error_type=error_type,
            title="Validation Error",
            detail=detail,
            errors=errors,
        )


class MissingInputException(ValidationException):
    """422 — a required free-text input was blank. Raised before any remote call."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(
            {field: ["This field is required and cannot be blank."]},
            error_type="missing-input",
            detail=f"'{field}' is required.",
        )


class LeaveStateException(AppException):
    """409 — the leave request's current status does not allow the operation."""

    def __init__(self, leave_id: Any, status: str, action: str) -> None:
        self.leave_id = leave_id
        self.status = status
        self.action = action
        super().__init__(
            status_code=409,
            error_type="invalid-state",
            title="Invalid Leave State",
            detail=f"Cannot {action} leave request '{leave_id}' while it is {status}.",
            errors={"status": [f"Leave request is already {status}."]},
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
    return body


def _remote_detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, dict):
        message = payload.get("message") or payload.get("detail") or payload.get("error")
        if message:
            return str(message)
    return response.reason_phrase


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


async def _handle_remote_status_error(
    request: Request,
    exc: httpx.HTTPStatusError,
) -> JSONResponse:
    status = exc.response.status_code
    return JSONResponse(
        status_code=status,
        content={
            "type": f"{BASE_ERROR_URI}/remote-error",
            "title": "Remote Operation Failed",
            "status": status,
            "detail": _remote_detail(exc.response),
            "instance": str(request.url.path),
        },
        media_type="application/problem+json",
    )


async def _handle_remote_transport_error(
    request: Request,
    exc: httpx.TransportError,
) -> JSONResponse:
    return JSONResponse(
        status_code=502,
        content={
            "type": f"{BASE_ERROR_URI}/remote-unavailable",
            "title": "Remote Service Unavailable",
            "status": 502,
            "detail": "The HR backend could not be reached.",
            "instance": str(request.url.path),
        },
        media_type="application/problem+json",
    )


# ── Registration helper (called from main.py) ──────────────────────

def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""
    app.add_exception_handler(AppException, _handle_app_exception)          # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(httpx.HTTPStatusError, _handle_remote_status_error)  # type: ignore[arg-type]
    app.add_exception_handler(httpx.TransportError, _handle_remote_transport_error)  # type: ignore[arg-type]
