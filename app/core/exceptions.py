"""Error taxonomy shared by gates, services and the HTTP layer."""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base for errors that map onto an HTTP status and a stable error code."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def headers(self) -> dict[str, str] | None:
        return None


class UnauthenticatedError(AppError):
    """Missing, malformed, expired or revoked credential."""

    status_code = 401
    code = "UNAUTHENTICATED"

    def headers(self) -> dict[str, str] | None:
        return {"WWW-Authenticate": "Bearer"}


class ForbiddenError(AppError):
    """Authenticated identity lacks the required permission."""

    status_code = 403
    code = "FORBIDDEN"


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"


class ValidationError(AppError):
    status_code = 422
    code = "VALIDATION_ERROR"


class ConflictError(AppError):
    """Operation not allowed in the entity's current state (or duplicate key)."""

    status_code = 409
    code = "CONFLICT"


class UpstreamError(AppError):
    """A dependency the service talks to failed or was unreachable."""

    status_code = 502
    code = "UPSTREAM_ERROR"


def error_body(code: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    """JSON envelope used for every error response."""
    body: dict[str, Any] = {"success": False, "error": code, "detail": message}
    if details:
        body.update(details)
    return body


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "Request failed: %s %s -> %s",
            request.method,
            request.url.path,
            exc.message,
            extra={"error_code": exc.code},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(error_body(exc.code, exc.message, exc.details)),
        headers=exc.headers(),
    )


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=jsonable_encoder(
            error_body(ValidationError.code, "Invalid request data.", {"errors": errors})
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Render AppError subclasses and request validation failures in one envelope."""
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
