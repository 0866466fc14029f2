"""Per-address request limits: a ceiling on every route, a stricter one on credential endpoints."""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from app.core.config import settings
from app.core.exceptions import error_body

logger = logging.getLogger(__name__)

RATE_LIMITED = "RATE_LIMITED"

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    enabled=settings.RATE_LIMIT_ENABLED,
)

# Applied to login and password-reset routes on top of the default ceiling.
auth_limit = limiter.limit(settings.RATE_LIMIT_AUTH)


def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    # Must stay synchronous: SlowAPIMiddleware does not await it.
    logger.warning(
        "Rate limit exceeded",
        extra={
            "path": request.url.path,
            "client": get_remote_address(request),
            "limit": exc.detail,
        },
    )
    return JSONResponse(
        status_code=429,
        content=jsonable_encoder(
            error_body(
                RATE_LIMITED,
                "Too many requests; try again later.",
                {"limit": exc.detail},
            )
        ),
    )


def install_rate_limits(app: FastAPI) -> None:
    """Attach the shared limiter, its 429 envelope and the default-limit middleware."""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)
    app.add_middleware(SlowAPIMiddleware)
