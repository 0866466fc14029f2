"""Pydantic request/response schemas."""

from app.schemas.auth import CurrentUser, LoginRequest, LoginResponse, ProfileResponse, UserOut
from app.schemas.common import MessageResponse, Page, PageParams, Pagination, UtcDateTime
from app.schemas.health import HealthResponse

__all__ = [
    "CurrentUser",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "Page",
    "PageParams",
    "Pagination",
    "ProfileResponse",
    "UserOut",
    "UtcDateTime",
]
