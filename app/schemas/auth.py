"""Request/response schemas for auth and user administration endpoints."""

import re
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from app.core.security import EMAIL_MAX_LEN, PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from app.schemas.common import UtcDateTime

RoleName = Literal["admin", "manager", "user", "viewer"]
UserStatus = Literal["active", "inactive", "suspended"]

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _validate_email(value: str) -> str:
    """Trim, lower-case and check the basic local@domain.tld shape."""
    normalized = value.strip().lower()
    if not _EMAIL_RE.match(normalized):
        raise ValueError("email must be a valid email address")
    return normalized


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: str = Field(..., min_length=3, max_length=EMAIL_MAX_LEN)
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _validate_email(v)


class UserOut(BaseModel):
    """User as returned by the API (never includes hashes)."""

    model_config = {"from_attributes": True}

    id: int
    email: str
    first_name: str
    last_name: str
    full_name: str
    role: RoleName
    status: UserStatus
    last_login_at: UtcDateTime | None = None
    preferences: dict[str, Any] = Field(default_factory=dict)
    created_at: UtcDateTime


class ProfileResponse(UserOut):
    """Profile of the current user including its effective permissions."""

    permissions: list[str] = Field(default_factory=list)


class LoginResponse(BaseModel):
    """Token pair returned after successful login or refresh."""

    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="Opaque refresh token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Access token lifetime in seconds")
    user: ProfileResponse


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile."""

    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    preferences: dict[str, Any] | None = None


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)
    new_password: str = Field(
        ..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN
    )


class ForgotPasswordRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=EMAIL_MAX_LEN)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _validate_email(v)


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(
        ..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN
    )


class UserCreate(BaseModel):
    """Payload for creating a user (admin only)."""

    email: str = Field(..., min_length=3, max_length=EMAIL_MAX_LEN)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    role: RoleName = "user"
    permissions: list[str] = Field(
        default_factory=list,
        description="Explicit resource.action grants on top of the role",
    )

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _validate_email(v)

    @field_validator("permissions")
    @classmethod
    def validate_permissions(cls, v: list[str]) -> list[str]:
        for key in v:
            resource, _, action = key.partition(".")
            if not resource or not action:
                raise ValueError(f"permission must look like resource.action, got {key!r}")
        return v


class UserStatusUpdate(BaseModel):
    status: UserStatus
    reason: str | None = Field(default=None, max_length=500)


class CurrentUser(BaseModel):
    """Authenticated identity attached to the request by the authentication gate."""

    model_config = {"from_attributes": True}

    id: int
    email: str
    first_name: str
    last_name: str
    role: str
    session_id: int
    grants: frozenset[str] = Field(default_factory=frozenset)
