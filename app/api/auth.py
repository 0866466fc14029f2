"""Login, logout, token refresh, profile, password flows and user administration."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from app.api.deps import CurrentUserDep, DbDep, PageDep
from app.api.gates import require_permission
from app.core.exceptions import NotFoundError
from app.core.rate_limit import auth_limit
from app.models import User
from app.schemas.auth import (
    ChangePasswordRequest,
    CurrentUser,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    ProfileResponse,
    ProfileUpdate,
    RefreshRequest,
    ResetPasswordRequest,
    UserCreate,
    UserOut,
    UserStatusUpdate,
)
from app.schemas.common import MessageResponse, Page
from app.services import sessions, users
from app.services.crud import paginate

logger = logging.getLogger(__name__)

router = APIRouter()


def _client_info(request: Request) -> tuple[str | None, str | None]:
    host = request.client.host if request.client else None
    return host, request.headers.get("user-agent")


def _load_user(db: Session, current_user: CurrentUser) -> User:
    user = db.get(User, current_user.id)
    if user is None:
        raise NotFoundError("User not found.")
    return user


@router.post("/login", response_model=LoginResponse)
@auth_limit
def login(body: LoginRequest, request: Request, db: DbDep) -> LoginResponse:
    """
    Authenticate with email and password; returns an access and a refresh token.
    Include the access token in the Authorization header as: Bearer <access_token>
    """
    ip_address, user_agent = _client_info(request)
    issued, user = users.authenticate(
        db, body.email, body.password, ip_address=ip_address, user_agent=user_agent
    )
    return LoginResponse(
        access_token=issued.access_token,
        refresh_token=issued.refresh_token,
        token_type="bearer",
        expires_in=issued.expires_in,
        user=users.to_profile(user),
    )


@router.post("/logout", response_model=MessageResponse)
def logout(db: DbDep, current_user: CurrentUserDep) -> MessageResponse:
    """Revoke the session behind the presented token."""
    sessions.revoke_session(db, current_user.session_id)
    logger.info(
        "Logout", extra={"user_id": current_user.id, "session_id": current_user.session_id}
    )
    return MessageResponse(message="Logged out.")


@router.post("/refresh", response_model=LoginResponse)
def refresh(body: RefreshRequest, db: DbDep) -> LoginResponse:
    """Exchange a refresh token for a new token pair; the old pair stops working."""
    issued, user = sessions.rotate_session(db, body.refresh_token)
    return LoginResponse(
        access_token=issued.access_token,
        refresh_token=issued.refresh_token,
        token_type="bearer",
        expires_in=issued.expires_in,
        user=users.to_profile(user),
    )


@router.get("/profile", response_model=ProfileResponse)
def get_profile(db: DbDep, current_user: CurrentUserDep) -> ProfileResponse:
    return users.to_profile(_load_user(db, current_user))


@router.put("/profile", response_model=ProfileResponse)
def update_profile(
    body: ProfileUpdate, db: DbDep, current_user: CurrentUserDep
) -> ProfileResponse:
    """Update first/last name and merge preferences. Empty payloads return 422."""
    user = users.update_profile(db, _load_user(db, current_user), body)
    return users.to_profile(user)


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    body: ChangePasswordRequest, db: DbDep, current_user: CurrentUserDep
) -> MessageResponse:
    """Change the password; every other session of the user is ended."""
    users.change_password(
        db,
        _load_user(db, current_user),
        body.current_password,
        body.new_password,
        keep_session_id=current_user.session_id,
    )
    return MessageResponse(message="Password changed.")


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
@auth_limit
def forgot_password(
    body: ForgotPasswordRequest, request: Request, db: DbDep
) -> MessageResponse:
    """Always 202, whether or not the email belongs to an account."""
    users.request_password_reset(db, body.email)
    return MessageResponse(
        message="If the email is registered, reset instructions will be sent."
    )


@router.post("/reset-password", response_model=MessageResponse)
@auth_limit
def reset_password(
    body: ResetPasswordRequest, request: Request, db: DbDep
) -> MessageResponse:
    users.reset_password(db, body.token, body.new_password)
    return MessageResponse(message="Password reset. Please log in again.")


@router.get("/users", response_model=Page[UserOut])
def list_users(
    db: DbDep,
    page: PageDep,
    _reader: Annotated[CurrentUser, Depends(require_permission("users", "read"))],
) -> Page[UserOut]:
    """List users (users.read)."""
    return paginate(users.list_users(db), page, UserOut)


@router.post("/users", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(
    body: UserCreate,
    db: DbDep,
    creator: Annotated[CurrentUser, Depends(require_permission("users", "create"))],
) -> UserOut:
    """Create a user (users.create). Duplicate email returns 409."""
    return UserOut.model_validate(users.create_user(db, body, actor=creator))


@router.put("/users/{user_id}/status", response_model=UserOut)
def change_user_status(
    user_id: int,
    body: UserStatusUpdate,
    db: DbDep,
    manager: Annotated[CurrentUser, Depends(require_permission("users", "update"))],
) -> UserOut:
    """Activate, deactivate or suspend a user ranked below the caller."""
    user = users.change_status(db, manager, user_id, body.status, reason=body.reason)
    return UserOut.model_validate(user)
