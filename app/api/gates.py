"""Authentication and permission gates applied to every business route."""

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.exceptions import ForbiddenError, UnauthenticatedError
from app.core.permissions import Permission, has_permission
from app.schemas.auth import CurrentUser
from app.services import sessions
from app.services.users import to_current_user

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> CurrentUser:
    """
    Dependency: resolve the Bearer token to a live session and active user.

    Raises UnauthenticatedError (401) if the header is missing or malformed,
    the token is invalid or expired, or its session was revoked. The identity
    is also stored on request.state.user.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError("Access token required.")
    row, user = sessions.resolve_session(db, credentials.credentials)
    current = to_current_user(user, row.id)
    request.state.user = current
    return current


def require_permission(resource: str, action: str) -> Callable[..., CurrentUser]:
    """
    Build a dependency that allows the request only if the current user holds
    resource.action (via role or explicit grant). Raises ForbiddenError (403).
    """
    required = Permission(resource, action)

    def permission_gate(
        request: Request,
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        if not has_permission(current_user, required.resource, required.action):
            logger.warning(
                "Access denied",
                extra={
                    "user_id": current_user.id,
                    "user_role": current_user.role,
                    "permission": required.key,
                    "path": request.url.path,
                    "method": request.method,
                },
            )
            raise ForbiddenError(
                "Insufficient permissions.",
                {"required": required.key, "user_role": current_user.role},
            )
        return current_user

    permission_gate.required = required  # type: ignore[attr-defined]
    return permission_gate
