"""User accounts: login, profile, password flows and administration."""

import logging
from datetime import timedelta

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from app.core.permissions import get_role_permissions, outranks
from app.core.security import (
    generate_opaque_token,
    hash_password,
    hash_token,
    verify_password,
)
from app.core.timeutils import ensure_utc, utcnow
from app.models import User, UserPermission
from app.schemas.auth import (
    CurrentUser,
    ProfileResponse,
    ProfileUpdate,
    UserCreate,
    UserOut,
)
from app.services import sessions
from app.services.sessions import IssuedSession

logger = logging.getLogger(__name__)


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def effective_permissions(user: User) -> list[str]:
    """Role permissions plus explicit grants, sorted and de-duplicated."""
    keys = set(get_role_permissions(user.role))
    keys.update(p.key for p in user.permissions)
    return sorted(keys)


def to_profile(user: User) -> ProfileResponse:
    # UserOut first: the ORM "permissions" relationship holds grant rows, not keys
    base = UserOut.model_validate(user)
    return ProfileResponse(**base.model_dump(), permissions=effective_permissions(user))


def to_current_user(user: User, session_id: int) -> CurrentUser:
    return CurrentUser(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        role=user.role,
        session_id=session_id,
        grants=frozenset(p.key for p in user.permissions),
    )


def authenticate(
    db: Session,
    email: str,
    password: str,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> tuple[IssuedSession, User]:
    """
    Verify credentials and open a session.

    Unknown email and wrong password produce the same error so callers cannot
    discover which accounts exist.
    """
    user = get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("Login failed", extra={"email": email, "ip_address": ip_address})
        raise UnauthenticatedError("Invalid email or password.")
    if user.status != "active":
        logger.warning(
            "Login refused for non-active user",
            extra={"user_id": user.id, "status": user.status},
        )
        raise UnauthenticatedError("User account is not active.")

    issued = sessions.create_session(db, user, ip_address=ip_address, user_agent=user_agent)
    user.last_login_at = utcnow()
    db.commit()
    db.refresh(user)
    logger.info("Login succeeded", extra={"user_id": user.id, "ip_address": ip_address})
    return issued, user


def update_profile(db: Session, user: User, body: ProfileUpdate) -> User:
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise ValidationError("No fields to update.")
    if "preferences" in changes:
        merged = dict(user.preferences or {})
        merged.update(changes.pop("preferences"))
        user.preferences = merged
    for field, value in changes.items():
        setattr(user, field, value.strip() if isinstance(value, str) else value)
    db.commit()
    db.refresh(user)
    return user


def change_password(
    db: Session, user: User, current_password: str, new_password: str, keep_session_id: int
) -> None:
    """Replace the password and end every other session of the user."""
    if not verify_password(current_password, user.password_hash):
        raise ValidationError("Current password is incorrect.")
    if current_password == new_password:
        raise ValidationError("New password must differ from the current one.")
    user.password_hash = hash_password(new_password)
    db.commit()
    sessions.revoke_user_sessions(db, user.id, keep_session_id=keep_session_id)
    logger.info("Password changed", extra={"user_id": user.id})


def request_password_reset(db: Session, email: str) -> str | None:
    """
    Store a hashed reset token for an active user and return the plain token.

    Returns None for unknown or non-active accounts; callers respond the same
    way in both cases. Delivery of the token is outside this service.
    """
    user = get_user_by_email(db, email)
    if user is None or user.status != "active":
        return None
    token = generate_opaque_token()
    user.reset_password_token = hash_token(token)
    user.reset_password_expires = utcnow() + timedelta(
        minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES
    )
    db.commit()
    logger.info("Password reset requested", extra={"user_id": user.id})
    return token


def reset_password(db: Session, token: str, new_password: str) -> User:
    """Consume a reset token, set the new password and end all sessions."""
    user = (
        db.query(User)
        .filter(User.reset_password_token == hash_token(token))
        .first()
    )
    expires = ensure_utc(user.reset_password_expires) if user else None
    if user is None or expires is None or expires <= utcnow():
        raise ValidationError("Invalid or expired reset token.")
    user.password_hash = hash_password(new_password)
    user.reset_password_token = None
    user.reset_password_expires = None
    db.commit()
    sessions.revoke_user_sessions(db, user.id)
    logger.info("Password reset completed", extra={"user_id": user.id})
    return user


def list_users(db: Session):
    return db.query(User).order_by(User.id)


def create_user(db: Session, body: UserCreate, actor: CurrentUser | None = None) -> User:
    if get_user_by_email(db, body.email) is not None:
        raise ConflictError("Email already registered.", {"email": body.email})
    user = User(
        email=body.email,
        password_hash=hash_password(body.password),
        first_name=body.first_name.strip(),
        last_name=body.last_name.strip(),
        role=body.role,
        status="active",
        preferences={},
    )
    for key in sorted(set(body.permissions)):
        resource, _, action = key.partition(".")
        user.permissions.append(UserPermission(resource=resource, action=action))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(
        "User created",
        extra={"user_id": user.id, "role": user.role, "actor_id": actor.id if actor else None},
    )
    return user


def change_status(
    db: Session, actor: CurrentUser, user_id: int, status: str, reason: str | None = None
) -> User:
    """
    Set a user's status. Actors may only act on users strictly below their role.

    Suspending or deactivating a user ends all of their sessions.
    """
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found.", {"id": user_id})
    if user.id == actor.id:
        raise ForbiddenError("Cannot change your own status.")
    if not outranks(actor.role, user.role):
        raise ForbiddenError(
            "Insufficient role to manage this user.",
            {"user_role": actor.role, "target_role": user.role},
        )
    user.status = status
    db.commit()
    if status != "active":
        sessions.revoke_user_sessions(db, user.id)
    db.refresh(user)
    logger.info(
        "User status changed",
        extra={"user_id": user.id, "status": status, "actor_id": actor.id, "reason": reason},
    )
    return user


def ensure_default_admin(db: Session) -> User | None:
    """Create the default admin from settings when no user holds that email."""
    email = settings.DEFAULT_ADMIN_EMAIL
    if get_user_by_email(db, email) is not None:
        return None
    user = User(
        email=email,
        password_hash=hash_password(settings.DEFAULT_ADMIN_PASSWORD.get_secret_value()),
        first_name="Administrador",
        last_name="Sistema",
        role="admin",
        status="active",
        preferences={},
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Default admin created", extra={"user_id": user.id})
    return user
