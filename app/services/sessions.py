"""Session store: issue, resolve, rotate, revoke and purge bearer-token sessions."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

import jwt
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import UnauthenticatedError
from app.core.security import (
    create_access_token,
    decode_access_token,
    generate_opaque_token,
    hash_token,
)
from app.core.timeutils import ensure_utc, utcnow
from app.models import User, UserSession

logger = logging.getLogger(__name__)


@dataclass
class IssuedSession:
    """Plain tokens handed to the client once; only their hashes are stored."""

    session: UserSession
    access_token: str
    refresh_token: str
    expires_in: int


def create_session(
    db: Session,
    user: User,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> IssuedSession:
    """Issue a new access/refresh token pair for user and persist its session row."""
    access_token, expires_at = create_access_token(user.id, user.email, user.role)
    refresh_token = generate_opaque_token()
    now = utcnow()
    row = UserSession(
        user_id=user.id,
        token_hash=hash_token(access_token),
        refresh_token_hash=hash_token(refresh_token),
        expires_at=expires_at,
        refresh_expires_at=now + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return IssuedSession(
        session=row,
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=int((expires_at - now).total_seconds()),
    )


def resolve_session(db: Session, token: str) -> tuple[UserSession, User]:
    """
    Map a bearer token to its live session and active user.

    Raises UnauthenticatedError when the token is invalid or expired, when no
    session row holds its hash (revoked), when the row has expired, or when
    the user is not active.
    """
    try:
        payload = decode_access_token(token)
    except jwt.ExpiredSignatureError:
        raise UnauthenticatedError("Token expired.")
    except jwt.PyJWTError:
        raise UnauthenticatedError("Invalid token.")

    row = (
        db.query(UserSession)
        .filter(UserSession.token_hash == hash_token(token))
        .first()
    )
    if row is None:
        raise UnauthenticatedError("Session not found or revoked.")
    if ensure_utc(row.expires_at) <= utcnow():
        raise UnauthenticatedError("Session expired.")

    user = db.get(User, row.user_id)
    if user is None or str(user.id) != str(payload.get("sub")):
        raise UnauthenticatedError("Invalid token payload.")
    if user.status != "active":
        raise UnauthenticatedError("User account is not active.")
    return row, user


def revoke_session(db: Session, session_id: int) -> bool:
    """Delete one session row. Returns False when it was already gone."""
    deleted = (
        db.query(UserSession)
        .filter(UserSession.id == session_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted > 0


def revoke_user_sessions(db: Session, user_id: int, keep_session_id: int | None = None) -> int:
    """Delete every session of a user, optionally keeping the current one."""
    query = db.query(UserSession).filter(UserSession.user_id == user_id)
    if keep_session_id is not None:
        query = query.filter(UserSession.id != keep_session_id)
    deleted = query.delete(synchronize_session=False)
    db.commit()
    return deleted


def rotate_session(db: Session, refresh_token: str) -> tuple[IssuedSession, User]:
    """
    Exchange a refresh token for a new token pair.

    The old session row is removed so the previous access and refresh tokens
    stop working immediately.
    """
    row = (
        db.query(UserSession)
        .filter(UserSession.refresh_token_hash == hash_token(refresh_token))
        .first()
    )
    if row is None:
        raise UnauthenticatedError("Invalid refresh token.")
    refresh_expires = ensure_utc(row.refresh_expires_at)
    if refresh_expires is not None and refresh_expires <= utcnow():
        db.delete(row)
        db.commit()
        raise UnauthenticatedError("Refresh token expired.")

    user = db.get(User, row.user_id)
    if user is None or user.status != "active":
        raise UnauthenticatedError("User account is not active.")

    ip_address, user_agent = row.ip_address, row.user_agent
    db.delete(row)
    db.flush()
    issued = create_session(db, user, ip_address=ip_address, user_agent=user_agent)
    return issued, user


def expired_sessions(db: Session, cutoff: datetime) -> list[UserSession]:
    """Sessions that can no longer be used or refreshed at cutoff."""
    rows = db.query(UserSession).filter(UserSession.expires_at <= cutoff).all()
    return [
        row
        for row in rows
        if row.refresh_expires_at is None or ensure_utc(row.refresh_expires_at) <= cutoff
    ]


def purge_expired(db: Session, now: datetime | None = None) -> int:
    """Delete sessions whose access token and refresh token have both expired."""
    cutoff = now or utcnow()
    rows = expired_sessions(db, cutoff)
    for row in rows:
        db.delete(row)
    db.commit()
    deleted = len(rows)
    if deleted > 0:
        logger.info(
            "Session purge: cutoff=%s, sessions_deleted=%s",
            cutoff.isoformat(),
            deleted,
        )
    return deleted
