"""Password hashing, JWT access tokens and opaque token helpers."""

import hashlib
import secrets
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from app.core.config import settings

PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128
EMAIL_MAX_LEN = 255


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(
        pw_bytes, bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    ).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def create_access_token(sub: str | int, email: str, role: str) -> tuple[str, datetime]:
    """
    Create a JWT access token with sub (user id), email, role, jti and exp.

    Returns (token, expires_at). The jti makes every issued token distinct,
    so two logins within the same second still map to different sessions.
    """
    now = datetime.now(UTC)
    expire = now + timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
    payload: dict[str, Any] = {
        "sub": str(sub),
        "email": email,
        "role": role,
        "jti": uuid.uuid4().hex,
        "exp": expire,
        "iat": now,
    }
    secret = settings.JWT_SECRET.get_secret_value()
    token = jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM)
    return token, expire


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and validate JWT; return payload (sub, email, role, jti, exp, iat).
    Raises jwt.PyJWTError on invalid or expired token.
    """
    secret = settings.JWT_SECRET.get_secret_value()
    return jwt.decode(
        token,
        secret,
        algorithms=[settings.JWT_ALGORITHM],
    )


def generate_opaque_token() -> str:
    """Random 128-hex-char token for refresh and password-reset flows."""
    return secrets.token_hex(64)


def hash_token(token: str) -> str:
    """sha256 hex digest; only token hashes are persisted."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
