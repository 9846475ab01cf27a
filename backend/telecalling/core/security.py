"""
Passwords and session tokens for CRM users.

Passwords are stored as bcrypt hashes. A session token is an HS256 JWT
whose ``sub`` is the user id and whose ``role`` claim is informational
only: the role that gates a request is always re-read from the users
table. Tokens carry ``type: "session"`` so that a JWT signed with the same
secret for any other purpose is not accepted as a login.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from uuid import UUID

import bcrypt as _bcrypt
from jose import JWTError, jwt

from .config import settings


logger = logging.getLogger(__name__)

TOKEN_ALGORITHM = "HS256"
TOKEN_TYPE = "session"


# =============================================================================
# Passwords
# =============================================================================

def hash_password(password: str) -> str:
    """Hash a plain-text password for the users table."""
    salt = _bcrypt.gensalt()
    return _bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a login attempt against the stored hash."""
    try:
        return _bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


# =============================================================================
# Session tokens
# =============================================================================

def sign_session_token(claims: dict[str, Any], expires_in: Optional[timedelta] = None) -> str:
    """
    Sign ``claims`` as a session token.

    ``exp`` and ``type`` are always set here, so callers cannot mint a
    token that outlives the configured lifetime by passing their own.
    """
    lifetime = expires_in if expires_in is not None else timedelta(
        minutes=settings.access_token_expire_minutes
    )
    payload = {**claims, "exp": datetime.now(timezone.utc) + lifetime, "type": TOKEN_TYPE}
    return jwt.encode(payload, settings.secret_key, algorithm=TOKEN_ALGORITHM)


def issue_token_for(user, expires_in: Optional[timedelta] = None) -> str:
    """Build the session token returned by login, registration and user creation."""
    return sign_session_token({"sub": str(user.id), "role": user.role.value}, expires_in)


def read_token_subject(token: str) -> Optional[UUID]:
    """
    Return the user id a session token was issued for.

    None when the signature or expiry check fails, when the token is not a
    session token, or when ``sub`` is not a UUID. Whether that user still
    exists is the caller's concern.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[TOKEN_ALGORITHM])
    except JWTError as e:
        logger.debug(f"Rejected token: {e}")
        return None

    if payload.get("type") != TOKEN_TYPE:
        return None

    try:
        return UUID(str(payload.get("sub")))
    except ValueError:
        return None
