"""
Authentication and authorisation dependencies for FastAPI routes.

Provides:
- get_request_context: verifies the session token and returns a read-only
  RequestContext (user id, role and the User row) for the current request
- get_current_user: the same, returning only the User row
- require_role(*roles): factory that returns a dependency enforcing role membership
- require_admin / require_staff: the two role checks the routers use
"""

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db
from .security import read_token_subject
from ..models.user import User, UserRole


logger = logging.getLogger(__name__)

NO_TOKEN_MESSAGE = "No token, authorization denied"
INVALID_TOKEN_MESSAGE = "Token is not valid"
ADMIN_REQUIRED_MESSAGE = "Access denied. Admin privileges required."

token_header = APIKeyHeader(name=settings.auth_header_name, auto_error=False)
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class RequestContext:
    """Identity of the caller for the duration of one request."""
    user_id: UUID
    role: UserRole
    user: User

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_request_context(
    header_token: Optional[str] = Depends(token_header),
    bearer: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> RequestContext:
    """
    Resolve the session token to the calling user.

    The token is read from the x-auth-token header, falling back to an
    Authorization: Bearer header. Raises 401 if the token is missing,
    invalid, expired, or names a user that no longer exists.
    """
    token = header_token or (bearer.credentials if bearer else None)
    if not token:
        raise _unauthorized(NO_TOKEN_MESSAGE)

    user_id = read_token_subject(token)
    if user_id is None:
        raise _unauthorized(INVALID_TOKEN_MESSAGE)

    user = db.get(User, user_id)
    if not user:
        logger.info(f"Token presented for missing user {user_id}")
        raise _unauthorized(INVALID_TOKEN_MESSAGE)

    # Role is read from the row, not the token, so a stale claim cannot widen access
    return RequestContext(user_id=user.id, role=user.role, user=user)


async def get_current_user(ctx: RequestContext = Depends(get_request_context)) -> User:
    """Return the authenticated User row."""
    return ctx.user


def require_role(*allowed_roles: str, detail: str = "Access denied"):
    """
    Factory: returns a FastAPI dependency that checks the current user's role.

    Usage:
        @router.delete("/{id}", dependencies=[Depends(require_role("admin"))])
    """
    async def _check(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
        if ctx.role.value not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=detail,
            )
        return ctx

    return _check


require_admin = require_role("admin", detail=ADMIN_REQUIRED_MESSAGE)
require_staff = require_role("agent", "lead")
