"""
Authentication endpoints: login, current user, public staff registration.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from ..core.database import get_db
from ..core.security import hash_password, verify_password, issue_token_for
from ..core.auth import get_current_user
from ..core.errors import validation_failed
from ..models.user import User, UserRole
from ..schemas.user import LoginRequest, RegisterRequest, TokenResponse, UserResponse


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/auth", tags=["Authentication"])

INVALID_CREDENTIALS_MESSAGE = "Invalid credentials"


def normalize_email(email: str) -> str:
    return email.strip().lower()


def email_taken(db: Session, email: str) -> bool:
    return db.query(User.id).filter(User.email == normalize_email(email)).first() is not None


def create_account(db: Session, *, name: str, email: str, password: str, role: UserRole,
                   phone=None, department=None) -> User:
    """
    Insert a new user after the uniqueness check.

    Raises:
        HTTPException 400: if the email is already registered
    """
    if email_taken(db, email):
        raise validation_failed("email", "User already exists")

    user = User(
        name=name,
        email=normalize_email(email),
        password_hash=hash_password(password),
        role=role,
        phone=phone,
        department=department,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"User registered: {user.email} role={user.role.value}")
    return user


# =============================================================================
# Login
# =============================================================================


@router.post("", response_model=TokenResponse, summary="Log in")
async def login(credentials: LoginRequest, request: Request, db: Session = Depends(get_db)) -> TokenResponse:
    """
    Authenticate with email + password and return a session token.

    The same message is returned whether the email or the password was wrong.
    """
    user = db.query(User).filter(User.email == normalize_email(credentials.email)).first()

    if not user or not verify_password(credentials.password, user.password_hash):
        logger.warning(
            f"Failed login attempt for email={credentials.email} "
            f"ip={request.client.host if request.client else 'unknown'}"
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_CREDENTIALS_MESSAGE,
            headers={"WWW-Authenticate": "Bearer"},
        )

    return TokenResponse(token=issue_token_for(user), user=UserResponse.model_validate(user))


@router.get("", response_model=UserResponse, summary="Current user")
async def me(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(user)


# =============================================================================
# Registration
# =============================================================================


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a staff account",
)
async def register(body: RegisterRequest, db: Session = Depends(get_db)) -> TokenResponse:
    """
    Public registration for agent and lead staff.

    Admin accounts are created only through the first-admin bootstrap or by
    another admin.
    """
    user = create_account(
        db,
        name=body.name,
        email=body.email,
        password=body.password,
        role=UserRole(body.role),
        phone=body.phone,
        department=body.department,
    )
    return TokenResponse(token=issue_token_for(user), user=UserResponse.model_validate(user))
