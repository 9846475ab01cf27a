"""
User management endpoints.

Bootstrap and self-registration are public; everything else requires a
session. Static path routes (/agents, /lead-users, /register-*) MUST be
defined BEFORE the dynamic /{user_id} routes.
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..core.database import get_db
from ..core.security import hash_password, verify_password, issue_token_for
from ..core.auth import RequestContext, get_request_context, require_admin
from ..core.errors import forbidden, not_found, parse_uuid, validation_failed
from ..core.transactions import transaction
from ..models.interaction import Interaction
from ..models.lead import Lead
from ..models.user import User, UserRole
from ..schemas.common import MessageResponse
from ..schemas.user import (
    FirstAdminRequest,
    LeadUserRegisterRequest,
    PasswordChangeRequest,
    TokenResponse,
    UserCreate,
    UserListResponse,
    UserResponse,
    UserUpdate,
)
from .auth import create_account, email_taken, normalize_email


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/users", tags=["User Management"])


def _load_user(db: Session, user_id: str) -> User:
    user = db.get(User, parse_uuid(user_id, "User"))
    if not user:
        raise not_found("User")
    return user


def _require_self_or_admin(ctx: RequestContext, user: User) -> None:
    if not ctx.is_admin and ctx.user_id != user.id:
        raise forbidden("Not authorized")


# =============================================================================
# Public registration
# =============================================================================


@router.post(
    "/register-first-admin",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create the first admin",
)
async def register_first_admin(body: FirstAdminRequest, db: Session = Depends(get_db)) -> TokenResponse:
    """
    Bootstrap the initial admin account.

    Only succeeds while no admin exists; afterwards admins are created by
    other admins.
    """
    if db.query(User.id).filter(User.role == UserRole.ADMIN).first() is not None:
        logger.warning(f"Rejected first-admin registration for {body.email}: admin already exists")
        raise validation_failed("role", "Admin already exists")

    user = create_account(
        db, name=body.name, email=body.email, password=body.password, role=UserRole.ADMIN
    )
    logger.info(f"First admin created: {user.email}")
    return TokenResponse(token=issue_token_for(user), user=UserResponse.model_validate(user))


@router.post(
    "/register-lead",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Self-register a lead-role user",
)
async def register_lead_user(body: LeadUserRegisterRequest, db: Session = Depends(get_db)) -> TokenResponse:
    user = create_account(
        db,
        name=body.name,
        email=body.email,
        password=body.password,
        role=UserRole.LEAD,
        phone=body.phone,
    )
    return TokenResponse(token=issue_token_for(user), user=UserResponse.model_validate(user))


# =============================================================================
# Staff directories
# =============================================================================


@router.get(
    "/agents",
    response_model=list[UserResponse],
    summary="List agents",
    dependencies=[Depends(get_request_context)],
)
async def list_agents(db: Session = Depends(get_db)):
    agents = db.query(User).filter(User.role == UserRole.AGENT).order_by(User.name).all()
    return [UserResponse.model_validate(u) for u in agents]


@router.get(
    "/lead-users",
    response_model=list[UserResponse],
    summary="List lead-role users",
    dependencies=[Depends(require_admin)],
)
async def list_lead_users(db: Session = Depends(get_db)):
    users = db.query(User).filter(User.role == UserRole.LEAD).order_by(User.name).all()
    return [UserResponse.model_validate(u) for u in users]


# =============================================================================
# Admin CRUD
# =============================================================================


@router.get("", response_model=UserListResponse, dependencies=[Depends(require_admin)])
async def list_users(
    db: Session = Depends(get_db),
    role: UserRole | None = None,
):
    """List all users, newest first, optionally filtered by role."""
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)

    users = query.order_by(User.created_at.desc()).all()
    return UserListResponse(items=[UserResponse.model_validate(u) for u in users], total=len(users))


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_user(body: UserCreate, db: Session = Depends(get_db)):
    """Create a user of any role, including further admins."""
    user = create_account(
        db,
        name=body.name,
        email=body.email,
        password=body.password,
        role=body.role,
        phone=body.phone,
        department=body.department,
    )
    return UserResponse.model_validate(user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    user = _load_user(db, user_id)
    _require_self_or_admin(ctx, user)
    return UserResponse.model_validate(user)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    body: UserUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Edit profile fields. The role cannot be changed here."""
    user = _load_user(db, user_id)
    _require_self_or_admin(ctx, user)

    if body.email is not None and normalize_email(body.email) != user.email:
        if email_taken(db, body.email):
            raise validation_failed("email", "Email already in use")
        user.email = normalize_email(body.email)
    if body.name is not None:
        user.name = body.name
    if body.phone is not None:
        user.phone = body.phone
    if body.department is not None:
        user.department = body.department

    db.commit()
    db.refresh(user)
    logger.info(f"User {user.id} updated by {ctx.user_id}")
    return UserResponse.model_validate(user)


@router.put("/{user_id}/password", response_model=MessageResponse)
async def change_password(
    user_id: str,
    body: PasswordChangeRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """
    Change a password.

    Users changing their own password must supply the current one; an
    admin resetting someone else's password does not.
    """
    user = _load_user(db, user_id)
    _require_self_or_admin(ctx, user)

    if ctx.user_id == user.id:
        if not body.current_password or not verify_password(body.current_password, user.password_hash):
            raise validation_failed("currentPassword", "Current password is incorrect")

    user.password_hash = hash_password(body.new_password)
    db.commit()
    logger.info(f"Password changed for user {user.id} by {ctx.user_id}")
    return MessageResponse(msg="Password updated")


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    ctx: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Remove a user.

    Their leads become unassigned and their interactions stay in the
    history without an agent.
    """
    user = _load_user(db, user_id)
    if user.id == ctx.user_id:
        raise validation_failed("id", "You cannot delete your own account")

    with transaction(db):
        released = (
            db.query(Lead)
            .filter(Lead.assigned_to == user.id)
            .update({Lead.assigned_to: None}, synchronize_session=False)
        )
        db.query(Interaction).filter(Interaction.agent_id == user.id).update(
            {Interaction.agent_id: None}, synchronize_session=False
        )
        db.delete(user)

    logger.info(f"User {user.id} deleted by {ctx.user_id}; {released} leads unassigned")
    return MessageResponse(msg="User removed")
