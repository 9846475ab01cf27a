"""
Lead access and assignment rules.

An actor may view or edit a lead when they are an admin or the lead's
current assignee. Assignment targets must be staff users: single
assignment accepts role agent, bulk assignment accepts role lead, and an
admin can never hold a lead.
"""

import logging
from typing import Iterable, Optional, Sequence
from uuid import UUID

from sqlalchemy.orm import Query, Session

from ..core.auth import RequestContext
from ..models.base import utcnow
from ..models.lead import Lead
from ..models.user import User, UserRole, STAFF_ROLES


logger = logging.getLogger(__name__)


# =============================================================================
# Access
# =============================================================================

def can_access_lead(ctx: RequestContext, lead: Lead) -> bool:
    """True when the caller may view, edit or log interactions on the lead."""
    if ctx.is_admin:
        return True
    return lead.assigned_to is not None and lead.assigned_to == ctx.user_id


def scoped_leads(db: Session, ctx: RequestContext) -> Query:
    """
    Base lead query for the caller.

    Admins see every lead; staff see only the leads assigned to them.
    """
    query = db.query(Lead)
    if not ctx.is_admin:
        query = query.filter(Lead.assigned_to == ctx.user_id)
    return query


def unassigned_leads(db: Session) -> Query:
    # NULL covers both "never assigned" and "explicitly cleared"
    return db.query(Lead).filter(Lead.assigned_to.is_(None))


# =============================================================================
# Assignment targets
# =============================================================================

def find_assignee(
    db: Session,
    user_id: Optional[UUID],
    allowed_roles: Sequence[UserRole] = STAFF_ROLES,
) -> Optional[User]:
    """
    Load the user a lead is being assigned to.

    Returns None when the id is unknown or the user's role is not in
    allowed_roles.
    """
    if user_id is None:
        return None
    user = db.get(User, user_id)
    if user is None or user.role not in allowed_roles:
        return None
    return user


def assign_lead(lead: Lead, assignee: Optional[User]) -> None:
    """Point a lead at a staff user, or clear the assignment when assignee is None."""
    if assignee is not None and not assignee.is_staff:
        raise ValueError("Leads can only be assigned to agent or lead users")
    lead.assigned_to = assignee.id if assignee else None
    lead.assignee = assignee
    lead.touch()


def bulk_assign(db: Session, lead_user: User, lead_ids: Iterable[UUID]) -> int:
    """
    Assign every listed lead to a lead-role user in one UPDATE.

    Unknown ids are skipped without error; the return value is the number
    of rows actually updated. The caller commits.
    """
    if lead_user.role != UserRole.LEAD:
        raise ValueError("Bulk assignment target must have role lead")

    ids = list(dict.fromkeys(lead_ids))
    if not ids:
        return 0

    updated = (
        db.query(Lead)
        .filter(Lead.id.in_(ids))
        .update({Lead.assigned_to: lead_user.id, Lead.updated_at: utcnow()}, synchronize_session=False)
    )
    logger.info(
        f"Bulk assignment to user {lead_user.id}: {updated} of {len(ids)} requested leads updated"
    )
    return updated
