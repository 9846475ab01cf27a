"""
Interaction recording service.

Logging a contact attempt can move the lead along the funnel: when an
outcome status or follow-up date is supplied, the lead's status,
next_follow_up, last_follow_up and updated_at are changed as well. The
interaction row and the lead change are written in one transaction.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..core.auth import RequestContext
from ..core.transactions import transaction
from ..models.base import utcnow
from ..models.interaction import Interaction
from ..models.lead import Lead, LeadStatus
from ..schemas.interaction import InteractionCreate, InteractionUpdate


logger = logging.getLogger(__name__)


def apply_lead_outcome(
    lead: Lead,
    status_after: Optional[LeadStatus],
    follow_up_date: Optional[datetime],
    now: Optional[datetime] = None,
) -> bool:
    """
    Advance a lead after an interaction.

    Setting the same status or follow-up date twice leaves the lead in the
    same state, so re-applying an outcome is harmless.

    Returns:
        True if the lead was touched, False if there was nothing to apply
    """
    if status_after is None and follow_up_date is None:
        return False

    now = now or utcnow()
    if status_after is not None:
        lead.status = status_after
    if follow_up_date is not None:
        lead.next_follow_up = follow_up_date
    lead.last_follow_up = now
    lead.updated_at = now
    return True


def record_interaction(
    db: Session,
    ctx: RequestContext,
    lead: Lead,
    data: InteractionCreate,
) -> Interaction:
    """
    Persist a new interaction by the caller against a lead.

    Missing statusBefore/statusAfter are filled from the lead's status as
    it was before this interaction.
    """
    current_status = lead.status
    now = utcnow()

    interaction = Interaction(
        lead_id=lead.id,
        agent_id=ctx.user_id,
        type=data.type,
        remarks=data.remarks,
        status_before=data.status_before or current_status,
        status_after=data.status_after or current_status,
        duration=data.duration,
        follow_up_date=data.follow_up_date,
        date=now,
    )

    with transaction(db):
        db.add(interaction)
        moved = apply_lead_outcome(lead, data.status_after, data.follow_up_date, now=now)

    db.refresh(interaction)
    logger.info(
        f"Interaction {interaction.id} ({interaction.type.value}) logged on lead {lead.id} "
        f"by {ctx.user_id}; lead updated={moved}"
    )
    return interaction


def update_interaction(
    db: Session,
    interaction: Interaction,
    data: InteractionUpdate,
) -> Interaction:
    """
    Edit the mutable fields of an interaction.

    lead, agent and type are never changed. A new statusAfter or
    followUpDate is carried over to the lead.
    """
    with transaction(db):
        if data.remarks is not None:
            interaction.remarks = data.remarks
        if data.status_after is not None:
            interaction.status_after = data.status_after
        if data.duration is not None:
            interaction.duration = data.duration
        if data.follow_up_date is not None:
            interaction.follow_up_date = data.follow_up_date

        lead = interaction.lead
        moved = False
        if lead is not None:
            moved = apply_lead_outcome(lead, data.status_after, data.follow_up_date)

    db.refresh(interaction)
    logger.info(f"Interaction {interaction.id} updated; lead updated={moved}")
    return interaction


def delete_interaction(db: Session, interaction: Interaction) -> None:
    """
    Remove an interaction from the history.

    Lead fields it changed earlier are left as they are.
    """
    interaction_id = interaction.id
    with transaction(db):
        db.delete(interaction)
    logger.info(f"Interaction {interaction_id} deleted")
