"""
Interaction log endpoints.

Staff log calls, SMS, WhatsApp messages and emails against the leads
assigned to them; logging an outcome moves the lead along the funnel.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..core.auth import RequestContext, get_request_context, require_admin
from ..core.database import get_db
from ..core.errors import forbidden, not_found, parse_uuid
from ..models.interaction import Interaction
from ..models.lead import Lead
from ..models.user import User
from ..schemas.common import MessageResponse
from ..schemas.interaction import (
    InteractionCreate,
    InteractionResponse,
    InteractionStats,
    InteractionUpdate,
    MyInteractionStats,
    OverallInteractionStats,
)
from ..services.analytics import AnalyticsService
from ..services.assignment import can_access_lead
from ..services.interactions import delete_interaction, record_interaction, update_interaction


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/interactions", tags=["Interactions"])

MY_RECENT_LIMIT = 5
OVERALL_RECENT_LIMIT = 10


def _respond(interactions: List[Interaction]) -> List[InteractionResponse]:
    return [InteractionResponse.from_interaction(i) for i in interactions]


def _load_interaction(db: Session, interaction_id: str) -> Interaction:
    interaction = db.get(Interaction, parse_uuid(interaction_id, "Interaction"))
    if not interaction:
        raise not_found("Interaction")
    return interaction


def _can_view(ctx: RequestContext, interaction: Interaction) -> bool:
    # Only the author or an admin; assignees read history through /lead/{lead_id}
    return ctx.is_admin or interaction.agent_id == ctx.user_id


# =============================================================================
# Create
# =============================================================================

@router.post("", response_model=InteractionResponse, status_code=status.HTTP_201_CREATED,
             summary="Log an interaction")
async def create_interaction(
    body: InteractionCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> InteractionResponse:
    """
    Record a contact attempt against a lead.

    statusAfter and followUpDate, when given, are applied to the lead in
    the same transaction.
    """
    lead = db.get(Lead, body.lead)
    if not lead:
        raise not_found("Lead")
    if not can_access_lead(ctx, lead):
        raise forbidden("Not authorized to add interaction to this lead")

    interaction = record_interaction(db, ctx, lead, body)
    return InteractionResponse.from_interaction(interaction)


# =============================================================================
# Lists & statistics
# =============================================================================

@router.get("", response_model=List[InteractionResponse], dependencies=[Depends(require_admin)],
            summary="All interactions")
async def list_interactions(db: Session = Depends(get_db)):
    return _respond(db.query(Interaction).order_by(Interaction.date.desc()).all())


@router.get("/me", response_model=List[InteractionResponse], summary="Interactions logged by the caller")
async def my_interactions(
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    interactions = (
        db.query(Interaction)
        .filter(Interaction.agent_id == ctx.user_id)
        .order_by(Interaction.date.desc())
        .all()
    )
    return _respond(interactions)


@router.get("/lead/{lead_id}", response_model=List[InteractionResponse], summary="History of one lead")
async def lead_interactions(
    lead_id: str,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    lead = db.get(Lead, parse_uuid(lead_id, "Lead"))
    if not lead:
        raise not_found("Lead")
    if not can_access_lead(ctx, lead):
        raise forbidden("Not authorized to view interactions for this lead")

    interactions = (
        db.query(Interaction)
        .filter(Interaction.lead_id == lead.id)
        .order_by(Interaction.date.desc())
        .all()
    )
    return _respond(interactions)


@router.get("/stats", response_model=MyInteractionStats, summary="Caller's latest interactions")
async def my_stats(
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> MyInteractionStats:
    recent = AnalyticsService(db).recent_interactions(limit=MY_RECENT_LIMIT, agent_id=ctx.user_id)
    return MyInteractionStats(recent_interactions=_respond(recent))


@router.get("/stats/agent/{agent_id}", response_model=InteractionStats, dependencies=[Depends(require_admin)],
            summary="Interaction totals for one staff user")
async def agent_stats(agent_id: str, db: Session = Depends(get_db)) -> InteractionStats:
    agent = db.get(User, parse_uuid(agent_id, "Agent"))
    if not agent:
        raise not_found("Agent")
    return InteractionStats(**AnalyticsService(db).interaction_stats(agent_id=agent.id))


@router.get("/stats/overall", response_model=OverallInteractionStats, dependencies=[Depends(require_admin)],
            summary="Interaction totals across all staff")
async def overall_stats(db: Session = Depends(get_db)) -> OverallInteractionStats:
    service = AnalyticsService(db)
    return OverallInteractionStats(
        **service.interaction_stats(),
        recent_interactions=_respond(service.recent_interactions(limit=OVERALL_RECENT_LIMIT)),
    )


# =============================================================================
# Single interaction
# =============================================================================

@router.get("/{interaction_id}", response_model=InteractionResponse, summary="Get interaction")
async def get_interaction(
    interaction_id: str,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> InteractionResponse:
    interaction = _load_interaction(db, interaction_id)
    if not _can_view(ctx, interaction):
        raise forbidden("Not authorized to view this interaction")
    return InteractionResponse.from_interaction(interaction)


@router.put("/{interaction_id}", response_model=InteractionResponse, summary="Update interaction")
async def edit_interaction(
    interaction_id: str,
    body: InteractionUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> InteractionResponse:
    """Only the agent who logged the interaction, or an admin, may edit it."""
    interaction = _load_interaction(db, interaction_id)
    if not ctx.is_admin and interaction.agent_id != ctx.user_id:
        raise forbidden("Not authorized to update this interaction")

    interaction = update_interaction(db, interaction, body)
    return InteractionResponse.from_interaction(interaction)


@router.delete("/{interaction_id}", response_model=MessageResponse, dependencies=[Depends(require_admin)],
               summary="Delete interaction")
async def remove_interaction(interaction_id: str, db: Session = Depends(get_db)) -> MessageResponse:
    delete_interaction(db, _load_interaction(db, interaction_id))
    return MessageResponse(msg="Interaction removed")
