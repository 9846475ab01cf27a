"""
Interaction Pydantic schemas.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from ..models.interaction import Interaction, InteractionType
from ..models.lead import LeadStatus
from .common import APIModel, UTCDateTime
from .user import UserSummary


class InteractionCreate(APIModel):
    """
    Log a contact attempt.

    statusBefore/statusAfter default to the lead's current status. Supplying
    statusAfter or followUpDate also advances the lead.
    """
    lead: UUID = Field(..., description="Lead ID")
    type: InteractionType
    remarks: str = Field(..., min_length=1, max_length=5000)
    status_before: Optional[LeadStatus] = None
    status_after: Optional[LeadStatus] = None
    duration: Optional[int] = Field(default=None, ge=0, description="Call length in seconds")
    follow_up_date: Optional[UTCDateTime] = None


class InteractionUpdate(APIModel):
    """Only these fields may change once an interaction is logged."""
    remarks: Optional[str] = Field(default=None, min_length=1, max_length=5000)
    status_after: Optional[LeadStatus] = None
    duration: Optional[int] = Field(default=None, ge=0)
    follow_up_date: Optional[UTCDateTime] = None


class LeadSummary(APIModel):
    id: UUID
    name: str
    email: str
    phone: str


class InteractionResponse(APIModel):
    id: UUID
    lead: Optional[LeadSummary] = None
    agent: Optional[UserSummary] = None
    type: InteractionType
    remarks: str
    status_before: Optional[LeadStatus] = None
    status_after: Optional[LeadStatus] = None
    duration: Optional[int] = None
    follow_up_date: Optional[datetime] = None
    date: datetime

    @classmethod
    def from_interaction(cls, interaction: Interaction) -> "InteractionResponse":
        return cls(
            id=interaction.id,
            lead=LeadSummary.model_validate(interaction.lead) if interaction.lead else None,
            agent=UserSummary.model_validate(interaction.agent) if interaction.agent else None,
            type=interaction.type,
            remarks=interaction.remarks,
            status_before=interaction.status_before,
            status_after=interaction.status_after,
            duration=interaction.duration,
            follow_up_date=interaction.follow_up_date,
            date=interaction.date,
        )


# =============================================================================
# Statistics
# =============================================================================

class InteractionTypeCounts(APIModel):
    call: int = 0
    sms: int = 0
    whatsapp: int = 0
    email: int = 0


class StatusChangeCounts(APIModel):
    """How many interactions ended in each outcome status."""
    interested: int = 0
    not_interested: int = 0
    follow_up: int = 0
    admitted: int = 0


class MyInteractionStats(APIModel):
    recent_interactions: List[InteractionResponse]


class InteractionStats(APIModel):
    total_interactions: int
    interactions_by_type: InteractionTypeCounts
    conversions: StatusChangeCounts


class OverallInteractionStats(InteractionStats):
    recent_interactions: List[InteractionResponse]
