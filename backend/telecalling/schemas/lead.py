"""
Lead Pydantic schemas for request/response validation.

Defines DTOs for lead entry, editing, assignment, statistics and CSV import.
Validates all inputs at API boundaries before processing.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import EmailStr, Field

from ..models.lead import Lead, LeadSource, LeadStatus
from .common import APIModel, UTCDateTime
from .user import UserSummary


# =============================================================================
# Lead Creation / Update
# =============================================================================

class LeadCreate(APIModel):
    """
    Schema for manual lead entry.

    name, email, phone and courseInterested are mandatory; everything
    else falls back to model defaults.
    """

    name: str = Field(..., min_length=1, max_length=200, description="Student name")
    email: EmailStr = Field(..., description="Student email address")
    phone: str = Field(..., min_length=1, max_length=30, description="Primary phone number")
    alternate_phone: Optional[str] = Field(default=None, max_length=30)
    course_interested: str = Field(..., min_length=1, max_length=200, description="Course of interest")
    source: Optional[LeadSource] = Field(default=None, description="Acquisition channel (default website)")
    status: Optional[LeadStatus] = Field(default=None, description="Funnel stage (default new)")
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    parent_name: Optional[str] = Field(default=None, max_length=200)
    parent_phone: Optional[str] = Field(default=None, max_length=30)
    next_follow_up: Optional[UTCDateTime] = None
    assigned_to: Optional[UUID] = Field(
        default=None,
        description="Staff user to assign (admins only; agents are assigned automatically)",
    )


class LeadUpdate(APIModel):
    """
    Partial lead edit. Omitted fields are left untouched.

    assignedTo is honoured for admins only; an explicit null unassigns.
    """

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, min_length=1, max_length=30)
    alternate_phone: Optional[str] = Field(default=None, max_length=30)
    course_interested: Optional[str] = Field(default=None, min_length=1, max_length=200)
    source: Optional[LeadSource] = None
    status: Optional[LeadStatus] = None
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    parent_name: Optional[str] = Field(default=None, max_length=200)
    parent_phone: Optional[str] = Field(default=None, max_length=30)
    next_follow_up: Optional[UTCDateTime] = None
    assigned_to: Optional[UUID] = None


# =============================================================================
# Lead Responses
# =============================================================================

class LeadResponse(APIModel):
    """Lead as returned by the API, with the assignee populated."""

    id: UUID
    name: str
    email: str
    phone: str
    alternate_phone: Optional[str] = None
    course_interested: str
    source: LeadSource
    status: LeadStatus
    assigned_to: Optional[UserSummary] = None
    city: Optional[str] = None
    state: Optional[str] = None
    parent_name: Optional[str] = None
    parent_phone: Optional[str] = None
    last_follow_up: Optional[datetime] = None
    next_follow_up: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_lead(cls, lead: Lead) -> "LeadResponse":
        return cls(
            id=lead.id,
            name=lead.name,
            email=lead.email,
            phone=lead.phone,
            alternate_phone=lead.alternate_phone,
            course_interested=lead.course_interested,
            source=lead.source,
            status=lead.status,
            assigned_to=UserSummary.model_validate(lead.assignee) if lead.assignee else None,
            city=lead.city,
            state=lead.state,
            parent_name=lead.parent_name,
            parent_phone=lead.parent_phone,
            last_follow_up=lead.last_follow_up,
            next_follow_up=lead.next_follow_up,
            created_at=lead.created_at,
            updated_at=lead.updated_at,
        )


class LeadStatsResponse(APIModel):
    total_leads: int
    new_leads: int
    interested: int
    follow_ups: int
    converted: int
    not_interested: int
    agents: Optional[int] = Field(default=None, description="Staff user count (admin view only)")


# =============================================================================
# Assignment
# =============================================================================

class AssignRequest(APIModel):
    """Single assignment. A missing or null assignedTo unassigns the lead."""
    assigned_to: Optional[UUID] = None


class BulkAssignRequest(APIModel):
    lead_user_id: UUID = Field(..., description="Staff user with role lead")
    lead_ids: List[UUID] = Field(..., min_length=1, description="Leads to assign")


class BulkAssignResponse(APIModel):
    msg: str
    requested: int
    updated: int


# =============================================================================
# CSV Import
# =============================================================================

class ImportFailure(APIModel):
    row: int = Field(..., description="Row number in the file (header is row 1)")
    error: str
    data: Dict[str, Any] = Field(default_factory=dict)


class ImportResult(APIModel):
    success: bool = True
    success_count: int
    failed_count: int
    total_rows: int
    failed_rows: List[ImportFailure]
