"""
Analytics response schemas.

One stable shape per dashboard widget; every figure comes from
services.analytics.AnalyticsService.
"""

from datetime import date, datetime
from typing import List
from uuid import UUID

from pydantic import Field

from ..models.lead import LeadStatus
from ..models.interaction import InteractionType
from ..models.user import UserRole
from .common import APIModel


class OverviewResponse(APIModel):
    total_leads: int
    total_interactions: int
    conversion_rate: float = Field(..., description="Admitted / total leads x 100, one decimal")
    active_agents: int = Field(..., description="Distinct staff with at least one interaction in range")


class TrendPoint(APIModel):
    date: date
    leads: int
    interactions: int


class NameCount(APIModel):
    name: str
    count: int


class TrendsResponse(APIModel):
    daily: List[TrendPoint]
    status_distribution: List[NameCount]
    course_popularity: List[NameCount]


class AgentPerformanceResponse(APIModel):
    id: UUID
    name: str
    email: str
    role: UserRole
    leads_assigned: int
    interactions: int
    conversions: int
    conversion_rate: float


class RecentActivityResponse(APIModel):
    id: UUID
    type: InteractionType
    remarks: str
    date: datetime
    agent_name: str
    lead_name: str
    status: str


class FunnelStageResponse(APIModel):
    stage: str = Field(..., description="Display label, e.g. Follow-up")
    status: LeadStatus = Field(..., description="Stored status value, e.g. follow_up")
    count: int
