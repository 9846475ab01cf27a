"""
Analytics API endpoints for the admin dashboard.

Every endpoint accepts optional startDate/endDate query parameters
(ISO dates or datetimes, default the last 30 days) and delegates the
aggregation to AnalyticsService.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import require_admin
from ..core.database import get_db
from ..core.errors import validation_failed
from ..schemas.analytics import (
    AgentPerformanceResponse,
    FunnelStageResponse,
    OverviewResponse,
    RecentActivityResponse,
    TrendsResponse,
)
from ..services.analytics import AnalyticsService, DateRange, InvalidDateRange, resolve_range


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/analytics", tags=["Analytics"], dependencies=[Depends(require_admin)])


def date_range(
    start_date: Optional[str] = Query(default=None, alias="startDate", description="Range start (ISO date)"),
    end_date: Optional[str] = Query(default=None, alias="endDate", description="Range end (ISO date, inclusive)"),
) -> DateRange:
    """Query-parameter dependency producing the reporting window."""
    try:
        return resolve_range(start_date, end_date)
    except InvalidDateRange as e:
        raise validation_failed(e.param, str(e))


@router.get("/overview", response_model=OverviewResponse, summary="Headline numbers")
async def get_overview(
    window: DateRange = Depends(date_range),
    db: Session = Depends(get_db),
) -> OverviewResponse:
    return OverviewResponse(**AnalyticsService(db).overview(window))


@router.get("/trends", response_model=TrendsResponse, summary="Daily trends and breakdowns")
async def get_trends(
    window: DateRange = Depends(date_range),
    db: Session = Depends(get_db),
) -> TrendsResponse:
    return TrendsResponse(**AnalyticsService(db).trends(window))


@router.get("/agent-performance", response_model=List[AgentPerformanceResponse], summary="Staff leaderboard")
async def get_agent_performance(
    window: DateRange = Depends(date_range),
    db: Session = Depends(get_db),
):
    return [AgentPerformanceResponse(**row) for row in AnalyticsService(db).agent_performance(window)]


@router.get("/recent-activities", response_model=List[RecentActivityResponse], summary="Latest interactions")
async def get_recent_activities(
    limit: int = Query(default=10, ge=1, le=100, description="Number of activities"),
    db: Session = Depends(get_db),
):
    return [RecentActivityResponse(**row) for row in AnalyticsService(db).recent_activities(limit)]


@router.get("/lead-funnel", response_model=List[FunnelStageResponse], summary="Admissions funnel")
async def get_lead_funnel(
    window: DateRange = Depends(date_range),
    db: Session = Depends(get_db),
):
    return [FunnelStageResponse(**row) for row in AnalyticsService(db).funnel(window)]
