"""
Analytics Service.

Every dashboard figure in the application is computed here: the admin
analytics pages, the lead stat cards and the interaction statistics all
read from one AnalyticsService so the numbers agree across views.

Queries are plain ORM aggregates (COUNT / GROUP BY) and run unchanged on
PostgreSQL and SQLite.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional, Union
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models.base import utcnow
from ..models.interaction import Interaction, InteractionType
from ..models.lead import Lead, LeadStatus
from ..models.user import User, STAFF_ROLES
from ..schemas.common import to_naive_utc


logger = logging.getLogger(__name__)


DEFAULT_RANGE_DAYS = 30
TOP_COURSES_LIMIT = 10

# Display labels for the funnel chart. Stored values stay lowercase.
FUNNEL_STAGES = (
    ("New", LeadStatus.NEW),
    ("Interested", LeadStatus.INTERESTED),
    ("Follow-up", LeadStatus.FOLLOW_UP),
    ("Admitted", LeadStatus.ADMITTED),
)


# =============================================================================
# Date ranges
# =============================================================================

class InvalidDateRange(ValueError):
    """A startDate/endDate query value that cannot be used."""

    def __init__(self, param: str, msg: str):
        super().__init__(msg)
        self.param = param


@dataclass(frozen=True)
class DateRange:
    """Inclusive [start, end] window in naive UTC."""
    start: datetime
    end: datetime


def _parse_bound(value: str, name: str, end_of_day: bool) -> datetime:
    text = value.strip()
    try:
        if len(text) == 10:
            day = date.fromisoformat(text)
            return datetime.combine(day, time.max if end_of_day else time.min)
        return to_naive_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        raise InvalidDateRange(name, f"{name} must be an ISO 8601 date or datetime")


def resolve_range(
    start: Optional[str] = None,
    end: Optional[str] = None,
    now: Optional[datetime] = None,
) -> DateRange:
    """
    Build the reporting window from optional query parameters.

    Defaults to the last 30 days ending now. A bare endDate (YYYY-MM-DD)
    covers that whole day.

    Raises:
        InvalidDateRange: on an unparseable bound or when start is after end
    """
    now = now or utcnow()
    end_at = _parse_bound(end, "endDate", end_of_day=True) if end else now
    start_at = (
        _parse_bound(start, "startDate", end_of_day=False)
        if start
        else end_at - timedelta(days=DEFAULT_RANGE_DAYS)
    )
    if start_at > end_at:
        raise InvalidDateRange("startDate", "startDate must not be after endDate")
    return DateRange(start=start_at, end=end_at)


def conversion_rate(converted: int, total: int) -> float:
    """Percentage rounded to one decimal; 0 when there is nothing to convert."""
    if total <= 0:
        return 0.0
    return round(converted / total * 100, 1)


def _day(value: Union[str, date, datetime]) -> date:
    # func.date() yields a string on SQLite and a date on PostgreSQL
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


class AnalyticsService:
    """
    Read-only aggregates over leads and interactions.

    Args:
        db: SQLAlchemy database session
    """

    def __init__(self, db: Session):
        self.db = db

    # =========================================================================
    # Lead stat cards
    # =========================================================================

    def lead_status_counts(self, assigned_to: Optional[UUID] = None) -> Dict[str, int]:
        """
        Count leads per status, optionally only those assigned to one user.

        Returns:
            Mapping with keys total_leads, new_leads, interested, follow_ups,
            converted and not_interested
        """
        query = self.db.query(Lead.status, func.count(Lead.id))
        if assigned_to is not None:
            query = query.filter(Lead.assigned_to == assigned_to)
        by_status = {row[0]: row[1] for row in query.group_by(Lead.status).all()}

        return {
            "total_leads": sum(by_status.values()),
            "new_leads": by_status.get(LeadStatus.NEW, 0),
            "interested": by_status.get(LeadStatus.INTERESTED, 0),
            "follow_ups": by_status.get(LeadStatus.FOLLOW_UP, 0),
            "converted": by_status.get(LeadStatus.ADMITTED, 0),
            "not_interested": by_status.get(LeadStatus.NOT_INTERESTED, 0),
        }

    def staff_count(self) -> int:
        return self.db.query(func.count(User.id)).filter(User.role.in_(STAFF_ROLES)).scalar() or 0

    # =========================================================================
    # Interaction statistics
    # =========================================================================

    def interaction_stats(self, agent_id: Optional[UUID] = None) -> Dict[str, object]:
        """
        Totals by type and by outcome status, for one agent or everyone.
        """
        base = self.db.query(Interaction)
        if agent_id is not None:
            base = base.filter(Interaction.agent_id == agent_id)

        by_type = dict(
            base.with_entities(Interaction.type, func.count(Interaction.id))
            .group_by(Interaction.type)
            .all()
        )
        by_outcome = dict(
            base.with_entities(Interaction.status_after, func.count(Interaction.id))
            .filter(Interaction.status_after.isnot(None))
            .group_by(Interaction.status_after)
            .all()
        )

        return {
            "total_interactions": sum(by_type.values()),
            "interactions_by_type": {t.value: by_type.get(t, 0) for t in InteractionType},
            "conversions": {
                "interested": by_outcome.get(LeadStatus.INTERESTED, 0),
                "not_interested": by_outcome.get(LeadStatus.NOT_INTERESTED, 0),
                "follow_up": by_outcome.get(LeadStatus.FOLLOW_UP, 0),
                "admitted": by_outcome.get(LeadStatus.ADMITTED, 0),
            },
        }

    def recent_interactions(self, limit: int = 10, agent_id: Optional[UUID] = None) -> List[Interaction]:
        query = self.db.query(Interaction)
        if agent_id is not None:
            query = query.filter(Interaction.agent_id == agent_id)
        return query.order_by(Interaction.date.desc()).limit(limit).all()

    # =========================================================================
    # Analytics dashboard
    # =========================================================================

    def _leads_in(self, window: DateRange):
        return self.db.query(Lead).filter(Lead.created_at.between(window.start, window.end))

    def _interactions_in(self, window: DateRange):
        return self.db.query(Interaction).filter(Interaction.date.between(window.start, window.end))

    def overview(self, window: DateRange) -> Dict[str, object]:
        """Headline numbers for the window."""
        leads = self._leads_in(window)
        interactions = self._interactions_in(window)

        total_leads = leads.with_entities(func.count(Lead.id)).scalar() or 0
        admitted = (
            leads.with_entities(func.count(Lead.id))
            .filter(Lead.status == LeadStatus.ADMITTED)
            .scalar()
            or 0
        )
        total_interactions = interactions.with_entities(func.count(Interaction.id)).scalar() or 0
        active_agents = (
            interactions.with_entities(func.count(func.distinct(Interaction.agent_id)))
            .filter(Interaction.agent_id.isnot(None))
            .scalar()
            or 0
        )

        return {
            "total_leads": total_leads,
            "total_interactions": total_interactions,
            "conversion_rate": conversion_rate(admitted, total_leads),
            "active_agents": active_agents,
        }

    def trends(self, window: DateRange) -> Dict[str, object]:
        """
        Daily lead/interaction counts plus status and course breakdowns.

        The daily series holds one point per day on which either kind of
        record exists, in date order.
        """
        lead_day = func.date(Lead.created_at)
        interaction_day = func.date(Interaction.date)

        daily: Dict[date, Dict[str, int]] = {}
        for day, count in (
            self._leads_in(window).with_entities(lead_day, func.count(Lead.id)).group_by(lead_day).all()
        ):
            daily.setdefault(_day(day), {"leads": 0, "interactions": 0})["leads"] = count
        for day, count in (
            self._interactions_in(window)
            .with_entities(interaction_day, func.count(Interaction.id))
            .group_by(interaction_day)
            .all()
        ):
            daily.setdefault(_day(day), {"leads": 0, "interactions": 0})["interactions"] = count

        status_rows = (
            self._leads_in(window)
            .with_entities(Lead.status, func.count(Lead.id))
            .group_by(Lead.status)
            .all()
        )
        course_count = func.count(Lead.id)
        course_rows = (
            self._leads_in(window)
            .with_entities(Lead.course_interested, course_count)
            .group_by(Lead.course_interested)
            .order_by(course_count.desc(), Lead.course_interested)
            .limit(TOP_COURSES_LIMIT)
            .all()
        )

        return {
            "daily": [
                {"date": day, "leads": counts["leads"], "interactions": counts["interactions"]}
                for day, counts in sorted(daily.items())
            ],
            "status_distribution": [
                {"name": lead_status.value, "count": count}
                for lead_status, count in sorted(status_rows, key=lambda r: r[0].value)
            ],
            "course_popularity": [
                {"name": course, "count": count} for course, count in course_rows
            ],
        }

    def agent_performance(self, window: DateRange) -> List[Dict[str, object]]:
        """
        Per staff user: leads assigned, interactions and conversions in the window.

        Leads assigned are counted by lead creation time; conversions are
        admitted leads whose last update falls in the window. Sorted by
        interactions + conversions, busiest first.
        """
        staff = self.db.query(User).filter(User.role.in_(STAFF_ROLES)).all()
        if not staff:
            return []

        assigned = dict(
            self._leads_in(window)
            .with_entities(Lead.assigned_to, func.count(Lead.id))
            .filter(Lead.assigned_to.isnot(None))
            .group_by(Lead.assigned_to)
            .all()
        )
        performed = dict(
            self._interactions_in(window)
            .with_entities(Interaction.agent_id, func.count(Interaction.id))
            .filter(Interaction.agent_id.isnot(None))
            .group_by(Interaction.agent_id)
            .all()
        )
        converted = dict(
            self.db.query(Lead.assigned_to, func.count(Lead.id))
            .filter(
                Lead.assigned_to.isnot(None),
                Lead.status == LeadStatus.ADMITTED,
                Lead.updated_at.between(window.start, window.end),
            )
            .group_by(Lead.assigned_to)
            .all()
        )

        rows = []
        for user in staff:
            leads_assigned = assigned.get(user.id, 0)
            conversions = converted.get(user.id, 0)
            rows.append({
                "id": user.id,
                "name": user.name,
                "email": user.email,
                "role": user.role,
                "leads_assigned": leads_assigned,
                "interactions": performed.get(user.id, 0),
                "conversions": conversions,
                "conversion_rate": conversion_rate(conversions, leads_assigned),
            })

        rows.sort(key=lambda r: (-(r["interactions"] + r["conversions"]), r["name"]))
        return rows

    def recent_activities(self, limit: int = 10) -> List[Dict[str, object]]:
        """Newest interactions, flattened with agent and lead names."""
        activities = []
        for interaction in self.recent_interactions(limit=limit):
            lead = interaction.lead
            agent = interaction.agent
            activities.append({
                "id": interaction.id,
                "type": interaction.type,
                "remarks": interaction.remarks,
                "date": interaction.date,
                "agent_name": agent.name if agent else "Unknown Agent",
                "lead_name": lead.name if lead else "Unknown Lead",
                "status": lead.status.value if lead else "unknown",
            })
        return activities

    def funnel(self, window: DateRange) -> List[Dict[str, object]]:
        """Lead counts for each funnel stage, in fixed stage order."""
        counts = dict(
            self._leads_in(window)
            .with_entities(Lead.status, func.count(Lead.id))
            .group_by(Lead.status)
            .all()
        )
        return [
            {"stage": label, "status": lead_status, "count": counts.get(lead_status, 0)}
            for label, lead_status in FUNNEL_STAGES
        ]
