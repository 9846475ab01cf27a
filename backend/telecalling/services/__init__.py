"""
Business logic services for the telecalling backend.

Contains all business logic separated from the API layer: lead access
and assignment rules, interaction recording, CSV import and analytics.
"""

from .analytics import AnalyticsService, DateRange, resolve_range
from .assignment import can_access_lead, scoped_leads, assign_lead, bulk_assign
from .interactions import record_interaction, update_interaction, delete_interaction

__all__ = [
    "AnalyticsService",
    "DateRange",
    "resolve_range",
    "can_access_lead",
    "scoped_leads",
    "assign_lead",
    "bulk_assign",
    "record_interaction",
    "update_interaction",
    "delete_interaction",
]
