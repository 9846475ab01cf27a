"""
SQLAlchemy ORM models for the telecalling backend.

Contains database table definitions and relationships.
"""

from .base import utcnow
from .user import User, UserRole, STAFF_ROLES
from .lead import Lead, LeadStatus, LeadSource
from .interaction import Interaction, InteractionType

__all__ = [
    "utcnow",
    # User model and enums
    "User",
    "UserRole",
    "STAFF_ROLES",
    # Lead model and enums
    "Lead",
    "LeadStatus",
    "LeadSource",
    # Interaction model and enums
    "Interaction",
    "InteractionType",
]
