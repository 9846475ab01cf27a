"""
Lead database model.

A Lead is a prospective student tracked through the admissions funnel.
"""

import enum
import uuid

from sqlalchemy import Column, String, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from ..core.database import Base
from .base import utcnow, enum_column_type


# =============================================================================
# Enum Definitions
# =============================================================================

class LeadSource(str, enum.Enum):
    """Where the lead came from."""
    WEBSITE = "website"
    EVENT = "event"
    REFERRAL = "referral"
    ADVERTISEMENT = "advertisement"
    OTHER = "other"


class LeadStatus(str, enum.Enum):
    """Lead status for tracking through the admissions funnel."""
    NEW = "new"
    INTERESTED = "interested"
    NOT_INTERESTED = "not_interested"
    FOLLOW_UP = "follow_up"
    ADMITTED = "admitted"


# =============================================================================
# Lead Model
# =============================================================================

class Lead(Base):
    """
    Prospective student record.

    Attributes:
        id: UUID primary key
        name, email, phone: Required contact details
        alternate_phone: Optional second number
        course_interested: Programme the student asked about
        source: Acquisition channel
        status: Current funnel stage
        assigned_to: Staff user (agent or lead role) responsible, or None
        last_follow_up: When the last interaction touched this lead
        next_follow_up: When the next contact is due
    """

    __tablename__ = "leads"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Contact Information
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(30), nullable=False)
    alternate_phone = Column(String(30), nullable=True)

    course_interested = Column(String(200), nullable=False, index=True)
    source = Column(enum_column_type(LeadSource, "lead_source"), nullable=False, default=LeadSource.WEBSITE)
    status = Column(enum_column_type(LeadStatus, "lead_status"), nullable=False, default=LeadStatus.NEW, index=True)

    # Assignment (None means unassigned)
    assigned_to = Column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Location & guardian
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    parent_name = Column(String(200), nullable=True)
    parent_phone = Column(String(30), nullable=True)

    # Follow-up scheduling
    last_follow_up = Column(DateTime, nullable=True)
    next_follow_up = Column(DateTime, nullable=True, index=True)

    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    # Relationships
    assignee = relationship("User", foreign_keys=[assigned_to], lazy="joined")
    interactions = relationship(
        "Interaction",
        back_populates="lead",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def touch(self) -> None:
        """Mark the lead as modified now."""
        self.updated_at = utcnow()

    def __repr__(self) -> str:
        return f"<Lead(id={self.id}, status={self.status.value}, assigned_to={self.assigned_to})>"
