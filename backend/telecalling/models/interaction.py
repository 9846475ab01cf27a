"""
Interaction model.

Each interaction is one contact attempt (call, SMS, WhatsApp, email) made
by a staff user against a lead. Rows form the lead's contact history:
lead, agent and type never change after creation.
"""

import enum
import uuid

from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from ..core.database import Base
from .base import utcnow, enum_column_type
from .lead import LeadStatus


class InteractionType(str, enum.Enum):
    CALL = "call"
    SMS = "sms"
    WHATSAPP = "whatsapp"
    EMAIL = "email"


class Interaction(Base):

    __tablename__ = "interactions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    lead_id = Column(
        Uuid,
        ForeignKey("leads.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Who made the contact (nullable so history survives user removal)
    agent_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    type = Column(enum_column_type(InteractionType, "interaction_type"), nullable=False)
    remarks = Column(Text, nullable=False)

    status_before = Column(enum_column_type(LeadStatus, "lead_status"), nullable=True)
    status_after = Column(enum_column_type(LeadStatus, "lead_status"), nullable=True, index=True)

    # Seconds, calls only
    duration = Column(Integer, nullable=True)
    follow_up_date = Column(DateTime, nullable=True)

    date = Column(DateTime, nullable=False, default=utcnow, index=True)

    # Relationships
    lead = relationship("Lead", back_populates="interactions", lazy="joined")
    agent = relationship("User", foreign_keys=[agent_id], lazy="joined")

    def __repr__(self) -> str:
        return (
            f"<Interaction(id={self.id}, lead_id={self.lead_id}, "
            f"type={self.type.value}, agent_id={self.agent_id})>"
        )
