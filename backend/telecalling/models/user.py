"""
User model for authentication and staff management.
"""

import enum
import uuid

from sqlalchemy import Column, String, DateTime, Uuid

from ..core.database import Base
from .base import utcnow, enum_column_type


# =============================================================================
# Enums
# =============================================================================


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    AGENT = "agent"
    # Staff role that receives bulk assignments. Not to be confused with
    # the Lead record (a prospective student).
    LEAD = "lead"


# Roles that may hold assigned leads and log interactions.
STAFF_ROLES = (UserRole.AGENT, UserRole.LEAD)


# =============================================================================
# User Model
# =============================================================================


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(enum_column_type(UserRole, "user_role"), nullable=False, default=UserRole.AGENT)
    phone = Column(String(30), nullable=True)
    department = Column(String(100), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role.value})>"
