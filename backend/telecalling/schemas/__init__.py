"""
Pydantic validation schemas for the telecalling backend.

Contains request/response DTOs with validation rules.
These schemas enforce data integrity at API boundaries.
"""

from .common import (
    APIModel,
    HealthResponse,
    MessageResponse,
    ValidationErrorResponse,
)
from .user import (
    UserResponse,
    UserSummary,
    LoginRequest,
    TokenResponse,
)
from .lead import (
    LeadCreate,
    LeadUpdate,
    LeadResponse,
    LeadStatsResponse,
    ImportResult,
)
from .interaction import (
    InteractionCreate,
    InteractionUpdate,
    InteractionResponse,
)

__all__ = [
    # Common schemas
    "APIModel",
    "HealthResponse",
    "MessageResponse",
    "ValidationErrorResponse",
    # User schemas
    "UserResponse",
    "UserSummary",
    "LoginRequest",
    "TokenResponse",
    # Lead schemas
    "LeadCreate",
    "LeadUpdate",
    "LeadResponse",
    "LeadStatsResponse",
    "ImportResult",
    # Interaction schemas
    "InteractionCreate",
    "InteractionUpdate",
    "InteractionResponse",
]
