"""
API route controllers for the telecalling backend.

Contains FastAPI routers for different endpoints.
Routes handle HTTP requests and delegate to services for business logic.
"""

from .health import router as health_router
from .auth import router as auth_router
from .users import router as users_router
from .leads import router as leads_router
from .interactions import router as interactions_router
from .analytics import router as analytics_router

__all__ = [
    "health_router",
    "auth_router",
    "users_router",
    "leads_router",
    "interactions_router",
    "analytics_router",
]
