"""
Common Pydantic schemas shared across the application.

Contains the camelCase base model, health check, and error schemas.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    """
    Base for request/response bodies.

    Python attributes are snake_case; JSON keys are camelCase
    (courseInterested, assignedTo, nextFollowUp, ...). Either form is
    accepted on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalise incoming datetimes to the naive-UTC storage convention."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


# Accepts ISO strings with or without an offset; stored as naive UTC
UTCDateTime = Annotated[datetime, AfterValidator(to_naive_utc)]


# =============================================================================
# Health Check Schemas
# =============================================================================

class HealthResponse(BaseModel):
    """
    Health check response schema.

    Used by monitoring systems to verify service health.
    """

    status: str = Field(
        ...,
        description="Overall health status (healthy, unhealthy)"
    )
    version: str = Field(
        ...,
        description="Application version"
    )
    timestamp: datetime = Field(
        ...,
        description="Current server timestamp"
    )
    database: str = Field(
        ...,
        description="Database connection status"
    )
    environment: str = Field(
        ...,
        description="Runtime environment (development, production)"
    )


# =============================================================================
# Error Schemas
# =============================================================================

class FieldError(BaseModel):
    """Detail for a single validation error."""

    msg: str = Field(..., description="Error message")
    param: Optional[str] = Field(default=None, description="Field that caused the error")
    value: Optional[Any] = Field(default=None, description="Rejected value, when safe to echo")


class ValidationErrorResponse(BaseModel):
    errors: List[FieldError]

    model_config = {
        "json_schema_extra": {
            "example": {
                "errors": [
                    {"msg": "Please include a valid email", "param": "email"}
                ]
            }
        }
    }


class MessageResponse(BaseModel):
    """Single-message response used for errors and simple acknowledgements."""
    msg: str
