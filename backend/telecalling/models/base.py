"""
Shared column helpers for ORM models.
"""

import enum
from datetime import datetime, timezone

from sqlalchemy import Enum as SQLEnum


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the storage convention for all timestamps)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def enum_column_type(enum_cls: type[enum.Enum], name: str) -> SQLEnum:
    """
    Enum column stored as its lowercase value.

    Persisted values are the enum *values* (e.g. "follow_up"), never the
    member names, so the database and the API share one vocabulary.
    """
    return SQLEnum(
        enum_cls,
        name=name,
        native_enum=False,
        length=32,
        validate_strings=True,
        values_callable=lambda e: [x.value for x in e],
    )
