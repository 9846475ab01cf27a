"""
Error helpers shared by the API layer.

Field-level validation problems are reported as a list of
{"msg": ..., "param": ...} entries; every other HTTP error carries a
single message.
"""

from typing import Any, Optional
from uuid import UUID

from fastapi import HTTPException, status


SERVER_ERROR_MESSAGE = "Server Error"


def validation_failed(param: str, msg: str, value: Any = None) -> HTTPException:
    """Build a 400 response in the field-error list shape."""
    item = {"msg": msg, "param": param}
    if value is not None:
        item["value"] = value
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=[item])


def not_found(what: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} not found")


def forbidden(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def parse_uuid(value: str, what: str) -> UUID:
    """
    Parse a path identifier.

    Malformed identifiers cannot name an existing record, so they are
    reported as not found rather than as a validation error.
    """
    try:
        return UUID(str(value))
    except ValueError:
        raise not_found(what)


def parse_optional_uuid(value: Optional[str]) -> Optional[UUID]:
    if value is None or value == "":
        return None
    try:
        return UUID(str(value))
    except ValueError:
        return None
