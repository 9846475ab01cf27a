"""
Unit-of-work helper for multi-row writes.

Logging an interaction inserts the interaction and updates its lead;
deleting a user releases their leads and history rows before the user
itself goes. Both run as:

    with transaction(db):
        db.add(interaction)
        lead.status = LeadStatus.ADMITTED
"""

import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy.orm import Session


logger = logging.getLogger(__name__)


@contextmanager
def transaction(db: Session) -> Generator[Session, None, None]:
    """
    Commit the block's writes together, or none of them.

    The session is rolled back and the exception re-raised when
    anything inside the block fails.
    """
    try:
        yield db
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Write rolled back: {type(e).__name__}: {e}")
        raise
