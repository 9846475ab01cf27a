"""
CSV bulk lead import.

Reads an uploaded spreadsheet export row by row. Rows missing a required
column, or carrying an invalid source/status/assignee, are reported back
with their row number and skipped; every other row becomes a new Lead.
One bad row never stops the batch.
"""

import logging
import os
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional

import pandas as pd
from pandas.errors import EmptyDataError, ParserError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.errors import parse_optional_uuid
from ..models.lead import Lead, LeadSource, LeadStatus
from ..models.user import User


logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("name", "email", "phone", "courseInterested")

ALLOWED_CONTENT_TYPES = {
    "text/csv",
    "application/csv",
    "application/vnd.ms-excel",
    "text/plain",
}

_SOURCE_VALUES = {s.value for s in LeadSource}
_STATUS_VALUES = {s.value for s in LeadStatus}


class UploadRejected(Exception):
    """The uploaded file cannot be imported at all."""


@dataclass
class RowFailure:
    row: int
    error: str
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ImportSummary:
    total_rows: int = 0
    success_count: int = 0
    failed_rows: List[RowFailure] = field(default_factory=list)

    @property
    def failed_count(self) -> int:
        return len(self.failed_rows)


# =============================================================================
# Upload handling
# =============================================================================

def is_csv_upload(filename: Optional[str], content_type: Optional[str]) -> bool:
    """Accept CSV-like MIME types, and only with a .csv extension."""
    if not filename or not filename.lower().endswith(".csv"):
        return False
    base_type = (content_type or "").split(";")[0].strip().lower()
    return base_type in ALLOWED_CONTENT_TYPES


def save_upload(stream: BinaryIO, filename: str, upload_dir: Optional[str] = None) -> Path:
    """
    Copy an uploaded file to the temporary upload directory.

    Raises:
        UploadRejected: if the file exceeds the configured size limit
    """
    target_dir = Path(upload_dir or settings.upload_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    suffix = Path(filename).suffix.lower() or ".csv"
    path = target_dir / f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}{suffix}"

    written = 0
    with open(path, "wb") as out:
        while True:
            chunk = stream.read(64 * 1024)
            if not chunk:
                break
            written += len(chunk)
            if written > settings.max_upload_bytes:
                out.close()
                remove_upload(path)
                raise UploadRejected(f"File exceeds the {settings.max_upload_mb} MB limit")
            out.write(chunk)
    return path


def remove_upload(path: Path) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove upload {path}: {e}")


# =============================================================================
# Import
# =============================================================================

def read_rows(path: Path) -> List[Dict[str, str]]:
    """
    Parse the CSV into a list of string dicts.

    Every cell is read as text and blank cells stay empty strings, so a
    phone number like 0987 keeps its leading zero.
    """
    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False, skipinitialspace=True)
    except EmptyDataError:
        return []
    except (ParserError, UnicodeDecodeError) as e:
        raise UploadRejected(f"Could not parse CSV file: {e}")

    df.columns = [str(c).strip() for c in df.columns]
    return [
        {key: str(value).strip() for key, value in record.items()}
        for record in df.to_dict(orient="records")
    ]


def _row_error(db: Session, row: Dict[str, str]) -> Optional[str]:
    missing = [col for col in REQUIRED_COLUMNS if not row.get(col)]
    if missing:
        return f"Missing required fields: {', '.join(missing)}"

    source = row.get("source", "").lower()
    if source and source not in _SOURCE_VALUES:
        return f"Invalid source '{row['source']}'"

    lead_status = row.get("status", "").lower()
    if lead_status and lead_status not in _STATUS_VALUES:
        return f"Invalid status '{row['status']}'"

    assigned_raw = row.get("assignedTo", "")
    if assigned_raw:
        assignee_id = parse_optional_uuid(assigned_raw)
        assignee = db.get(User, assignee_id) if assignee_id else None
        if assignee is None or not assignee.is_staff:
            return f"Invalid assignedTo '{assigned_raw}'"

    return None


def _lead_from_row(row: Dict[str, str]) -> Lead:
    source = row.get("source", "").lower() or LeadSource.WEBSITE.value
    lead_status = row.get("status", "").lower() or LeadStatus.NEW.value
    return Lead(
        name=row["name"],
        email=row["email"],
        phone=row["phone"],
        alternate_phone=row.get("alternatePhone", ""),
        course_interested=row["courseInterested"],
        source=LeadSource(source),
        status=LeadStatus(lead_status),
        city=row.get("city", ""),
        state=row.get("state", ""),
        parent_name=row.get("parentName", ""),
        parent_phone=row.get("parentPhone", ""),
        assigned_to=parse_optional_uuid(row.get("assignedTo")),
    )


def import_leads(db: Session, rows: List[Dict[str, str]]) -> ImportSummary:
    """
    Insert one lead per valid row.

    Rows are committed one at a time so a database error affects only the
    row that caused it.
    """
    summary = ImportSummary(total_rows=len(rows))

    for index, row in enumerate(rows):
        row_number = index + 2  # header is row 1

        error = _row_error(db, row)
        if error:
            summary.failed_rows.append(RowFailure(row=row_number, error=error, data=row))
            continue

        try:
            db.add(_lead_from_row(row))
            db.commit()
            summary.success_count += 1
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(f"CSV row {row_number} rejected by database: {e}")
            summary.failed_rows.append(
                RowFailure(row=row_number, error="Could not save row", data=row)
            )

    return summary


def import_leads_from_file(db: Session, path: Path) -> ImportSummary:
    """
    Import a saved CSV file and delete it afterwards.

    The file is removed whether the import succeeds, partially fails or
    raises.
    """
    try:
        rows = read_rows(path)
        summary = import_leads(db, rows)
    finally:
        remove_upload(path)

    logger.info(
        f"CSV import finished: {summary.success_count} imported, "
        f"{summary.failed_count} failed of {summary.total_rows} rows"
    )
    return summary
