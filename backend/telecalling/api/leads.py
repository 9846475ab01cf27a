"""
Lead management endpoints.

Admins see and manage every lead; agents and lead-role staff work only
the leads assigned to them. CSV import and assignment are admin-only.

IMPORTANT: Static path routes (/stats, /unassigned, /filter/..., ...) MUST
be defined BEFORE the dynamic /{lead_id} routes.
"""

import logging
from datetime import datetime, time
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..core.auth import RequestContext, get_request_context, require_admin, require_role, require_staff
from ..core.database import get_db
from ..core.errors import forbidden, not_found, parse_uuid, validation_failed
from ..models.base import utcnow
from ..models.lead import Lead, LeadSource, LeadStatus
from ..models.user import UserRole, STAFF_ROLES
from ..schemas.common import MessageResponse
from ..schemas.lead import (
    AssignRequest,
    BulkAssignRequest,
    BulkAssignResponse,
    ImportFailure,
    ImportResult,
    LeadCreate,
    LeadResponse,
    LeadStatsResponse,
    LeadUpdate,
)
from ..services.analytics import AnalyticsService
from ..services.assignment import (
    assign_lead,
    bulk_assign,
    can_access_lead,
    find_assignee,
    scoped_leads,
    unassigned_leads,
)
from ..services.lead_import import (
    UploadRejected,
    import_leads_from_file,
    is_csv_upload,
    save_upload,
)


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/leads", tags=["Leads"])

RECENT_LEADS_LIMIT = 10


# =============================================================================
# Helper Functions
# =============================================================================

def _load_lead(db: Session, lead_id: str) -> Lead:
    lead = db.get(Lead, parse_uuid(lead_id, "Lead"))
    if not lead:
        raise not_found("Lead")
    return lead


def _load_accessible_lead(db: Session, ctx: RequestContext, lead_id: str) -> Lead:
    """Fetch a lead and enforce the admin-or-assignee rule."""
    lead = _load_lead(db, lead_id)
    if not can_access_lead(ctx, lead):
        raise forbidden("Not authorized to access this lead")
    return lead


def _respond(leads: List[Lead]) -> List[LeadResponse]:
    return [LeadResponse.from_lead(lead) for lead in leads]


def _stats(db: Session, ctx: RequestContext) -> LeadStatsResponse:
    service = AnalyticsService(db)
    if ctx.is_admin:
        return LeadStatsResponse(**service.lead_status_counts(), agents=service.staff_count())
    return LeadStatsResponse(**service.lead_status_counts(assigned_to=ctx.user_id))


# =============================================================================
# Statistics
# =============================================================================

@router.get("/stats", response_model=LeadStatsResponse, response_model_exclude_none=True,
            summary="Dashboard stats for the caller")
async def get_stats(
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> LeadStatsResponse:
    """Admin stats for admins, personal stats for staff."""
    return _stats(db, ctx)


@router.get("/admin-stats", response_model=LeadStatsResponse, summary="Lead counts across all leads")
async def get_admin_stats(
    ctx: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
) -> LeadStatsResponse:
    return _stats(db, ctx)


@router.get("/agent-stats", response_model=LeadStatsResponse, response_model_exclude_none=True,
            summary="Lead counts for the caller's assigned leads")
async def get_agent_stats(
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> LeadStatsResponse:
    service = AnalyticsService(db)
    return LeadStatsResponse(**service.lead_status_counts(assigned_to=ctx.user_id))


# =============================================================================
# Lists
# =============================================================================

@router.get("/recent", response_model=List[LeadResponse], summary="Newest leads assigned to the caller")
async def get_recent_leads(
    ctx: RequestContext = Depends(require_staff),
    db: Session = Depends(get_db),
):
    leads = (
        db.query(Lead)
        .filter(Lead.assigned_to == ctx.user_id)
        .order_by(Lead.created_at.desc())
        .limit(RECENT_LEADS_LIMIT)
        .all()
    )
    return _respond(leads)


@router.get("/unassigned", response_model=List[LeadResponse], dependencies=[Depends(require_admin)])
async def get_unassigned_leads(db: Session = Depends(get_db)):
    return _respond(unassigned_leads(db).order_by(Lead.created_at.desc()).all())


@router.get("/assigned-to-me", response_model=List[LeadResponse], summary="Leads held by a lead-role user")
async def get_assigned_to_me(
    ctx: RequestContext = Depends(require_role("lead", detail="Access denied. Lead role required.")),
    db: Session = Depends(get_db),
):
    leads = (
        db.query(Lead)
        .filter(Lead.assigned_to == ctx.user_id)
        .order_by(Lead.created_at.desc())
        .all()
    )
    return _respond(leads)


@router.get("/filter/{lead_status}", response_model=List[LeadResponse], summary="Leads in one status")
async def filter_by_status(
    lead_status: str,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    try:
        wanted = LeadStatus(lead_status.lower())
    except ValueError:
        raise validation_failed("status", "Invalid status", value=lead_status)

    leads = scoped_leads(db, ctx).filter(Lead.status == wanted).order_by(Lead.created_at.desc()).all()
    return _respond(leads)


@router.get("/course/{course}", response_model=List[LeadResponse], summary="Leads by course (substring)")
async def filter_by_course(
    course: str,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Case-insensitive substring match on courseInterested."""
    leads = (
        scoped_leads(db, ctx)
        .filter(func.lower(Lead.course_interested).contains(course.lower(), autoescape=True))
        .order_by(Lead.created_at.desc())
        .all()
    )
    return _respond(leads)


@router.get("/followup/today", response_model=List[LeadResponse], summary="Follow-ups due today")
async def followups_due_today(
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Leads whose nextFollowUp falls on the current UTC day, boundaries included."""
    today = utcnow().date()
    start_of_day = datetime.combine(today, time.min)
    end_of_day = datetime.combine(today, time.max)

    leads = (
        scoped_leads(db, ctx)
        .filter(Lead.next_follow_up.between(start_of_day, end_of_day))
        .order_by(Lead.next_follow_up.asc())
        .all()
    )
    return _respond(leads)


# =============================================================================
# CSV Import & Assignment (admin)
# =============================================================================

@router.post("/upload", response_model=ImportResult, summary="Bulk import leads from CSV")
async def upload_leads(
    file: Optional[UploadFile] = File(default=None),
    ctx: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ImportResult:
    """
    Import leads from an uploaded CSV file.

    Rows that fail validation are reported in failedRows and skipped;
    the remaining rows are imported.
    """
    if file is None or not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")
    if not is_csv_upload(file.filename, file.content_type):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only CSV files are allowed")

    try:
        path = save_upload(file.file, file.filename)
        summary = import_leads_from_file(db, path)
    except UploadRejected as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    finally:
        await file.close()

    logger.info(f"CSV upload {file.filename} by {ctx.user_id}: {summary.success_count}/{summary.total_rows} imported")
    return ImportResult(
        success=True,
        success_count=summary.success_count,
        failed_count=summary.failed_count,
        total_rows=summary.total_rows,
        failed_rows=[
            ImportFailure(row=f.row, error=f.error, data=f.data) for f in summary.failed_rows
        ],
    )


@router.post("/assign-to-lead", response_model=BulkAssignResponse, summary="Bulk assign to a lead-role user")
async def assign_to_lead_user(
    body: BulkAssignRequest,
    ctx: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
) -> BulkAssignResponse:
    """
    Assign many leads to one lead-role user.

    Ids that match no lead are skipped; compare requested with updated to
    spot them.
    """
    lead_user = find_assignee(db, body.lead_user_id, allowed_roles=(UserRole.LEAD,))
    if lead_user is None:
        raise validation_failed("leadUserId", "Invalid lead user ID")

    requested = len(set(body.lead_ids))
    try:
        updated = bulk_assign(db, lead_user, body.lead_ids)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Bulk assignment to {lead_user.id} failed: {str(e)}", exc_info=True)
        raise

    return BulkAssignResponse(
        msg=f"{updated} leads assigned to {lead_user.name}",
        requested=requested,
        updated=updated,
    )


@router.put("/assign/{lead_id}", response_model=LeadResponse, summary="Assign a lead to an agent")
async def assign_single_lead(
    lead_id: str,
    body: AssignRequest,
    ctx: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
) -> LeadResponse:
    """Assign one lead to an agent; a null assignedTo unassigns it."""
    lead = _load_lead(db, lead_id)

    agent = None
    if body.assigned_to is not None:
        agent = find_assignee(db, body.assigned_to, allowed_roles=(UserRole.AGENT,))
        if agent is None:
            raise validation_failed("assignedTo", "Invalid agent ID")

    assign_lead(lead, agent)
    db.commit()
    db.refresh(lead)
    logger.info(f"Lead {lead.id} assigned to {lead.assigned_to} by {ctx.user_id}")
    return LeadResponse.from_lead(lead)


# =============================================================================
# CRUD
# =============================================================================

@router.post("", response_model=LeadResponse, status_code=status.HTTP_201_CREATED, summary="Create lead")
async def create_lead(
    body: LeadCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> LeadResponse:
    """
    Manually enter a lead.

    Agents get the new lead assigned to themselves. Admins may name an
    assignee; other callers cannot.
    """
    lead = Lead(
        name=body.name,
        email=str(body.email),
        phone=body.phone,
        alternate_phone=body.alternate_phone,
        course_interested=body.course_interested,
        source=body.source or LeadSource.WEBSITE,
        status=body.status or LeadStatus.NEW,
        city=body.city,
        state=body.state,
        parent_name=body.parent_name,
        parent_phone=body.parent_phone,
        next_follow_up=body.next_follow_up,
    )

    if ctx.role == UserRole.AGENT:
        lead.assigned_to = ctx.user_id
    elif ctx.is_admin and body.assigned_to is not None:
        assignee = find_assignee(db, body.assigned_to, allowed_roles=STAFF_ROLES)
        if assignee is None:
            raise validation_failed("assignedTo", "Invalid assignee ID")
        lead.assigned_to = assignee.id

    db.add(lead)
    db.commit()
    db.refresh(lead)
    logger.info(f"Lead {lead.id} created by {ctx.user_id} (assigned_to={lead.assigned_to})")
    return LeadResponse.from_lead(lead)


@router.get("", response_model=List[LeadResponse], summary="List leads")
async def list_leads(
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Every lead for admins; assigned leads only for staff. Newest first."""
    return _respond(scoped_leads(db, ctx).order_by(Lead.created_at.desc()).all())


@router.get("/{lead_id}", response_model=LeadResponse, summary="Get lead")
async def get_lead(
    lead_id: str,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> LeadResponse:
    return LeadResponse.from_lead(_load_accessible_lead(db, ctx, lead_id))


@router.put("/{lead_id}", response_model=LeadResponse, summary="Update lead")
async def update_lead(
    lead_id: str,
    body: LeadUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> LeadResponse:
    """
    Partially update a lead.

    assignedTo is applied for admins only and ignored for everyone else.
    """
    lead = _load_accessible_lead(db, ctx, lead_id)
    changes = body.model_dump(exclude_unset=True)
    new_assignee = changes.pop("assigned_to", None)
    reassign = "assigned_to" in body.model_fields_set and ctx.is_admin

    try:
        for field, value in changes.items():
            if value is None and field in ("name", "email", "phone", "course_interested", "source", "status"):
                continue
            setattr(lead, field, str(value) if field == "email" else value)

        if reassign:
            assignee = None
            if new_assignee is not None:
                assignee = find_assignee(db, new_assignee, allowed_roles=STAFF_ROLES)
                if assignee is None:
                    raise validation_failed("assignedTo", "Invalid assignee ID")
            assign_lead(lead, assignee)

        lead.touch()
        db.commit()
        db.refresh(lead)
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Lead update error for {lead_id}: {str(e)}", exc_info=True)
        raise

    logger.info(f"Lead {lead.id} updated by {ctx.user_id}: {sorted(body.model_fields_set)}")
    return LeadResponse.from_lead(lead)


@router.delete("/{lead_id}", response_model=MessageResponse, summary="Delete lead")
async def delete_lead(
    lead_id: str,
    ctx: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
) -> MessageResponse:
    """Hard delete; the lead's interactions go with it."""
    lead = _load_lead(db, lead_id)
    db.delete(lead)
    db.commit()
    logger.info(f"Lead {lead.id} deleted by {ctx.user_id}")
    return MessageResponse(msg="Lead removed")
