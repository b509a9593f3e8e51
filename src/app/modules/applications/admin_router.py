"""
Applications Admin Router

API endpoints for administrators and reviewers to review job applications.

Endpoints:
- GET /admin/applications - List applications with filters and pagination
- GET /admin/applications/stats - Application counts by status
- GET /admin/applications/export - Export filtered applications as CSV
- GET /admin/applications/job/{job_id} - List applications for one job
- GET /admin/applications/{id} - Get application details
- PATCH /admin/applications/{id}/status - Change status (admin)
- POST /admin/applications/bulk-status - Change status of many applications (admin)
- PATCH /admin/applications/{id}/review - Record review notes
- PATCH /admin/applications/{id}/sections/{section_type}/verify - Verify a section

Security:
- Status changes require the admin role; everything else admin or reviewer
- Every mutation is written to the audit log
- Rate limiting on mutating endpoints
"""

import logging
from datetime import datetime
from typing import NoReturn
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, get_current_admin_user, get_current_reviewer
from app.core.database import get_db
from app.core.rate_limit import enforce_rate_limit
from app.modules.applications import service
from app.modules.applications.models import ApplicationStatus
from app.modules.applications.schemas import (
    ApplicationListResponse,
    ApplicationResponse,
    ApplicationSummary,
    BulkStatusUpdateRequest,
    BulkStatusUpdateResponse,
    DashboardStats,
    ReviewNotesRequest,
    SectionSaveResponse,
    StatusUpdateRequest,
    VerifySectionRequest,
)
from app.modules.applications.service import ApplicationServiceError
from app.modules.audit.service import RequestContext, request_context
from app.modules.jobs.models import SectionType

logger = logging.getLogger(__name__)

router = APIRouter()

# Rate limits (requests, window seconds)
RATE_LIMIT_STATUS = (30, 60)
RATE_LIMIT_BULK_STATUS = (5, 60)
RATE_LIMIT_REVIEW = (30, 60)
RATE_LIMIT_EXPORT = (5, 60)


# ============================================
# Helper Functions
# ============================================


def _handle_service_error(e: ApplicationServiceError) -> NoReturn:
    """Convert service errors to HTTPExceptions."""
    detail = {"error": e.error_code, "message": e.message}
    if e.errors:
        detail["errors"] = [error.model_dump(exclude_none=True) for error in e.errors]
    raise HTTPException(status_code=e.status_code, detail=detail) from e


def _internal_error(e: Exception, action: str) -> NoReturn:
    logger.exception(f"Error {action}: {e}")
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    ) from e


def _list_response(result: dict) -> ApplicationListResponse:
    return ApplicationListResponse(
        applications=[ApplicationSummary.from_application(a) for a in result["applications"]],
        total=result["total"],
        skip=result["skip"],
        limit=result["limit"],
    )


# ============================================
# Listing and reporting
# ============================================


@router.get(
    "",
    response_model=ApplicationListResponse,
    summary="List Applications",
    description="""
List applications with filters, sorting and pagination.

**Filters:**
- `job_id`: Applications for one job
- `status`: Applications in one status
- `search`: Case-insensitive match on application number, applicant email or name
- `date_from` / `date_to`: Submission date range

**Sorting:** `created_at` (default), `submitted_at` or `application_number`.
""",
)
async def list_applications(
    job_id: UUID | None = Query(None, description="Filter by job"),
    status_filter: ApplicationStatus | None = Query(None, alias="status"),
    search: str | None = Query(None, max_length=100),
    date_from: datetime | None = Query(None, description="Submitted on or after"),
    date_to: datetime | None = Query(None, description="Submitted on or before"),
    sort_by: str = Query("created_at", pattern="^(created_at|submitted_at|application_number)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(get_current_reviewer),
) -> ApplicationListResponse:
    try:
        result = await service.admin_list_applications(
            db,
            job_id=job_id,
            status=status_filter,
            search=search,
            date_from=date_from,
            date_to=date_to,
            sort_by=sort_by,
            sort_order=sort_order,
            skip=skip,
            limit=limit,
        )
        return _list_response(result)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        _internal_error(e, "listing applications")


@router.get(
    "/stats",
    response_model=DashboardStats,
    summary="Dashboard Statistics",
    description="Total applications and the count in each status.",
)
async def get_stats(
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(get_current_reviewer),
) -> DashboardStats:
    try:
        return await service.admin_get_dashboard_stats(db)
    except Exception as e:
        _internal_error(e, "getting dashboard stats")


@router.get(
    "/export",
    summary="Export Applications (CSV)",
    response_class=Response,
    responses={200: {"content": {"text/csv": {}}, "description": "CSV file"}},
)
async def export_applications(
    job_id: UUID | None = Query(None),
    status_filter: ApplicationStatus | None = Query(None, alias="status"),
    date_from: datetime | None = Query(None),
    date_to: datetime | None = Query(None),
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(get_current_reviewer),
) -> Response:
    await enforce_rate_limit("export_applications", reviewer.id, *RATE_LIMIT_EXPORT)

    try:
        content = await service.admin_export_csv(
            db, job_id=job_id, status=status_filter, date_from=date_from, date_to=date_to
        )
    except Exception as e:
        _internal_error(e, "exporting applications")

    filename = f"applications-{datetime.now().strftime('%Y%m%d-%H%M%S')}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get(
    "/job/{job_id}",
    response_model=ApplicationListResponse,
    summary="List Applications For Job",
    responses={404: {"description": "Job not found"}},
)
async def list_applications_for_job(
    job_id: UUID,
    status_filter: ApplicationStatus | None = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(get_current_reviewer),
) -> ApplicationListResponse:
    try:
        result = await service.admin_list_applications_for_job(
            db, job_id, status=status_filter, skip=skip, limit=limit
        )
        return _list_response(result)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        _internal_error(e, "listing job applications")


@router.get(
    "/{application_id}",
    response_model=ApplicationResponse,
    summary="Get Application Details",
)
async def get_application_detail(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(get_current_reviewer),
) -> ApplicationResponse:
    try:
        application = await service.admin_get_application(db, application_id)
        return ApplicationResponse.model_validate(application)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        _internal_error(e, "getting application")


# ============================================
# Status changes
# ============================================


@router.patch(
    "/{application_id}/status",
    response_model=ApplicationResponse,
    summary="Update Application Status",
    description="""
Move an application to a new status and append a history entry.

Any status may move to any other, except that a withdrawn application can
only be moved back to `submitted`.
""",
    responses={
        404: {"description": "Application not found"},
        409: {
            "description": "Transition not allowed or concurrent modification",
            "content": {
                "application/json": {
                    "example": {
                        "detail": {
                            "error": "INVALID_STATUS_TRANSITION",
                            "message": (
                                "Withdrawn applications cannot be transitioned to this status"
                            ),
                        }
                    }
                }
            },
        },
    },
)
async def update_status(
    application_id: UUID,
    body: StatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
    context: RequestContext = Depends(request_context),
) -> ApplicationResponse:
    await enforce_rate_limit("admin_update_status", admin.id, *RATE_LIMIT_STATUS)

    try:
        application = await service.admin_update_status(
            db, application_id, body.status, admin, body.remarks, context
        )
        return ApplicationResponse.model_validate(application)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        _internal_error(e, "updating application status")


@router.post(
    "/bulk-status",
    response_model=BulkStatusUpdateResponse,
    summary="Bulk Update Status",
    description="""
Apply one status to up to 100 applications in a single transaction.

Unknown ids, and applications whose status cannot move to the target, are
skipped; `modified_count` reports how many changed.
""",
)
async def bulk_update_status(
    body: BulkStatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
    context: RequestContext = Depends(request_context),
) -> BulkStatusUpdateResponse:
    await enforce_rate_limit("admin_bulk_status", admin.id, *RATE_LIMIT_BULK_STATUS)

    try:
        return await service.admin_bulk_update_status(
            db, body.application_ids, body.status, admin, body.remarks, context
        )
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        _internal_error(e, "bulk updating application status")


# ============================================
# Review
# ============================================


@router.patch(
    "/{application_id}/review",
    response_model=ApplicationResponse,
    summary="Add Review Notes",
    description="Record review notes. Does not change status or history.",
)
async def add_review_notes(
    application_id: UUID,
    body: ReviewNotesRequest,
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(get_current_reviewer),
    context: RequestContext = Depends(request_context),
) -> ApplicationResponse:
    await enforce_rate_limit("admin_review_notes", reviewer.id, *RATE_LIMIT_REVIEW)

    try:
        application = await service.admin_add_review_notes(
            db, application_id, body.review_notes, reviewer, context
        )
        return ApplicationResponse.model_validate(application)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        _internal_error(e, "adding review notes")


@router.patch(
    "/{application_id}/sections/{section_type}/verify",
    response_model=SectionSaveResponse,
    summary="Verify Section",
    description="Mark a section's data and documents as verified, or clear the mark.",
    responses={404: {"description": "Application or section not found"}},
)
async def verify_section(
    application_id: UUID,
    section_type: SectionType,
    body: VerifySectionRequest,
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(get_current_reviewer),
    context: RequestContext = Depends(request_context),
) -> SectionSaveResponse:
    await enforce_rate_limit("admin_verify_section", reviewer.id, *RATE_LIMIT_REVIEW)

    try:
        section = await service.admin_verify_section(
            db, application_id, section_type, body.is_verified, reviewer, body.notes, context
        )
        return SectionSaveResponse(
            section_type=section_type,
            section=section,
            message="Section verified" if body.is_verified else "Section verification cleared",
        )
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        _internal_error(e, "verifying section")
