"""
Jobs Admin Router

Job posting authoring for administrators.

Endpoints:
- POST /admin/jobs - Create a draft job posting
- GET /admin/jobs/{id} - Get any job posting
- POST /admin/jobs/{id}/publish - Publish a job
- POST /admin/jobs/{id}/close - Close a job to new applications
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, get_current_admin_user
from app.core.database import get_db
from app.modules.audit import AuditAction, record_event
from app.modules.audit.service import RequestContext, request_context
from app.modules.jobs import service
from app.modules.jobs.schemas import JobCreate, JobResponse
from app.modules.jobs.service import JobServiceError

logger = logging.getLogger(__name__)

router = APIRouter()

RESOURCE_TYPE = "job"


def _handle_service_error(e: JobServiceError) -> None:
    """Convert service errors to HTTPExceptions."""
    raise HTTPException(
        status_code=e.status_code,
        detail={
            "error": e.error_code,
            "message": e.message,
        },
    ) from e


def _internal_error(e: Exception, action: str) -> None:
    logger.exception(f"Error {action}: {e}")
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    ) from e


@router.post(
    "",
    response_model=JobResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Job",
    description="""
Create a draft job posting.

`required_sections` lists the sections applicants must fill in, with
per-section mandatory and file-upload rules. `custom_fields` adds
job-specific questions collected in the `custom` section.
""",
    responses={409: {"description": "Advertisement number already used"}},
)
async def create_job(
    data: JobCreate,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
    context: RequestContext = Depends(request_context),
) -> JobResponse:
    try:
        job = await service.create_job(db, data)
    except JobServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        _internal_error(e, "creating job")

    await record_event(
        user_id=admin.id,
        action=AuditAction.JOB_CREATED,
        resource_type=RESOURCE_TYPE,
        resource_id=job.id,
        changes={"advertisement_no": job.advertisement_no, "title": job.title},
        context=context,
    )
    return JobResponse.model_validate(job)


@router.get(
    "/{job_id}",
    response_model=JobResponse,
    summary="Get Job (Admin)",
)
async def get_job(
    job_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> JobResponse:
    try:
        return JobResponse.model_validate(await service.get_job(db, job_id))
    except JobServiceError as e:
        _handle_service_error(e)


@router.post(
    "/{job_id}/publish",
    response_model=JobResponse,
    summary="Publish Job",
    responses={409: {"description": "Job cannot be published from its current status"}},
)
async def publish_job(
    job_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
    context: RequestContext = Depends(request_context),
) -> JobResponse:
    try:
        job = await service.publish_job(db, job_id)
    except JobServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        _internal_error(e, "publishing job")

    await record_event(
        user_id=admin.id,
        action=AuditAction.JOB_PUBLISHED,
        resource_type=RESOURCE_TYPE,
        resource_id=job.id,
        context=context,
    )
    return JobResponse.model_validate(job)


@router.post(
    "/{job_id}/close",
    response_model=JobResponse,
    summary="Close Job",
    description="Stop accepting applications. Drafts for this job can no longer be submitted.",
)
async def close_job(
    job_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
    context: RequestContext = Depends(request_context),
) -> JobResponse:
    try:
        job = await service.close_job(db, job_id)
    except JobServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        _internal_error(e, "closing job")

    await record_event(
        user_id=admin.id,
        action=AuditAction.JOB_CLOSED,
        resource_type=RESOURCE_TYPE,
        resource_id=job.id,
        context=context,
    )
    return JobResponse.model_validate(job)
