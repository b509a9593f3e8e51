"""
Jobs Router

Public endpoints for browsing published job postings.

Endpoints:
- GET /jobs - List published jobs
- GET /jobs/{id} - Get a published job with its section requirements
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.modules.jobs import service
from app.modules.jobs.schemas import JobListResponse, JobResponse
from app.modules.jobs.service import JobServiceError

logger = logging.getLogger(__name__)

router = APIRouter()


def _handle_service_error(e: JobServiceError) -> None:
    """Convert service errors to HTTPExceptions."""
    raise HTTPException(
        status_code=e.status_code,
        detail={
            "error": e.error_code,
            "message": e.message,
        },
    ) from e


@router.get(
    "",
    response_model=JobListResponse,
    summary="List Published Jobs",
    description="Published job postings, ordered by application deadline.",
)
async def list_jobs(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> JobListResponse:
    try:
        result = await service.list_published_jobs(db, skip=skip, limit=limit)
        return JobListResponse(
            jobs=[JobResponse.model_validate(job) for job in result["jobs"]],
            total=result["total"],
            skip=result["skip"],
            limit=result["limit"],
        )
    except Exception as e:
        logger.exception(f"Error listing jobs: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "INTERNAL_ERROR",
                "message": "An unexpected error occurred.",
            },
        ) from e


@router.get(
    "/{job_id}",
    response_model=JobResponse,
    summary="Get Job",
    responses={404: {"description": "Job not found or not published"}},
)
async def get_job(
    job_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> JobResponse:
    try:
        job = await service.get_published_job(db, job_id)
        return JobResponse.model_validate(job)
    except JobServiceError as e:
        _handle_service_error(e)
