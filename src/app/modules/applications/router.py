"""
Applications Router

API endpoints for applicants filling in and submitting job applications.
All endpoints require an authenticated user; applicants can only reach their
own applications.

Endpoints:
- POST /applications - Start an application for a job
- GET /applications - List my applications
- GET /applications/{id} - Get an application
- DELETE /applications/{id} - Delete a draft application
- PATCH /applications/{id}/sections/{section_type} - Save section data
- POST /applications/{id}/sections/{section_type}/file - Upload a section file
- DELETE /applications/{id}/sections/{section_type}/file - Delete a section file
- POST /applications/{id}/sections/{section_type}/validate - Validate a saved section
- GET /applications/{id}/credit-points - Credit points summary
- GET /applications/{id}/submission-check - Run the submission gate
- POST /applications/{id}/submit - Submit the application
- POST /applications/{id}/withdraw - Withdraw a submitted application
"""

import logging
from typing import NoReturn
from uuid import UUID

from fastapi import APIRouter, Body, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, get_current_user
from app.core.database import get_db
from app.core.rate_limit import enforce_rate_limit
from app.core.storage import BlobStore, get_blob_store
from app.modules.applications import service
from app.modules.applications.models import ApplicationStatus
from app.modules.applications.schemas import (
    ApplicationCreate,
    ApplicationListResponse,
    ApplicationResponse,
    ApplicationSummary,
    CreditPointsSummary,
    SectionDataSave,
    SectionSaveResponse,
    SectionValidationResponse,
    SubmissionCheckResponse,
    SubmitResponse,
    WithdrawRequest,
    WithdrawResponse,
)
from app.modules.applications.service import ApplicationServiceError
from app.modules.audit.service import RequestContext, request_context
from app.modules.jobs.models import SectionType

logger = logging.getLogger(__name__)

router = APIRouter()

# Rate limits (requests, window seconds)
RATE_LIMIT_CREATE = (10, 3600)
RATE_LIMIT_UPLOAD = (30, 60)
RATE_LIMIT_SUBMIT = (5, 60)

# Rejects oversized uploads before the per-section checks run
MAX_UPLOAD_BYTES = 50 * 1024 * 1024


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


# ============================================
# Application lifecycle
# ============================================


@router.post(
    "",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start Application",
    description="""
Start a draft application for a published job.

The job's required sections and custom fields are copied into the application
at this point; later edits to the job do not affect it.

**Rules:**
- One application per user per job
- The job must be published and its application window open
""",
    responses={
        201: {"description": "Draft application created", "model": ApplicationResponse},
        404: {"description": "Job not found"},
        409: {
            "description": "Duplicate application, job not published, or deadline passed",
            "content": {
                "application/json": {
                    "example": {
                        "detail": {
                            "error": "DUPLICATE_APPLICATION",
                            "message": "Application already exists for this job",
                        }
                    }
                }
            },
        },
    },
)
async def create_application(
    data: ApplicationCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    context: RequestContext = Depends(request_context),
) -> ApplicationResponse:
    await enforce_rate_limit("create_application", user.id, *RATE_LIMIT_CREATE)

    try:
        application = await service.create_application(db, user, data.job_id, context)
        return ApplicationResponse.model_validate(application)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        _internal_error(e, "creating application")


@router.get(
    "",
    response_model=ApplicationListResponse,
    summary="List My Applications",
)
async def list_my_applications(
    status_filter: ApplicationStatus | None = Query(None, alias="status"),
    job_id: UUID | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ApplicationListResponse:
    try:
        result = await service.list_my_applications(
            db, user, status=status_filter, job_id=job_id, skip=skip, limit=limit
        )
        return ApplicationListResponse(
            applications=[ApplicationSummary.from_application(a) for a in result["applications"]],
            total=result["total"],
            skip=result["skip"],
            limit=result["limit"],
        )
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        _internal_error(e, "listing applications")


@router.get(
    "/{application_id}",
    response_model=ApplicationResponse,
    summary="Get Application",
    responses={403: {"description": "Not your application"}, 404: {"description": "Not found"}},
)
async def get_application(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ApplicationResponse:
    try:
        application = await service.get_application(db, application_id, user)
        return ApplicationResponse.model_validate(application)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        _internal_error(e, "getting application")


@router.delete(
    "/{application_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Draft Application",
    description="Delete one of your applications while it is still a draft.",
)
async def delete_application(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    blob_store: BlobStore = Depends(get_blob_store),
    context: RequestContext = Depends(request_context),
) -> None:
    try:
        await service.delete_application(db, application_id, user, blob_store, context)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        _internal_error(e, "deleting application")


# ============================================
# Sections
# ============================================


@router.patch(
    "/{application_id}/sections/{section_type}",
    response_model=SectionSaveResponse,
    summary="Save Section Data",
    description="""
Validate and save one section's data.

The payload shape depends on the section type. List sections take
`{"items": [...]}`; the `custom` section takes one key per custom field.
On validation failure nothing is saved and every field error is returned.
""",
    responses={
        400: {"description": "Section not part of this job"},
        409: {"description": "Application is locked"},
        422: {
            "description": "Section data failed validation",
            "content": {
                "application/json": {
                    "example": {
                        "detail": {
                            "error": "SECTION_VALIDATION_FAILED",
                            "message": "Validation failed for section 'personal'",
                            "errors": [
                                {
                                    "field": "mobile",
                                    "message": (
                                        "Invalid mobile number (10 digits, starting with 6-9)"
                                    ),
                                }
                            ],
                        }
                    }
                }
            },
        },
    },
)
async def save_section_data(
    application_id: UUID,
    section_type: SectionType,
    body: SectionDataSave,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> SectionSaveResponse:
    try:
        section = await service.save_section_data(
            db, application_id, user, section_type, body.data
        )
        return SectionSaveResponse(section_type=section_type, section=section)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        _internal_error(e, "saving section")


@router.post(
    "/{application_id}/sections/{section_type}/file",
    response_model=SectionSaveResponse,
    summary="Upload Section File",
    description="""
Upload the file for a section. Photo and signature take JPEG images
(200 KB / 50 KB); final documents take a PDF up to 3 MB; other sections take
a PDF up to the job's configured size (5 MB by default). File type is
checked from the content, not the declared content type.
""",
)
async def upload_section_file(
    application_id: UUID,
    section_type: SectionType,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    blob_store: BlobStore = Depends(get_blob_store),
) -> SectionSaveResponse:
    await enforce_rate_limit("upload_file", user.id, *RATE_LIMIT_UPLOAD)

    content = await file.read(MAX_UPLOAD_BYTES + 1)
    if len(content) > MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail={"error": "FILE_TOO_LARGE", "message": "Uploaded file is too large"},
        )

    try:
        section = await service.save_section_file(
            db,
            application_id,
            user,
            section_type,
            content,
            file.filename or section_type.value,
            blob_store,
        )
        return SectionSaveResponse(
            section_type=section_type, section=section, message="File uploaded successfully"
        )
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        _internal_error(e, "uploading section file")


@router.delete(
    "/{application_id}/sections/{section_type}/file",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Section File",
)
async def delete_section_file(
    application_id: UUID,
    section_type: SectionType,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    blob_store: BlobStore = Depends(get_blob_store),
) -> None:
    try:
        await service.delete_section_file(db, application_id, user, section_type, blob_store)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        _internal_error(e, "deleting section file")


@router.post(
    "/{application_id}/sections/{section_type}/validate",
    response_model=SectionValidationResponse,
    summary="Validate Section",
    description="Re-check a saved section against the job's rules. Nothing is changed.",
)
async def validate_section(
    application_id: UUID,
    section_type: SectionType,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> SectionValidationResponse:
    try:
        return await service.validate_saved_section(db, application_id, user, section_type)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        _internal_error(e, "validating section")


@router.get(
    "/{application_id}/credit-points",
    response_model=CreditPointsSummary,
    summary="Credit Points Summary",
    description="Credit points calculated from saved sections, plus manually claimed points.",
)
async def get_credit_points(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> CreditPointsSummary:
    try:
        return await service.get_credit_points_summary(db, application_id, user)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        _internal_error(e, "calculating credit points")


# ============================================
# Submission
# ============================================


@router.get(
    "/{application_id}/submission-check",
    response_model=SubmissionCheckResponse,
    summary="Check Submission Readiness",
    description="""
Run every submission check without submitting and return all problems at
once: application state, mandatory sections and files, section data
validity, and the job's live deadline.
""",
)
async def check_submission(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> SubmissionCheckResponse:
    try:
        return await service.check_submission(db, application_id, user)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        _internal_error(e, "checking submission")


@router.post(
    "/{application_id}/submit",
    response_model=SubmitResponse,
    summary="Submit Application",
    description="""
Submit a draft application. On success it is locked and can no longer be
edited. If any check fails, the response lists every error.
""",
    responses={
        409: {"description": "Application is not a draft"},
        422: {"description": "Submission blocked; see `errors`"},
    },
)
async def submit_application(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    context: RequestContext = Depends(request_context),
) -> SubmitResponse:
    await enforce_rate_limit("submit_application", user.id, *RATE_LIMIT_SUBMIT)

    try:
        return await service.submit_application(db, application_id, user, context)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        _internal_error(e, "submitting application")


@router.post(
    "/{application_id}/withdraw",
    response_model=WithdrawResponse,
    summary="Withdraw Application",
    description="Withdraw a submitted application. The application stays locked.",
    responses={409: {"description": "Application is not submitted"}},
)
async def withdraw_application(
    application_id: UUID,
    body: WithdrawRequest | None = Body(None),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    context: RequestContext = Depends(request_context),
) -> WithdrawResponse:
    try:
        return await service.withdraw_application(
            db, application_id, user, body.reason if body else None, context
        )
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        _internal_error(e, "withdrawing application")
