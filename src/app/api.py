from fastapi import APIRouter

from app.modules.applications import admin_router as admin_applications_router
from app.modules.applications import router as applications_router
from app.modules.jobs import admin_router as admin_jobs_router
from app.modules.jobs import router as jobs_router

api_router = APIRouter()

api_router.include_router(jobs_router, prefix="/jobs", tags=["Jobs"])

api_router.include_router(admin_jobs_router, prefix="/admin/jobs", tags=["Admin - Jobs"])

api_router.include_router(applications_router, prefix="/applications", tags=["Applications"])

api_router.include_router(
    admin_applications_router,
    prefix="/admin/applications",
    tags=["Admin - Applications"],
)
