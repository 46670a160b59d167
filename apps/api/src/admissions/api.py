from fastapi import APIRouter

from admissions.modules.applications.admin_router import router as admin_applications_router
from admissions.modules.applications.router import router as applications_router
from admissions.modules.documents.admin_router import router as admin_documents_router
from admissions.modules.documents.router import router as documents_router

api_router = APIRouter()

api_router.include_router(applications_router, prefix="/applications", tags=["Applications"])

api_router.include_router(documents_router, prefix="/applications", tags=["Documents"])

api_router.include_router(
    admin_applications_router,
    prefix="/admin/applications",
    tags=["Admin - Applications"],
)

api_router.include_router(
    admin_documents_router,
    prefix="/admin/documents",
    tags=["Admin - Documents"],
)
