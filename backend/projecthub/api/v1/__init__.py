"""
API v1 routers.
"""
from fastapi import APIRouter

from projecthub.api.v1 import certificates, health, projects
from projecthub.schemas.common import ErrorResponse

api_router = APIRouter(
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    }
)
api_router.include_router(health.router, tags=["health"])
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(certificates.router, prefix="/certificates", tags=["certificates"])
