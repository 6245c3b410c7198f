"""
Health check endpoint.
"""
from fastapi import APIRouter

from projecthub.core.config import settings
from projecthub.schemas.common import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    return HealthResponse(
        message=f"{settings.APP_NAME} is healthy.",
        environment=settings.APP_ENV,
    )
