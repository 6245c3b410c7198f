"""
Completion certificate endpoints.

Endpoints:
- GET /api/v1/certificates - Letter collection summary for completed projects
"""
from fastapi import APIRouter, Depends, Query

from projecthub.core.deps import get_project_store
from projecthub.schemas.certificate import CertificateSummary, CertificateTab
from projecthub.services.certificates import summarize
from projecthub.services.project_store import ProjectStore

router = APIRouter()


@router.get("", response_model=CertificateSummary)
async def get_certificates(
    tab: CertificateTab = Query(CertificateTab.ALL),
    store: ProjectStore = Depends(get_project_store),
):
    """Completed projects with their recommendation letter state."""
    return summarize(store.snapshot(), tab)
