"""
Project dashboard API endpoints.

Endpoints:
- GET /api/v1/projects - Filtered project list for a tab
- GET /api/v1/projects/filter-options - Values for the filter bar
- POST /api/v1/projects/refresh - Reload the session's projects
- GET /api/v1/projects/{id} - Get project
- PATCH /api/v1/projects/{id} - Update project details
- POST /api/v1/projects/{id}/complete - Mark project completed
- DELETE /api/v1/projects/{id} - Delete project and its equipment
- GET /api/v1/projects/{id}/activity - Project activity log
- POST /api/v1/projects/{id}/recommendation-letter/request - Request letter
- POST /api/v1/projects/{id}/recommendation-letter/reminder - Send reminder
- POST /api/v1/projects/{id}/recommendation-letter/upload - Upload signed PDF
- GET /api/v1/projects/{id}/recommendation-letter - View received letter

Permissions:
- Reads: any role of the firm, scoped to visible projects
- Mutations and letter actions: role in MANAGER_ROLES
"""
from fastapi import APIRouter, Depends, Query, Response, UploadFile, File as UploadFileField, status
from fastapi.responses import JSONResponse

from projecthub.core.deps import (
    get_activity_log,
    get_letter_workflow,
    get_project_store,
    get_session_context,
)
from projecthub.core.exceptions import ValidationError, status_for_kind
from projecthub.core.session import SessionContext, require_manager
from projecthub.schemas.common import ActivityResponse
from projecthub.schemas.filters import (
    ALL_CLIENTS,
    ALL_EQUIPMENT,
    ALL_MANAGERS,
    ProjectFilters,
    ProjectTab,
)
from projecthub.schemas.letter import LetterUpload, TransitionOutcome, ViewableLetter
from projecthub.schemas.project import (
    FilterOptions,
    ProjectListResponse,
    ProjectRecord,
    ProjectResponse,
    ProjectUpdate,
)
from projecthub.services import filters as dashboard
from projecthub.services.activity import ActivityLog
from projecthub.services.project_store import ProjectStore
from projecthub.services.recommendation_letters import RecommendationLetterWorkflow

router = APIRouter()


def project_to_response(project: ProjectRecord) -> ProjectResponse:
    """Project record plus its equipment buckets in display order."""
    return ProjectResponse(
        **project.model_dump(exclude={"equipment_count"}),
        equipment=dashboard.breakdown_display(project),
    )


def outcome_response(outcome: TransitionOutcome):
    """Successful outcomes are returned as-is; failures carry their error status."""
    if outcome.ok:
        return outcome
    return JSONResponse(
        status_code=status_for_kind(outcome.error or ""),
        content=outcome.model_dump(mode="json"),
    )


def require_completed(store: ProjectStore, project_id: str) -> None:
    if not store.get(project_id).is_completed:
        raise ValidationError("Recommendation letters are only available for completed projects")


# ============================================================================
# LISTING
# ============================================================================

@router.get("", response_model=ProjectListResponse)
async def list_projects(
    client: str = Query(ALL_CLIENTS),
    manager: str = Query(ALL_MANAGERS),
    equipment_type: str = Query(ALL_EQUIPMENT),
    search: str = Query(""),
    tab: ProjectTab = Query(ProjectTab.ALL),
    store: ProjectStore = Depends(get_project_store),
):
    """List the session's projects through the filter bar and one tab."""
    filters = ProjectFilters(
        client=client,
        manager=manager,
        equipment_type=equipment_type,
        search_query=search,
    )
    projects = store.snapshot()
    filtered = dashboard.apply_filters(projects, filters)
    items = dashboard.select_tab(filtered, tab)

    return ProjectListResponse(
        tab=tab.value,
        totalItems=len(items),
        items=[project_to_response(p) for p in items],
        tab_counts=dashboard.tab_counts(filtered),
        totals=dashboard.dashboard_totals(projects, filtered, filters),
    )


@router.get("/filter-options", response_model=FilterOptions)
async def get_filter_options(store: ProjectStore = Depends(get_project_store)):
    return dashboard.filter_options(store.snapshot())


@router.post("/refresh", response_model=ProjectListResponse)
async def refresh_projects(
    session: SessionContext = Depends(get_session_context),
    store: ProjectStore = Depends(get_project_store),
):
    """Reload the project list from the database."""
    projects = await store.load(session)
    return ProjectListResponse(
        tab=ProjectTab.ALL.value,
        totalItems=len(projects),
        items=[project_to_response(p) for p in dashboard.select_tab(projects, ProjectTab.ALL)],
        tab_counts=dashboard.tab_counts(projects),
        totals=dashboard.dashboard_totals(projects, projects, ProjectFilters()),
    )


# ============================================================================
# SINGLE PROJECT
# ============================================================================

@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(project_id: str, store: ProjectStore = Depends(get_project_store)):
    return project_to_response(store.get(project_id))


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    data: ProjectUpdate,
    session: SessionContext = Depends(get_session_context),
    store: ProjectStore = Depends(get_project_store),
):
    """Update project details. Requires a manager role."""
    require_manager(session)
    updated = await store.update_details(project_id, data, session)
    return project_to_response(updated)


@router.post("/{project_id}/complete", response_model=ProjectResponse)
async def complete_project(
    project_id: str,
    session: SessionContext = Depends(get_session_context),
    store: ProjectStore = Depends(get_project_store),
):
    """Mark a project completed. Requires a manager role."""
    require_manager(session)
    updated = await store.mark_completed(project_id, session)
    return project_to_response(updated)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: str,
    session: SessionContext = Depends(get_session_context),
    store: ProjectStore = Depends(get_project_store),
):
    """Delete a project and its equipment. Requires a manager role."""
    require_manager(session)
    await store.remove(project_id, session)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{project_id}/activity", response_model=list[ActivityResponse])
async def list_project_activity(
    project_id: str,
    limit: int = Query(50, ge=1, le=200),
    store: ProjectStore = Depends(get_project_store),
    activity: ActivityLog = Depends(get_activity_log),
):
    store.get(project_id)
    return await activity.list_for_project(project_id, limit)


# ============================================================================
# RECOMMENDATION LETTER
# ============================================================================

@router.post("/{project_id}/recommendation-letter/request", response_model=TransitionOutcome)
async def request_recommendation_letter(
    project_id: str,
    session: SessionContext = Depends(get_session_context),
    store: ProjectStore = Depends(get_project_store),
    workflow: RecommendationLetterWorkflow = Depends(get_letter_workflow),
):
    require_manager(session)
    require_completed(store, project_id)
    return outcome_response(await workflow.request(project_id, session))


@router.post("/{project_id}/recommendation-letter/reminder", response_model=TransitionOutcome)
async def send_recommendation_reminder(
    project_id: str,
    session: SessionContext = Depends(get_session_context),
    store: ProjectStore = Depends(get_project_store),
    workflow: RecommendationLetterWorkflow = Depends(get_letter_workflow),
):
    require_manager(session)
    require_completed(store, project_id)
    return outcome_response(await workflow.send_reminder(project_id, session))


@router.post("/{project_id}/recommendation-letter/upload", response_model=TransitionOutcome)
async def upload_recommendation_letter(
    project_id: str,
    upload: UploadFile = UploadFileField(...),
    session: SessionContext = Depends(get_session_context),
    store: ProjectStore = Depends(get_project_store),
    workflow: RecommendationLetterWorkflow = Depends(get_letter_workflow),
):
    """Upload the signed letter PDF returned by the client."""
    require_manager(session)
    require_completed(store, project_id)

    content = await upload.read()
    letter = LetterUpload(
        filename=upload.filename or "Recommendation_Letter.pdf",
        content_type=upload.content_type,
        data=content,
    )
    return outcome_response(await workflow.upload(project_id, letter, session))


@router.get("/{project_id}/recommendation-letter", response_model=ViewableLetter)
async def view_recommendation_letter(
    project_id: str,
    workflow: RecommendationLetterWorkflow = Depends(get_letter_workflow),
):
    return workflow.view(project_id)
