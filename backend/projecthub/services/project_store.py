"""
Project store.

Holds the session's list of project records and keeps it in step with the
remote project collaborator. Every mutation is written remotely first; the
in-memory list changes only once that write succeeded, and always by
replacing the whole list or one whole record so readers (filters, the
certificate report) never observe a half-applied change.
"""
import asyncio
import logging
from datetime import date
from typing import Any, Optional

from pydantic import ValidationError as SchemaValidationError

from projecthub.core.exceptions import NotFoundError, ProjectHubError, ValidationError
from projecthub.core.session import SessionContext, require_firm
from projecthub.models.activity import ActivityAction
from projecthub.models.project import ProjectStatus
from projecthub.schemas.project import ProjectRecord, ProjectUpdate
from projecthub.services.activity import ActivityLog
from projecthub.services.filters import derive_breakdown, utc_today
from projecthub.services.gateways import EquipmentGateway, ProjectGateway

logger = logging.getLogger(__name__)


class ProjectStore:
    """In-memory project list for one session scope."""

    def __init__(
        self,
        projects: ProjectGateway,
        equipment: EquipmentGateway,
        activity: Optional[ActivityLog] = None,
    ):
        self._projects_api = projects
        self._equipment_api = equipment
        self._activity = activity
        self._projects: list[ProjectRecord] = []
        self._load_lock = asyncio.Lock()
        self.loaded = False

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def snapshot(self) -> list[ProjectRecord]:
        return list(self._projects)

    def get(self, project_id: str) -> ProjectRecord:
        for project in self._projects:
            if project.id == project_id:
                return project
        raise NotFoundError("Project not found")

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def _build_record(self, row: dict[str, Any]) -> ProjectRecord:
        try:
            equipment = await self._equipment_api.list_by_project(row["id"])
        except ProjectHubError as e:
            logger.warning(f"Equipment fetch failed for project {row['id']}: {e}")
            equipment = []

        breakdown, type_names = derive_breakdown(equipment)
        return self._validate_row(row, breakdown, type_names)

    def _validate_row(
        self,
        row: dict[str, Any],
        breakdown: dict[str, int],
        type_names: dict[str, str],
    ) -> ProjectRecord:
        data = {**row, "equipment_breakdown": breakdown, "equipment_type_names": type_names}
        try:
            return ProjectRecord.model_validate(data)
        except SchemaValidationError as e:
            # Tolerate a malformed letter record rather than dropping the project
            logger.warning(f"Ignoring invalid recommendation letter on project {row['id']}: {e}")
            return ProjectRecord.model_validate({**data, "recommendation_letter": None})

    async def load(self, session: SessionContext) -> list[ProjectRecord]:
        """
        Fetch the projects visible to a session and replace the list.

        Args:
            session: Firm scope and role of the caller

        Returns:
            The new snapshot

        Raises:
            ValidationError: the session has no firm
            CollaboratorError: the project listing failed (list unchanged)
        """
        firm_id = require_firm(session)
        rows = await self._projects_api.list_by_firm(firm_id, session.role, session.user_id)
        records = await asyncio.gather(*(self._build_record(row) for row in rows))

        self._projects = list(records)
        self.loaded = True
        logger.info(f"Loaded {len(self._projects)} projects for firm {firm_id}")
        return self.snapshot()

    async def ensure_loaded(self, session: SessionContext) -> None:
        if self.loaded:
            return
        async with self._load_lock:
            if not self.loaded:
                await self.load(session)

    async def refresh(self, project_id: str) -> ProjectRecord:
        """
        Re-read one project from the remote collaborator and replace it.

        Other session scopes write through their own stores, so the cached
        copy can be stale. The equipment breakdown is kept as loaded.
        """
        current = self.get(project_id)
        row = await self._projects_api.get_by_id(project_id)
        record = self._validate_row(row, current.equipment_breakdown, current.equipment_type_names)
        self._replace(record)
        return record

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _replace(self, record: ProjectRecord) -> None:
        self._projects = [record if p.id == record.id else p for p in self._projects]

    async def _log(
        self,
        project_id: str,
        action: ActivityAction,
        description: str,
        changes: Optional[dict[str, Any]] = None,
        session: Optional[SessionContext] = None,
    ) -> None:
        if self._activity is not None:
            await self._activity.record(project_id, action, description, changes, session)

    async def upsert(self, project_id: str, patch: dict[str, Any]) -> ProjectRecord:
        """
        Apply a partial update to one project.

        The patch uses persisted field names. It is validated against the
        record schema, written remotely, and only then reflected locally.
        """
        current = self.get(project_id)
        try:
            updated = ProjectRecord.model_validate(
                {**current.model_dump(exclude={"equipment_count"}), **patch}
            )
        except SchemaValidationError as e:
            raise ValidationError(f"Invalid project update: {e.errors()[0]['msg']}") from e

        await self._projects_api.update(project_id, patch)
        self._replace(updated)
        return updated

    async def update_details(
        self,
        project_id: str,
        update: ProjectUpdate,
        session: Optional[SessionContext] = None,
    ) -> ProjectRecord:
        """Edit the descriptive fields of a project."""
        patch = update.model_dump(exclude_unset=True, exclude_none=True)
        if not patch:
            raise ValidationError("No changes to apply")

        before = self.get(project_id)
        updated = await self.upsert(project_id, patch)

        changes = {
            field: {"old": str(getattr(before, field)), "new": str(getattr(updated, field))}
            for field in patch
            if getattr(before, field) != getattr(updated, field)
        }
        await self._log(project_id, ActivityAction.PROJECT_UPDATED, f"Updated {updated.name}", changes, session)
        return updated

    async def mark_completed(
        self,
        project_id: str,
        session: Optional[SessionContext] = None,
        today: Optional[date] = None,
    ) -> ProjectRecord:
        """Set status=completed, completed_date=today and progress=100."""
        before = self.get(project_id)
        completed_on = today or utc_today()
        updated = await self.upsert(project_id, {
            "status": ProjectStatus.COMPLETED.value,
            "completed_date": completed_on,
            "progress": 100,
        })

        await self._log(
            project_id,
            ActivityAction.PROJECT_COMPLETED,
            f"Marked {updated.name} as completed",
            {
                "status": {"old": before.status.value, "new": ProjectStatus.COMPLETED.value},
                "progress": {"old": before.progress, "new": 100},
            },
            session,
        )
        return updated

    async def remove(self, project_id: str, session: Optional[SessionContext] = None) -> None:
        """
        Delete a project and, best-effort, its equipment.

        Equipment deletion failures are logged and skipped; the project
        deletion itself must succeed before the record leaves the list.
        """
        project = self.get(project_id)

        try:
            equipment = await self._equipment_api.list_by_project(project_id)
        except ProjectHubError as e:
            logger.warning(f"Could not list equipment of project {project_id}: {e}")
            equipment = []

        for unit in equipment:
            try:
                await self._equipment_api.delete(unit["id"])
            except ProjectHubError as e:
                logger.warning(f"Could not delete equipment {unit['id']} of project {project_id}: {e}")

        await self._projects_api.delete(project_id)
        self._projects = [p for p in self._projects if p.id != project_id]
        logger.info(f"Deleted project {project_id} ({project.name})")

        await self._log(project_id, ActivityAction.PROJECT_DELETED, f"Deleted {project.name}", None, session)


class StoreRegistry:
    """One project store per session scope for the lifetime of the process."""

    def __init__(
        self,
        projects: ProjectGateway,
        equipment: EquipmentGateway,
        activity: Optional[ActivityLog] = None,
    ):
        self.projects = projects
        self.equipment = equipment
        self.activity = activity
        self._stores: dict[tuple[str, str, str], ProjectStore] = {}

    def get(self, session: SessionContext) -> ProjectStore:
        require_firm(session)
        store = self._stores.get(session.scope_key)
        if store is None:
            store = ProjectStore(self.projects, self.equipment, self.activity)
            self._stores[session.scope_key] = store
        return store

    def clear(self) -> None:
        self._stores.clear()
