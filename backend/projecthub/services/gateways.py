"""
Remote persistence collaborators for the project store.

The store never touches the ORM directly: it talks to these gateways, which
open their own short-lived sessions and exchange plain dicts. Database
failures surface as ``CollaboratorError``; missing rows as ``NotFoundError``.
"""
import logging
from datetime import date
from typing import Any, Optional
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from projecthub.core.config import settings
from projecthub.core.exceptions import CollaboratorError, NotFoundError, ValidationError
from projecthub.db.base import async_session_maker
from projecthub.models.project import Project, ProjectStatus
from projecthub.models.equipment import Equipment

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {
    "name",
    "client",
    "location",
    "manager",
    "po_number",
    "deadline",
    "status",
    "progress",
    "completed_date",
    "scope_of_work",
    "client_focal_point",
    "member_ids",
    "recommendation_letter",
    "unpriced_po_documents",
    "design_inputs_documents",
    "client_reference_documents",
    "other_documents",
}

DATE_FIELDS = {"deadline", "completed_date"}


def project_to_dict(project: Project) -> dict[str, Any]:
    """Convert a Project row to the record shape handed to the store."""
    return {
        "id": project.id,
        "firm_id": project.firm_id,
        "name": project.name,
        "client": project.client,
        "location": project.location,
        "manager": project.manager,
        "po_number": project.po_number,
        "deadline": project.deadline.isoformat() if project.deadline else None,
        "status": project.status.value if project.status else ProjectStatus.ACTIVE.value,
        "progress": project.progress or 0,
        "completed_date": project.completed_date,
        "scope_of_work": project.scope_of_work,
        "client_focal_point": project.client_focal_point,
        "created_by": project.created_by,
        "member_ids": list(project.member_ids or []),
        "unpriced_po_documents": list(project.unpriced_po_documents or []),
        "design_inputs_documents": list(project.design_inputs_documents or []),
        "client_reference_documents": list(project.client_reference_documents or []),
        "other_documents": list(project.other_documents or []),
        "recommendation_letter": project.recommendation_letter,
    }


def equipment_to_dict(equipment: Equipment) -> dict[str, Any]:
    return {
        "id": equipment.id,
        "project_id": equipment.project_id,
        "type": equipment.type,
        "tag_number": equipment.tag_number,
        "job_number": equipment.job_number,
        "manufacturing_serial": equipment.manufacturing_serial,
    }


def _coerce_value(field: str, value: Any) -> Any:
    if value is None:
        return None
    if field in DATE_FIELDS and isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            raise ValidationError(f"Invalid date for {field}: {value}")
    if field == "status":
        try:
            return ProjectStatus(value)
        except ValueError:
            raise ValidationError(f"Invalid status: {value}")
    return value


class ProjectGateway:
    """Remote project collaborator backed by the projects table."""

    def __init__(self, session_maker: Optional[async_sessionmaker] = None):
        self._session_maker = session_maker or async_session_maker

    async def list_by_firm(
        self,
        firm_id: str,
        role: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        """
        List the projects of a firm visible to a role.

        Args:
            firm_id: Firm scope
            role: Session role; None or a full-access role sees every project
            user_id: Session user, used for the restricted roles

        Returns:
            Project records, newest first
        """
        try:
            async with self._session_maker() as db:
                result = await db.execute(
                    select(Project)
                    .where(Project.firm_id == firm_id)
                    .order_by(Project.created.desc(), Project.id)
                )
                rows = [project_to_dict(p) for p in result.scalars().all()]
        except SQLAlchemyError as e:
            raise CollaboratorError(f"Failed to list projects: {e}") from e

        if role is None or role in settings.FULL_ACCESS_ROLES:
            return rows
        return [
            row for row in rows
            if user_id and (row["created_by"] == user_id or user_id in row["member_ids"])
        ]

    async def get_by_id(self, project_id: str) -> dict[str, Any]:
        try:
            async with self._session_maker() as db:
                project = await db.get(Project, project_id)
                if project is None:
                    raise NotFoundError("Project not found")
                return project_to_dict(project)
        except SQLAlchemyError as e:
            raise CollaboratorError(f"Failed to load project {project_id}: {e}") from e

    async def update(self, project_id: str, patch: dict[str, Any]) -> None:
        unknown = set(patch) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown project fields: {', '.join(sorted(unknown))}")

        try:
            async with self._session_maker() as db:
                project = await db.get(Project, project_id)
                if project is None:
                    raise NotFoundError("Project not found")
                for field, value in patch.items():
                    setattr(project, field, _coerce_value(field, value))
                await db.commit()
        except SQLAlchemyError as e:
            raise CollaboratorError(f"Failed to update project {project_id}: {e}") from e

    async def delete(self, project_id: str) -> None:
        try:
            async with self._session_maker() as db:
                project = await db.get(Project, project_id)
                if project is None:
                    raise NotFoundError("Project not found")
                await db.delete(project)
                await db.commit()
        except SQLAlchemyError as e:
            raise CollaboratorError(f"Failed to delete project {project_id}: {e}") from e


class EquipmentGateway:
    """Remote equipment collaborator backed by the equipment table."""

    def __init__(self, session_maker: Optional[async_sessionmaker] = None):
        self._session_maker = session_maker or async_session_maker

    async def list_by_project(self, project_id: str) -> list[dict[str, Any]]:
        try:
            async with self._session_maker() as db:
                result = await db.execute(
                    select(Equipment)
                    .where(Equipment.project_id == project_id)
                    .order_by(Equipment.created, Equipment.id)
                )
                return [equipment_to_dict(e) for e in result.scalars().all()]
        except SQLAlchemyError as e:
            raise CollaboratorError(f"Failed to list equipment for {project_id}: {e}") from e

    async def delete(self, equipment_id: str) -> None:
        try:
            async with self._session_maker() as db:
                equipment = await db.get(Equipment, equipment_id)
                if equipment is None:
                    raise NotFoundError("Equipment not found")
                await db.delete(equipment)
                await db.commit()
        except SQLAlchemyError as e:
            raise CollaboratorError(f"Failed to delete equipment {equipment_id}: {e}") from e
