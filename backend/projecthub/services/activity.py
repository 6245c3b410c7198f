"""
Project activity log.

Recording is best-effort: a failed audit write is logged and never fails
the action that triggered it.
"""
import logging
from typing import Any, Optional
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from projecthub.core.exceptions import CollaboratorError
from projecthub.core.session import SessionContext
from projecthub.db.base import async_session_maker
from projecthub.models.activity import ActivityAction, ProjectActivity
from projecthub.schemas.common import ActivityResponse

logger = logging.getLogger(__name__)


class ActivityLog:
    def __init__(self, session_maker: Optional[async_sessionmaker] = None):
        self._session_maker = session_maker or async_session_maker

    async def record(
        self,
        project_id: str,
        action: ActivityAction,
        description: str,
        changes: Optional[dict[str, Any]] = None,
        session: Optional[SessionContext] = None,
    ) -> None:
        entry = ProjectActivity(
            project_id=project_id,
            firm_id=session.firm_id if session else None,
            user_id=session.user_id if session else None,
            action=action,
            description=description,
            changes=changes,
        )
        try:
            async with self._session_maker() as db:
                db.add(entry)
                await db.commit()
        except SQLAlchemyError as e:
            logger.warning(f"Failed to record {action.value} for project {project_id}: {e}")

    async def list_for_project(self, project_id: str, limit: int = 50) -> list[ActivityResponse]:
        """Activity entries for a project, newest first."""
        try:
            async with self._session_maker() as db:
                result = await db.execute(
                    select(ProjectActivity)
                    .where(ProjectActivity.project_id == project_id)
                    .order_by(ProjectActivity.created.desc(), ProjectActivity.id)
                    .limit(limit)
                )
                entries = result.scalars().all()
        except SQLAlchemyError as e:
            raise CollaboratorError(f"Failed to load activity for {project_id}: {e}") from e

        return [
            ActivityResponse(
                id=entry.id,
                project_id=entry.project_id,
                action=entry.action.value,
                description=entry.description,
                changes=entry.changes,
                user_id=entry.user_id,
                created=entry.created,
            )
            for entry in entries
        ]
