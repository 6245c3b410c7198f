"""
Project activity log model.

Audit trail of project-level actions (edits, completion, deletion and the
recommendation-letter transitions). Rows outlive the project they describe,
so there is no foreign key on ``project_id``.
"""
from enum import Enum
from typing import Any, Optional
from sqlalchemy import String, Text, JSON, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from projecthub.models.base import BaseModel


class ActivityAction(str, Enum):
    PROJECT_UPDATED = "project_updated"
    PROJECT_COMPLETED = "project_completed"
    PROJECT_DELETED = "project_deleted"
    LETTER_REQUESTED = "letter_requested"
    LETTER_REMINDER_SENT = "letter_reminder_sent"
    LETTER_RECEIVED = "letter_received"


class ProjectActivity(BaseModel):
    __tablename__ = "project_activity"

    project_id: Mapped[str] = mapped_column(String(15), nullable=False, index=True)
    firm_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    action: Mapped[ActivityAction] = mapped_column(
        SQLEnum(
            ActivityAction,
            native_enum=False,
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    changes: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    user_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    def __repr__(self) -> str:
        return f"<ProjectActivity {self.action.value} {self.project_id}>"
