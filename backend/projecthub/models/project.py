"""
Project model.

A project is a client engagement of the firm: a purchase order delivering a
set of equipment units by a deadline. Completed projects additionally carry
the recommendation-letter outreach record as a JSON document.
"""
from enum import Enum
from datetime import date
from typing import Any, Optional
from sqlalchemy import String, Text, Integer, Date, JSON, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from projecthub.models.base import BaseModel


class ProjectStatus(str, Enum):
    """Project lifecycle status."""
    ACTIVE = "active"
    DELAYED = "delayed"
    ON_TRACK = "on-track"
    COMPLETED = "completed"


class LetterStatus(str, Enum):
    """Recommendation letter workflow state."""
    NOT_REQUESTED = "not-requested"
    REQUESTED = "requested"
    RECEIVED = "received"


class Project(BaseModel):
    """
    Project model.

    Document columns hold lists of ``{name, uploaded, mime_type, url}``
    references; ``recommendation_letter`` holds the letter sub-record.
    """
    __tablename__ = "projects"

    # Required fields
    firm_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    client: Mapped[str] = mapped_column(String(200), nullable=False)

    # Optional fields
    location: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    manager: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    po_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    deadline: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[ProjectStatus] = mapped_column(
        SQLEnum(
            ProjectStatus,
            native_enum=False,
            values_callable=lambda enum: [member.value for member in enum],
        ),
        default=ProjectStatus.ACTIVE,
        nullable=False
    )
    progress: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    completed_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    scope_of_work: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    client_focal_point: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    # Visibility for non-admin roles
    created_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    member_ids: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    # Document references
    unpriced_po_documents: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    design_inputs_documents: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    client_reference_documents: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    other_documents: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)

    # Recommendation letter sub-record
    recommendation_letter: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    # Relationships
    equipment: Mapped[list["Equipment"]] = relationship(
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Project {self.name} ({self.status.value})>"
