"""
Pydantic schemas for projects and their recommendation letter record.

``ProjectRecord`` is the in-memory shape held by the project store; it is
built from a persisted row plus the equipment breakdown derived at load time.
"""
from typing import Any, Optional
from datetime import date, datetime
from pydantic import BaseModel, Field, computed_field, field_validator

from projecthub.models.project import ProjectStatus, LetterStatus


class DocumentRef(BaseModel):
    """Reference to an uploaded project document."""
    name: str = "Document"
    uploaded: bool = True
    mime_type: Optional[str] = None
    url: Optional[str] = None


class ReceivedDocument(BaseModel):
    """Signed recommendation letter returned by the client."""
    name: str
    uploaded: bool = True
    type: str
    size: Optional[int] = None
    upload_date: Optional[datetime] = None
    url: Optional[str] = None
    path: Optional[str] = None


class RecommendationLetter(BaseModel):
    """Recommendation letter sub-record stored on the project."""
    status: LetterStatus = LetterStatus.NOT_REQUESTED
    request_date: Optional[date] = None
    client_email: Optional[str] = None
    client_contact_person: Optional[str] = None
    reminder_count: int = Field(default=0, ge=0)
    last_reminder_date: Optional[date] = None
    last_reminder_date_time: Optional[str] = None
    received_document: Optional[ReceivedDocument] = None

    def to_record(self) -> dict[str, Any]:
        """JSON document persisted in ``projects.recommendation_letter``."""
        return self.model_dump(mode="json", exclude_none=True)


class ProjectRecord(BaseModel):
    """Project as seen by the dashboard."""
    id: str
    firm_id: Optional[str] = None
    name: str
    client: str
    location: str = "TBD"
    manager: str = "TBD"
    po_number: str = "TBD"
    deadline: Optional[str] = None
    status: ProjectStatus = ProjectStatus.ACTIVE
    progress: int = Field(default=0, ge=0, le=100)
    completed_date: Optional[date] = None
    scope_of_work: str = ""
    client_focal_point: Optional[str] = None
    created_by: Optional[str] = None
    member_ids: list[str] = Field(default_factory=list)

    equipment_breakdown: dict[str, int] = Field(default_factory=dict)
    equipment_type_names: dict[str, str] = Field(default_factory=dict)

    unpriced_po_documents: list[DocumentRef] = Field(default_factory=list)
    design_inputs_documents: list[DocumentRef] = Field(default_factory=list)
    client_reference_documents: list[DocumentRef] = Field(default_factory=list)
    other_documents: list[DocumentRef] = Field(default_factory=list)

    recommendation_letter: RecommendationLetter = Field(default_factory=RecommendationLetter)

    @field_validator("deadline", mode="before")
    @classmethod
    def _deadline_as_text(cls, value):
        if isinstance(value, date):
            return value.isoformat()
        return value

    @field_validator("location", "manager", "po_number", mode="before")
    @classmethod
    def _tbd_when_missing(cls, value):
        return value or "TBD"

    @field_validator("scope_of_work", mode="before")
    @classmethod
    def _empty_when_missing(cls, value):
        return value or ""

    @field_validator("recommendation_letter", mode="before")
    @classmethod
    def _letter_default(cls, value):
        # Absent letter is the same as not-requested
        return value or {}

    @computed_field
    @property
    def equipment_count(self) -> int:
        return sum(self.equipment_breakdown.values())

    @property
    def letter_status(self) -> LetterStatus:
        return self.recommendation_letter.status

    @property
    def is_completed(self) -> bool:
        return self.status == ProjectStatus.COMPLETED


class ProjectUpdate(BaseModel):
    """Edit the descriptive fields of a project."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    client: Optional[str] = Field(None, min_length=1, max_length=200)
    location: Optional[str] = None
    manager: Optional[str] = None
    deadline: Optional[date] = None
    po_number: Optional[str] = None
    scope_of_work: Optional[str] = None
    client_focal_point: Optional[str] = None


class EquipmentBucket(BaseModel):
    key: str
    name: str
    count: int


class ProjectResponse(ProjectRecord):
    """Project detail with derived equipment figures."""
    equipment: list[EquipmentBucket] = Field(default_factory=list)


class TabCounts(BaseModel):
    all: int = 0
    overdue: int = 0
    active: int = 0
    completed: int = 0


class DashboardTotals(BaseModel):
    total_projects: int = 0
    total_equipment: int = 0


class ProjectListResponse(BaseModel):
    """Filtered project list for one dashboard tab."""
    tab: str
    totalItems: int
    items: list[ProjectResponse]
    tab_counts: TabCounts
    totals: DashboardTotals


class FilterOptions(BaseModel):
    clients: list[str]
    managers: list[str]
    equipment_types: list[str]
