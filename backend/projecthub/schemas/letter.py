"""
Pydantic schemas for the recommendation letter workflow.
"""
from typing import Optional
from pydantic import BaseModel

from projecthub.schemas.project import ProjectRecord


class LetterFields(BaseModel):
    """Project facts merged into the generated letter."""
    project_name: str
    client: str
    location: str
    completion_date: str
    po_number: str
    manager: str
    client_contact: str


class LetterUpload(BaseModel):
    """Signed letter file submitted by the user."""
    filename: str
    content_type: Optional[str] = None
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class TransitionOutcome(BaseModel):
    """Result reported for every letter transition; never an exception."""
    ok: bool
    action: str
    message: str
    error: Optional[str] = None
    project: Optional[ProjectRecord] = None
    storage_path: Optional[str] = None
    compose_url: Optional[str] = None


class ViewableLetter(BaseModel):
    url: str
    title: str
    name: str
    type: str
