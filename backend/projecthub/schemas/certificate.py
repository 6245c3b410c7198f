"""
Pydantic schemas for the completion certificate report.
"""
from enum import Enum
from datetime import date
from typing import Optional
from pydantic import BaseModel

from projecthub.schemas.project import ReceivedDocument


class CertificateTab(str, Enum):
    ALL = "all"
    PENDING = "pending"
    RECEIVED = "received"


class CertificateItem(BaseModel):
    """A completed project seen from the letter collection angle."""
    id: str
    project_name: str
    client: str
    completion_date: Optional[str] = None
    status: str
    letter_status: str
    request_date: Optional[date] = None
    reminder_count: int = 0
    last_reminder_date_time: Optional[str] = None
    received_document: Optional[ReceivedDocument] = None


class CertificateSummary(BaseModel):
    completed_count: int
    letters_received: int
    letters_pending: int
    tab: CertificateTab
    items: list[CertificateItem]
