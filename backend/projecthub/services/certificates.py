"""
Completion certificate report.

Derived on every call from the project list; nothing is cached, so the
counts always agree with the store snapshot they were computed from.
"""
from typing import Sequence

from projecthub.models.project import LetterStatus
from projecthub.schemas.certificate import CertificateItem, CertificateSummary, CertificateTab
from projecthub.schemas.project import ProjectRecord

PENDING_LETTER_STATUSES = (LetterStatus.NOT_REQUESTED, LetterStatus.REQUESTED)


def completed_projects(projects: Sequence[ProjectRecord]) -> list[ProjectRecord]:
    return [p for p in projects if p.is_completed]


def completed_count(projects: Sequence[ProjectRecord]) -> int:
    return len(completed_projects(projects))


def letters_received(projects: Sequence[ProjectRecord]) -> int:
    return sum(1 for p in completed_projects(projects) if p.letter_status == LetterStatus.RECEIVED)


def letters_pending(projects: Sequence[ProjectRecord]) -> int:
    return completed_count(projects) - letters_received(projects)


def certificate_list(projects: Sequence[ProjectRecord], tab: CertificateTab) -> list[ProjectRecord]:
    completed = completed_projects(projects)
    if tab == CertificateTab.PENDING:
        return [p for p in completed if p.letter_status in PENDING_LETTER_STATUSES]
    if tab == CertificateTab.RECEIVED:
        return [p for p in completed if p.letter_status == LetterStatus.RECEIVED]
    return completed


def certificate_item(project: ProjectRecord) -> CertificateItem:
    letter = project.recommendation_letter
    received = letter.status == LetterStatus.RECEIVED
    completion = project.completed_date.isoformat() if project.completed_date else project.deadline
    return CertificateItem(
        id=project.id,
        project_name=project.name,
        client=project.client,
        completion_date=completion,
        status="received" if received else "pending",
        letter_status=letter.status.value,
        request_date=letter.request_date,
        reminder_count=letter.reminder_count,
        last_reminder_date_time=letter.last_reminder_date_time,
        received_document=letter.received_document,
    )


def summarize(projects: Sequence[ProjectRecord], tab: CertificateTab = CertificateTab.ALL) -> CertificateSummary:
    """Counts plus the certificate rows for one tab."""
    received = letters_received(projects)
    completed = completed_count(projects)
    return CertificateSummary(
        completed_count=completed,
        letters_received=received,
        letters_pending=completed - received,
        tab=tab,
        items=[certificate_item(p) for p in certificate_list(projects, tab)],
    )
