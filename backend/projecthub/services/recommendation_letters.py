"""
Recommendation letter workflow.

Lifecycle of the client testimonial requested once a project is completed:

    not-requested --request--> requested --send_reminder--> requested
          |                        |
          +--------upload----------+-----upload--> received (terminal)

``request`` and ``send_reminder`` generate a fresh letter template, upload
it under a new timestamped path (retrying on path collisions), persist the
new letter record through the project store and finally open a pre-filled
email for the project manager. ``upload`` stores the signed PDF returned by
the client.

Every transition reports a ``TransitionOutcome`` instead of raising, and
transitions on the same project are serialized. If persistence fails after
an upload, the uploaded object is left orphaned in storage.
"""
import asyncio
import logging
import re
import weakref
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Callable, Optional

from projecthub.core.config import settings
from projecthub.core.exceptions import CollaboratorError, NotFoundError, ProjectHubError, ValidationError
from projecthub.core.session import SessionContext
from projecthub.models.activity import ActivityAction
from projecthub.models.project import LetterStatus
from projecthub.schemas.letter import LetterFields, LetterUpload, TransitionOutcome, ViewableLetter
from projecthub.schemas.project import ProjectRecord, ReceivedDocument, RecommendationLetter
from projecthub.services.activity import ActivityLog
from projecthub.services.email import MailComposeLauncher, build_compose_url, reminder_email, request_email
from projecthub.services.letter_generator import LetterDocumentGenerator
from projecthub.services.project_store import ProjectStore
from projecthub.services.retry import with_retry
from projecthub.services.storage import LocalObjectStorage, StoredObject

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"
LETTER_FOLDER = "Recommendation_Letters"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def path_safe_name(name: str) -> str:
    return re.sub(r"\s+", "_", name.strip())


def letter_template_path(project_name: str, stamp: int, extension: str) -> str:
    name = path_safe_name(project_name)
    return f"{name}/{LETTER_FOLDER}/Recommendation_Letter_{name}_{stamp}.{extension}"


def received_letter_path(project_name: str, stamp: int, filename: str) -> str:
    base = PurePosixPath(filename.replace("\\", "/")).name or "Recommendation_Letter.pdf"
    return f"{path_safe_name(project_name)}/{LETTER_FOLDER}/{stamp}_{base}"


def fallback_client_email(client: str) -> str:
    return f"contact@{''.join(client.split()).lower()}.com"


def format_reminder_time(moment: datetime) -> str:
    """e.g. ``Oct 19, 2026, 09:05 AM``"""
    return f"{moment:%b} {moment.day}, {moment.year}, {moment:%I:%M %p}"


class LetterCoordinator:
    """
    Process-wide state shared by all workflow instances.

    Holds one lock per project id and hands out strictly increasing
    millisecond stamps for storage paths. A lock lives only while some
    transition holds or awaits it.
    """

    def __init__(self):
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()
        self._last_stamp = 0

    def lock(self, project_id: str) -> asyncio.Lock:
        lock = self._locks.get(project_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[project_id] = lock
        return lock

    def next_stamp(self, moment: datetime) -> int:
        stamp = max(int(moment.timestamp() * 1000), self._last_stamp + 1)
        self._last_stamp = stamp
        return stamp


class RecommendationLetterWorkflow:
    """Recommendation letter transitions for the projects of one store."""

    def __init__(
        self,
        store: ProjectStore,
        generator: LetterDocumentGenerator,
        storage: LocalObjectStorage,
        mailer: MailComposeLauncher,
        activity: Optional[ActivityLog] = None,
        coordinator: Optional[LetterCoordinator] = None,
        clock: Callable[[], datetime] = utc_now,
        max_attempts: Optional[int] = None,
        max_upload_size: Optional[int] = None,
    ):
        self.store = store
        self.generator = generator
        self.storage = storage
        self.mailer = mailer
        self.activity = activity
        self.coordinator = coordinator or LetterCoordinator()
        self.clock = clock
        self.max_attempts = max_attempts or settings.LETTER_UPLOAD_MAX_ATTEMPTS
        self.max_upload_size = max_upload_size or settings.MAX_LETTER_UPLOAD_SIZE

    # ============================================================================
    # TRANSITIONS
    # ============================================================================

    async def request(self, project_id: str, session: Optional[SessionContext] = None) -> TransitionOutcome:
        """
        Send (or re-send) the initial recommendation letter request.

        Re-entrant: every call uploads a new letter template. The request
        date and reminder count of an earlier request are kept.
        """
        action = "request"
        try:
            async with self.coordinator.lock(project_id):
                project = await self.store.refresh(project_id)
                letter = project.recommendation_letter
                if letter.status == LetterStatus.RECEIVED:
                    raise ValidationError("Recommendation letter already received")

                client_email, contact = self._resolve_contact(project)
                stored = await self._upload_template(project, contact)

                requested = letter.model_copy(update={
                    "status": LetterStatus.REQUESTED,
                    "request_date": letter.request_date or self.clock().date(),
                    "client_email": client_email,
                    "client_contact_person": contact,
                })
                updated = await self._persist(project, requested, stored)
        except ProjectHubError as e:
            return self._failure(action, project_id, e)
        except Exception as e:
            logger.exception(f"Unexpected error requesting letter for {project_id}")
            return self._failure(action, project_id, CollaboratorError(str(e)))

        subject, body = request_email(updated, contact)
        compose_url = await self._dispatch_compose(client_email, subject, body)
        await self._log(project_id, ActivityAction.LETTER_REQUESTED,
                        f"Requested recommendation letter from {client_email}", stored, session)

        logger.info(f"Recommendation letter requested for project {project_id} ({stored.path})")
        return TransitionOutcome(
            ok=True,
            action=action,
            message="Recommendation letter request saved!",
            project=updated,
            storage_path=stored.path,
            compose_url=compose_url,
        )

    async def send_reminder(self, project_id: str, session: Optional[SessionContext] = None) -> TransitionOutcome:
        """Follow up on a pending request; increments the reminder count."""
        action = "reminder"
        try:
            async with self.coordinator.lock(project_id):
                project = await self.store.refresh(project_id)
                letter = project.recommendation_letter
                if letter.status == LetterStatus.RECEIVED:
                    raise ValidationError("Recommendation letter already received")
                if letter.status != LetterStatus.REQUESTED:
                    raise ValidationError("Request a recommendation letter before sending reminders")

                client_email, contact = self._resolve_contact(project)
                stored = await self._upload_template(project, contact)

                now = self.clock()
                reminded = letter.model_copy(update={
                    "status": LetterStatus.REQUESTED,
                    "client_email": client_email,
                    "client_contact_person": contact,
                    "last_reminder_date": now.date(),
                    "last_reminder_date_time": format_reminder_time(now),
                    "reminder_count": letter.reminder_count + 1,
                })
                updated = await self._persist(project, reminded, stored)
        except ProjectHubError as e:
            return self._failure(action, project_id, e)
        except Exception as e:
            logger.exception(f"Unexpected error sending reminder for {project_id}")
            return self._failure(action, project_id, CollaboratorError(str(e)))

        reminder_count = updated.recommendation_letter.reminder_count
        subject, body = reminder_email(updated, contact, stored.url)
        compose_url = await self._dispatch_compose(client_email, subject, body)
        await self._log(project_id, ActivityAction.LETTER_REMINDER_SENT,
                        f"Sent reminder #{reminder_count} to {client_email}", stored, session)

        logger.info(f"Reminder #{reminder_count} sent for project {project_id}")
        return TransitionOutcome(
            ok=True,
            action=action,
            message=f"Reminder email sent! (Reminder #{reminder_count})",
            project=updated,
            storage_path=stored.path,
            compose_url=compose_url,
        )

    async def upload(
        self,
        project_id: str,
        upload: LetterUpload,
        session: Optional[SessionContext] = None,
    ) -> TransitionOutcome:
        """Store the signed PDF letter returned by the client."""
        action = "upload"
        try:
            self._validate_upload(upload)
            async with self.coordinator.lock(project_id):
                project = await self.store.refresh(project_id)
                stored = await with_retry(
                    self.max_attempts,
                    lambda path: self.storage.put_object(path, upload.data, upload.content_type),
                    lambda: received_letter_path(
                        project.name, self.coordinator.next_stamp(self.clock()), upload.filename
                    ),
                )

                document = ReceivedDocument(
                    name=upload.filename,
                    uploaded=True,
                    type=upload.content_type,
                    size=upload.size,
                    upload_date=self.clock(),
                    url=stored.url,
                    path=stored.path,
                )
                received = project.recommendation_letter.model_copy(update={
                    "status": LetterStatus.RECEIVED,
                    "received_document": document,
                })
                updated = await self._persist(project, received, stored)
        except ProjectHubError as e:
            return self._failure(action, project_id, e)
        except Exception as e:
            logger.exception(f"Unexpected error uploading letter for {project_id}")
            return self._failure(action, project_id, CollaboratorError(str(e)))

        await self._log(project_id, ActivityAction.LETTER_RECEIVED,
                        f"Uploaded recommendation letter {upload.filename}", stored, session)

        logger.info(f"Recommendation letter received for project {project_id} ({stored.path})")
        return TransitionOutcome(
            ok=True,
            action=action,
            message=f"Successfully uploaded recommendation letter! ({upload.size / 1024 / 1024:.2f} MB)",
            project=updated,
            storage_path=stored.path,
        )

    def view(self, project_id: str) -> ViewableLetter:
        """Resolve the received letter to a viewable URL."""
        project = self.store.get(project_id)
        document = project.recommendation_letter.received_document
        if document is None or not document.url:
            raise NotFoundError("No PDF file available to view.")
        return ViewableLetter(
            url=document.url,
            title=f"{project.name} - Recommendation Letter",
            name=document.name,
            type=document.type,
        )

    # ============================================================================
    # HELPERS
    # ============================================================================

    def _resolve_contact(self, project: ProjectRecord) -> tuple[str, str]:
        letter = project.recommendation_letter
        client_email = letter.client_email or fallback_client_email(project.client)
        contact = letter.client_contact_person or settings.LETTER_FALLBACK_CONTACT
        return client_email, contact

    def _validate_upload(self, upload: LetterUpload) -> None:
        if upload.content_type != PDF_CONTENT_TYPE:
            raise ValidationError("Please select a PDF file only.")
        if upload.size == 0:
            raise ValidationError("The selected file is empty.")
        if upload.size > self.max_upload_size:
            limit_mb = self.max_upload_size // (1024 * 1024)
            raise ValidationError(f"File size too large. Please select a PDF smaller than {limit_mb}MB.")

    async def _upload_template(self, project: ProjectRecord, contact: str) -> StoredObject:
        today = self.clock().date()
        fields = LetterFields(
            project_name=project.name,
            client=project.client,
            location=project.location,
            completion_date=(project.completed_date or today).isoformat(),
            po_number=project.po_number,
            manager=project.manager,
            client_contact=contact,
        )
        content = await self.generator.generate_letter(fields)
        return await with_retry(
            self.max_attempts,
            lambda path: self.storage.put_object(path, content, self.generator.content_type),
            lambda: letter_template_path(
                project.name, self.coordinator.next_stamp(self.clock()), self.generator.extension
            ),
        )

    async def _persist(
        self,
        project: ProjectRecord,
        letter: RecommendationLetter,
        stored: StoredObject,
    ) -> ProjectRecord:
        try:
            return await self.store.upsert(project.id, {"recommendation_letter": letter.to_record()})
        except ProjectHubError:
            logger.error(f"Saving letter state for project {project.id} failed; {stored.path} is orphaned")
            raise

    async def _dispatch_compose(self, to: str, subject: str, body: str) -> str:
        """Open the compose window; a failure here never fails the transition."""
        compose_url = build_compose_url(to, subject, body, self.mailer.compose_url)
        try:
            await self.mailer.open_compose(to, subject, body)
        except Exception as e:
            logger.warning(f"Could not open email compose for {to}: {e}")
        return compose_url

    async def _log(
        self,
        project_id: str,
        action: ActivityAction,
        description: str,
        stored: StoredObject,
        session: Optional[SessionContext],
    ) -> None:
        if self.activity is not None:
            await self.activity.record(project_id, action, description, {"path": stored.path}, session)

    def _failure(self, action: str, project_id: str, error: ProjectHubError) -> TransitionOutcome:
        logger.warning(f"Letter {action} failed for project {project_id}: {error.message}")
        try:
            project = self.store.get(project_id)
        except NotFoundError:
            project = None
        return TransitionOutcome(
            ok=False,
            action=action,
            message=error.message,
            error=error.kind,
            project=project,
        )
