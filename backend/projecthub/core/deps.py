"""
FastAPI dependencies.

Session scope is forwarded by the auth layer in front of the API through
the ``X-Firm-Id``, ``X-User-Role`` and ``X-User-Id`` headers. Collaborators
are process-wide singletons so project stores and per-project letter locks
survive between requests.
"""
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header

from projecthub.core.session import SessionContext, require_firm
from projecthub.services.activity import ActivityLog
from projecthub.services.email import MailComposeLauncher
from projecthub.services.gateways import EquipmentGateway, ProjectGateway
from projecthub.services.letter_generator import LetterDocumentGenerator
from projecthub.services.project_store import ProjectStore, StoreRegistry
from projecthub.services.recommendation_letters import LetterCoordinator, RecommendationLetterWorkflow
from projecthub.services.storage import LocalObjectStorage


async def get_session_context(
    x_firm_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
    x_user_id: Optional[str] = Header(None),
) -> SessionContext:
    """Session context from the forwarded headers; a firm is required."""
    session = SessionContext(firm_id=x_firm_id, role=x_user_role or None, user_id=x_user_id or None)
    require_firm(session)
    return session


@lru_cache()
def get_activity_log() -> ActivityLog:
    return ActivityLog()


@lru_cache()
def get_store_registry() -> StoreRegistry:
    return StoreRegistry(ProjectGateway(), EquipmentGateway(), get_activity_log())


@lru_cache()
def get_letter_generator() -> LetterDocumentGenerator:
    return LetterDocumentGenerator()


@lru_cache()
def get_object_storage() -> LocalObjectStorage:
    return LocalObjectStorage()


@lru_cache()
def get_mail_launcher() -> MailComposeLauncher:
    return MailComposeLauncher()


@lru_cache()
def get_letter_coordinator() -> LetterCoordinator:
    return LetterCoordinator()


async def get_project_store(
    session: SessionContext = Depends(get_session_context),
    registry: StoreRegistry = Depends(get_store_registry),
) -> ProjectStore:
    """The session's project store, loaded on first use."""
    store = registry.get(session)
    await store.ensure_loaded(session)
    return store


async def get_letter_workflow(
    store: ProjectStore = Depends(get_project_store),
    generator: LetterDocumentGenerator = Depends(get_letter_generator),
    storage: LocalObjectStorage = Depends(get_object_storage),
    mailer: MailComposeLauncher = Depends(get_mail_launcher),
    activity: ActivityLog = Depends(get_activity_log),
    coordinator: LetterCoordinator = Depends(get_letter_coordinator),
) -> RecommendationLetterWorkflow:
    return RecommendationLetterWorkflow(
        store,
        generator,
        storage,
        mailer,
        activity=activity,
        coordinator=coordinator,
    )
