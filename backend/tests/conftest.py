"""
Test configuration and fixtures for ProjectHub backend tests.
"""
import os
import pytest
import pytest_asyncio
from datetime import date, datetime, timedelta, timezone
from typing import Any, AsyncGenerator, Optional
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from projecthub.main import app
from projecthub.db.base import Base
from projecthub.core import deps
from projecthub.core.exceptions import CollaboratorError, DuplicatePathError, NotFoundError
from projecthub.core.session import SessionContext
from projecthub.models.project import Project, ProjectStatus
from projecthub.models.equipment import Equipment
from projecthub.schemas.project import ProjectRecord
from projecthub.services.activity import ActivityLog
from projecthub.services.gateways import EquipmentGateway, ProjectGateway
from projecthub.services.letter_generator import DOCX_CONTENT_TYPE, LetterDocumentGenerator
from projecthub.services.project_store import ProjectStore, StoreRegistry
from projecthub.services.recommendation_letters import LetterCoordinator, RecommendationLetterWorkflow
from projecthub.services.storage import LocalObjectStorage, StoredObject


# Use a file-based SQLite DB to avoid :memory: multiple-connection issues
# with SQLAlchemy + aiosqlite (each new connection would see an empty DB).
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

FIRM_ID = "firm-1"
FROZEN_NOW = datetime(2026, 10, 19, 9, 5, tzinfo=timezone.utc)


# ============================================================================
# FAKE COLLABORATORS
# ============================================================================

class FakeProjectGateway:
    """In-memory project collaborator."""

    def __init__(self):
        self.rows: dict[str, dict[str, Any]] = {}
        self.updates: list[tuple[str, dict[str, Any]]] = []
        self.deleted: list[str] = []
        self.fail_list = False
        self.fail_update = False
        self.fail_delete = False

    def add(self, row: dict[str, Any]) -> None:
        self.rows[row["id"]] = row

    async def list_by_firm(self, firm_id, role=None, user_id=None):
        if self.fail_list:
            raise CollaboratorError("Failed to list projects")
        return [dict(row) for row in self.rows.values() if row.get("firm_id") == firm_id]

    async def get_by_id(self, project_id):
        if project_id not in self.rows:
            raise NotFoundError("Project not found")
        return dict(self.rows[project_id])

    async def update(self, project_id, patch):
        if self.fail_update:
            raise CollaboratorError(f"Failed to update project {project_id}")
        if project_id not in self.rows:
            raise NotFoundError("Project not found")
        self.updates.append((project_id, patch))
        self.rows[project_id] = {**self.rows[project_id], **patch}

    async def delete(self, project_id):
        if self.fail_delete:
            raise CollaboratorError(f"Failed to delete project {project_id}")
        self.deleted.append(project_id)
        self.rows.pop(project_id, None)


class FakeEquipmentGateway:
    """In-memory equipment collaborator."""

    def __init__(self):
        self.units: dict[str, list[dict[str, Any]]] = {}
        self.deleted: list[str] = []
        self.fail_list_for: set[str] = set()
        self.fail_delete_for: set[str] = set()

    def add(self, project_id: str, *types: str) -> None:
        units = self.units.setdefault(project_id, [])
        for type_name in types:
            units.append({"id": f"{project_id}-eq{len(units) + 1}", "project_id": project_id, "type": type_name})

    async def list_by_project(self, project_id):
        if project_id in self.fail_list_for:
            raise CollaboratorError(f"Failed to list equipment for {project_id}")
        return list(self.units.get(project_id, []))

    async def delete(self, equipment_id):
        if equipment_id in self.fail_delete_for:
            raise CollaboratorError(f"Failed to delete equipment {equipment_id}")
        self.deleted.append(equipment_id)
        for units in self.units.values():
            units[:] = [u for u in units if u["id"] != equipment_id]


class FakeGenerator:
    content_type = DOCX_CONTENT_TYPE
    extension = "docx"

    def __init__(self):
        self.calls = []
        self.fail = False

    async def generate_letter(self, fields):
        self.calls.append(fields)
        if self.fail:
            raise CollaboratorError("Failed to generate Word file. Please try again.")
        return b"PK\x03\x04 letter"


class FakeStorage:
    """Object storage that can be told to collide on the next N writes."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.attempts: list[str] = []
        self.collisions = 0
        self.fail = False

    async def put_object(self, path, data, content_type=None):
        self.attempts.append(path)
        if self.fail:
            raise CollaboratorError(f"Failed to store object {path}")
        if self.collisions > 0:
            self.collisions -= 1
            raise DuplicatePathError(path)
        if path in self.objects:
            raise DuplicatePathError(path)
        self.objects[path] = data
        return StoredObject(
            path=path,
            url=f"https://storage.test/project-documents/{path}",
            size=len(data),
            content_type=content_type,
        )


class FakeMailer:
    compose_url = "https://mail.test/compose"

    def __init__(self):
        self.sent: list[tuple[str, str, str]] = []
        self.fail = False

    async def open_compose(self, to, subject, body):
        if self.fail:
            raise RuntimeError("popup blocked")
        self.sent.append((to, subject, body))


class FrozenClock:
    def __init__(self, now: datetime = FROZEN_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def project_row(project_id: str, **overrides) -> dict[str, Any]:
    """Persisted project record as returned by the project collaborator."""
    row = {
        "id": project_id,
        "firm_id": FIRM_ID,
        "name": "Refinery Upgrade",
        "client": "Acme Corp",
        "location": "Houston",
        "manager": "Dana Lee",
        "po_number": "PO-1001",
        "deadline": "2026-12-01",
        "status": "active",
        "progress": 40,
        "completed_date": None,
        "scope_of_work": "",
        "client_focal_point": None,
        "created_by": "user-1",
        "member_ids": [],
        "unpriced_po_documents": [],
        "design_inputs_documents": [],
        "client_reference_documents": [],
        "other_documents": [],
        "recommendation_letter": None,
    }
    row.update(overrides)
    return row


def make_record(project_id: str, breakdown: Optional[dict[str, int]] = None, **overrides) -> ProjectRecord:
    """Project record as held by the store."""
    return ProjectRecord.model_validate({
        **project_row(project_id, **overrides),
        "equipment_breakdown": breakdown or {},
    })


# ============================================================================
# DATABASE
# ============================================================================

@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()
    # Clean up test database file
    try:
        os.remove("./test.db")
    except OSError:
        pass


@pytest_asyncio.fixture(scope="function")
async def session_maker(db_engine) -> async_sessionmaker:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def seeded_projects(db_session: AsyncSession) -> dict[str, Project]:
    """
    Three projects of firm-1 and one of another firm.

    - refinery: completed, 2 heat exchangers + 1 "Cooling Tower"
    - pipeline: active with a past deadline, created by user-2
    - terminal: active, user-2 is a member
    - foreign: belongs to firm-2
    """
    today = datetime.now(timezone.utc).date()
    refinery = Project(
        firm_id=FIRM_ID,
        name="Refinery Upgrade",
        client="Acme Corp",
        location="Houston",
        manager="Dana Lee",
        po_number="PO-1001",
        deadline=today - timedelta(days=30),
        status=ProjectStatus.COMPLETED,
        progress=100,
        completed_date=today - timedelta(days=2),
        created_by="user-1",
        member_ids=[],
    )
    pipeline = Project(
        firm_id=FIRM_ID,
        name="Pipeline Retrofit",
        client="Globex",
        location="Tulsa",
        manager="Sam Ortiz",
        po_number="PO-2002",
        deadline=today - timedelta(days=5),
        status=ProjectStatus.ACTIVE,
        progress=60,
        created_by="user-2",
        member_ids=[],
    )
    terminal = Project(
        firm_id=FIRM_ID,
        name="Terminal Expansion",
        client="Acme Corp",
        location="Mobile",
        manager="Sam Ortiz",
        po_number="PO-3003",
        deadline=today + timedelta(days=20),
        status=ProjectStatus.ON_TRACK,
        progress=20,
        created_by="user-1",
        member_ids=["user-2"],
    )
    foreign = Project(
        firm_id="firm-2",
        name="Other Firm Project",
        client="Initech",
        deadline=today,
        status=ProjectStatus.ACTIVE,
    )
    db_session.add_all([refinery, pipeline, terminal, foreign])
    await db_session.flush()

    db_session.add_all([
        Equipment(project_id=refinery.id, type="Heat Exchanger", tag_number="HX-1"),
        Equipment(project_id=refinery.id, type="Heat Exchanger", tag_number="HX-2"),
        Equipment(project_id=refinery.id, type="Cooling Tower", tag_number="CT-1"),
        Equipment(project_id=pipeline.id, type="Pressure Vessel", tag_number="PV-1"),
    ])
    await db_session.commit()
    return {"refinery": refinery, "pipeline": pipeline, "terminal": terminal, "foreign": foreign}


# ============================================================================
# SERVICES WITH FAKE COLLABORATORS
# ============================================================================

@pytest.fixture
def session_context() -> SessionContext:
    return SessionContext(firm_id=FIRM_ID, role="firm_admin", user_id="user-1")


@pytest.fixture
def fake_projects() -> FakeProjectGateway:
    return FakeProjectGateway()


@pytest.fixture
def fake_equipment() -> FakeEquipmentGateway:
    return FakeEquipmentGateway()


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def store(fake_projects, fake_equipment) -> ProjectStore:
    return ProjectStore(fake_projects, fake_equipment)


@pytest_asyncio.fixture
async def completed_store(store, fake_projects, fake_equipment, session_context) -> ProjectStore:
    """Store loaded with one completed project ("p1") and one active project ("p2")."""
    fake_projects.add(project_row(
        "p1",
        status="completed",
        progress=100,
        completed_date=date(2026, 10, 1),
    ))
    fake_projects.add(project_row("p2", name="Pipeline Retrofit", client="Globex"))
    fake_equipment.add("p1", "Heat Exchanger", "Reactor")
    await store.load(session_context)
    return store


@pytest.fixture
def workflow(completed_store, generator, storage, mailer, clock) -> RecommendationLetterWorkflow:
    return RecommendationLetterWorkflow(
        completed_store,
        generator,
        storage,
        mailer,
        coordinator=LetterCoordinator(),
        clock=clock,
        max_attempts=3,
    )


# ============================================================================
# API CLIENT
# ============================================================================

@pytest.fixture
def api_mailer() -> FakeMailer:
    return FakeMailer()


@pytest_asyncio.fixture(scope="function")
async def client(session_maker, tmp_path, api_mailer) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client backed by the SQLite database and a temporary bucket."""
    activity = ActivityLog(session_maker)
    registry = StoreRegistry(ProjectGateway(session_maker), EquipmentGateway(session_maker), activity)
    storage = LocalObjectStorage(
        root=str(tmp_path),
        bucket="project-documents",
        public_base_url="http://test/storage",
    )
    coordinator = LetterCoordinator()

    app.dependency_overrides[deps.get_activity_log] = lambda: activity
    app.dependency_overrides[deps.get_store_registry] = lambda: registry
    app.dependency_overrides[deps.get_object_storage] = lambda: storage
    app.dependency_overrides[deps.get_letter_generator] = lambda: LetterDocumentGenerator(firm_name="Test Engineering")
    app.dependency_overrides[deps.get_mail_launcher] = lambda: api_mailer
    app.dependency_overrides[deps.get_letter_coordinator] = lambda: coordinator

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> dict:
    return {"X-Firm-Id": FIRM_ID, "X-User-Role": "firm_admin", "X-User-Id": "user-1"}


@pytest.fixture
def engineer_headers() -> dict:
    """Restricted role: sees only own or member projects, cannot mutate."""
    return {"X-Firm-Id": FIRM_ID, "X-User-Role": "engineer", "X-User-Id": "user-2"}
