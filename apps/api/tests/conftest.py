"""
Shared fixtures for admissions tests.
"""

from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from admissions.core.auth import CurrentUser, UserRole
from admissions.core.database import Base
from admissions.core.rate_limit import reset_memory_store
from admissions.modules.applications.models import Application, ApplicationStatus
from admissions.modules.catalog.models import Program
from admissions.modules.documents.models import ApplicationDocument, FileUpload
from admissions.modules.documents.storage import LocalDocumentStore


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.flush = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture(autouse=True)
def clear_rate_limits():
    reset_memory_store()
    yield
    reset_memory_store()


# ============================================
# Users
# ============================================


@pytest.fixture
def student():
    return CurrentUser(id=uuid4(), role=UserRole.STUDENT, email="student@test.com")


@pytest.fixture
def other_student():
    return CurrentUser(id=uuid4(), role=UserRole.STUDENT, email="other@test.com")


@pytest.fixture
def program_admin():
    return CurrentUser(id=uuid4(), role=UserRole.PROGRAM_ADMIN, email="coordinator@test.com")


@pytest.fixture
def admin():
    return CurrentUser(id=uuid4(), role=UserRole.ADMIN, email="admin@test.com")


# ============================================
# Catalog
# ============================================


@pytest.fixture
def program(program_admin):
    """An active program administered by ``program_admin``."""
    prog = MagicMock(spec=Program)
    prog.id = uuid4()
    prog.code = "BSC"
    prog.name = "Bachelor of Science"
    prog.program_admin_id = program_admin.id
    prog.is_active = True
    return prog


def make_certificate_type(
    name,
    *,
    allowed_extensions=None,
    max_file_size_mb=None,
    is_active=True,
    description=None,
):
    return SimpleNamespace(
        id=uuid4(),
        name=name,
        description=description,
        allowed_extensions=allowed_extensions or [],
        max_file_size_mb=max_file_size_mb,
        display_order=0,
        is_active=is_active,
    )


def make_requirement(certificate_type, *, is_required=True, display_order=0, instructions=None):
    return SimpleNamespace(
        id=uuid4(),
        certificate_type_id=certificate_type.id,
        certificate_type=certificate_type,
        is_required=is_required,
        display_order=display_order,
        special_instructions=instructions,
    )


# ============================================
# Applications and documents
# ============================================


@pytest.fixture
def make_application(student, program):
    """Factory for application models owned by ``student`` in ``program``."""

    def _make(status=ApplicationStatus.DRAFT, **overrides):
        app = MagicMock(spec=Application)
        app.id = uuid4()
        app.user_id = student.id
        app.program_id = program.id
        app.program = program
        app.academic_year = "2025-26"
        app.application_number = "BSC20250001"
        app.status = status
        app.submitted_at = None
        app.frozen_at = None
        app.reviewed_at = None
        app.reviewed_by = None
        app.decided_at = None
        app.decision_remarks = None
        app.created_at = datetime(2025, 6, 1, tzinfo=UTC)
        app.updated_at = datetime(2025, 6, 1, tzinfo=UTC)
        for key, value in overrides.items():
            setattr(app, key, value)
        return app

    return _make


@pytest.fixture
def application(make_application):
    return make_application()


def make_upload(storage_path="owner/file.pdf", file_size=1024, uploaded_by=None):
    upload = MagicMock(spec=FileUpload)
    upload.id = uuid4()
    upload.original_name = "file.pdf"
    upload.storage_path = storage_path
    upload.file_size = file_size
    upload.mime_type = "application/pdf"
    upload.uploaded_by = uploaded_by or uuid4()
    upload.uploaded_at = datetime(2025, 6, 2, tzinfo=UTC)
    return upload


def make_document(application_id, certificate_type, upload=None, **overrides):
    upload = upload or make_upload()
    doc = MagicMock(spec=ApplicationDocument)
    doc.id = uuid4()
    doc.application_id = application_id
    doc.certificate_type_id = certificate_type.id
    doc.certificate_type = certificate_type
    doc.file_upload_id = upload.id
    doc.file_upload = upload
    doc.document_name = upload.original_name
    doc.is_verified = False
    doc.verified_by = None
    doc.verified_at = None
    doc.verification_remarks = None
    for key, value in overrides.items():
        setattr(doc, key, value)
    return doc


@pytest.fixture
def store(tmp_path):
    return LocalDocumentStore(tmp_path)


def stored_files(root):
    """Every file under a store root."""
    return [path for path in root.rglob("*") if path.is_file()]


def session_maker_for(db):
    """Stand-in for async_session_maker yielding ``db``."""
    session = MagicMock()
    session.__aenter__ = AsyncMock(return_value=db)
    session.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=session)


@pytest_asyncio.fixture
async def sqlite_db(tmp_path):
    """Real async session on a throwaway SQLite database with the full schema."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'admissions.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session

    await engine.dispose()
