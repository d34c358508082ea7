"""Shared test fixtures — async DB, client, auth helpers, factories.

Reusable across all test modules (registrations, documents, compliance, etc.).
Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os
import tempfile

# Set test secrets and upload root before any other import touches pydantic-settings
os.environ.setdefault("AUTH_JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="locumhub-uploads-"))

import uuid
from datetime import date, datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from locumhub.common.constants import (
    AccessLevel,
    DocumentEntityType,
    DocumentStatus,
    OnboardingStatus,
    OrganisationType,
    Profession,
    SystemTab,
    UserType,
)
from locumhub.config import settings
from locumhub.database import Base, get_db
from locumhub.main import create_app

# Import ALL model modules so SQLAlchemy can resolve cross-module foreign keys
# (e.g. Timesheet → Shift, ComplianceRecord → Document)
import locumhub.accounts.models  # noqa: F401
import locumhub.common.audit  # noqa: F401
import locumhub.registrations.models  # noqa: F401
import locumhub.documents.models  # noqa: F401
import locumhub.compliance.models  # noqa: F401
import locumhub.notifications.models  # noqa: F401
import locumhub.shifts.models  # noqa: F401
import locumhub.timesheets.models  # noqa: F401
import locumhub.rate_cards.models  # noqa: F401

# ── SQLite compat: compile PG-specific types to TEXT/CHAR ───────────

from sqlalchemy.dialects.postgresql import INET, JSONB, UUID as PG_UUID
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, "sqlite")
def _jsonb_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(INET, "sqlite")
def _inet_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(PG_UUID, "sqlite")
def _uuid_sqlite(element, compiler, **kw):
    return "CHAR(36)"


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine.sync_engine, "connect")
def _register_sqlite_functions(dbapi_conn, connection_record):
    """Register NOW() as a SQLite custom function."""
    dbapi_conn.create_function(
        "NOW", 0, lambda: datetime.now(timezone.utc).isoformat(),
    )


TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    from locumhub.common.rate_limit import limiter

    limiter.reset()
    yield


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

def _make_organisation(
    *,
    name: str = "Willow Care Home",
    org_type: OrganisationType = OrganisationType.care_home,
) -> dict:
    return dict(
        id=uuid.uuid4(),
        name=name,
        org_type=org_type.value,
        postcode="LS1 4AP",
        email="manager@willowcare.co.uk",
        is_active=True,
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )


def _make_user(
    *,
    user_type: UserType = UserType.staff,
    email: str | None = None,
    first_name: str = "Test",
    last_name: str = "User",
    profession: Profession | None = None,
    onboarding_status: OnboardingStatus | None = None,
    years_experience: int = 0,
    specializations: list[str] | None = None,
    organisation_id: uuid.UUID | None = None,
    permissions: dict[str, str] | None = None,
    is_active: bool = True,
) -> dict:
    user_id = uuid.uuid4()
    return dict(
        id=user_id,
        auth_subject=f"auth|{user_id.hex}",
        email=email or f"{user_id.hex[:10]}@example.co.uk",
        first_name=first_name,
        last_name=last_name,
        user_type=user_type.value,
        profession=profession.value if profession else None,
        onboarding_status=onboarding_status.value if onboarding_status else None,
        years_experience=years_experience,
        specializations=specializations or [],
        availability=[],
        preferred_locations=[],
        organisation_id=organisation_id,
        permissions=permissions or {},
        is_active=is_active,
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )


def _make_staff(**overrides) -> dict:
    overrides.setdefault("profession", Profession.gp)
    overrides.setdefault("onboarding_status", OnboardingStatus.approved)
    return _make_user(user_type=UserType.staff, **overrides)


def _make_document(
    *,
    entity_id: uuid.UUID,
    document_type: str,
    entity_type: DocumentEntityType = DocumentEntityType.staff,
    status: DocumentStatus = DocumentStatus.pending,
    expiry_date: date | None = None,
    issued_date: date | None = None,
    created_at: datetime | None = None,
) -> dict:
    doc_id = uuid.uuid4()
    return dict(
        id=doc_id,
        entity_type=entity_type.value,
        entity_id=entity_id,
        document_type=document_type,
        title=document_type.replace("_", " ").title(),
        filename=f"{document_type}.pdf",
        storage_path=f"documents/{entity_type.value}/{doc_id.hex}.pdf",
        mime_type="application/pdf",
        file_size=1024,
        status=status.value,
        issued_date=issued_date,
        expiry_date=expiry_date,
        tags=[],
        created_at=created_at or datetime.now(timezone.utc),
        updated_at=created_at or datetime.now(timezone.utc),
    )


async def _insert_user(db, **kwargs) -> dict:
    from locumhub.accounts.models import User

    data = _make_user(**kwargs)
    db.add(User(**data))
    await db.flush()
    return data


async def _insert_staff(db, **kwargs) -> dict:
    from locumhub.accounts.models import User

    data = _make_staff(**kwargs)
    db.add(User(**data))
    await db.flush()
    return data


async def _insert_document(db, **kwargs) -> dict:
    from locumhub.documents.models import Document

    data = _make_document(**kwargs)
    db.add(Document(**data))
    await db.flush()
    return data


@pytest.fixture
async def test_admin(db) -> dict:
    """Insert an active admin user."""
    return await _insert_user(
        db, user_type=UserType.admin, first_name="Ada", last_name="Admin",
    )


@pytest.fixture
async def test_staff(db) -> dict:
    """Insert an approved GP."""
    return await _insert_staff(db, first_name="Grace", last_name="Hopper")


@pytest.fixture
async def test_organisation(db) -> dict:
    from locumhub.accounts.models import Organisation

    data = _make_organisation()
    db.add(Organisation(**data))
    await db.flush()
    return data


@pytest.fixture
async def test_org_user(db, test_organisation) -> dict:
    """Insert a care-home manager linked to test_organisation."""
    return await _insert_user(
        db,
        user_type=UserType.care_home,
        first_name="Olive",
        last_name="Manager",
        organisation_id=test_organisation["id"],
    )


@pytest.fixture
async def test_support(db) -> dict:
    """Business-support user with read on dashboard and write on documents."""
    return await _insert_user(
        db,
        user_type=UserType.business_support,
        first_name="Sam",
        last_name="Support",
        permissions={
            SystemTab.dashboard.value: AccessLevel.read.value,
            SystemTab.documents.value: AccessLevel.write.value,
        },
    )


# ── Auth helpers ────────────────────────────────────────────────────

def create_access_token(
    user: dict,
    *,
    expired: bool = False,
    include_subject: bool = True,
) -> str:
    """Generate a provider-style JWT for testing."""
    if expired:
        exp = datetime.now(timezone.utc) - timedelta(hours=1)
    else:
        exp = datetime.now(timezone.utc) + timedelta(hours=1)
    payload = {"email": user["email"], "exp": exp}
    if include_subject:
        payload["sub"] = user["auth_subject"]
    return jwt.encode(payload, settings.AUTH_JWT_SECRET, algorithm=settings.AUTH_JWT_ALGORITHM)


def auth_headers_for(user: dict) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user)}"}
