"""
Pytest configuration and fixtures for Project Management API tests.

This module provides shared fixtures for database, authentication, test client,
and common test data.
"""

import os
import sys
from typing import AsyncGenerator
from pathlib import Path

# Settings are read at import time; point them at SQLite before the app loads
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Add parent directory to path to import app modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.main import app
from app.database import Base, get_db, get_session_factory
from app.models.user import User
from app.models.member import Member, MemberRole, Workspace
from app.models.project import Project
from app.config import Settings, get_settings
from app.services.cookie_policy import CookiePolicy
from app.services.session_lifecycle import SessionLifecycleManager
from app.utils.dates import utcnow
from app.utils.security import hash_password


COOKIE_NAME = "pms_session"
DEFAULT_PASSWORD = "password123"


# ============================================================================
# Test Configuration
# ============================================================================

@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Provide test-specific settings.

    Uses in-memory SQLite database for tests.
    """
    return Settings(
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        ENVIRONMENT="development",
        DEBUG=True,
        APP_URL="http://localhost:3000",
        SESSION_COOKIE_NAME=COOKIE_NAME,
        SESSION_EXPIRY_DAYS=30,
        BULK_UPLOAD_MAX_ROWS=100,
    )


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture(scope="function")
async def async_engine(test_settings: Settings):
    """
    Create async database engine for tests.

    Uses in-memory SQLite with StaticPool to ensure all connections
    share the same in-memory database.
    """
    engine = create_async_engine(
        test_settings.DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker:
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """
    Provide database session for tests.

    Creates a new session for each test and rolls back after the test.
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def client(
    db_session: AsyncSession,
    session_factory: async_sessionmaker,
    test_settings: Settings
) -> AsyncGenerator[AsyncClient, None]:
    """
    Provide HTTP test client.

    Overrides the database session dependency to use the test database.
    The same db_session instance is reused across all dependency injections
    so data created by fixtures is visible to the routes.
    """
    async def override_get_db():
        try:
            yield db_session
        except Exception:
            await db_session.rollback()
            raise

    def override_get_settings():
        return test_settings

    def override_get_session_factory():
        return session_factory

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = override_get_settings
    app.dependency_overrides[get_session_factory] = override_get_session_factory

    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def cookie_policy(test_settings: Settings) -> CookiePolicy:
    return CookiePolicy.from_settings(test_settings)


@pytest.fixture
def lifecycle(db_session: AsyncSession, cookie_policy: CookiePolicy, test_settings: Settings) -> SessionLifecycleManager:
    """Lifecycle manager wired to the test session."""
    return SessionLifecycleManager(
        session=db_session,
        cookie_policy=cookie_policy,
        cookie_name=test_settings.SESSION_COOKIE_NAME,
        session_expiry_days=test_settings.SESSION_EXPIRY_DAYS,
    )


# ============================================================================
# User / Workspace Fixtures
# ============================================================================

async def create_user(
    db_session: AsyncSession,
    email: str,
    name: str = "Test User",
    password: str = DEFAULT_PASSWORD,
    **fields
) -> User:
    """Insert a user; pass password=None for a profile without login access."""
    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password) if password else None,
        **fields
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


async def add_membership(
    db_session: AsyncSession,
    user: User,
    workspace: Workspace,
    role: MemberRole,
    project_id: int = None
) -> Member:
    member = Member(
        user_id=user.id,
        workspace_id=workspace.id,
        role=role.value,
        project_id=project_id,
    )
    db_session.add(member)
    await db_session.commit()
    await db_session.refresh(member)
    return member


async def login_as(client: AsyncClient, user: User, password: str = DEFAULT_PASSWORD) -> str:
    """Log a user in through the API and return the session token."""
    client.cookies.clear()
    response = await client.post(
        "/api/auth/login",
        json={"email": user.email, "password": password}
    )
    assert response.status_code == 200, response.text
    token = response.cookies.get(COOKIE_NAME)
    assert token
    return token


@pytest_asyncio.fixture
async def workspace(db_session: AsyncSession) -> Workspace:
    workspace = Workspace(name="Acme")
    db_session.add(workspace)
    await db_session.commit()
    await db_session.refresh(workspace)
    return workspace


@pytest_asyncio.fixture
async def project(db_session: AsyncSession, workspace: Workspace) -> Project:
    from datetime import timedelta

    project = Project(
        name="Website Redesign",
        workspace_id=workspace.id,
        post_date=utcnow(),
        tentative_end_date=utcnow() + timedelta(days=30),
        assignees=[],
    )
    db_session.add(project)
    await db_session.commit()
    await db_session.refresh(project)
    return project


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession, workspace: Workspace) -> User:
    """
    Create and return an admin member of the workspace.
    """
    user = await create_user(db_session, "admin@test.com", name="Admin User")
    await add_membership(db_session, user, workspace, MemberRole.ADMIN)
    return user


@pytest_asyncio.fixture
async def manager_user(db_session: AsyncSession, workspace: Workspace) -> User:
    """
    Create and return a project manager member of the workspace.
    """
    user = await create_user(db_session, "manager@test.com", name="Manager User")
    await add_membership(db_session, user, workspace, MemberRole.PROJECT_MANAGER)
    return user


@pytest_asyncio.fixture
async def employee_user(db_session: AsyncSession, workspace: Workspace) -> User:
    """
    Create and return an employee member of the workspace.
    """
    user = await create_user(db_session, "employee@test.com", name="Employee User")
    await add_membership(db_session, user, workspace, MemberRole.EMPLOYEE)
    return user


@pytest_asyncio.fixture
async def client_user(db_session: AsyncSession, workspace: Workspace, project: Project) -> User:
    """
    Create and return a client member scoped to the project fixture.
    """
    user = await create_user(db_session, "client@test.com", name="Client User")
    await add_membership(db_session, user, workspace, MemberRole.CLIENT, project_id=project.id)
    return user


@pytest_asyncio.fixture
async def other_workspace(db_session: AsyncSession) -> Workspace:
    workspace = Workspace(name="OtherTenant")
    db_session.add(workspace)
    await db_session.commit()
    await db_session.refresh(workspace)
    return workspace


@pytest_asyncio.fixture
async def other_tenant_user(db_session: AsyncSession, other_workspace: Workspace) -> User:
    """
    Create and return an admin of a second workspace, unrelated to the main one.
    """
    user = await create_user(db_session, "rival@test.com", name="Rival Admin")
    await add_membership(db_session, user, other_workspace, MemberRole.ADMIN)
    return user


@pytest_asyncio.fixture
async def outsider_user(db_session: AsyncSession) -> User:
    """
    Create and return a user with no workspace membership.
    """
    return await create_user(db_session, "outsider@test.com", name="Outside User")


# ============================================================================
# Markers
# ============================================================================

def pytest_configure(config):
    """
    Configure pytest markers.
    """
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "auth: mark test as an authentication test"
    )
    config.addinivalue_line(
        "markers", "security: mark test as a security test"
    )
