"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import select, text

from app.config import get_settings
from app.database import AsyncSessionLocal
from app.api.error_handling import error_response, register_exception_handlers
from app.api.routes import admin, auth, members, notifications, profiles, projects, tasks
from app.services.session_resolver import drain_cleanup_tasks
from app.tasks import start_scheduler, stop_scheduler
from app.version import VERSION


# Configure logging - force INFO level even if uvicorn configured it already
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Explicitly set root logger level to ensure INFO logs are visible
logging.getLogger().setLevel(logging.INFO)

# Silence SQLAlchemy query logging (too verbose)
logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
logging.getLogger('sqlalchemy.pool').setLevel(logging.WARNING)

# Silence passlib bcrypt version warning (known compatibility issue with bcrypt 4.x)
logging.getLogger('passlib.handlers.bcrypt').setLevel(logging.ERROR)

settings = get_settings()
logger = logging.getLogger(__name__)


async def bootstrap_admin() -> None:
    """
    Create the initial admin and default workspace if configured.

    Only runs when no ADMIN membership exists yet, so restarts never reset
    an existing admin's password.
    """
    from app.models.member import Member, MemberRole, Workspace
    from app.models.user import User
    from app.api.utils.validation import normalize_email
    from app.utils.security import hash_password

    async with AsyncSessionLocal() as session:
        result = await session.execute(
            select(Member).where(Member.role == MemberRole.ADMIN.value).limit(1)
        )
        if result.scalar_one_or_none():
            logger.info("  Admin bootstrap: Skipped (admin members already exist)")
            return

        logger.info("  Admin bootstrap: No admins found, creating initial admin user...")
        email = normalize_email(settings.ADMIN_EMAIL)
        result = await session.execute(select(User).where(User.email == email))
        admin_user = result.scalar_one_or_none()
        if admin_user is None:
            admin_user = User(
                name=settings.ADMIN_NAME,
                email=email,
                password_hash=hash_password(settings.ADMIN_PASSWORD),
            )
            session.add(admin_user)

        result = await session.execute(select(Workspace).order_by(Workspace.id).limit(1))
        workspace = result.scalar_one_or_none()
        if workspace is None:
            workspace = Workspace(name=settings.DEFAULT_WORKSPACE_NAME)
            session.add(workspace)

        await session.flush()
        session.add(Member(
            user_id=admin_user.id,
            workspace_id=workspace.id,
            role=MemberRole.ADMIN.value,
        ))
        await session.commit()
        logger.info("  Admin bootstrap: Created initial admin user %s", email)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    # Startup
    logger.info("Project Management API starting...")
    logger.info("  Environment: %s", settings.ENVIRONMENT.upper())
    logger.info("  Database: %s", settings.DATABASE_URL.split('@')[1] if '@' in settings.DATABASE_URL else 'configured')
    logger.info("  Session expiry: %d days", settings.SESSION_EXPIRY_DAYS)

    if settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD:
        try:
            await bootstrap_admin()
        except Exception as e:
            logger.error("  Admin bootstrap: Failed - %s", e)
            # Don't fail startup if admin creation fails
    else:
        logger.info("  Admin bootstrap: Skipped (ADMIN_EMAIL not configured)")

    logger.info("  Background scheduler: Starting...")
    try:
        await start_scheduler()
        logger.info("  Background scheduler: Started successfully")
    except Exception as e:
        logger.error("  Background scheduler: Failed to start - %s", e)
        # Don't fail startup if scheduler fails

    yield  # Application runs

    # Shutdown
    logger.info("Project Management API shutting down...")
    try:
        await stop_scheduler()
        logger.info("  Background scheduler: Stopped")
    except Exception as e:
        logger.error("  Background scheduler: Error during shutdown - %s", e)

    await drain_cleanup_tasks()


# Create FastAPI application
app = FastAPI(
    title="Project Management API",
    description="API for workspaces, projects, tasks and team profiles",
    version=VERSION,
    docs_url="/api/docs" if settings.DEBUG else None,  # Disable docs in production
    redoc_url="/api/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)


# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],  # Restrict methods
    allow_headers=["*"],
)

register_exception_handlers(app)


# Include API routers
app.include_router(auth.router)
app.include_router(members.router)
app.include_router(projects.router)
app.include_router(tasks.router)
app.include_router(profiles.router)
app.include_router(notifications.router)
app.include_router(admin.router)


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint; reports database connectivity."""
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Health check failed: %s", str(e))
        return error_response(500, "Database unavailable")
    return {"success": True, "data": {"status": "healthy", "database": "connected", "version": VERSION}}
