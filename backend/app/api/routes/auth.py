"""Authentication API routes."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import (
    get_current_user,
    get_lifecycle_manager,
    get_session_resolver,
    get_session_token,
)
from app.models.user import User
from app.schemas.auth import (
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    UserResponse,
)
from app.services.audit_service import AuditService
from app.services.auth_service import AuthService
from app.services.session_lifecycle import SessionLifecycleManager
from app.services.session_resolver import SessionResolver
from app.api.exceptions import unauthorized
from app.api.utils.dependencies import get_auth_service
from app.api.utils.request import extract_client_metadata
from app.api.utils.response_builders import success_response


router = APIRouter(prefix="/api/auth", tags=["Authentication"])
logger = logging.getLogger(__name__)


@router.get("/current")
async def get_current_session_user(
    current_user: User = Depends(get_current_user)
):
    """
    Get the user behind the session cookie.

    Returns:
        Current user profile
    """
    return success_response(UserResponse.model_validate(current_user))


@router.post("/login")
async def login(
    login_data: LoginRequest,
    request: Request,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
    lifecycle: SessionLifecycleManager = Depends(get_lifecycle_manager),
    db: AsyncSession = Depends(get_db)
):
    """
    Authenticate user and start their single session.

    Any existing sessions of the user are ended first. If that fails the
    login is aborted with 500 and no cookie is set.

    Raises:
        HTTPException: If authentication fails
    """
    ip_address, user_agent = extract_client_metadata(request)

    user = await auth_service.authenticate_user(
        email=login_data.email,
        password=login_data.password
    )

    if not user:
        audit_service = AuditService(db)
        await audit_service.log_login(
            user_id=None,
            ip_address=ip_address,
            user_agent=user_agent,
            success=False,
            details={"email": login_data.email, "reason": "Invalid credentials"}
        )
        raise unauthorized("Invalid email or password")

    expires_at = await lifecycle.login(user, response)

    audit_service = AuditService(db)
    await audit_service.log_login(
        user_id=user.id,
        ip_address=ip_address,
        user_agent=user_agent,
        success=True
    )

    return success_response(
        LoginResponse(user=UserResponse.model_validate(user), expires_at=expires_at),
        message="Login successful",
    )


@router.post("/register")
async def register(
    data: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Create an account. The new user signs in separately.

    Raises:
        ConflictError: If the email is already registered (409)
    """
    user = await auth_service.register_user(
        name=data.name,
        email=data.email,
        password=data.password
    )
    return success_response(UserResponse.model_validate(user), message="Registration successful")


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    session_token: Optional[str] = Depends(get_session_token),
    resolver: SessionResolver = Depends(get_session_resolver),
    lifecycle: SessionLifecycleManager = Depends(get_lifecycle_manager),
    db: AsyncSession = Depends(get_db)
):
    """
    Log out. Always succeeds, even without a valid session.

    The session row is removed when possible and the cookie is cleared
    regardless of the database outcome.
    """
    ip_address, user_agent = extract_client_metadata(request)

    current_user = None
    try:
        current_user = await resolver.resolve(session_token)
    except Exception as e:
        logger.error("Could not resolve session on logout: %s", str(e))

    result = await lifecycle.logout(session_token, response)

    if current_user:
        try:
            await AuditService(db).log_logout(
                user_id=current_user.id,
                ip_address=ip_address,
                user_agent=user_agent,
                details={"session_deleted": result.session_deleted}
            )
        except Exception as e:
            logger.error("Failed to record logout for user %s: %s", current_user.id, str(e))

    return success_response(
        LogoutResponse(
            session_deleted=result.session_deleted,
            cookie_deleted=result.cookie_deleted
        ),
        message=result.message,
    )


@router.patch("/profile")
async def update_profile(
    data: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Update the current user's own profile fields."""
    user = await auth_service.update_profile(current_user, data.model_dump(exclude_unset=True))
    return success_response(UserResponse.model_validate(user))
