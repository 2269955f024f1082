"""Authentication service for credential checks and account self-service."""
import logging
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.utils.validation import normalize_email, normalize_mobile
from app.models.user import User
from app.services.errors import ConflictError
from app.utils.security import hash_password, verify_password


logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("native", "mobile_no", "experience", "skills", "image_url")


class AuthService:
    """Service for handling authentication and the caller's own account."""

    def __init__(self, session: AsyncSession):
        """
        Initialize auth service.

        Args:
            session: Database session
        """
        self.session = session

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(
            select(User).where(User.email == normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate a user by email and password.

        Args:
            email: Email address (case-insensitive)
            password: Plain text password

        Returns:
            User object if authentication successful, None otherwise
        """
        user = await self.get_user_by_email(email)

        if not user:
            return None

        # Profiles created without login access have no hash
        if not user.password_hash:
            return None

        if not verify_password(password, user.password_hash):
            return None

        return user

    async def register_user(self, name: str, email: str, password: str) -> User:
        """
        Create a user with login access.

        Raises:
            ConflictError: If the email is already registered
        """
        if await self.get_user_by_email(email):
            raise ConflictError("Email already in use")

        user = User(
            name=name.strip(),
            email=normalize_email(email),
            password_hash=hash_password(password),
        )
        self.session.add(user)
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise ConflictError("Email already in use") from exc
        await self.session.refresh(user)

        logger.info("Registered user %s", user.id)
        return user

    async def update_profile(self, user: User, changes: Dict[str, Any]) -> User:
        """
        Update the caller's own profile attributes.

        Args:
            user: User being updated
            changes: Submitted fields; unknown keys and None values are ignored

        Raises:
            ConflictError: If the mobile number belongs to another user
        """
        for field in PROFILE_FIELDS:
            value = changes.get(field)
            if value is None:
                continue
            if field == "mobile_no":
                value = normalize_mobile(value)
            setattr(user, field, value)

        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise ConflictError("Mobile number already in use") from exc
        await self.session.refresh(user)
        return user

    async def set_password(self, user: User, new_password: str) -> None:
        """Replace a user's password hash."""
        user.password_hash = hash_password(new_password)
        await self.session.commit()
