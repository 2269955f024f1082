"""Security utilities for password hashing and token generation."""
import secrets
from passlib.context import CryptContext

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Session tokens are 32 random bytes, hex-encoded (64 chars)
SESSION_TOKEN_BYTES = 32


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    return pwd_context.verify(plain_password, hashed_password)


def generate_session_token() -> str:
    """Generate a session token (32 bytes, hex-encoded)."""
    return secrets.token_hex(SESSION_TOKEN_BYTES)


def mask_token(token: str | None, visible: int = 8) -> str:
    """Shorten a token for log output so the full value never reaches logs."""
    if not token:
        return "none"
    return f"{token[:visible]}..."
