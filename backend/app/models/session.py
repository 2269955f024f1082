"""Session management model."""
from sqlalchemy import Column, Integer, String, TIMESTAMP, ForeignKey, Index
from sqlalchemy.sql import func
from app.database import Base


class Session(Base):
    """Login session bound to a user by an opaque token."""

    __tablename__ = "sessions"

    # Primary Key
    id = Column(Integer, primary_key=True, index=True)

    # Session Token (64 hex chars)
    session_token = Column(String(64), unique=True, nullable=False)

    # User Reference
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)

    # Validity window
    expires = Column(TIMESTAMP(timezone=True), nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

    # Indexes
    __table_args__ = (
        Index('idx_sessions_user_id', 'user_id'),
        Index('idx_sessions_expires', 'expires'),
    )

    def __repr__(self):
        return f"<Session(id={self.id}, user_id={self.user_id}, expires={self.expires})>"
