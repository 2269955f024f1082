"""Audit logging model."""
from sqlalchemy import Column, Integer, String, TIMESTAMP, ForeignKey, Text, JSON, Index
from sqlalchemy.sql import func
from app.database import Base


class AuditLog(Base):
    """Audit log model for tracking authentication and administrative actions."""

    __tablename__ = "audit_logs"

    # Primary Key
    id = Column(Integer, primary_key=True, index=True)

    # User Reference (kept after the user is deleted)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)

    # Action Details
    action = Column(String(100), nullable=False)  # LOGIN_SUCCESS, LOGOUT, MEMBER_REMOVE, TASK_DELETE, etc.
    resource_type = Column(String(50), nullable=True)  # USER, MEMBER, TASK, SESSION
    resource_id = Column(Integer, nullable=True)

    # Additional Details
    details = Column(JSON, nullable=True)

    # Request Info
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)

    # Timestamp
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

    # Indexes
    __table_args__ = (
        Index('idx_audit_logs_user_id', 'user_id'),
        Index('idx_audit_logs_action', 'action'),
        Index('idx_audit_logs_created_at', 'created_at'),
    )

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action={self.action}, user_id={self.user_id})>"
