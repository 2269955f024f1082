"""Workspace and membership models."""
import enum
from sqlalchemy import Column, Integer, String, TIMESTAMP, ForeignKey, Index, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base


class MemberRole(str, enum.Enum):
    """Membership role, declared from most to least privileged."""
    ADMIN = "ADMIN"  # Full access, including destructive actions
    PROJECT_MANAGER = "PROJECT_MANAGER"
    MANAGEMENT = "MANAGEMENT"
    TEAM_LEAD = "TEAM_LEAD"
    EMPLOYEE = "EMPLOYEE"
    CLIENT = "CLIENT"  # Read access to exactly one project

    @property
    def rank(self) -> int:
        """Privilege rank; lower is more privileged."""
        return list(MemberRole).index(self)

    @classmethod
    def highest(cls, roles) -> "MemberRole":
        """Return the most privileged role of a non-empty iterable."""
        return min((cls(r) for r in roles), key=lambda r: r.rank)


class Workspace(Base):
    """Workspace (tenant) grouping members and projects."""

    __tablename__ = "workspaces"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Workspace(id={self.id}, name={self.name})>"


class Member(Base):
    """Association of a user to a workspace carrying a role."""

    __tablename__ = "members"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    workspace_id = Column(Integer, ForeignKey('workspaces.id', ondelete='CASCADE'), nullable=False)
    role = Column(String(30), default=MemberRole.EMPLOYEE.value, nullable=False)

    # CLIENT scope - the single project a client may see
    project_id = Column(Integer, ForeignKey('projects.id', ondelete='SET NULL'), nullable=True)

    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="memberships")

    __table_args__ = (
        UniqueConstraint('user_id', 'workspace_id', name='uq_members_user_workspace'),
        Index('idx_members_user_id', 'user_id'),
        Index('idx_members_workspace_id', 'workspace_id'),
    )

    @property
    def member_role(self) -> MemberRole:
        return MemberRole(self.role)

    def __repr__(self):
        return f"<Member(id={self.id}, user_id={self.user_id}, workspace_id={self.workspace_id}, role={self.role})>"
