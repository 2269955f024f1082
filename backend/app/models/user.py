"""User/profile model."""
from sqlalchemy import Column, Integer, String, TIMESTAMP, JSON, Index, event
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base


class User(Base):
    """
    User account and employee profile.

    Users without a password hash exist as profiles only (login access
    disabled); they can still be assigned tasks.
    """

    __tablename__ = "users"

    # Primary Key
    id = Column(Integer, primary_key=True, index=True)

    # Identity
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False)  # Stored normalized (lowercase)
    password_hash = Column(String(255), nullable=True)  # bcrypt; NULL = no login access

    # Profile
    native = Column(String(255), nullable=True)
    mobile_no = Column(String(50), unique=True, nullable=True)
    experience = Column(Integer, nullable=True)
    skills = Column(JSON, nullable=True)
    designation = Column(String(255), nullable=True)
    department = Column(String(255), nullable=True)
    date_of_birth = Column(TIMESTAMP(timezone=True), nullable=True)
    date_of_joining = Column(TIMESTAMP(timezone=True), nullable=True)
    image_url = Column(String(1000), nullable=True)

    # Timestamps
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    memberships = relationship("Member", back_populates="user", passive_deletes=True)

    __table_args__ = (
        Index('idx_users_email', 'email'),
    )

    @property
    def has_login_access(self) -> bool:
        """Whether this profile can sign in."""
        return self.password_hash is not None

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, name={self.name})>"


@event.listens_for(User, 'before_insert')
@event.listens_for(User, 'before_update')
def normalize_user_email(mapper, connection, target):
    """Keep stored emails lowercase so lookups are case-insensitive."""
    if target.email:
        from app.api.utils.validation import normalize_email
        target.email = normalize_email(target.email)
