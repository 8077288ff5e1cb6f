"""
User model for authentication and profile data.
"""
import enum
from sqlalchemy import Column, String, Text, DateTime, Enum as SQLEnum
from sqlalchemy.orm import relationship
from parley.db.base import BaseModel


class UserRole(str, enum.Enum):
    """Account role enumeration."""
    MEMBER = "member"
    ADMIN = "admin"


class User(BaseModel):
    """User model; owns credentials and profile fields."""
    __tablename__ = "users"

    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    bio = Column(Text, nullable=True, default="")
    avatar = Column(String(500), nullable=True)
    role = Column(
        SQLEnum(UserRole, values_callable=lambda e: [m.value for m in e]),
        default=UserRole.MEMBER,
        nullable=False,
    )
    last_seen = Column(DateTime(timezone=True), nullable=True)  # None means online

    # Relationships
    sent_messages = relationship("Message", back_populates="sender", cascade="all, delete-orphan")
    memberships = relationship("GroupMember", back_populates="user", cascade="all, delete-orphan")

    @property
    def is_online(self) -> bool:
        return self.last_seen is None
