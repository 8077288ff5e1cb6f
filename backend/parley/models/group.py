"""
Group model with an ordered membership list.
"""
import enum
from sqlalchemy import (
    Column, String, Text, Boolean, Integer, JSON, ForeignKey, UniqueConstraint, Enum as SQLEnum
)
from sqlalchemy.orm import relationship
from sqlalchemy.ext.orderinglist import ordering_list
from parley.db.base import BaseModel


class GroupRole(str, enum.Enum):
    """Membership role enumeration."""
    CREATOR = "creator"
    ADMIN = "admin"
    MEMBER = "member"


class Group(BaseModel):
    """Group model; ``members`` is kept in join order."""
    __tablename__ = "groups"

    name = Column(String(100), nullable=False)
    name_key = Column(String(100), nullable=False, unique=True)  # lower-cased name
    description = Column(Text, nullable=True)
    avatar = Column(String(500), nullable=True)
    is_public = Column(Boolean, default=False, nullable=False)
    settings = Column(JSON, nullable=True)
    creator_id = Column(String(24), ForeignKey("users.id"), nullable=False, index=True)
    chat_id = Column(String(24), ForeignKey("chats.id", ondelete="SET NULL"), nullable=True)

    # Relationships
    creator = relationship("User", foreign_keys=[creator_id])
    members = relationship(
        "GroupMember",
        back_populates="group",
        order_by="GroupMember.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
    )
    chat = relationship("Chat", foreign_keys=[chat_id])


class GroupMember(BaseModel):
    """One entry of a group's membership list."""
    __tablename__ = "group_members"

    group_id = Column(String(24), ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(24), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(
        SQLEnum(GroupRole, values_callable=lambda e: [m.value for m in e]),
        default=GroupRole.MEMBER,
        nullable=False,
    )
    position = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("group_id", "user_id", name="uq_group_member"),
    )

    # Relationships
    group = relationship("Group", back_populates="members")
    user = relationship("User", back_populates="memberships")
