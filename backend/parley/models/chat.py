"""
Chat model for private and group conversations.
"""
import enum
from sqlalchemy import Column, String, ForeignKey, Table, Enum as SQLEnum
from sqlalchemy.orm import relationship
from parley.db.base import Base, BaseModel


class ChatType(str, enum.Enum):
    """Chat type enumeration."""
    PRIVATE = "private"
    GROUP = "group"


chat_participants = Table(
    "chat_participants",
    Base.metadata,
    Column("chat_id", String(24), ForeignKey("chats.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", String(24), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Chat(BaseModel):
    """Chat between two friends or among a group's members."""
    __tablename__ = "chats"

    type = Column(
        SQLEnum(ChatType, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        index=True,
    )
    group_id = Column(String(24), nullable=True, index=True)  # set for group chats only
    created_by_id = Column(String(24), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Relationships
    participants = relationship("User", secondary=chat_participants)
    messages = relationship(
        "Message",
        back_populates="chat",
        order_by="Message.created_at",
        cascade="all, delete-orphan",
    )

    def has_participant(self, user_id: str) -> bool:
        return any(p.id == user_id for p in self.participants)
