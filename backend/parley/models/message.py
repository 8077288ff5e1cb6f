"""
Message model and per-reader read markers.
"""
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from parley.db.base import BaseModel
from parley.core.utils import utcnow


class Message(BaseModel):
    """Message sent to a chat."""
    __tablename__ = "messages"

    chat_id = Column(String(24), ForeignKey("chats.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(String(24), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)

    # Relationships
    chat = relationship("Chat", back_populates="messages")
    sender = relationship("User", back_populates="sent_messages")
    read_by = relationship("MessageRead", back_populates="message", cascade="all, delete-orphan")


class MessageRead(BaseModel):
    """Read marker: at most one per (message, user)."""
    __tablename__ = "message_reads"

    message_id = Column(String(24), ForeignKey("messages.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(24), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    read_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("message_id", "user_id", name="uq_message_reader"),
    )

    # Relationships
    message = relationship("Message", back_populates="read_by")
    user = relationship("User")
