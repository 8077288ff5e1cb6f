"""
Friend relationship model: one directed edge per row.
"""
import enum
from sqlalchemy import Column, String, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from parley.db.base import BaseModel


class FriendStatus(str, enum.Enum):
    """Friend request status enumeration."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


def make_pair_key(user_a: str, user_b: str) -> str:
    """Order-independent key for an unordered pair of users."""
    low, high = sorted((user_a, user_b))
    return f"{low}:{high}"


class FriendRelationship(BaseModel):
    """
    Directed friend edge from ``user`` to ``friend``.

    The edge created by a request carries ``pair_key`` so that only one request
    can exist per unordered pair; the reciprocal edge written on acceptance
    leaves it empty.
    """
    __tablename__ = "friend_relationships"

    user_id = Column(String(24), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    friend_id = Column(String(24), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(
        SQLEnum(FriendStatus, values_callable=lambda e: [m.value for m in e]),
        default=FriendStatus.PENDING,
        nullable=False,
        index=True,
    )
    chat_id = Column(String(24), ForeignKey("chats.id", ondelete="SET NULL"), nullable=True)
    pair_key = Column(String(49), nullable=True, unique=True)

    __table_args__ = (
        UniqueConstraint("user_id", "friend_id", name="uq_friend_edge"),
    )

    # Relationships
    user = relationship("User", foreign_keys=[user_id])
    friend = relationship("User", foreign_keys=[friend_id])
    chat = relationship("Chat")

    def __repr__(self):
        return f"<FriendRelationship(user={self.user_id}, friend={self.friend_id}, status={self.status})>"
