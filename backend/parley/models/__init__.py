"""Models package - Import all models for SQLAlchemy registration."""
from parley.models.user import User, UserRole
from parley.models.friend import FriendRelationship, FriendStatus
from parley.models.group import Group, GroupMember, GroupRole
from parley.models.chat import Chat, ChatType, chat_participants
from parley.models.message import Message, MessageRead

__all__ = [
    "User",
    "UserRole",
    "FriendRelationship",
    "FriendStatus",
    "Group",
    "GroupMember",
    "GroupRole",
    "Chat",
    "ChatType",
    "chat_participants",
    "Message",
    "MessageRead",
]
