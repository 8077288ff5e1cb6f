"""
Pydantic schemas for friend relationships.
"""
from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime
from parley.models.friend import FriendStatus
from parley.schemas.user import UserPublic


class FriendRequestCreate(BaseModel):
    """Schema for sending a friend request."""
    email: EmailStr


class FriendRelationshipResponse(BaseModel):
    """Schema for a directed relationship edge."""
    id: str
    user: UserPublic
    friend: UserPublic
    status: FriendStatus
    chat_id: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class FriendResponse(BaseModel):
    """Schema for an accepted friend with unread counter."""
    id: str
    email: str
    username: str
    avatar: Optional[str] = None
    last_seen: Optional[datetime] = None
    chat_id: Optional[str] = None
    unread_count: int = 0


class FriendRequestResponse(BaseModel):
    """Schema for a pending request as seen by one side."""
    id: str
    type: str  # incoming / outgoing
    sender: UserPublic
    receiver: UserPublic
    status: FriendStatus
    created_at: datetime
