"""
Pydantic schemas for chats and messages.
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from parley.models.chat import ChatType
from parley.schemas.user import UserPublic


class MarkReadRequest(BaseModel):
    """Schema for marking a conversation as read."""
    id: str
    type: str  # private / group


class MarkReadResponse(BaseModel):
    """Number of messages newly marked."""
    marked: int


class ChatResponse(BaseModel):
    """Schema for chat response."""
    id: str
    type: ChatType
    group_id: Optional[str] = None
    participants: List[UserPublic] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ChatSummaryResponse(BaseModel):
    """Schema for a chat listing entry."""
    id: str
    type: ChatType
    name: Optional[str] = None
    group_id: Optional[str] = None
    participants: List[UserPublic] = []
    unread_count: int = 0
    updated_at: datetime


class MessageCreate(BaseModel):
    """Schema for sending a message."""
    content: str = Field(..., min_length=1, max_length=5000)


class ReadMarkerResponse(BaseModel):
    """Schema for a read marker."""
    user_id: str
    read_at: datetime

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    """Schema for message response."""
    id: str
    chat_id: str
    sender_id: str
    content: str
    read_by: List[ReadMarkerResponse] = []
    created_at: datetime

    class Config:
        from_attributes = True
