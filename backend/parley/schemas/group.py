"""
Pydantic schemas for Group entity.
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Any, Dict, List, Optional
from datetime import datetime
from parley.models.group import GroupRole
from parley.schemas.user import UserPublic


class GroupCreate(BaseModel):
    """Schema for group creation."""
    name: str = Field(..., max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    avatar: Optional[str] = None
    is_public: Optional[bool] = None


class GroupUpdate(BaseModel):
    """Schema for group update; unset fields are left alone."""
    name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    avatar: Optional[str] = None
    is_public: Optional[bool] = None
    settings: Optional[Dict[str, Any]] = None


class GroupMemberAdd(BaseModel):
    """Schema for adding a member by email."""
    email: EmailStr
    role: Optional[GroupRole] = None


class GroupMemberResponse(BaseModel):
    """Schema for one membership entry."""
    user: UserPublic
    role: GroupRole

    class Config:
        from_attributes = True


class GroupResponse(BaseModel):
    """Schema for group response."""
    id: str
    name: str
    description: Optional[str] = None
    avatar: Optional[str] = None
    is_public: bool
    settings: Optional[Dict[str, Any]] = None
    creator_id: str
    chat_id: Optional[str] = None
    members: List[GroupMemberResponse] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class GroupSummaryResponse(GroupResponse):
    """Schema for a group listing entry with unread counter."""
    unread_count: int = 0
