"""
Pydantic schemas for User entity.
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime
from parley.models.user import UserRole


class UserBase(BaseModel):
    """Base user schema."""
    username: str
    email: EmailStr


class UserPublic(BaseModel):
    """Profile fields visible to other users."""
    id: str
    username: str
    avatar: Optional[str] = None

    class Config:
        from_attributes = True


class UserResponse(UserBase):
    """Schema for user response."""
    id: str
    bio: Optional[str] = None
    avatar: Optional[str] = None
    role: UserRole
    last_seen: Optional[datetime] = None
    is_online: bool = False
    created_at: datetime

    class Config:
        from_attributes = True


class UserUpdate(BaseModel):
    """Schema for profile update."""
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    bio: Optional[str] = Field(None, max_length=500)


class OnlineStatusUpdate(BaseModel):
    """Schema for toggling online status."""
    online: bool
