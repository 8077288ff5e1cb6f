"""
User management routes.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session
from parley.api.dependencies import get_current_user, require_admin
from parley.db.session import get_db
from parley.models.user import User
from parley.schemas.auth import MessageOnly
from parley.schemas.user import OnlineStatusUpdate, UserResponse, UserUpdate
from parley.services import user_service
from parley.services.storage_service import AvatarStorage, get_storage

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[UserResponse])
async def list_users(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """List all users (admin only)."""
    return user_service.get_all_users(db)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current user information."""
    return current_user


@router.patch("", response_model=UserResponse)
async def update_profile(
    username: Optional[str] = Form(None, min_length=3, max_length=50),
    bio: Optional[str] = Form(None, max_length=500),
    avatar: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: AvatarStorage = Depends(get_storage)
):
    """Update profile fields and optionally upload a new avatar."""
    update_data = UserUpdate(username=username, bio=bio)
    upload = None
    if avatar is not None and avatar.filename:
        upload = (avatar.filename, avatar.content_type, await avatar.read())
    return user_service.update_user(current_user.id, update_data, db, storage, upload)


@router.patch("/status", response_model=UserResponse)
async def update_status(
    payload: OnlineStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Mark the current user online or offline."""
    return user_service.update_online_status(current_user.id, payload.online, db)


@router.delete("/delete-me", response_model=MessageOnly)
async def delete_me(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: AvatarStorage = Depends(get_storage)
):
    """Delete the current account."""
    return user_service.delete_user(current_user.id, db, storage)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get user by ID."""
    return user_service.get_user_by_id(user_id, db)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    storage: AvatarStorage = Depends(get_storage)
):
    """Delete any account (admin only)."""
    user_service.delete_user(user_id, db, storage)
