"""
Chat routes: listings, read markers and messages.
"""
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from parley.api.dependencies import get_current_user
from parley.db.session import get_db
from parley.models.user import User
from parley.schemas.chat import (
    ChatResponse, ChatSummaryResponse, MarkReadRequest, MarkReadResponse, MessageCreate, MessageResponse
)
from parley.services import chat_service

router = APIRouter(prefix="/chats", tags=["chats"])


@router.get("", response_model=List[ChatSummaryResponse])
async def get_all_chats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List private and group chats with unread counts."""
    return chat_service.get_all_chats(current_user.id, db)


@router.patch("/mark-read", response_model=MarkReadResponse)
async def mark_as_read(
    payload: MarkReadRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Mark every message of a private or group conversation as read."""
    marked = chat_service.mark_as_read(current_user.id, payload.id, payload.type, db)
    return {"marked": marked}


@router.get("/group/{group_id}", response_model=ChatResponse)
async def get_group_chat(
    group_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get the chat of a group the current user belongs to."""
    return chat_service.get_group_chat(current_user.id, group_id, db)


@router.get("/{chat_id}/messages", response_model=List[MessageResponse])
async def get_messages(
    chat_id: str,
    limit: int = Query(50, ge=1, le=200),
    before: Optional[datetime] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get the latest messages of a chat."""
    return chat_service.get_messages(current_user.id, chat_id, db, limit=limit, before=before)


@router.post("/{chat_id}/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    chat_id: str,
    payload: MessageCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Send a message to a chat."""
    return chat_service.send_message(current_user.id, chat_id, payload.content, db)


@router.get("/{user_id}", response_model=ChatResponse)
async def get_chat_by_participant(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get the private chat shared with another user."""
    return chat_service.get_chat_by_participant(current_user.id, user_id, db)
