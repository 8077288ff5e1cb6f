"""
Friend relationship routes.
"""
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from parley.api.dependencies import get_current_user
from parley.db.session import get_db
from parley.models.user import User
from parley.schemas.friend import (
    FriendRelationshipResponse, FriendRequestCreate, FriendRequestResponse, FriendResponse
)
from parley.services import friend_service

router = APIRouter(prefix="/friends", tags=["friends"])


@router.get("", response_model=List[FriendResponse])
async def get_friends(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List accepted friends with unread counts."""
    return friend_service.get_friends(current_user.id, db)


@router.get("/requests", response_model=List[FriendRequestResponse])
async def get_friend_requests(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List pending incoming and outgoing requests."""
    return friend_service.get_friend_requests(current_user.id, db)


@router.post("/send-request", response_model=FriendRelationshipResponse, status_code=status.HTTP_201_CREATED)
async def send_friend_request(
    payload: FriendRequestCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Send a friend request by email."""
    return friend_service.send_friend_request(current_user.id, payload.email, db)


@router.patch("/{request_id}/accept", response_model=FriendRelationshipResponse)
async def accept_friend_request(
    request_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Accept a request addressed to the current user."""
    return friend_service.accept_friend_request(request_id, current_user.id, db)


@router.patch("/{request_id}/reject", response_model=FriendRelationshipResponse)
async def reject_friend_request(
    request_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Reject a request addressed to the current user."""
    return friend_service.reject_friend_request(request_id, current_user.id, db)


@router.delete("/{friend_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_friend(
    friend_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Unfriend a user and delete the shared chat."""
    friend_service.remove_friend(current_user.id, friend_id, db)
