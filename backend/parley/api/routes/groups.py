"""
Group management routes.
"""
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from parley.api.dependencies import get_current_user
from parley.db.session import get_db
from parley.models.user import User
from parley.schemas.group import (
    GroupCreate, GroupMemberAdd, GroupResponse, GroupSummaryResponse, GroupUpdate
)
from parley.services import group_service

router = APIRouter(prefix="/groups", tags=["groups"])


@router.get("", response_model=List[GroupSummaryResponse])
async def list_groups(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List groups of the current user with unread counts."""
    entries = group_service.get_user_groups(current_user.id, db)
    return [
        GroupSummaryResponse(
            **GroupResponse.model_validate(entry["group"]).model_dump(),
            unread_count=entry["unread_count"]
        )
        for entry in entries
    ]


@router.post("", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
async def create_group(
    group_data: GroupCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a new group with the current user as creator."""
    return group_service.create_group(current_user.id, group_data, db)


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group(
    group_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get group details (members only)."""
    return group_service.get_group_details(group_id, current_user.id, db)


@router.patch("/{group_id}", response_model=GroupResponse)
async def update_group(
    group_id: str,
    update_data: GroupUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update group fields (creator or admin)."""
    return group_service.update_group(group_id, current_user.id, update_data, db)


@router.post("/{group_id}/members", response_model=GroupResponse)
async def add_member(
    group_id: str,
    member_data: GroupMemberAdd,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Add a member by email (creator or admin)."""
    return group_service.add_member(group_id, current_user.id, member_data, db)


@router.delete("/{group_id}/members/{member_id}", response_model=GroupResponse)
async def remove_member(
    group_id: str,
    member_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Remove a member, or leave the group when removing yourself."""
    return group_service.remove_member(group_id, current_user.id, member_id, db)


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_group(
    group_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a group and its chat (creator only)."""
    group_service.delete_group(group_id, current_user.id, db)
