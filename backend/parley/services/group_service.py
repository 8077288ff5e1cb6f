"""
Group service for group lifecycle and membership management.
"""
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from parley.core.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from parley.core.utils import parse_id
from parley.models.group import Group, GroupMember, GroupRole
from parley.models.user import User
from parley.schemas.group import GroupCreate, GroupMemberAdd, GroupUpdate
from parley.services import chat_service
from parley.services.membership import (
    check_assignable_role, check_can_remove, find_member, is_manager, validate_members
)

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "description", "avatar", "is_public", "settings")
MIN_NAME_LENGTH = 2


def _name_key(name: str) -> str:
    return name.strip().lower()


def _name_taken(name: str, db: Session, exclude_id: Optional[str] = None) -> bool:
    query = db.query(Group.id).filter(Group.name_key == _name_key(name))
    if exclude_id:
        query = query.filter(Group.id != exclude_id)
    return query.first() is not None


def _get_group(group_id: str, db: Session) -> Group:
    group_id = parse_id(group_id, "group ID")
    group = db.get(Group, group_id)
    if not group:
        raise NotFoundError("Group not found")
    return group


def get_user_groups(user_id: str, db: Session) -> List[dict]:
    """Groups the user belongs to, each with its unread count."""
    groups = db.query(Group).join(GroupMember).filter(
        GroupMember.user_id == user_id
    ).order_by(Group.created_at).all()

    return [
        {
            "group": group,
            "unread_count": chat_service.get_unread_count(group.chat_id, user_id, db) if group.chat_id else 0,
        }
        for group in groups
    ]


def get_group_details(group_id: str, user_id: str, db: Session) -> Group:
    """Group detail for members; outsiders get NotFound."""
    group_id = parse_id(group_id, "group ID")
    group = db.query(Group).join(GroupMember).filter(
        Group.id == group_id,
        GroupMember.user_id == user_id,
    ).first()
    if not group:
        raise NotFoundError("Group not found or not a member")
    return group


def create_group(user_id: str, group_data: GroupCreate, db: Session) -> Group:
    """
    Create a group with the caller as creator.

    The linked chat is created afterwards; if that fails the group is kept
    without a chat.
    """
    name = (group_data.name or "").strip()
    if not name:
        raise BadRequestError("Group name is required")
    if _name_taken(name, db):
        raise ConflictError("Group name already exists")

    creator = db.get(User, user_id)
    group = Group(
        name=name,
        name_key=_name_key(name),
        description=(group_data.description or "").strip() or None,
        avatar=group_data.avatar,
        is_public=bool(group_data.is_public),
        creator_id=user_id,
        members=[GroupMember(user_id=user_id, role=GroupRole.CREATOR)],
    )
    validate_members(group.members)
    db.add(group)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Group name already exists")

    try:
        chat = chat_service.create_group_chat(group, creator, db)
        group.chat_id = chat.id
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Chat creation failed for group {group.id}: {e}")

    db.refresh(group)
    logger.info(f"Group {group.id} created by {user_id}")
    return group


def update_group(group_id: str, user_id: str, update_data: GroupUpdate, db: Session) -> Group:
    """Apply whitelisted fields; creator and admins only."""
    group = _get_group(group_id, db)

    membership = find_member(group, user_id)
    if not membership:
        raise ForbiddenError("You are not a member of this group")
    if not is_manager(membership):
        raise ForbiddenError("You do not have permission to update this group")

    changes = update_data.model_dump(exclude_unset=True)
    if changes.get("name") is not None:
        name = changes["name"].strip()
        if len(name) < MIN_NAME_LENGTH:
            raise BadRequestError("Group name must be at least 2 characters")
        if _name_taken(name, db, exclude_id=group.id):
            raise ConflictError("Group name already exists")
        changes["name"] = name
        group.name_key = _name_key(name)

    for field in UPDATABLE_FIELDS:
        if field not in changes:
            continue
        if field in ("name", "is_public") and changes[field] is None:
            continue
        setattr(group, field, changes[field])

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Group name already exists")
    db.refresh(group)
    return group


def add_member(group_id: str, user_id: str, member_data: GroupMemberAdd, db: Session) -> Group:
    """Add a user by email; creator and admins only."""
    group = _get_group(group_id, db)

    requester = find_member(group, user_id)
    if not is_manager(requester):
        raise ForbiddenError("Not authorized to add members")

    user = db.query(User).filter(User.email == member_data.email.lower()).first()
    if not user:
        raise NotFoundError("User not found")
    if find_member(group, user.id):
        raise ConflictError("User is already a member")

    role = member_data.role or GroupRole.MEMBER
    check_assignable_role(role)

    group.members.append(GroupMember(user_id=user.id, role=role))
    validate_members(group.members)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("User is already a member")

    if group.chat_id:
        try:
            chat_service.add_participant(group.chat_id, user, db)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(f"Failed to add user {user.id} to chat of group {group.id}: {e}")

    db.refresh(group)
    logger.info(f"User {user.id} added to group {group.id} as {role.value}")
    return group


def remove_member(group_id: str, user_id: str, member_id: str, db: Session) -> Group:
    """Remove a member (or leave); the chat participant pull is best-effort."""
    group = _get_group(group_id, db)
    member_id = parse_id(member_id, "member ID")

    actor = find_member(group, user_id)
    if not actor:
        raise NotFoundError("You are not a member of this group")
    target = find_member(group, member_id)
    if not target:
        raise NotFoundError("Member not found in group")

    check_can_remove(actor, target)

    group.members.remove(target)
    validate_members(group.members)
    db.commit()

    if group.chat_id:
        try:
            chat_service.remove_participant(group.chat_id, member_id, db)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(f"Failed to remove user {member_id} from chat of group {group.id}: {e}")

    db.refresh(group)
    logger.info(f"User {member_id} removed from group {group.id} by {user_id}")
    return group


def _delete_group_chats(group: Group, db: Session) -> None:
    """Best-effort removal of the group's chat(s) before the group itself."""
    try:
        chat_service.delete_group_chats(group, db)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Failed to delete chat of group {group.id}: {e}")


def purge_group(group: Group, db: Session) -> None:
    """Delete a group and its chat without permission checks."""
    group_id = group.id
    _delete_group_chats(group, db)
    db.delete(group)
    db.commit()
    logger.info(f"Group {group_id} deleted")


def delete_group(group_id: str, user_id: str, db: Session) -> dict:
    """Delete a group and its chat; creator only."""
    group = _get_group(group_id, db)

    membership = find_member(group, user_id)
    if not membership or membership.role != GroupRole.CREATOR:
        raise ForbiddenError("Only group creator can delete the group")

    purge_group(group, db)
    return {"success": True, "message": "Group deleted successfully"}

