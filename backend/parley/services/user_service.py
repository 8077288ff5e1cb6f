"""
User service for profile management and account deletion.
"""
import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from parley.core.errors import ConflictError, NotFoundError
from parley.core.utils import parse_id, utcnow
from parley.models.chat import Chat, ChatType, chat_participants
from parley.models.friend import FriendRelationship
from parley.models.group import Group
from parley.models.message import MessageRead
from parley.models.user import User
from parley.schemas.user import UserUpdate
from parley.services.group_service import purge_group
from parley.services.storage_service import AvatarStorage

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("username", "bio")


def get_all_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.created_at).all()


def get_user_by_id(user_id: str, db: Session) -> User:
    user_id = parse_id(user_id, "user ID")
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def update_user(
    user_id: str,
    update_data: UserUpdate,
    db: Session,
    storage: AvatarStorage,
    avatar: Optional[tuple] = None,
) -> User:
    """
    Update profile fields and optionally replace the avatar.

    ``avatar`` is a ``(filename, content_type, content)`` tuple from the upload.
    The previous avatar file is removed only after the new one is saved.
    """
    user = get_user_by_id(user_id, db)
    changes = update_data.model_dump(exclude_unset=True, exclude_none=True)

    if "username" in changes and changes["username"] != user.username:
        taken = db.query(User.id).filter(User.username == changes["username"], User.id != user.id).first()
        if taken:
            raise ConflictError("Username already exists")

    old_avatar = None
    if avatar is not None:
        filename, content_type, content = avatar
        storage.validate(content_type, len(content))
        old_avatar = user.avatar
        user.avatar = storage.save(user.id, filename, content)

    for field in PROFILE_FIELDS:
        if field in changes:
            setattr(user, field, changes[field])

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Username already exists")
    db.refresh(user)

    if old_avatar:
        storage.remove_file(user.id, old_avatar)
    return user


def update_online_status(user_id: str, online: bool, db: Session) -> User:
    """Online users have no ``last_seen``; going offline stamps it."""
    user = get_user_by_id(user_id, db)
    user.last_seen = None if online else utcnow()
    db.commit()
    db.refresh(user)
    return user


def delete_user(user_id: str, db: Session, storage: AvatarStorage) -> dict:
    """
    Delete an account and everything that only makes sense with it.

    Groups the user created are deleted with their chats, friendships and
    private chats go, and the user is dropped from other chats' participants.
    Avatar files are removed last and best-effort.
    """
    user = get_user_by_id(user_id, db)

    for group in db.query(Group).filter(Group.creator_id == user.id).all():
        purge_group(group, db)

    private_chats = db.query(Chat).filter(
        Chat.type == ChatType.PRIVATE,
        Chat.participants.any(User.id == user.id),
    ).all()
    for edge in db.query(FriendRelationship).filter(
        or_(FriendRelationship.user_id == user.id, FriendRelationship.friend_id == user.id)
    ).all():
        db.delete(edge)
    for chat in private_chats:
        db.delete(chat)
    db.flush()

    db.query(MessageRead).filter(MessageRead.user_id == user.id).delete(synchronize_session=False)
    db.execute(chat_participants.delete().where(chat_participants.c.user_id == user.id))
    db.delete(user)
    db.commit()

    storage.remove(user_id)
    logger.info(f"User {user_id} deleted")
    return {"message": "User deleted successfully"}
