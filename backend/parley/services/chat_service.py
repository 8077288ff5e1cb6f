"""
Chat service: read markers, unread counters and message exchange.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import exists, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from parley.core.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from parley.core.utils import parse_id, utcnow
from parley.models.chat import Chat, ChatType, chat_participants
from parley.models.friend import FriendRelationship, FriendStatus
from parley.models.group import Group, GroupMember
from parley.models.message import Message, MessageRead
from parley.models.user import User

logger = logging.getLogger(__name__)

MARK_READ_ATTEMPTS = 3


def _read_by(user_id: str):
    """Correlated EXISTS: ``user_id`` holds a read marker on the message."""
    return exists().where(
        MessageRead.message_id == Message.id,
        MessageRead.user_id == user_id,
    )


def _is_group_member(group_id: str, user_id: str, db: Session) -> bool:
    return db.query(
        exists().where(GroupMember.group_id == group_id, GroupMember.user_id == user_id)
    ).scalar()


def create_private_chat(user_a: User, user_b: User, db: Session) -> Chat:
    """Add a private chat for two users to the session (not committed)."""
    chat = Chat(type=ChatType.PRIVATE, participants=[user_a, user_b], created_by_id=user_a.id)
    db.add(chat)
    db.flush()
    return chat


def create_group_chat(group: Group, creator: User, db: Session) -> Chat:
    """Add a group chat linked to ``group`` to the session (not committed)."""
    chat = Chat(
        type=ChatType.GROUP,
        group_id=group.id,
        participants=[creator],
        created_by_id=creator.id,
    )
    db.add(chat)
    db.flush()
    return chat


def add_participant(chat_id: str, user: User, db: Session) -> None:
    """Add ``user`` to a chat's participants (not committed)."""
    chat = db.get(Chat, chat_id)
    if chat and not chat.has_participant(user.id):
        chat.participants.append(user)
        db.flush()


def remove_participant(chat_id: str, user_id: str, db: Session) -> None:
    db.execute(
        chat_participants.delete().where(
            chat_participants.c.chat_id == chat_id,
            chat_participants.c.user_id == user_id,
        )
    )


def delete_group_chats(group: Group, db: Session) -> int:
    """Delete every chat linked to ``group`` with its messages (not committed)."""
    chats = db.query(Chat).filter(Chat.group_id == group.id).all()
    if group.chat and group.chat not in chats:
        chats.append(group.chat)
    group.chat = None
    for chat in chats:
        db.delete(chat)
    db.flush()
    return len(chats)


def get_unread_count(chat_id: str, user_id: str, db: Session) -> int:
    """Count messages in a chat that ``user_id`` neither sent nor read."""
    count = db.query(func.count(Message.id)).filter(
        Message.chat_id == chat_id,
        Message.sender_id != user_id,
        ~_read_by(user_id),
    ).scalar()
    return count or 0


def _resolve_private_chat(user_id: str, other_user_id: str, db: Session) -> Chat:
    edge = db.query(FriendRelationship).filter(
        FriendRelationship.user_id == user_id,
        FriendRelationship.friend_id == other_user_id,
    ).first()
    if not edge or not edge.chat_id:
        raise NotFoundError("Chat not found")
    chat = db.get(Chat, edge.chat_id)
    if not chat:
        raise NotFoundError("Chat not found")
    return chat


def _resolve_group_chat(user_id: str, group_id: str, db: Session) -> Chat:
    group = db.get(Group, group_id)
    if not group:
        raise NotFoundError("Group not found")
    if not _is_group_member(group.id, user_id, db):
        raise ForbiddenError("You are not a member of this group")
    chat = db.get(Chat, group.chat_id) if group.chat_id else None
    if not chat:
        raise NotFoundError("Group chat not found")
    return chat


def mark_as_read(user_id: str, target_id: str, chat_type: str, db: Session) -> int:
    """
    Add a read marker for ``user_id`` to every message of a conversation.

    ``target_id`` is the other user's id for private chats and the group id for
    group chats. Returns how many messages were newly marked; calling it again
    marks nothing.
    """
    if chat_type not in (ChatType.PRIVATE.value, ChatType.GROUP.value):
        raise BadRequestError("Invalid chat type")
    target_id = parse_id(target_id)

    if chat_type == ChatType.PRIVATE.value:
        chat = _resolve_private_chat(user_id, target_id, db)
    else:
        chat = _resolve_group_chat(user_id, target_id, db)

    for attempt in range(MARK_READ_ATTEMPTS):
        unread_ids = [
            row[0] for row in db.query(Message.id).filter(
                Message.chat_id == chat.id,
                ~_read_by(user_id),
            ).all()
        ]
        if not unread_ids:
            return 0

        now = utcnow()
        db.add_all([
            MessageRead(message_id=message_id, user_id=user_id, read_at=now)
            for message_id in unread_ids
        ])
        try:
            db.commit()
        except IntegrityError:
            # Another request by the same user marked some of these first
            db.rollback()
            logger.debug(f"Read marker conflict for user {user_id} in chat {chat.id}, attempt {attempt + 1}")
            continue

        logger.debug(f"Marked {len(unread_ids)} messages read for user {user_id} in chat {chat.id}")
        return len(unread_ids)

    raise ConflictError("Could not mark messages as read, please retry")


def get_all_chats(user_id: str, db: Session) -> List[dict]:
    """Private and group chats of a user, newest activity first."""
    summaries = []

    edges = db.query(FriendRelationship).filter(
        FriendRelationship.user_id == user_id,
        FriendRelationship.status == FriendStatus.ACCEPTED,
        FriendRelationship.chat_id.isnot(None),
    ).all()
    for edge in edges:
        chat = edge.chat
        if not chat:
            continue
        summaries.append({
            "id": chat.id,
            "type": chat.type,
            "name": edge.friend.username,
            "group_id": None,
            "participants": chat.participants,
            "unread_count": get_unread_count(chat.id, user_id, db),
            "updated_at": chat.updated_at,
        })

    groups = db.query(Group).join(GroupMember).filter(
        GroupMember.user_id == user_id,
        Group.chat_id.isnot(None),
    ).all()
    for group in groups:
        chat = group.chat
        if not chat:
            continue
        summaries.append({
            "id": chat.id,
            "type": chat.type,
            "name": group.name,
            "group_id": group.id,
            "participants": [m.user for m in group.members],
            "unread_count": get_unread_count(chat.id, user_id, db),
            "updated_at": chat.updated_at,
        })

    summaries.sort(key=lambda s: s["updated_at"], reverse=True)
    return summaries


def get_chat_by_participant(user_id: str, other_user_id: str, db: Session) -> Chat:
    """Private chat shared with another user."""
    other_user_id = parse_id(other_user_id, "participant ID")
    if other_user_id == user_id:
        raise NotFoundError("Chat not found")

    chat = db.query(Chat).filter(
        Chat.type == ChatType.PRIVATE,
        Chat.participants.any(User.id == user_id),
        Chat.participants.any(User.id == other_user_id),
    ).first()
    if not chat:
        raise NotFoundError("Chat not found")
    return chat


def get_group_chat(user_id: str, group_id: str, db: Session) -> Chat:
    """Chat linked to a group the user belongs to."""
    group_id = parse_id(group_id, "group ID")
    return _resolve_group_chat(user_id, group_id, db)


def _get_visible_chat(user_id: str, chat_id: str, db: Session) -> Chat:
    chat_id = parse_id(chat_id, "chat ID")
    chat = db.get(Chat, chat_id)
    if not chat:
        raise NotFoundError("Chat not found")

    if chat.type == ChatType.GROUP:
        visible = bool(chat.group_id) and _is_group_member(chat.group_id, user_id, db)
    else:
        visible = chat.has_participant(user_id)
    if not visible:
        raise NotFoundError("Chat not found")
    return chat


def send_message(user_id: str, chat_id: str, content: str, db: Session) -> Message:
    """Store a message and bump the chat's activity time."""
    chat = _get_visible_chat(user_id, chat_id, db)
    content = (content or "").strip()
    if not content:
        raise BadRequestError("Message content is required")

    message = Message(chat_id=chat.id, sender_id=user_id, content=content)
    db.add(message)
    chat.updated_at = utcnow()
    db.commit()
    db.refresh(message)
    return message


def get_messages(
    user_id: str,
    chat_id: str,
    db: Session,
    limit: int = 50,
    before: Optional[datetime] = None,
) -> List[Message]:
    """Latest ``limit`` messages of a chat, returned oldest first."""
    chat = _get_visible_chat(user_id, chat_id, db)

    query = db.query(Message).filter(Message.chat_id == chat.id)
    if before is not None:
        query = query.filter(Message.created_at < before)
    messages = query.order_by(Message.created_at.desc(), Message.id.desc()).limit(limit).all()
    return list(reversed(messages))
