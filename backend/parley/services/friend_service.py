"""
Friend service for the friend-request lifecycle.

A request is one directed edge plus a private chat. Accepting it writes the
reciprocal edge pointing at the same chat, so an accepted friendship is always
two edges.
"""
import logging
from typing import List

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from parley.core.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from parley.core.utils import parse_id
from parley.models.chat import Chat, ChatType, chat_participants
from parley.models.friend import FriendRelationship, FriendStatus, make_pair_key
from parley.models.user import User
from parley.services import chat_service

logger = logging.getLogger(__name__)

EXISTING_EDGE_MESSAGES = {
    FriendStatus.PENDING: "Friend request already exists",
    FriendStatus.ACCEPTED: "You are already friends",
    FriendStatus.REJECTED: "Friend request was previously rejected",
}


def _pair_filter(user_a: str, user_b: str):
    return or_(
        and_(FriendRelationship.user_id == user_a, FriendRelationship.friend_id == user_b),
        and_(FriendRelationship.user_id == user_b, FriendRelationship.friend_id == user_a),
    )


def get_friends(user_id: str, db: Session) -> List[dict]:
    """Accepted friends with the unread count of each shared chat."""
    edges = db.query(FriendRelationship).filter(
        FriendRelationship.user_id == user_id,
        FriendRelationship.status == FriendStatus.ACCEPTED,
    ).all()

    friends = []
    for edge in edges:
        friend = edge.friend
        unread_count = chat_service.get_unread_count(edge.chat_id, user_id, db) if edge.chat_id else 0
        friends.append({
            "id": friend.id,
            "email": friend.email,
            "username": friend.username,
            "avatar": friend.avatar,
            "last_seen": friend.last_seen,
            "chat_id": edge.chat_id,
            "unread_count": unread_count,
        })
    return friends


def get_friend_requests(user_id: str, db: Session) -> List[dict]:
    """Pending requests on either side, tagged incoming or outgoing."""
    requests = db.query(FriendRelationship).filter(
        or_(FriendRelationship.user_id == user_id, FriendRelationship.friend_id == user_id),
        FriendRelationship.status == FriendStatus.PENDING,
    ).order_by(FriendRelationship.created_at.desc()).all()

    return [
        {
            "id": request.id,
            "type": "incoming" if request.friend_id == user_id else "outgoing",
            "sender": request.user,
            "receiver": request.friend,
            "status": request.status,
            "created_at": request.created_at,
        }
        for request in requests
    ]


def send_friend_request(user_id: str, email: str, db: Session) -> FriendRelationship:
    """Create a pending edge to the user owning ``email`` and their private chat."""
    target = db.query(User).filter(User.email == email.strip().lower()).first()
    if not target:
        raise NotFoundError("User not found")
    if target.id == user_id:
        raise BadRequestError("You cannot send friend request to yourself")

    existing = db.query(FriendRelationship).filter(_pair_filter(user_id, target.id)).first()
    if existing:
        raise ConflictError(EXISTING_EDGE_MESSAGES[existing.status])

    actor = db.get(User, user_id)
    chat = chat_service.create_private_chat(actor, target, db)
    request = FriendRelationship(
        user_id=user_id,
        friend_id=target.id,
        status=FriendStatus.PENDING,
        chat_id=chat.id,
        pair_key=make_pair_key(user_id, target.id),
    )
    db.add(request)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a request for the same pair
        db.rollback()
        raise ConflictError(EXISTING_EDGE_MESSAGES[FriendStatus.PENDING])
    db.refresh(request)

    logger.info(f"Friend request {request.id} sent from {user_id} to {target.id}")
    return request


def _get_addressed_request(request_id: str, user_id: str, action: str, db: Session) -> FriendRelationship:
    request_id = parse_id(request_id, "request ID")
    request = db.get(FriendRelationship, request_id)
    if not request:
        raise NotFoundError("Friend request not found")
    if request.friend_id != user_id:
        raise ForbiddenError(f"Not authorized to {action} this request")
    return request


def _upsert_reciprocal(request: FriendRelationship, db: Session) -> None:
    """
    Write the accepted edge from the addressee back to the sender.

    The insert is attempted first and the (user, friend) unique constraint
    decides between concurrent accepts; the loser updates the existing row.
    """
    values = {"status": FriendStatus.ACCEPTED, "chat_id": request.chat_id}
    db.add(FriendRelationship(user_id=request.friend_id, friend_id=request.user_id, **values))
    try:
        db.commit()
        return
    except IntegrityError:
        db.rollback()

    db.query(FriendRelationship).filter(
        FriendRelationship.user_id == request.friend_id,
        FriendRelationship.friend_id == request.user_id,
    ).update(values, synchronize_session=False)
    db.commit()


def accept_friend_request(request_id: str, user_id: str, db: Session) -> FriendRelationship:
    """Accept a request addressed to ``user_id``."""
    request = _get_addressed_request(request_id, user_id, "accept", db)
    if request.status == FriendStatus.REJECTED:
        raise BadRequestError("Friend request was already rejected")

    if request.status != FriendStatus.ACCEPTED:
        request.status = FriendStatus.ACCEPTED
        db.commit()
    _upsert_reciprocal(request, db)
    db.refresh(request)

    logger.info(f"Friend request {request.id} accepted by {user_id}")
    return request


def reject_friend_request(request_id: str, user_id: str, db: Session) -> FriendRelationship:
    """Reject a pending request addressed to ``user_id``."""
    request = _get_addressed_request(request_id, user_id, "reject", db)
    if request.status != FriendStatus.PENDING:
        raise BadRequestError("Only pending requests can be rejected")

    request.status = FriendStatus.REJECTED
    db.commit()
    db.refresh(request)

    logger.info(f"Friend request {request.id} rejected by {user_id}")
    return request


def remove_friend(user_id: str, friend_id: str, db: Session) -> dict:
    """Delete both edges between the pair and the private chat they share."""
    friend_id = parse_id(friend_id, "friend ID")
    if friend_id == user_id:
        raise BadRequestError("You cannot unfriend yourself")

    edges = db.query(FriendRelationship).filter(_pair_filter(user_id, friend_id)).all()
    chat_ids = {edge.chat_id for edge in edges if edge.chat_id}

    shared = db.query(Chat.id).filter(
        Chat.type == ChatType.PRIVATE,
        Chat.id.in_(
            select(chat_participants.c.chat_id).where(chat_participants.c.user_id == user_id)
        ),
        Chat.id.in_(
            select(chat_participants.c.chat_id).where(chat_participants.c.user_id == friend_id)
        ),
    ).all()
    chat_ids.update(row[0] for row in shared)

    for edge in edges:
        db.delete(edge)
    for chat in db.query(Chat).filter(Chat.id.in_(chat_ids)).all():
        db.delete(chat)
    db.commit()

    logger.info(f"User {user_id} removed friend {friend_id} ({len(edges)} edges, {len(chat_ids)} chats)")
    return {"success": True}
