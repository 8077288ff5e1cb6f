"""
Pure checks over a group's membership list.

Every code path that changes ``Group.members`` runs ``validate_members`` before
committing, so the single-creator and unique-user rules hold regardless of
which operation made the change.
"""
from typing import Iterable, Optional
from parley.core.errors import BadRequestError, ForbiddenError
from parley.models.group import Group, GroupMember, GroupRole

ROLE_RANK = {
    GroupRole.MEMBER: 0,
    GroupRole.ADMIN: 1,
    GroupRole.CREATOR: 2,
}

MANAGER_ROLES = (GroupRole.CREATOR, GroupRole.ADMIN)


def find_member(group: Group, user_id: str) -> Optional[GroupMember]:
    """Return the membership entry for ``user_id`` or None."""
    for member in group.members:
        if member.user_id == user_id:
            return member
    return None


def is_manager(member: Optional[GroupMember]) -> bool:
    """Creator and admins may manage the group."""
    return member is not None and member.role in MANAGER_ROLES


def outranks(actor: GroupMember, target: GroupMember) -> bool:
    return ROLE_RANK[actor.role] > ROLE_RANK[target.role]


def validate_members(members: Iterable[GroupMember]) -> None:
    """Raise if the list has no single creator or repeats a user."""
    seen = set()
    creators = 0
    for member in members:
        if member.user_id in seen:
            raise BadRequestError("Duplicate group member")
        seen.add(member.user_id)
        if member.role == GroupRole.CREATOR:
            creators += 1
    if creators != 1:
        raise BadRequestError("A group must have exactly one creator")


def check_can_remove(actor: GroupMember, target: GroupMember) -> None:
    """
    Decide whether ``actor`` may remove ``target`` from the group.

    Members may leave on their own unless they created the group. Removing
    someone else needs a manager role, the creator is never removable, and
    only the creator can remove admins.
    """
    if actor.user_id == target.user_id:
        if target.role == GroupRole.CREATOR:
            raise BadRequestError("Creator cannot remove themselves")
        return

    if target.role == GroupRole.CREATOR:
        raise BadRequestError("Cannot remove group creator")
    if not is_manager(actor):
        raise ForbiddenError("You do not have permission to remove members")
    if not outranks(actor, target):
        raise ForbiddenError("Only creator can remove admins")


def check_assignable_role(role: GroupRole) -> None:
    """The creator role is fixed at group creation."""
    if role == GroupRole.CREATOR:
        raise BadRequestError("The creator role cannot be assigned")
