"""
Tests for the membership rules applied before group changes are saved.
"""
import pytest

from parley.core.errors import BadRequestError, ForbiddenError
from parley.models.group import GroupMember, GroupRole
from parley.services.membership import check_assignable_role, check_can_remove, validate_members


def member(user_id, role=GroupRole.MEMBER):
    return GroupMember(user_id=user_id, role=role)


def test_validate_members_requires_single_creator():
    validate_members([member("a", GroupRole.CREATOR), member("b")])

    with pytest.raises(BadRequestError):
        validate_members([member("a"), member("b")])
    with pytest.raises(BadRequestError):
        validate_members([member("a", GroupRole.CREATOR), member("b", GroupRole.CREATOR)])


def test_validate_members_rejects_duplicates():
    with pytest.raises(BadRequestError):
        validate_members([member("a", GroupRole.CREATOR), member("b"), member("b", GroupRole.ADMIN)])


@pytest.mark.parametrize("actor_role,target_role,error", [
    (GroupRole.CREATOR, GroupRole.ADMIN, None),
    (GroupRole.CREATOR, GroupRole.MEMBER, None),
    (GroupRole.ADMIN, GroupRole.MEMBER, None),
    (GroupRole.ADMIN, GroupRole.ADMIN, ForbiddenError),
    (GroupRole.MEMBER, GroupRole.MEMBER, ForbiddenError),
    (GroupRole.ADMIN, GroupRole.CREATOR, BadRequestError),
    (GroupRole.MEMBER, GroupRole.CREATOR, BadRequestError),
])
def test_check_can_remove_other(actor_role, target_role, error):
    actor, target = member("actor", actor_role), member("target", target_role)
    if error is None:
        check_can_remove(actor, target)
    else:
        with pytest.raises(error):
            check_can_remove(actor, target)


def test_self_removal():
    check_can_remove(member("a"), member("a"))
    check_can_remove(member("a", GroupRole.ADMIN), member("a", GroupRole.ADMIN))
    with pytest.raises(BadRequestError):
        check_can_remove(member("a", GroupRole.CREATOR), member("a", GroupRole.CREATOR))


def test_creator_role_not_assignable():
    check_assignable_role(GroupRole.ADMIN)
    with pytest.raises(BadRequestError):
        check_assignable_role(GroupRole.CREATOR)
