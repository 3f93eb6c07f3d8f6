"""Tests for the role hierarchy and the moderation gate."""

from types import SimpleNamespace
from uuid import uuid4

import pytest

from forum.auth.models import Actor
from forum.auth.permissions import (
    Action,
    RoleChange,
    UserRole,
    authorize,
    get_role_level,
    has_permission,
    is_admin,
    is_at_least_moderator,
)
from forum.core.errors import ForbiddenError, InvalidInputError


def make_actor(role: UserRole) -> Actor:
    return Actor(user_id=uuid4(), username=f"{role.value}-1", role=role)


def owned_by(actor: Actor) -> SimpleNamespace:
    return SimpleNamespace(author_id=actor.user_id)


class TestRoleHierarchy:
    def test_levels(self):
        assert get_role_level(UserRole.USER) == 0
        assert get_role_level(UserRole.MODERATOR) == 1
        assert get_role_level(UserRole.ADMIN) == 2

    def test_unknown_role_string_is_lowest(self):
        assert get_role_level("superuser") == 0

    def test_has_permission_accepts_strings(self):
        assert has_permission("admin", "moderator")
        assert not has_permission("user", "moderator")

    def test_helpers(self):
        assert is_admin("admin")
        assert not is_admin(UserRole.MODERATOR)
        assert is_at_least_moderator(UserRole.ADMIN)
        assert not is_at_least_moderator(UserRole.USER)


class TestThreadModeration:
    @pytest.mark.parametrize(
        "action",
        [Action.PIN_THREAD, Action.UNPIN_THREAD, Action.LOCK_THREAD, Action.UNLOCK_THREAD],
    )
    def test_moderators_and_admins_only(self, action):
        user = make_actor(UserRole.USER)
        thread = owned_by(user)

        assert not authorize(user, action, thread).allowed
        assert authorize(make_actor(UserRole.MODERATOR), action, thread).allowed
        assert authorize(make_actor(UserRole.ADMIN), action, thread).allowed

    def test_denial_raises_forbidden(self):
        user = make_actor(UserRole.USER)
        with pytest.raises(ForbiddenError):
            authorize(user, Action.PIN_THREAD, owned_by(user)).ensure()


class TestDeletion:
    def test_thread_author_may_delete(self):
        author = make_actor(UserRole.USER)
        assert authorize(author, Action.DELETE_THREAD, owned_by(author)).allowed

    def test_thread_moderator_may_delete_any(self):
        author = make_actor(UserRole.USER)
        moderator = make_actor(UserRole.MODERATOR)
        assert authorize(moderator, Action.DELETE_THREAD, owned_by(author)).allowed

    def test_thread_other_user_denied(self):
        author = make_actor(UserRole.USER)
        other = make_actor(UserRole.USER)
        decision = authorize(other, Action.DELETE_THREAD, owned_by(author))
        assert not decision.allowed
        assert decision.reason == "You can only delete your own threads"

    def test_comment_delete_is_owner_only_even_for_admins(self):
        author = make_actor(UserRole.USER)
        comment = owned_by(author)

        assert authorize(author, Action.DELETE_COMMENT, comment).allowed
        assert not authorize(make_actor(UserRole.MODERATOR), Action.DELETE_COMMENT, comment).allowed
        assert not authorize(make_actor(UserRole.ADMIN), Action.DELETE_COMMENT, comment).allowed


class TestLockedThreads:
    def test_only_moderators_comment_on_locked_threads(self):
        thread = SimpleNamespace(author_id=uuid4(), is_locked=True)
        assert not authorize(make_actor(UserRole.USER), Action.COMMENT_ON_LOCKED_THREAD, thread).allowed
        assert authorize(make_actor(UserRole.MODERATOR), Action.COMMENT_ON_LOCKED_THREAD, thread).allowed


class TestRoleChanges:
    def test_non_admin_denied(self):
        moderator = make_actor(UserRole.MODERATOR)
        change = RoleChange(user_id=uuid4(), new_role=UserRole.USER)
        with pytest.raises(ForbiddenError):
            authorize(moderator, Action.CHANGE_ROLE, change).ensure()

    def test_admin_cannot_demote_self(self):
        admin = make_actor(UserRole.ADMIN)
        change = RoleChange(user_id=admin.user_id, new_role=UserRole.MODERATOR)
        with pytest.raises(InvalidInputError, match="cannot demote yourself"):
            authorize(admin, Action.CHANGE_ROLE, change).ensure()

    def test_admin_reasserting_admin_on_self_allowed(self):
        admin = make_actor(UserRole.ADMIN)
        change = RoleChange(user_id=admin.user_id, new_role=UserRole.ADMIN)
        assert authorize(admin, Action.CHANGE_ROLE, change).allowed

    def test_admin_may_change_others(self):
        admin = make_actor(UserRole.ADMIN)
        change = RoleChange(user_id=uuid4(), new_role=UserRole.MODERATOR)
        assert authorize(admin, Action.CHANGE_ROLE, change).allowed


def test_category_management_is_admin_only():
    assert authorize(make_actor(UserRole.ADMIN), Action.MANAGE_CATEGORIES).allowed
    assert not authorize(make_actor(UserRole.MODERATOR), Action.MANAGE_CATEGORIES).allowed
