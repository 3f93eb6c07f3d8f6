"""Tests for notification fan-out and the inbox."""

from types import SimpleNamespace
from uuid import uuid4

import pytest
from factories import create_category, create_member, create_thread

from forum.core.errors import NotFoundError
from forum.engagement.models import ReactionType, Target, TargetKind
from forum.notifications.models import NotificationType, create_notification
from forum.notifications.service import extract_mentions


@pytest.fixture
def notification_service(services):
    return services.notification_service


async def setup_thread(services):
    alice = await create_member(services.profile_service, "alice")
    bob = await create_member(services.profile_service, "bob")
    category = await create_category(services.category_service)
    thread = await create_thread(services.thread_service, category, alice)
    return alice, bob, thread


class TestExtractMentions:
    def test_plain_and_quoted_names(self):
        content = 'Thanks @bob and @"Carol Smith", also @bob again.'
        assert extract_mentions(content) == ["bob", "Carol Smith"]

    def test_trailing_punctuation_stripped(self):
        assert extract_mentions("ping @dave!") == ["dave"]

    def test_no_mentions(self):
        assert extract_mentions("no one mentioned here") == []


class TestCreateNotification:
    @pytest.mark.asyncio
    async def test_self_notification_skipped(self, notification_service):
        user_id = uuid4()
        notification = create_notification(
            user_id=user_id,
            notification_type=NotificationType.VOTE,
            content="self",
            actor_id=user_id,
        )
        assert await notification_service.create_notification(notification) is None
        assert await notification_service.get_notifications(user_id) == []


class TestReplyNotifications:
    @pytest.mark.asyncio
    async def test_top_level_comment_notifies_thread_author(self, services, notification_service):
        alice, bob, thread = await setup_thread(services)
        comment = await services.comment_service.create_comment(thread, bob, "Nice post")

        notification = await notification_service.notify_on_reply(comment, thread)

        assert notification.user_id == alice.user_id
        assert notification.type == NotificationType.REPLY
        assert notification.content == "bob replied to your thread"
        assert notification.thread_id == thread.thread_id

    @pytest.mark.asyncio
    async def test_reply_notifies_parent_author(self, services, notification_service):
        alice, bob, thread = await setup_thread(services)
        carol = await create_member(services.profile_service, "carol")
        parent = await services.comment_service.create_comment(thread, bob, "Question?")
        reply = await services.comment_service.create_comment(
            thread, carol, "Answer", parent_id=parent.comment_id
        )

        notification = await notification_service.notify_on_reply(reply, thread, parent)

        assert notification.user_id == bob.user_id
        assert notification.content == "carol replied to your comment"
        assert await notification_service.get_notifications(alice.user_id) == []

    @pytest.mark.asyncio
    async def test_author_replying_to_self_not_notified(self, services, notification_service):
        alice, _, thread = await setup_thread(services)
        comment = await services.comment_service.create_comment(thread, alice, "Bump")

        assert await notification_service.notify_on_reply(comment, thread) is None


class TestMentionNotifications:
    @pytest.mark.asyncio
    async def test_each_mentioned_member_once(self, services, notification_service):
        alice, bob, thread = await setup_thread(services)
        carol = await create_member(services.profile_service, "carol")
        content = "@bob and @carol, also @bob and @nobody"
        comment = await services.comment_service.create_comment(thread, alice, content)

        created = await notification_service.notify_mentions(
            comment, content, services.profile_service.get_profile_by_username
        )

        assert {n.user_id for n in created} == {bob.user_id, carol.user_id}
        assert all(n.type == NotificationType.MENTION for n in created)
        assert created[0].content == "alice mentioned you in a comment"

    @pytest.mark.asyncio
    async def test_skips_author_and_already_notified(self, services, notification_service):
        alice, bob, thread = await setup_thread(services)
        content = "@alice @bob"
        comment = await services.comment_service.create_comment(thread, alice, content)

        created = await notification_service.notify_mentions(
            comment,
            content,
            services.profile_service.get_profile_by_username,
            skip_user_ids={bob.user_id},
        )
        assert created == []


class TestEngagementNotifications:
    @pytest.mark.asyncio
    async def test_upvote_on_comment(self, notification_service):
        owner_id, thread_id, comment_id = uuid4(), uuid4(), uuid4()
        actor = SimpleNamespace(user_id=uuid4(), username="dave")
        target = Target(TargetKind.COMMENT, comment_id, owner_id, thread_id)

        notification = await notification_service.notify_on_upvote(actor, target)

        assert notification.content == "dave upvoted your comment"
        assert notification.type == NotificationType.VOTE
        assert notification.comment_id == comment_id
        assert notification.thread_id == thread_id

    @pytest.mark.asyncio
    async def test_reaction_on_thread(self, notification_service):
        thread_id = uuid4()
        actor = SimpleNamespace(user_id=uuid4(), username="erin")
        target = Target(TargetKind.THREAD, thread_id, uuid4(), thread_id)

        notification = await notification_service.notify_on_reaction(
            actor, target, ReactionType.LOVE
        )

        assert notification.content == "erin reacted love to your thread"
        assert notification.comment_id is None

    @pytest.mark.asyncio
    async def test_own_content_not_notified(self, notification_service):
        owner_id = uuid4()
        actor = SimpleNamespace(user_id=owner_id, username="self")
        target = Target(TargetKind.THREAD, uuid4(), owner_id, uuid4())

        assert await notification_service.notify_on_upvote(actor, target) is None


class TestInbox:
    async def _seed(self, notification_service, user_id, count=3):
        created = []
        for index in range(count):
            created.append(
                await notification_service.create_notification(
                    create_notification(
                        user_id=user_id,
                        notification_type=NotificationType.REPLY,
                        content=f"reply {index}",
                        actor_id=uuid4(),
                    )
                )
            )
        return created

    @pytest.mark.asyncio
    async def test_newest_first_and_unread_count(self, notification_service):
        user_id = uuid4()
        created = await self._seed(notification_service, user_id)

        inbox = await notification_service.get_notifications(user_id)
        assert [n.notification_id for n in inbox] == [
            n.notification_id for n in reversed(created)
        ]
        assert await notification_service.get_unread_count(user_id) == 3

    @pytest.mark.asyncio
    async def test_mark_as_read_scoped_to_owner(self, notification_service):
        owner, stranger = uuid4(), uuid4()
        created = await self._seed(notification_service, owner, count=2)
        target = created[0].notification_id

        assert await notification_service.mark_as_read(stranger, target) == 0
        assert await notification_service.get_unread_count(owner) == 2

        assert await notification_service.mark_as_read(owner, target) == 1
        assert await notification_service.get_unread_count(owner) == 1

        unread = await notification_service.get_notifications(owner, unread_only=True)
        assert [n.notification_id for n in unread] == [created[1].notification_id]

    @pytest.mark.asyncio
    async def test_mark_missing_is_noop(self, notification_service):
        assert await notification_service.mark_as_read(uuid4(), uuid4()) == 0

    @pytest.mark.asyncio
    async def test_mark_all_as_read(self, notification_service):
        user_id = uuid4()
        await self._seed(notification_service, user_id)

        assert await notification_service.mark_all_as_read(user_id) == 3
        assert await notification_service.get_unread_count(user_id) == 0
        assert await notification_service.mark_all_as_read(user_id) == 0

    @pytest.mark.asyncio
    async def test_delete_scoped_to_owner(self, notification_service):
        owner, stranger = uuid4(), uuid4()
        created = await self._seed(notification_service, owner, count=1)
        notification_id = created[0].notification_id

        with pytest.raises(NotFoundError, match="Notification not found"):
            await notification_service.delete_notification(stranger, notification_id)

        await notification_service.delete_notification(owner, notification_id)
        assert await notification_service.get_notifications(owner) == []

    @pytest.mark.asyncio
    async def test_limit(self, notification_service):
        user_id = uuid4()
        await self._seed(notification_service, user_id, count=5)

        assert len(await notification_service.get_notifications(user_id, limit=2)) == 2
