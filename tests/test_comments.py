"""Tests for the comment tree: replies, quotes, depth and cascading delete."""

from uuid import uuid4

import pytest
from factories import create_category, create_member, create_thread

from forum.auth.permissions import UserRole
from forum.comments.service import CommentService, sanitize_content
from forum.core.errors import (
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    RateLimitExceededError,
)
from forum.core.redis import rate_limit_key
from forum.engagement.models import Target, TargetKind, VoteType


@pytest.fixture
def comment_service(services):
    return services.comment_service


async def setup_thread(services, username: str = "alice"):
    author = await create_member(services.profile_service, username)
    category = await create_category(services.category_service)
    thread = await create_thread(services.thread_service, category, author)
    return author, thread


class TestSanitizeContent:
    def test_escapes_html(self):
        assert sanitize_content("<script>alert(1)</script>") == (
            "&lt;script&gt;alert(1)&lt;/script&gt;"
        )

    def test_keeps_basic_formatting(self):
        assert sanitize_content("<b>bold</b> and <code>x</code>") == (
            "<b>bold</b> and <code>x</code>"
        )


class TestCreateComment:
    @pytest.mark.asyncio
    async def test_empty_content_rejected(self, services, comment_service):
        author, thread = await setup_thread(services)
        with pytest.raises(InvalidInputError, match="Content is required"):
            await comment_service.create_comment(thread, author, "   ")

    @pytest.mark.asyncio
    async def test_top_level_comment(self, services, comment_service):
        author, thread = await setup_thread(services)
        comment = await comment_service.create_comment(thread, author, "First!")

        assert comment.parent_id is None
        assert comment.depth == 0
        assert comment.can_reply is True
        assert comment.author_name == "alice"

    @pytest.mark.asyncio
    async def test_parent_from_another_thread_rejected(self, services, comment_service):
        author, thread = await setup_thread(services)
        category = await create_category(services.category_service, slug="other")
        other_thread = await create_thread(services.thread_service, category, author)
        foreign = await comment_service.create_comment(other_thread, author, "Elsewhere")

        with pytest.raises(InvalidInputError, match="does not belong to this thread"):
            await comment_service.create_comment(
                thread, author, "Reply", parent_id=foreign.comment_id
            )

    @pytest.mark.asyncio
    async def test_missing_parent_rejected(self, services, comment_service):
        author, thread = await setup_thread(services)
        with pytest.raises(InvalidInputError):
            await comment_service.create_comment(thread, author, "Reply", parent_id=uuid4())

    @pytest.mark.asyncio
    async def test_locked_thread_blocks_members_not_moderators(self, services, comment_service):
        author, thread = await setup_thread(services)
        moderator = await create_member(services.profile_service, "mod", UserRole.MODERATOR)
        await services.thread_service.moderate(moderator, thread.thread_id, "lock")
        thread = await services.thread_service.get_thread(thread.thread_id)

        with pytest.raises(ForbiddenError, match="locked"):
            await comment_service.create_comment(thread, author, "Let me in")

        comment = await comment_service.create_comment(thread, moderator, "Closing note")
        assert comment.author_id == moderator.user_id


class TestReplies:
    @pytest.mark.asyncio
    async def test_replies_oldest_first_with_depth(self, services, comment_service):
        author, thread = await setup_thread(services)
        root = await comment_service.create_comment(thread, author, "Root")
        first = await comment_service.create_comment(
            thread, author, "First reply", parent_id=root.comment_id
        )
        second = await comment_service.create_comment(
            thread, author, "Second reply", parent_id=root.comment_id
        )

        replies = await comment_service.load_replies(root.comment_id)
        assert [r.comment_id for r in replies] == [first.comment_id, second.comment_id]
        assert all(r.depth == 1 for r in replies)

        top_level = await comment_service.list_thread_comments(thread.thread_id)
        assert [c.comment_id for c in top_level] == [root.comment_id]
        assert top_level[0].reply_count == 2

    @pytest.mark.asyncio
    async def test_reply_offered_below_max_depth(self, services, comment_service):
        author, thread = await setup_thread(services)
        parent_id = None
        chain = []
        for level in range(4):
            comment = await comment_service.create_comment(
                thread, author, f"Level {level}", parent_id=parent_id
            )
            chain.append(comment)
            parent_id = comment.comment_id

        assert [c.depth for c in chain] == [0, 1, 2, 3]
        assert [c.can_reply for c in chain] == [True, True, True, False]

        deepest = await comment_service.load_replies(chain[2].comment_id)
        assert deepest[0].depth == 3
        assert deepest[0].can_reply is False

    @pytest.mark.asyncio
    async def test_load_replies_of_missing_comment(self, comment_service):
        with pytest.raises(NotFoundError, match="Comment not found"):
            await comment_service.load_replies(uuid4())


class TestQuotes:
    @pytest.mark.asyncio
    async def test_quote_rendered_above_content(self, services, comment_service):
        author, thread = await setup_thread(services)
        bob = await create_member(services.profile_service, "bob")
        original = await comment_service.create_comment(thread, author, "Tabs are better")

        quoting = await comment_service.create_comment(
            thread, bob, "Spaces!", quoted_comment_id=original.comment_id
        )

        assert quoting.quoted.author_name == "alice"
        assert quoting.display_content.startswith(
            "<blockquote><strong>alice said:</strong>"
        )
        assert quoting.display_content.endswith("Spaces!")

    @pytest.mark.asyncio
    async def test_quote_from_another_thread_rejected(self, services, comment_service):
        author, thread = await setup_thread(services)
        other = await create_thread(
            services.thread_service,
            await services.category_service.get_category(thread.category_id),
            author,
            title="Other",
        )
        foreign = await comment_service.create_comment(other, author, "Elsewhere")

        with pytest.raises(InvalidInputError, match="Quoted comment"):
            await comment_service.create_comment(
                thread, author, "Quote", quoted_comment_id=foreign.comment_id
            )


class TestDeleteComment:
    @pytest.mark.asyncio
    async def test_cascades_to_subtree_and_engagement(self, services, session, comment_service):
        author, thread = await setup_thread(services)
        root = await comment_service.create_comment(thread, author, "Root")
        child = await comment_service.create_comment(
            thread, author, "Child", parent_id=root.comment_id
        )
        grandchild = await comment_service.create_comment(
            thread, author, "Grandchild", parent_id=child.comment_id
        )
        sibling = await comment_service.create_comment(thread, author, "Sibling")

        target = Target(TargetKind.COMMENT, grandchild.comment_id, author.user_id, thread.thread_id)
        await services.engagement_service.set_vote(uuid4(), target, VoteType.UPVOTE)

        removed = await comment_service.delete_comment(root.comment_id, author)

        assert set(removed) == {root.comment_id, child.comment_id, grandchild.comment_id}
        assert await comment_service.get_comment(child.comment_id) is None
        assert await comment_service.get_comment(grandchild.comment_id) is None
        assert await comment_service.get_comment(sibling.comment_id) is not None
        assert session.rows("comment_votes") == []
        assert await comment_service.count_thread_comments(thread.thread_id) == 1

    @pytest.mark.asyncio
    async def test_only_author_may_delete(self, services, comment_service):
        author, thread = await setup_thread(services)
        admin = await create_member(services.profile_service, "boss", UserRole.ADMIN)
        comment = await comment_service.create_comment(thread, author, "Mine")

        with pytest.raises(ForbiddenError, match="your own comments"):
            await comment_service.delete_comment(comment.comment_id, admin)

    @pytest.mark.asyncio
    async def test_missing_comment(self, services, comment_service):
        author, _ = await setup_thread(services)
        with pytest.raises(NotFoundError):
            await comment_service.delete_comment(uuid4(), author)


class TestRateLimit:
    @pytest.mark.asyncio
    async def test_minute_limit_exceeded(self, services, session, settings, mock_redis):
        author, thread = await setup_thread(services)
        mock_redis.get.return_value = b"10"
        service = CommentService(
            session=session, keyspace=settings.cassandra_keyspace, redis=mock_redis
        )

        with pytest.raises(RateLimitExceededError, match="per minute"):
            await service.create_comment(thread, author, "Spam")

    @pytest.mark.asyncio
    async def test_counters_incremented(self, services, session, settings, mock_redis):
        author, thread = await setup_thread(services)
        service = CommentService(
            session=session, keyspace=settings.cassandra_keyspace, redis=mock_redis
        )

        await service.create_comment(thread, author, "Hello")

        pipe = mock_redis.pipeline.return_value
        assert pipe.incr.call_count == 2
        pipe.expire.assert_any_call(
            rate_limit_key("comments", str(author.user_id), "minute"), 60
        )
        pipe.execute.assert_awaited_once()
