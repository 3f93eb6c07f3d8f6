"""Tests for the vote/reaction ledger."""

from uuid import uuid4

import pytest
from factories import create_category, create_member, create_thread

from forum.core.errors import InvalidTargetError, NotFoundError
from forum.engagement.models import ReactionType, Target, TargetKind, VoteResult, VoteType
from forum.engagement.service import resolve_target


@pytest.fixture
def thread_target():
    """A thread target not backed by a stored thread (ledger-only tests)."""
    thread_id = uuid4()
    return Target(
        kind=TargetKind.THREAD,
        target_id=thread_id,
        owner_id=uuid4(),
        thread_id=thread_id,
    )


class TestVotes:
    @pytest.mark.asyncio
    async def test_upvote_then_same_again_toggles_off(self, services, thread_target):
        ledger = services.engagement_service
        voter = uuid4()

        first = await ledger.set_vote(voter, thread_target, VoteType.UPVOTE)
        assert first.current == VoteType.UPVOTE
        assert first.score == 1

        second = await ledger.set_vote(voter, thread_target, VoteType.UPVOTE)
        assert second.previous == VoteType.UPVOTE
        assert second.current is None
        assert second.score == 0

    @pytest.mark.asyncio
    async def test_clearing_absent_vote_succeeds(self, services, thread_target):
        result = await services.engagement_service.set_vote(uuid4(), thread_target, None)
        assert result.previous is None
        assert result.current is None
        assert result.score == 0

    @pytest.mark.asyncio
    async def test_switching_replaces_without_duplicating(self, services, session, thread_target):
        ledger = services.engagement_service
        voter = uuid4()

        await ledger.set_vote(voter, thread_target, VoteType.UPVOTE)
        result = await ledger.set_vote(voter, thread_target, VoteType.DOWNVOTE)

        assert result.score == -1
        rows = [r for r in session.rows("thread_votes") if r["user_id"] == voter]
        assert len(rows) == 1
        assert rows[0]["vote_type"] == "downvote"

    @pytest.mark.asyncio
    async def test_score_is_upvotes_minus_downvotes(self, services, thread_target):
        ledger = services.engagement_service
        for _ in range(3):
            await ledger.set_vote(uuid4(), thread_target, VoteType.UPVOTE)
        await ledger.set_vote(uuid4(), thread_target, VoteType.DOWNVOTE)

        assert await ledger.get_score(TargetKind.THREAD, thread_target.target_id) == 2

    def test_reputation_delta(self, thread_target):
        def delta(previous, current):
            return VoteResult(thread_target, previous, current, score=0).reputation_delta

        assert delta(None, VoteType.UPVOTE) == 1
        assert delta(VoteType.UPVOTE, None) == -1
        assert delta(VoteType.UPVOTE, VoteType.DOWNVOTE) == -2
        assert delta(VoteType.DOWNVOTE, VoteType.UPVOTE) == 2
        assert delta(None, None) == 0


class TestReactions:
    @pytest.mark.asyncio
    async def test_set_replace_and_toggle(self, services, thread_target):
        ledger = services.engagement_service
        user = uuid4()

        result = await ledger.set_reaction(user, thread_target, ReactionType.LIKE)
        assert result.counts == {"like": 1}
        assert result.is_positive

        result = await ledger.set_reaction(user, thread_target, ReactionType.HAHA)
        assert result.previous == ReactionType.LIKE
        assert result.counts == {"haha": 1}
        assert not result.is_positive

        result = await ledger.set_reaction(user, thread_target, ReactionType.HAHA)
        assert result.current is None
        assert result.reactions == []
        assert result.counts == {}

    @pytest.mark.asyncio
    async def test_counts_across_users(self, services, thread_target):
        ledger = services.engagement_service
        await ledger.set_reaction(uuid4(), thread_target, ReactionType.LOVE)
        await ledger.set_reaction(uuid4(), thread_target, ReactionType.LOVE)
        result = await ledger.set_reaction(uuid4(), thread_target, ReactionType.WOW)

        assert result.counts == {"love": 2, "wow": 1}
        assert len(result.reactions) == 3


class TestSummaryAndPurge:
    @pytest.mark.asyncio
    async def test_summary_includes_viewer_dispositions(self, services, thread_target):
        ledger = services.engagement_service
        viewer = uuid4()
        await ledger.set_vote(viewer, thread_target, VoteType.DOWNVOTE)
        await ledger.set_reaction(viewer, thread_target, ReactionType.SAD)

        summary = await ledger.summarize(TargetKind.THREAD, thread_target.target_id, viewer)
        assert summary.score == -1
        assert summary.reaction_counts == {"sad": 1}
        assert summary.user_vote == VoteType.DOWNVOTE
        assert summary.user_reaction == ReactionType.SAD

        anonymous = await ledger.summarize(TargetKind.THREAD, thread_target.target_id)
        assert anonymous.user_vote is None
        assert anonymous.user_reaction is None

    @pytest.mark.asyncio
    async def test_purge_removes_everything(self, services, session, thread_target):
        ledger = services.engagement_service
        await ledger.set_vote(uuid4(), thread_target, VoteType.UPVOTE)
        await ledger.set_reaction(uuid4(), thread_target, ReactionType.LIKE)

        await ledger.purge(TargetKind.THREAD, [thread_target.target_id])

        assert session.rows("thread_votes") == []
        assert session.rows("thread_reactions") == []


class TestResolveTarget:
    @pytest.mark.asyncio
    async def test_both_or_neither_rejected(self, services):
        with pytest.raises(InvalidTargetError):
            await resolve_target(
                None, None, services.thread_service, services.comment_service
            )
        with pytest.raises(InvalidTargetError):
            await resolve_target(
                uuid4(), uuid4(), services.thread_service, services.comment_service
            )

    @pytest.mark.asyncio
    async def test_missing_thread(self, services):
        with pytest.raises(NotFoundError, match="Thread not found"):
            await resolve_target(
                uuid4(), None, services.thread_service, services.comment_service
            )

    @pytest.mark.asyncio
    async def test_comment_target_carries_thread_and_owner(self, services):
        author = await create_member(services.profile_service, "alice")
        category = await create_category(services.category_service)
        thread = await create_thread(services.thread_service, category, author)
        comment = await services.comment_service.create_comment(thread, author, "Hi")

        target = await resolve_target(
            None, comment.comment_id, services.thread_service, services.comment_service
        )
        assert target.kind == TargetKind.COMMENT
        assert target.owner_id == author.user_id
        assert target.thread_id == thread.thread_id
