"""Thread API endpoints.

Provides routes for:
- Thread create, read (bumps views), list, search and delete
- Pin/lock moderation
- Top-level comments of a thread
- Bookmarks and watchers
"""

from uuid import UUID

import structlog
from fastapi import APIRouter, Query, status

from forum.auth.dependencies import CurrentActor, OptionalActor
from forum.categories.dependencies import CategoryServiceDep
from forum.comments.dependencies import CommentServiceDep
from forum.comments.schemas import CommentListResponse, CommentResponse
from forum.core.errors import ForumError, NotFoundError, handle_forum_error
from forum.core.schemas import SuccessResponse
from forum.engagement.dependencies import EngagementServiceDep
from forum.engagement.models import TargetKind

from .dependencies import ThreadServiceDep
from .models import SearchSort
from .schemas import (
    CreateThreadRequest,
    ModerateThreadRequest,
    ThreadEnvelope,
    ThreadListResponse,
    ThreadRefRequest,
    ThreadResponse,
)


logger = structlog.get_logger(__name__)


router = APIRouter(tags=["threads"])


# ==============================================================================
# Threads
# ==============================================================================


@router.post(
    "/threads",
    response_model=ThreadEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create thread",
)
async def create_thread(
    data: CreateThreadRequest,
    actor: CurrentActor,
    thread_service: ThreadServiceDep,
) -> ThreadEnvelope:
    """Start a thread in a category. Tags are created on first use."""
    try:
        thread = await thread_service.create_thread(
            actor,
            category_id=data.category_id,
            title=data.title,
            content=data.content,
            tags=data.tags,
        )
    except ForumError as e:
        raise handle_forum_error(e) from e
    return ThreadEnvelope(thread=ThreadResponse.from_thread(thread))


@router.get("/threads", response_model=ThreadListResponse, summary="List threads")
async def list_threads(
    thread_service: ThreadServiceDep,
    category_service: CategoryServiceDep,
    category: str | None = Query(default=None, description="Category slug"),
    tag: str | None = Query(default=None, description="Tag name"),
    page: int = Query(default=1, ge=1),
) -> ThreadListResponse:
    """Pinned threads first, then newest first."""
    category_id = None
    if category:
        found = await category_service.get_category_by_slug(category)
        if not found:
            raise handle_forum_error(NotFoundError("Category not found"))
        category_id = found.category_id

    threads, total = await thread_service.list_threads(
        category_id=category_id, tag=tag, page=page
    )
    return ThreadListResponse(
        threads=[ThreadResponse.from_thread(t) for t in threads],
        total=total,
        page=page,
    )


@router.get("/threads/search", response_model=ThreadListResponse, summary="Search threads")
async def search_threads(
    thread_service: ThreadServiceDep,
    q: str | None = Query(default=None, description="Text to find in title or content"),
    category_id: UUID | None = Query(default=None, alias="categoryId"),
    tag: str | None = Query(default=None),
    sort: SearchSort = Query(default=SearchSort.RECENT),
) -> ThreadListResponse:
    threads = await thread_service.search(
        query=q, category_id=category_id, tag=tag, sort=sort
    )
    return ThreadListResponse(
        threads=[ThreadResponse.from_thread(t) for t in threads],
        total=len(threads),
    )


@router.get("/threads/{thread_id}", response_model=ThreadEnvelope, summary="Get thread")
async def get_thread(
    thread_id: UUID,
    actor: OptionalActor,
    thread_service: ThreadServiceDep,
    engagement_service: EngagementServiceDep,
) -> ThreadEnvelope:
    """Return a thread with its score and reactions. Increments the view count."""
    try:
        thread = await thread_service.view_thread(thread_id)
    except ForumError as e:
        raise handle_forum_error(e) from e

    summary = await engagement_service.summarize(
        TargetKind.THREAD, thread_id, actor.user_id if actor else None
    )
    return ThreadEnvelope(thread=ThreadResponse.from_thread(thread, summary))


@router.delete(
    "/threads/{thread_id}", response_model=SuccessResponse, summary="Delete thread"
)
async def delete_thread(
    thread_id: UUID,
    actor: CurrentActor,
    thread_service: ThreadServiceDep,
) -> SuccessResponse:
    """Author or moderator. Removes comments, votes and reactions too."""
    try:
        await thread_service.delete_thread(actor, thread_id)
    except ForumError as e:
        raise handle_forum_error(e) from e
    return SuccessResponse()


@router.patch(
    "/threads/{thread_id}/moderate",
    response_model=SuccessResponse,
    summary="Pin, unpin, lock or unlock a thread",
)
async def moderate_thread(
    thread_id: UUID,
    data: ModerateThreadRequest,
    actor: CurrentActor,
    thread_service: ThreadServiceDep,
) -> SuccessResponse:
    """Moderators and admins only."""
    try:
        await thread_service.moderate(actor, thread_id, data.action)
    except ForumError as e:
        raise handle_forum_error(e) from e
    return SuccessResponse()


@router.get(
    "/threads/{thread_id}/comments",
    response_model=CommentListResponse,
    summary="Top-level comments of a thread",
)
async def list_thread_comments(
    thread_id: UUID,
    actor: OptionalActor,
    thread_service: ThreadServiceDep,
    comment_service: CommentServiceDep,
    engagement_service: EngagementServiceDep,
) -> CommentListResponse:
    """Replies are loaded separately through ``/comments/{id}/replies``."""
    if not await thread_service.get_thread(thread_id):
        raise handle_forum_error(NotFoundError("Thread not found"))

    comments = await comment_service.list_thread_comments(thread_id)
    viewer_id = actor.user_id if actor else None
    items = [
        CommentResponse.from_comment(
            c,
            await engagement_service.summarize(TargetKind.COMMENT, c.comment_id, viewer_id),
        )
        for c in comments
    ]
    return CommentListResponse(comments=items, total=len(items))


# ==============================================================================
# Bookmarks & Watchers
# ==============================================================================


@router.get("/bookmarks", response_model=ThreadListResponse, summary="Own bookmarks")
async def list_bookmarks(
    actor: CurrentActor,
    thread_service: ThreadServiceDep,
) -> ThreadListResponse:
    threads = await thread_service.list_bookmarks(actor.user_id)
    return ThreadListResponse(
        threads=[ThreadResponse.from_thread(t) for t in threads],
        total=len(threads),
    )


@router.post("/bookmarks", response_model=SuccessResponse, summary="Bookmark a thread")
async def add_bookmark(
    data: ThreadRefRequest,
    actor: CurrentActor,
    thread_service: ThreadServiceDep,
) -> SuccessResponse:
    try:
        await thread_service.add_bookmark(actor.user_id, data.thread_id)
    except ForumError as e:
        raise handle_forum_error(e) from e
    return SuccessResponse()


@router.delete("/bookmarks", response_model=SuccessResponse, summary="Remove a bookmark")
async def remove_bookmark(
    data: ThreadRefRequest,
    actor: CurrentActor,
    thread_service: ThreadServiceDep,
) -> SuccessResponse:
    await thread_service.remove_bookmark(actor.user_id, data.thread_id)
    return SuccessResponse()


@router.post("/watchers", response_model=SuccessResponse, summary="Watch a thread")
async def add_watcher(
    data: ThreadRefRequest,
    actor: CurrentActor,
    thread_service: ThreadServiceDep,
) -> SuccessResponse:
    try:
        await thread_service.add_watcher(actor.user_id, data.thread_id)
    except ForumError as e:
        raise handle_forum_error(e) from e
    return SuccessResponse()


@router.delete("/watchers", response_model=SuccessResponse, summary="Stop watching a thread")
async def remove_watcher(
    data: ThreadRefRequest,
    actor: CurrentActor,
    thread_service: ThreadServiceDep,
) -> SuccessResponse:
    await thread_service.remove_watcher(actor.user_id, data.thread_id)
    return SuccessResponse()
