"""Async HTTP client for the forum API."""

from typing import Any
from uuid import UUID

import httpx
import structlog


logger = structlog.get_logger(__name__)


class ForumApiError(Exception):
    """Non-success response, timeout or transport failure."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def _target(thread_id: UUID | None, comment_id: UUID | None) -> dict[str, str | None]:
    return {
        "threadId": str(thread_id) if thread_id else None,
        "commentId": str(comment_id) if comment_id else None,
    }


class ForumClient:
    """Thin wrapper over the forum's JSON endpoints.

    Args:
        base_url: Server root, e.g. ``https://forum.example.com``
        token: Session token sent as a Bearer header
        api_prefix: Route prefix the server mounts the forum under
        transport: Optional httpx transport (used by tests)
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        api_prefix: str = "/api",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.api_prefix = api_prefix
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            ForumApiError: On any non-2xx status, timeout or transport error
        """
        url = f"{self.base_url}{self.api_prefix}{path}"
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.request(
                    method, url, json=json, params=params, headers=self._headers()
                )
        except httpx.TimeoutException as e:
            logger.error("forum_api_timeout", path=path, error=str(e))
            raise ForumApiError("Forum API timeout") from e
        except httpx.RequestError as e:
            logger.error("forum_api_request_error", path=path, error=str(e))
            raise ForumApiError(f"Forum API request error: {e}") from e

        if not response.is_success:
            try:
                message = response.json().get("message") or response.reason_phrase
            except ValueError:
                message = response.reason_phrase
            logger.warning(
                "forum_api_request_failed",
                path=path,
                status_code=response.status_code,
                message=message,
            )
            raise ForumApiError(message, status_code=response.status_code)

        return response.json()

    # ==========================================================================
    # Engagement
    # ==========================================================================

    async def set_vote(
        self,
        vote_type: str | None,
        thread_id: UUID | None = None,
        comment_id: UUID | None = None,
    ) -> dict[str, Any]:
        body = {**_target(thread_id, comment_id), "voteType": vote_type}
        return await self.request("POST", "/votes", json=body)

    async def set_reaction(
        self,
        reaction_type: str | None,
        thread_id: UUID | None = None,
        comment_id: UUID | None = None,
    ) -> dict[str, Any]:
        body = {**_target(thread_id, comment_id), "reactionType": reaction_type}
        return await self.request("POST", "/reactions", json=body)

    # ==========================================================================
    # Comments
    # ==========================================================================

    async def create_comment(
        self,
        thread_id: UUID,
        content: str,
        parent_id: UUID | None = None,
        quoted_comment_id: UUID | None = None,
    ) -> dict[str, Any]:
        body = {
            "threadId": str(thread_id),
            "content": content,
            "parentId": str(parent_id) if parent_id else None,
            "quotedCommentId": str(quoted_comment_id) if quoted_comment_id else None,
        }
        data = await self.request("POST", "/comments", json=body)
        return data["comment"]

    async def load_replies(self, comment_id: UUID) -> list[dict[str, Any]]:
        data = await self.request("GET", f"/comments/{comment_id}/replies")
        return data["comments"]

    # ==========================================================================
    # Notifications
    # ==========================================================================

    async def get_notifications(self, unread_only: bool = False) -> dict[str, Any]:
        """Inbox snapshot: ``notifications`` and ``unread_count``."""
        params = {"unread": "true"} if unread_only else None
        return await self.request("GET", "/notifications", params=params)

    async def mark_read(self, notification_id: UUID) -> dict[str, Any]:
        return await self.request(
            "PATCH",
            "/notifications/mark-read",
            json={"notificationId": str(notification_id)},
        )

    async def mark_all_read(self) -> dict[str, Any]:
        return await self.request("POST", "/notifications/mark-all-read")
