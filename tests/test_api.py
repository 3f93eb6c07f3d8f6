"""End-to-end scenarios over the HTTP API."""

import asyncio
from unittest.mock import AsyncMock

import pytest
from factories import create_category, create_thread
from fastapi.testclient import TestClient

from forum.auth.permissions import UserRole


API = "/api"


@pytest.fixture
def forum(services, register):
    """alice (thread author), bob and a thread in the general category."""
    alice, alice_headers = register("alice")
    bob, bob_headers = register("bob")
    category = asyncio.run(create_category(services.category_service))
    thread = asyncio.run(create_thread(services.thread_service, category, alice))
    return {
        "alice": (alice, alice_headers),
        "bob": (bob, bob_headers),
        "category": category,
        "thread": thread,
    }


def inbox(client: TestClient, headers: dict) -> dict:
    response = client.get(f"{API}/notifications", headers=headers)
    assert response.status_code == 200
    return response.json()


class TestAuthAndValidation:
    def test_unauthenticated_write_rejected(self, client):
        response = client.post(f"{API}/votes", json={"threadId": None, "voteType": "upvote"})
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_invalid_token_rejected(self, client):
        response = client.get(
            f"{API}/notifications", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401

    def test_malformed_body_is_400(self, client, forum):
        _, headers = forum["bob"]
        response = client.post(f"{API}/comments", json={"content": "No thread"}, headers=headers)
        assert response.status_code == 400
        data = response.json()
        assert data["message"] == "Validation error"
        assert any("threadId" in d["field"] for d in data["details"])

    def test_profile_provisioned_on_first_request(self, client, forum):
        _, headers = forum["bob"]
        response = client.get(f"{API}/profiles/me", headers=headers)
        assert response.status_code == 200
        assert response.json()["profile"]["username"] == "bob"


class TestVoting:
    def test_self_vote_counts_without_notification(self, client, forum):
        _, headers = forum["alice"]
        thread = forum["thread"]

        response = client.post(
            f"{API}/votes",
            json={"threadId": str(thread.thread_id), "voteType": "upvote"},
            headers=headers,
        )

        assert response.status_code == 200
        assert response.json()["score"] == 1
        assert inbox(client, headers)["notifications"] == []

    def test_upvote_notifies_owner_once_and_toggles(self, client, services, forum):
        alice, alice_headers = forum["alice"]
        _, bob_headers = forum["bob"]
        body = {"threadId": str(forum["thread"].thread_id), "voteType": "upvote"}

        first = client.post(f"{API}/votes", json=body, headers=bob_headers)
        assert first.json() == {"success": True, "score": 1, "vote_type": "upvote"}

        notifications = inbox(client, alice_headers)
        assert notifications["unread_count"] == 1
        assert notifications["notifications"][0]["content"] == "bob upvoted your thread"
        profile = asyncio.run(services.profile_service.get_profile(alice.user_id))
        assert profile.reputation == 1

        second = client.post(f"{API}/votes", json=body, headers=bob_headers)
        assert second.json()["score"] == 0
        assert second.json()["vote_type"] is None
        assert inbox(client, alice_headers)["unread_count"] == 1
        profile = asyncio.run(services.profile_service.get_profile(alice.user_id))
        assert profile.reputation == 0

    def test_self_vote_and_member_vote_add_up_then_toggle(self, client, forum):
        _, alice_headers = forum["alice"]
        _, bob_headers = forum["bob"]
        body = {"threadId": str(forum["thread"].thread_id), "voteType": "upvote"}

        own = client.post(f"{API}/votes", json=body, headers=alice_headers)
        assert own.json()["score"] == 1
        assert inbox(client, alice_headers)["notifications"] == []

        bob_vote = client.post(f"{API}/votes", json=body, headers=bob_headers)
        assert bob_vote.json()["score"] == 2
        assert inbox(client, alice_headers)["unread_count"] == 1

        retracted = client.post(f"{API}/votes", json=body, headers=bob_headers)
        assert retracted.json() == {"success": True, "score": 1, "vote_type": None}
        assert len(inbox(client, alice_headers)["notifications"]) == 1

    def test_reputation_failure_keeps_vote(self, client, services, forum):
        _, bob_headers = forum["bob"]
        thread = forum["thread"]
        services.profile_service.adjust_reputation = AsyncMock(
            side_effect=RuntimeError("store down")
        )

        response = client.post(
            f"{API}/votes",
            json={"threadId": str(thread.thread_id), "voteType": "upvote"},
            headers=bob_headers,
        )

        assert response.status_code == 200
        assert response.json()["score"] == 1
        services.profile_service.adjust_reputation.assert_awaited_once()

    def test_both_targets_rejected(self, client, forum):
        _, headers = forum["bob"]
        thread_id = str(forum["thread"].thread_id)
        response = client.post(
            f"{API}/votes",
            json={"threadId": thread_id, "commentId": thread_id, "voteType": "upvote"},
            headers=headers,
        )
        assert response.status_code == 400

    def test_positive_reaction_notifies(self, client, forum):
        _, alice_headers = forum["alice"]
        _, bob_headers = forum["bob"]
        body = {"threadId": str(forum["thread"].thread_id), "reactionType": "love"}

        response = client.post(f"{API}/reactions", json=body, headers=bob_headers)

        assert response.status_code == 200
        assert response.json()["counts"] == {"love": 1}
        contents = [n["content"] for n in inbox(client, alice_headers)["notifications"]]
        assert contents == ["bob reacted love to your thread"]

    def test_other_reaction_is_silent(self, client, forum):
        _, alice_headers = forum["alice"]
        _, bob_headers = forum["bob"]
        body = {"threadId": str(forum["thread"].thread_id), "reactionType": "angry"}

        client.post(f"{API}/reactions", json=body, headers=bob_headers)

        assert inbox(client, alice_headers)["notifications"] == []


class TestComments:
    def test_reply_tree_and_notifications(self, client, forum):
        _, alice_headers = forum["alice"]
        _, bob_headers = forum["bob"]
        thread_id = str(forum["thread"].thread_id)

        created = client.post(
            f"{API}/comments",
            json={"threadId": thread_id, "content": "Great thread"},
            headers=bob_headers,
        )
        assert created.status_code == 201
        root = created.json()["comment"]
        assert root["depth"] == 0
        assert root["can_reply"] is True

        reply = client.post(
            f"{API}/comments",
            json={"threadId": thread_id, "parentId": root["id"], "content": "Thanks @bob"},
            headers=alice_headers,
        )
        assert reply.status_code == 201

        replies = client.get(f"{API}/comments/{root['id']}/replies").json()
        assert replies["total"] == 1
        assert replies["comments"][0]["depth"] == 1
        assert replies["comments"][0]["content"] == "Thanks @bob"

        # bob is the parent author: one reply notification, no extra mention
        bob_inbox = inbox(client, bob_headers)["notifications"]
        assert [n["type"] for n in bob_inbox] == ["reply"]
        alice_inbox = inbox(client, alice_headers)["notifications"]
        assert [n["content"] for n in alice_inbox] == ["bob replied to your thread"]

        listing = client.get(f"{API}/threads/{thread_id}/comments").json()
        assert [c["id"] for c in listing["comments"]] == [root["id"]]
        assert listing["comments"][0]["reply_count"] == 1

    def test_delete_by_non_author_forbidden(self, client, forum):
        _, alice_headers = forum["alice"]
        _, bob_headers = forum["bob"]
        created = client.post(
            f"{API}/comments",
            json={"threadId": str(forum["thread"].thread_id), "content": "Mine"},
            headers=bob_headers,
        ).json()["comment"]

        forbidden = client.delete(f"{API}/comments/{created['id']}", headers=alice_headers)
        assert forbidden.status_code == 403

        deleted = client.delete(f"{API}/comments/{created['id']}", headers=bob_headers)
        assert deleted.status_code == 200
        assert deleted.json()["deleted_ids"] == [created["id"]]

    def test_comment_on_unknown_thread(self, client, forum):
        _, headers = forum["bob"]
        response = client.post(
            f"{API}/comments",
            json={"threadId": "00000000-0000-0000-0000-000000000000", "content": "Hi"},
            headers=headers,
        )
        assert response.status_code == 404


class TestNotificationsApi:
    def _notify_alice(self, client, forum):
        _, bob_headers = forum["bob"]
        client.post(
            f"{API}/comments",
            json={"threadId": str(forum["thread"].thread_id), "content": "Ping"},
            headers=bob_headers,
        )

    def test_mark_read_requires_a_target(self, client, forum):
        _, headers = forum["alice"]
        response = client.patch(f"{API}/notifications/mark-read", json={}, headers=headers)
        assert response.status_code == 400

    def test_mark_one_read(self, client, forum):
        _, headers = forum["alice"]
        self._notify_alice(client, forum)
        notification_id = inbox(client, headers)["notifications"][0]["id"]

        response = client.patch(
            f"{API}/notifications/mark-read",
            json={"notificationId": notification_id},
            headers=headers,
        )

        assert response.json() == {"success": True, "marked_count": 1, "unread_count": 0}

    def test_mark_all_and_unread_filter(self, client, forum):
        _, headers = forum["alice"]
        self._notify_alice(client, forum)
        self._notify_alice(client, forum)

        response = client.post(f"{API}/notifications/mark-all-read", headers=headers)

        assert response.json()["marked_count"] == 2
        unread = client.get(f"{API}/notifications", params={"unread": "true"}, headers=headers)
        assert unread.json()["notifications"] == []

    def test_delete_foreign_notification_is_404(self, client, forum):
        _, alice_headers = forum["alice"]
        _, bob_headers = forum["bob"]
        self._notify_alice(client, forum)
        notification_id = inbox(client, alice_headers)["notifications"][0]["id"]

        response = client.delete(
            f"{API}/notifications/{notification_id}", headers=bob_headers
        )
        assert response.status_code == 404


class TestThreadsApi:
    def test_get_thread_counts_views(self, client, forum):
        thread_id = forum["thread"].thread_id
        client.get(f"{API}/threads/{thread_id}")
        response = client.get(f"{API}/threads/{thread_id}")
        assert response.json()["thread"]["view_count"] == 2

    def test_unknown_category_slug(self, client, forum):
        response = client.get(f"{API}/threads", params={"category": "nope"})
        assert response.status_code == 404

    def test_list_by_category_slug(self, client, forum):
        response = client.get(f"{API}/threads", params={"category": "general"})
        assert response.status_code == 200
        assert response.json()["total"] == 1

    def test_member_cannot_moderate(self, client, forum):
        _, headers = forum["bob"]
        response = client.patch(
            f"{API}/threads/{forum['thread'].thread_id}/moderate",
            json={"action": "pin"},
            headers=headers,
        )
        assert response.status_code == 403

    def test_moderator_pins(self, client, register, forum):
        _, headers = register("mod", UserRole.MODERATOR)
        thread_id = forum["thread"].thread_id
        response = client.patch(
            f"{API}/threads/{thread_id}/moderate",
            json={"action": "pin"},
            headers=headers,
        )
        assert response.status_code == 200
        assert client.get(f"{API}/threads/{thread_id}").json()["thread"]["is_pinned"] is True

    def test_deleting_thread_keeps_earned_reputation(self, client, services, forum):
        alice, alice_headers = forum["alice"]
        _, bob_headers = forum["bob"]
        thread_id = forum["thread"].thread_id
        client.post(
            f"{API}/votes",
            json={"threadId": str(thread_id), "voteType": "upvote"},
            headers=bob_headers,
        )

        deleted = client.delete(f"{API}/threads/{thread_id}", headers=alice_headers)

        assert deleted.status_code == 200
        profile = asyncio.run(services.profile_service.get_profile(alice.user_id))
        assert profile.reputation == 1

    def test_bookmark_twice(self, client, forum):
        _, headers = forum["bob"]
        body = {"threadId": str(forum["thread"].thread_id)}
        assert client.post(f"{API}/bookmarks", json=body, headers=headers).status_code == 200
        second = client.post(f"{API}/bookmarks", json=body, headers=headers)
        assert second.status_code == 400
        assert second.json()["message"] == "Already bookmarked"

    def test_member_cannot_create_category(self, client, forum):
        _, headers = forum["bob"]
        response = client.post(
            f"{API}/categories", json={"name": "Off", "slug": "off"}, headers=headers
        )
        assert response.status_code == 403


class TestRoles:
    def test_admin_updates_role(self, client, register, forum):
        _, admin_headers = register("boss", UserRole.ADMIN)
        bob, _ = forum["bob"]
        response = client.patch(
            f"{API}/admin/update-role",
            json={"userId": str(bob.user_id), "role": "moderator"},
            headers=admin_headers,
        )
        assert response.status_code == 200

        profile = client.get(f"{API}/profiles/bob").json()["profile"]
        assert profile["role"] == "moderator"

    def test_admin_self_demotion_is_400(self, client, register):
        admin, headers = register("boss", UserRole.ADMIN)
        response = client.patch(
            f"{API}/admin/update-role",
            json={"userId": str(admin.user_id), "role": "user"},
            headers=headers,
        )
        assert response.status_code == 400
