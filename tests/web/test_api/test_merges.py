"""Tests for the thread merge endpoint.

Requests go through the full application with the database dependency
pointed at the test database.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from thread_merge.services import build_merge_service
from thread_merge.web.api.app import api
from thread_merge.web.api.dependencies import get_database_session

from tests.helpers import load_posts, load_thread


@pytest.fixture
def merge_service(test_settings, session_maker):
    return build_merge_service(test_settings, session_maker)


@pytest.fixture
async def client(session_maker, merge_service):
    """Create a test HTTP client bound to the test database."""

    async def override_session():
        async with session_maker() as session:
            yield session

    api.dependency_overrides[get_database_session] = override_session
    api.state.merge_service = merge_service
    try:
        async with AsyncClient(
            transport=ASGITransport(app=api),
            base_url="http://test"
        ) as client:
            yield client
    finally:
        api.dependency_overrides.clear()
        del api.state.merge_service


@pytest.fixture
async def destination(seed_thread):
    return await seed_thread("dest", [0, 20, 40])


@pytest.fixture
async def source(seed_thread):
    return await seed_thread("source", [10, 30])


def as_user(user):
    return {"X-User-Id": str(user.id)}


class TestMergeEndpoint:
    """Tests for POST /threads/{thread_id}/merge."""

    async def test_requires_authentication(self, client, destination, source):
        response = await client.post(f"/threads/{destination.id}/merge", json={"ids": [source.id]})

        assert response.status_code == 401
        assert response.json()["detail"] == "Authentication required"
        assert response.json()["type"] == "authentication_error"

    async def test_unknown_user_rejected(self, client, destination, source):
        response = await client.post(
            f"/threads/{destination.id}/merge",
            json={"ids": [source.id]},
            headers={"X-User-Id": "9999"},
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Authentication failed"

    async def test_preview(self, client, session_maker, destination, source, moderator):
        response = await client.post(
            f"/threads/{destination.id}/merge",
            json={"ids": [source.id]},
            headers=as_user(moderator),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == destination.id
        assert data["post_number_index"] == 5
        assert [post["number"] for post in data["posts"]] == [1, 2, 3, 4, 5]
        assert [post["content"] for post in data["posts"]][:2] == ["dest post 1", "source post 1"]
        assert all(post["thread_id"] == destination.id for post in data["posts"])

        assert await load_thread(session_maker, source.id) is not None

    async def test_commit(self, client, session_maker, destination, source, moderator):
        response = await client.post(
            f"/threads/{destination.id}/merge",
            json={"ids": [source.id, 9999], "merge": True},
            headers=as_user(moderator),
        )

        assert response.status_code == 200
        data = response.json()
        assert [post["number"] for post in data["posts"]] == [1, 2, 3, 4, 5]
        assert data["comment_count"] == 5
        assert data["first_post_id"] == data["posts"][0]["id"]
        assert data["last_post_id"] == data["posts"][-1]["id"]

        assert await load_thread(session_maker, source.id) is None
        posts = await load_posts(session_maker, destination.id)
        assert [post.number for post in posts] == [1, 2, 3, 4, 5]

    async def test_forbidden(self, client, session_maker, destination, source, member):
        response = await client.post(
            f"/threads/{destination.id}/merge",
            json={"ids": [source.id], "merge": True},
            headers=as_user(member),
        )

        assert response.status_code == 403
        data = response.json()
        assert data["type"] == "forbidden_error"
        assert data["detail"] == "You do not have permission to merge threads."
        assert await load_thread(session_maker, source.id) is not None

    async def test_destination_not_found(self, client, source, moderator):
        response = await client.post(
            "/threads/9999/merge",
            json={"ids": [source.id], "merge": True},
            headers=as_user(moderator),
        )

        assert response.status_code == 404
        assert response.json()["type"] == "not_found_error"

    async def test_empty_destination(self, client, seed_thread, source, moderator):
        empty = await seed_thread("empty", [])

        response = await client.post(
            f"/threads/{empty.id}/merge",
            json={"ids": [source.id], "merge": True},
            headers=as_user(moderator),
        )

        assert response.status_code == 422
        assert response.json()["detail"] == "The destination thread has no posts."

    async def test_commit_failure_is_classified(
        self, client, session_maker, merge_service, destination, source, moderator
    ):
        failing_delete = AsyncMock(side_effect=RuntimeError("database is locked"))

        with patch.object(merge_service.threads, "delete_thread", failing_delete):
            response = await client.post(
                f"/threads/{destination.id}/merge",
                json={"ids": [source.id], "merge": True},
                headers=as_user(moderator),
            )

        assert response.status_code == 422
        data = response.json()
        assert data["type"] == "validation_error"
        assert data["detail"] == "Failed to delete the merged threads."
        assert data["errors"] == [
            {
                "code": "merge_deleting_failed",
                "message": "Failed to delete the merged threads.",
                "field": "thread_merge",
            }
        ]
        assert "database is locked" not in response.text
        assert await load_thread(session_maker, source.id) is not None

    async def test_empty_ids_rejected(self, client, destination, moderator):
        response = await client.post(
            f"/threads/{destination.id}/merge",
            json={"ids": []},
            headers=as_user(moderator),
        )

        assert response.status_code == 422
        data = response.json()
        assert data["type"] == "validation_error"
        assert data["detail"] == "Request validation failed"

    async def test_negative_ids_rejected(self, client, destination, moderator):
        response = await client.post(
            f"/threads/{destination.id}/merge",
            json={"ids": [-1]},
            headers=as_user(moderator),
        )

        assert response.status_code == 422

    async def test_request_id_echoed(self, client, destination, source, moderator):
        response = await client.post(
            f"/threads/{destination.id}/merge",
            json={"ids": [source.id]},
            headers={**as_user(moderator), "X-Request-Id": "req-123"},
        )

        assert response.headers["x-request-id"] == "req-123"


async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["version"] == "1.0.0"
