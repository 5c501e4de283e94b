"""Tests for merge authorization."""

from __future__ import annotations

import logging

import pytest

from thread_merge.services.permissions import MERGE_PERMISSION, ForumPermissionChecker
from thread_merge.web.models import Thread, User


@pytest.fixture
def thread():
    return Thread(id=7, title="dest", posts=[])


class TestForumPermissionChecker:
    """Test suite for ForumPermissionChecker."""

    async def test_granted_permission(self, thread):
        actor = User(id=1, username="mod", permissions=[MERGE_PERMISSION])

        assert await ForumPermissionChecker().can_merge(actor, thread) is True

    async def test_admin_holds_every_permission(self, thread):
        actor = User(id=1, username="admin", is_admin=True)

        assert await ForumPermissionChecker().can_merge(actor, thread) is True

    async def test_missing_permission(self, thread, caplog):
        caplog.set_level(logging.INFO)
        actor = User(id=2, username="member", permissions=["thread.reply"])

        assert await ForumPermissionChecker().can_merge(actor, thread) is False
        assert "User 2 lacks thread.merge for thread 7" in caplog.text

    async def test_anonymous_actor(self, thread):
        assert await ForumPermissionChecker().can_merge(None, thread) is False

    async def test_custom_permission_name(self, thread):
        actor = User(id=1, username="mod", permissions=["forum.moderate"])

        assert await ForumPermissionChecker("forum.moderate").can_merge(actor, thread) is True
        assert await ForumPermissionChecker().can_merge(actor, thread) is False
