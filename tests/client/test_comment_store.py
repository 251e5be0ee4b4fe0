"""Tests for the client-side comment tree."""

import asyncio
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest

from kbw_notes.client.api import NotesClient
from kbw_notes.client.comment_store import CommentTreeStore, ModerationError
from kbw_notes.comments.tree import TOMBSTONE
from kbw_notes.core.errors import (
    AuthenticationRequired,
    ModerationRejection,
    NotFoundOrForbidden,
    RateLimitError,
    StorageError,
)


POST_ID = uuid4()
BASE_TIME = datetime(2025, 1, 1, tzinfo=UTC)


class ServiceError(Exception):
    """Transport failure stand-in."""


def wire_comment(comment_id=None, parent_id=None, minutes=0, **overrides) -> dict:
    comment = {
        "id": str(comment_id or uuid4()),
        "postId": str(POST_ID),
        "parentId": str(parent_id) if parent_id else None,
        "authorId": None,
        "authorName": "Anonymous",
        "content": "hello",
        "createdAt": (BASE_TIME + timedelta(minutes=minutes)).isoformat(),
        "isModerated": True,
        "isDeleted": False,
        "reactionCount": 0,
        "likedByViewer": False,
        "replies": [],
    }
    comment.update(overrides)
    return comment


@pytest.fixture
def api():
    api = Mock(spec=NotesClient)
    api.is_authenticated = True
    api.get_comments = AsyncMock()
    api.get_comment = AsyncMock()
    api.moderate_comment = AsyncMock()
    api.delete_comment = AsyncMock(return_value=None)
    api.toggle_comment_like = AsyncMock()
    return api


@pytest.fixture
def root_id():
    return uuid4()


@pytest.fixture
def reply_id():
    return uuid4()


@pytest.fixture
async def store(api, root_id, reply_id) -> CommentTreeStore:
    reply = wire_comment(reply_id, parent_id=root_id, minutes=1, content="reply")
    root = wire_comment(root_id, content="root", reactionCount=2, replies=[reply])
    api.get_comments.return_value = {
        "postId": str(POST_ID),
        "comments": [root],
        "total": 2,
    }
    store = CommentTreeStore(api, POST_ID)
    await store.refresh()
    return store


class TestRefresh:
    @pytest.mark.asyncio
    async def test_loads_nested_forest(self, store, root_id, reply_id) -> None:
        forest = store.tree()

        assert len(store) == 2
        assert [n.id for n in forest] == [root_id]
        assert [n.id for n in forest[0].replies] == [reply_id]
        assert forest[0].reaction_count == 2

    @pytest.mark.asyncio
    async def test_refresh_replaces_arena(self, store, api) -> None:
        api.get_comments.return_value = {
            "postId": str(POST_ID),
            "comments": [],
            "total": 0,
        }
        assert await store.refresh() == ()
        assert len(store) == 0


class TestSubmit:
    """Moderated submissions."""

    @pytest.mark.asyncio
    async def test_reply_spliced_under_parent(self, store, api, root_id) -> None:
        new_id = uuid4()
        api.moderate_comment.return_value = {"approved": True, "commentId": str(new_id)}
        api.get_comment.return_value = wire_comment(
            new_id, parent_id=root_id, minutes=5, content="second reply"
        )

        node = await store.add_reply(root_id, "second reply")

        assert node.id == new_id
        api.moderate_comment.assert_awaited_once_with(POST_ID, "second reply", root_id)
        replies = store.tree()[0].replies
        assert [r.content for r in replies] == ["reply", "second reply"]
        assert store.moderation_error is None

    @pytest.mark.asyncio
    async def test_top_level_comment_appended(self, store, api) -> None:
        new_id = uuid4()
        api.moderate_comment.return_value = {"approved": True, "commentId": str(new_id)}
        api.get_comment.return_value = wire_comment(new_id, minutes=9)

        await store.add_comment("hello")

        assert [n.id for n in store.tree()][-1] == new_id

    @pytest.mark.asyncio
    async def test_rejection_leaves_tree_unchanged(self, store, api) -> None:
        api.moderate_comment.return_value = {
            "approved": False,
            "rejectionReason": "Spam detected",
            "category": "spam",
        }
        before = store.tree()

        with pytest.raises(ModerationRejection) as exc_info:
            await store.add_comment("BUY NOW")

        assert exc_info.value.category == "spam"
        assert store.moderation_error == ModerationError("Spam detected", "spam")
        assert store.tree() == before
        api.get_comment.assert_not_called()

    @pytest.mark.asyncio
    async def test_rate_limit_sets_message(self, store, api) -> None:
        api.moderate_comment.side_effect = RateLimitError()

        with pytest.raises(RateLimitError):
            await store.add_comment("hello")

        assert store.moderation_error.category == "rate_limited"
        assert store.moderation_error.message.startswith("Too many comments")

    @pytest.mark.asyncio
    async def test_next_submission_clears_error(self, store, api) -> None:
        store.moderation_error = ModerationError("old", "spam")
        api.moderate_comment.side_effect = StorageError()

        with pytest.raises(StorageError):
            await store.add_comment("hello")
        assert store.moderation_error is None

    @pytest.mark.asyncio
    async def test_clear_moderation_error(self, store) -> None:
        store.moderation_error = ModerationError("old")
        store.clear_moderation_error()
        assert store.moderation_error is None


class TestDelete:
    @pytest.mark.asyncio
    async def test_tombstone_keeps_replies(self, store, api, root_id) -> None:
        await store.delete_comment(root_id)

        root = store.tree()[0]
        api.delete_comment.assert_awaited_once_with(root_id)
        assert root.is_deleted is True
        assert root.content == TOMBSTONE
        assert len(root.replies) == 1

    @pytest.mark.asyncio
    async def test_failed_delete_changes_nothing(self, store, api, root_id) -> None:
        api.delete_comment.side_effect = NotFoundOrForbidden("Comment not found")
        with pytest.raises(NotFoundOrForbidden):
            await store.delete_comment(root_id)
        assert store.tree()[0].content == "root"


class TestToggleReaction:
    """Optimistic likes."""

    @pytest.mark.asyncio
    async def test_requires_sign_in(self, store, api, root_id) -> None:
        api.is_authenticated = False
        with pytest.raises(AuthenticationRequired):
            await store.toggle_reaction(root_id)
        api.toggle_comment_like.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_comment(self, store) -> None:
        with pytest.raises(NotFoundOrForbidden):
            await store.toggle_reaction(uuid4())

    @pytest.mark.asyncio
    async def test_shows_change_before_response(self, store, api, root_id) -> None:
        release = asyncio.Event()

        async def slow_like(comment_id):
            await release.wait()
            return {"liked": True, "reactionCount": 3}

        api.toggle_comment_like.side_effect = slow_like

        task = asyncio.create_task(store.toggle_reaction(root_id))
        await asyncio.sleep(0)
        assert store.reaction(root_id).liked is True
        assert store.reaction(root_id).count == 3

        release.set()
        await task

    @pytest.mark.asyncio
    async def test_server_value_wins(self, store, api, root_id) -> None:
        api.toggle_comment_like.return_value = {"liked": True, "reactionCount": 7}

        reaction = await store.toggle_reaction(root_id)

        assert reaction.liked is True
        assert reaction.count == 7
        assert store.tree()[0].reaction_count == 7
        assert store.tree()[0].liked_by_viewer is True

    @pytest.mark.asyncio
    async def test_failure_rolls_back(self, store, api, root_id) -> None:
        api.toggle_comment_like.side_effect = ServiceError()

        with pytest.raises(ServiceError):
            await store.toggle_reaction(root_id)

        assert store.reaction(root_id).liked is False

    @pytest.mark.asyncio
    async def test_two_failed_toggles_restore_original(
        self, store, api, root_id
    ) -> None:
        before = store.reaction(root_id)
        gates = [asyncio.Event(), asyncio.Event()]
        calls = iter(gates)

        async def failing_like(comment_id):
            await next(calls).wait()
            raise ServiceError()

        api.toggle_comment_like.side_effect = failing_like
        first = asyncio.create_task(store.toggle_reaction(root_id))
        await asyncio.sleep(0)
        second = asyncio.create_task(store.toggle_reaction(root_id))
        await asyncio.sleep(0)
        assert store.reaction(root_id) == before

        gates[0].set()
        with pytest.raises(ServiceError):
            await first
        gates[1].set()
        with pytest.raises(ServiceError):
            await second

        assert store.reaction(root_id) == before
        assert store.tree()[0].liked_by_viewer is False
        assert store.tree()[0].reaction_count == 2

    @pytest.mark.asyncio
    async def test_unlike_never_goes_negative(self, api) -> None:
        comment_id = uuid4()
        api.get_comments.return_value = {
            "postId": str(POST_ID),
            "comments": [
                wire_comment(comment_id, reactionCount=0, likedByViewer=True)
            ],
            "total": 1,
        }
        store = CommentTreeStore(api, POST_ID)
        await store.refresh()
        release = asyncio.Event()

        async def slow_unlike(comment_id):
            await release.wait()
            return {"liked": False, "reactionCount": 0}

        api.toggle_comment_like.side_effect = slow_unlike
        task = asyncio.create_task(store.toggle_reaction(comment_id))
        await asyncio.sleep(0)

        assert store.reaction(comment_id).liked is False
        assert store.reaction(comment_id).count == 0
        release.set()
        await task
