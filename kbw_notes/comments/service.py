"""Comment storage and tree reads.

Comments are only ever written by the moderation gateway
(``insert_moderated_comment``); deletion is a soft delete guarded by a
lightweight transaction so the ownership check and the write are one
atomic step.
"""

import asyncio
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from kbw_notes.config.settings import get_settings
from kbw_notes.core.errors import NotFoundOrForbidden, StorageError

from .models import Comment, create_comment
from .tree import CommentNode, Forest, build_comment_tree, filter_visible, is_visible


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)


class CommentService:
    """Service for comment persistence and reads."""

    # Attempts at the insert-or-delete like toggle before giving up
    LIKE_TOGGLE_ATTEMPTS = 3

    def __init__(self, session: "Session", keyspace: str, tombstone: str | None = None):
        self.session = session
        self.keyspace = keyspace
        self.tombstone = tombstone or get_settings().comment_tombstone
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._get_comment = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.comments WHERE comment_id = ?"
        )
        self._get_comments_by_post = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.comments WHERE post_id = ?"
        )
        self._insert_comment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.comments
            (comment_id, post_id, parent_id, author_id, author_name, content,
             is_moderated, is_deleted, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._soft_delete = self.session.prepare(f"""
            UPDATE {self.keyspace}.comments
            SET content = ?, is_deleted = true, updated_at = ?
            WHERE comment_id = ?
            IF author_id = ? AND is_deleted = false
        """)

        self._insert_like = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.comment_likes (comment_id, user_id, created_at)
            VALUES (?, ?, ?) IF NOT EXISTS
        """)
        self._delete_like = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.comment_likes
            WHERE comment_id = ? AND user_id = ? IF EXISTS
        """)
        self._count_likes = self.session.prepare(
            f"SELECT COUNT(*) FROM {self.keyspace}.comment_likes WHERE comment_id = ?"
        )
        self._insert_like_by_user = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.comment_likes_by_user
            (user_id, post_id, comment_id) VALUES (?, ?, ?)
        """)
        self._delete_like_by_user = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.comment_likes_by_user
            WHERE user_id = ? AND post_id = ? AND comment_id = ?
        """)
        self._get_likes_by_user = self.session.prepare(f"""
            SELECT comment_id FROM {self.keyspace}.comment_likes_by_user
            WHERE user_id = ? AND post_id = ?
        """)

    # ==========================================================================
    # Reads
    # ==========================================================================

    async def get_comment_row(self, comment_id: UUID) -> Comment | None:
        rows = await self.session.aexecute(self._get_comment, [comment_id])
        row = rows.one()
        return Comment.from_row(row) if row else None

    async def list_for_post(self, post_id: UUID) -> list[Comment]:
        """All rows for a post in sibling order."""
        rows = await self.session.aexecute(self._get_comments_by_post, [post_id])
        comments = [Comment.from_row(row) for row in rows]
        comments.sort(key=lambda c: c.sort_key)
        return comments

    async def count_likes(self, comment_id: UUID) -> int:
        rows = await self.session.aexecute(self._count_likes, [comment_id])
        row = rows.one()
        return int(row[0]) if row else 0

    async def liked_comment_ids(self, post_id: UUID, user_id: UUID) -> set[UUID]:
        rows = await self.session.aexecute(self._get_likes_by_user, [user_id, post_id])
        return {row.comment_id for row in rows}

    async def fetch_tree(self, post_id: UUID, viewer_id: UUID | None = None) -> Forest:
        """Comment forest for a post as ``viewer_id`` may see it."""
        visible = filter_visible(await self.list_for_post(post_id), viewer_id)

        counts = await asyncio.gather(
            *(self.count_likes(c.comment_id) for c in visible)
        )
        liked = (
            await self.liked_comment_ids(post_id, viewer_id) if viewer_id else set()
        )

        return build_comment_tree(
            CommentNode.from_comment(
                comment,
                reaction_count=count,
                liked_by_viewer=comment.comment_id in liked,
            )
            for comment, count in zip(visible, counts, strict=True)
        )

    async def get_comment(
        self, comment_id: UUID, viewer_id: UUID | None = None
    ) -> CommentNode:
        """Single comment without replies, subject to the visibility rule.

        Raises:
            NotFoundOrForbidden: Missing or not visible to the viewer
        """
        comment = await self.get_comment_row(comment_id)
        if comment is None or not is_visible(comment, viewer_id):
            raise NotFoundOrForbidden("Comment not found")

        liked = False
        if viewer_id:
            liked = comment_id in await self.liked_comment_ids(
                comment.post_id, viewer_id
            )
        return CommentNode.from_comment(
            comment,
            reaction_count=await self.count_likes(comment_id),
            liked_by_viewer=liked,
        )

    # ==========================================================================
    # Writes
    # ==========================================================================

    async def insert_moderated_comment(
        self,
        post_id: UUID,
        content: str,
        parent_id: UUID | None = None,
        author_id: UUID | None = None,
        author_name: str | None = None,
    ) -> Comment:
        """Persist a comment the classifier approved.

        Only the moderation gateway calls this; there is no other write path.
        """
        comment = create_comment(
            post_id=post_id,
            content=content,
            parent_id=parent_id,
            author_id=author_id,
            author_name=author_name,
        )
        await self.session.aexecute(
            self._insert_comment,
            [
                comment.comment_id,
                comment.post_id,
                comment.parent_id,
                comment.author_id,
                comment.author_name,
                comment.content,
                comment.is_moderated,
                comment.is_deleted,
                comment.created_at,
                comment.updated_at,
            ],
        )
        logger.info(
            "comment_inserted",
            comment_id=str(comment.comment_id),
            post_id=str(post_id),
            is_reply=parent_id is not None,
        )
        return comment

    async def soft_delete(self, comment_id: UUID, user_id: UUID) -> None:
        """Tombstone a comment the caller authored.

        Raises:
            NotFoundOrForbidden: Missing, already deleted or not the author's
        """
        result = await self.session.aexecute(
            self._soft_delete,
            [self.tombstone, datetime.now(UTC), comment_id, user_id],
        )
        if not result.was_applied:
            raise NotFoundOrForbidden("Comment not found")
        logger.info("comment_soft_deleted", comment_id=str(comment_id))

    async def toggle_like(self, comment_id: UUID, user_id: UUID) -> tuple[bool, int]:
        """Flip the caller's like on a comment.

        Returns:
            Tuple of (liked, reaction_count) after the write
        """
        comment = await self.get_comment_row(comment_id)
        if comment is None:
            raise NotFoundOrForbidden("Comment not found")

        for _ in range(self.LIKE_TOGGLE_ATTEMPTS):
            result = await self.session.aexecute(
                self._insert_like, [comment_id, user_id, datetime.now(UTC)]
            )
            if result.was_applied:
                await self.session.aexecute(
                    self._insert_like_by_user, [user_id, comment.post_id, comment_id]
                )
                liked = True
                break

            result = await self.session.aexecute(
                self._delete_like, [comment_id, user_id]
            )
            if result.was_applied:
                await self.session.aexecute(
                    self._delete_like_by_user, [user_id, comment.post_id, comment_id]
                )
                liked = False
                break
        else:
            logger.warning("comment_like_toggle_contended", comment_id=str(comment_id))
            raise StorageError("Failed to update like. Please try again.")

        return liked, await self.count_likes(comment_id)
