"""Post like and bookmark toggles."""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from kbw_notes.core.errors import NotFoundOrForbidden, StorageError
from kbw_notes.submissions.service import SubmissionService

from .models import TABLE_BY_KIND, EngagementKind


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)


class EngagementService:
    """Likes and bookmarks on published posts."""

    TOGGLE_ATTEMPTS = 3

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        submissions: SubmissionService,
    ):
        self.session = session
        self.keyspace = keyspace
        self.submissions = submissions
        self._statements = {
            kind: self._prepare(table) for kind, table in TABLE_BY_KIND.items()
        }

    def _prepare(self, table: str) -> dict:
        return {
            "insert": self.session.prepare(f"""
                INSERT INTO {self.keyspace}.{table} (post_id, user_id, created_at)
                VALUES (?, ?, ?) IF NOT EXISTS
            """),
            "delete": self.session.prepare(f"""
                DELETE FROM {self.keyspace}.{table}
                WHERE post_id = ? AND user_id = ? IF EXISTS
            """),
            "count": self.session.prepare(
                f"SELECT COUNT(*) FROM {self.keyspace}.{table} WHERE post_id = ?"
            ),
            "exists": self.session.prepare(
                f"SELECT user_id FROM {self.keyspace}.{table} "
                "WHERE post_id = ? AND user_id = ?"
            ),
        }

    async def _require_post(self, post_id: UUID) -> None:
        if await self.submissions.get_published(post_id) is None:
            raise NotFoundOrForbidden("Post not found")

    async def count(self, kind: EngagementKind, post_id: UUID) -> int:
        rows = await self.session.aexecute(self._statements[kind]["count"], [post_id])
        row = rows.one()
        return int(row[0]) if row else 0

    async def is_active(
        self, kind: EngagementKind, post_id: UUID, user_id: UUID
    ) -> bool:
        rows = await self.session.aexecute(
            self._statements[kind]["exists"], [post_id, user_id]
        )
        return rows.one() is not None

    async def toggle(
        self, kind: EngagementKind, post_id: UUID, user_id: UUID
    ) -> tuple[bool, int]:
        """Flip the caller's like or bookmark.

        Returns:
            Tuple of (active, count) after the write
        """
        await self._require_post(post_id)
        statements = self._statements[kind]

        for _ in range(self.TOGGLE_ATTEMPTS):
            result = await self.session.aexecute(
                statements["insert"], [post_id, user_id, datetime.now(UTC)]
            )
            if result.was_applied:
                active = True
                break
            result = await self.session.aexecute(
                statements["delete"], [post_id, user_id]
            )
            if result.was_applied:
                active = False
                break
        else:
            logger.warning(
                "engagement_toggle_contended", kind=kind.value, post_id=str(post_id)
            )
            raise StorageError(f"Failed to update {kind.value}. Please try again.")

        logger.info(
            "engagement_toggled", kind=kind.value, post_id=str(post_id), active=active
        )
        return active, await self.count(kind, post_id)

    async def get_engagement(
        self, post_id: UUID, viewer_id: UUID | None = None
    ) -> dict:
        await self._require_post(post_id)
        summary = {
            "post_id": post_id,
            "like_count": await self.count(EngagementKind.LIKE, post_id),
            "bookmark_count": await self.count(EngagementKind.BOOKMARK, post_id),
            "liked": False,
            "bookmarked": False,
        }
        if viewer_id is not None:
            summary["liked"] = await self.is_active(
                EngagementKind.LIKE, post_id, viewer_id
            )
            summary["bookmarked"] = await self.is_active(
                EngagementKind.BOOKMARK, post_id, viewer_id
            )
        return summary
