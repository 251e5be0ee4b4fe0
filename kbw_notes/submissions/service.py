"""Submission lifecycle service.

Every owner-only mutation carries ``IF author_id = ?`` so the ownership
check and the write happen in one lightweight transaction. A write that is
not applied raises ``NotFoundOrForbidden`` without saying which of the two
it was.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog

from kbw_notes.core.errors import NotFoundOrForbidden, ValidationError

from .content import sanitize_html, slugify
from .models import EDITABLE_FIELDS, Submission, SubmissionStatus, create_draft


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)

NOT_FOUND_MESSAGE = "Submission not found"


class SubmissionService:
    """Service for drafts and published posts."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._update_statements: dict[tuple[str, ...], Any] = {}
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._get_submission = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.submissions WHERE submission_id = ?"
        )
        self._get_by_author = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.submissions WHERE author_id = ?"
        )
        self._get_by_status = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.submissions WHERE status = ?"
        )
        self._insert_submission = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.submissions
            (submission_id, author_id, title, slug, excerpt, content,
             cover_image_url, tags, status, published_at, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._publish = self.session.prepare(f"""
            UPDATE {self.keyspace}.submissions
            SET status = ?, slug = ?, published_at = ?, updated_at = ?
            WHERE submission_id = ?
            IF author_id = ?
        """)
        self._unpublish = self.session.prepare(f"""
            UPDATE {self.keyspace}.submissions
            SET status = ?, published_at = null, updated_at = ?
            WHERE submission_id = ?
            IF author_id = ?
        """)
        self._delete = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.submissions
            WHERE submission_id = ?
            IF author_id = ?
        """)

    def _update_statement(self, fields: tuple[str, ...]):
        """Prepared partial update for a set of columns (cached)."""
        if fields not in self._update_statements:
            assignments = ", ".join(f"{name} = ?" for name in fields)
            self._update_statements[fields] = self.session.prepare(f"""
                UPDATE {self.keyspace}.submissions
                SET {assignments}, updated_at = ?
                WHERE submission_id = ?
                IF author_id = ?
            """)
        return self._update_statements[fields]

    # ==========================================================================
    # Reads
    # ==========================================================================

    async def get_submission(self, submission_id: UUID) -> Submission | None:
        rows = await self.session.aexecute(self._get_submission, [submission_id])
        row = rows.one()
        return Submission.from_row(row) if row else None

    async def get_for_viewer(
        self, submission_id: UUID, viewer_id: UUID | None
    ) -> Submission:
        """Published posts are public; drafts are visible to their author only."""
        submission = await self.get_submission(submission_id)
        if submission is None:
            raise NotFoundOrForbidden(NOT_FOUND_MESSAGE)
        if not submission.is_published and submission.author_id != viewer_id:
            raise NotFoundOrForbidden(NOT_FOUND_MESSAGE)
        return submission

    async def get_published(self, post_id: UUID) -> Submission | None:
        """The post if it exists and is published, else None."""
        submission = await self.get_submission(post_id)
        if submission is None or not submission.is_published:
            return None
        return submission

    async def list_by_author(
        self, author_id: UUID, status: SubmissionStatus | None = None
    ) -> list[Submission]:
        """Author's submissions, most recently updated first."""
        rows = await self.session.aexecute(self._get_by_author, [author_id])
        submissions = [Submission.from_row(row) for row in rows]
        if status is not None:
            submissions = [s for s in submissions if s.status == status]
        submissions.sort(key=lambda s: s.updated_at, reverse=True)
        return submissions

    async def list_published(self, limit: int = 50) -> list[Submission]:
        """Newest published posts first."""
        rows = await self.session.aexecute(
            self._get_by_status, [SubmissionStatus.PUBLISHED.value]
        )
        posts = [Submission.from_row(row) for row in rows]
        posts.sort(
            key=lambda s: s.published_at or s.created_at,
            reverse=True,
        )
        return posts[:limit]

    # ==========================================================================
    # Writes
    # ==========================================================================

    async def create(self, author_id: UUID) -> Submission:
        """Create an empty draft."""
        submission = create_draft(author_id)
        await self.session.aexecute(
            self._insert_submission,
            [
                submission.submission_id,
                submission.author_id,
                submission.title,
                submission.slug,
                submission.excerpt,
                submission.content,
                submission.cover_image_url,
                submission.tags,
                submission.status.value,
                submission.published_at,
                submission.created_at,
                submission.updated_at,
            ],
        )
        logger.info("submission_created", submission_id=str(submission.submission_id))
        return submission

    async def update(
        self, submission_id: UUID, author_id: UUID, changes: dict[str, Any]
    ) -> Submission:
        """Write only the given fields.

        Raises:
            ValidationError: Unknown field
            NotFoundOrForbidden: Missing or not the caller's
        """
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        if changes:
            if changes.get("content") is not None:
                changes = {**changes, "content": sanitize_html(changes["content"])}
            fields = tuple(name for name in EDITABLE_FIELDS if name in changes)
            result = await self.session.aexecute(
                self._update_statement(fields),
                [
                    *(changes[name] for name in fields),
                    datetime.now(UTC),
                    submission_id,
                    author_id,
                ],
            )
            if not result.was_applied:
                raise NotFoundOrForbidden(NOT_FOUND_MESSAGE)
            logger.info(
                "submission_updated",
                submission_id=str(submission_id),
                fields=list(fields),
            )

        return await self._reload(submission_id, author_id)

    async def publish(self, submission_id: UUID, author_id: UUID) -> Submission:
        """Publish a submission; it then accepts comments.

        Raises:
            NotFoundOrForbidden: Missing or not the caller's
            ValidationError: Title or body is empty
        """
        submission = await self.get_submission(submission_id)
        if submission is None or submission.author_id != author_id:
            raise NotFoundOrForbidden(NOT_FOUND_MESSAGE)
        if not submission.title.strip():
            raise ValidationError("Title is required to publish")
        if not submission.content.strip():
            raise ValidationError("Content is required to publish")

        now = datetime.now(UTC)
        result = await self.session.aexecute(
            self._publish,
            [
                SubmissionStatus.PUBLISHED.value,
                slugify(submission.title) or None,
                now,
                now,
                submission_id,
                author_id,
            ],
        )
        if not result.was_applied:
            raise NotFoundOrForbidden(NOT_FOUND_MESSAGE)
        logger.info("submission_published", submission_id=str(submission_id))
        return await self._reload(submission_id, author_id)

    async def unpublish(self, submission_id: UUID, author_id: UUID) -> Submission:
        result = await self.session.aexecute(
            self._unpublish,
            [SubmissionStatus.DRAFT.value, datetime.now(UTC), submission_id, author_id],
        )
        if not result.was_applied:
            raise NotFoundOrForbidden(NOT_FOUND_MESSAGE)
        logger.info("submission_unpublished", submission_id=str(submission_id))
        return await self._reload(submission_id, author_id)

    async def delete(self, submission_id: UUID, author_id: UUID) -> None:
        result = await self.session.aexecute(self._delete, [submission_id, author_id])
        if not result.was_applied:
            raise NotFoundOrForbidden(NOT_FOUND_MESSAGE)
        logger.info("submission_deleted", submission_id=str(submission_id))

    async def _reload(self, submission_id: UUID, author_id: UUID) -> Submission:
        submission = await self.get_submission(submission_id)
        if submission is None or submission.author_id != author_id:
            raise NotFoundOrForbidden(NOT_FOUND_MESSAGE)
        return submission
