"""Database models for post submissions.

A submission is a post in the making: created as an empty draft, edited
field by field, then published (which makes it a readable post that accepts
comments) or unpublished back to draft.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4


class SubmissionStatus(str, Enum):
    """Lifecycle state of a submission."""

    DRAFT = "draft"
    PUBLISHED = "published"


SUBMISSION_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.submissions (
    submission_id UUID PRIMARY KEY,
    author_id UUID,
    title TEXT,
    slug TEXT,
    excerpt TEXT,
    content TEXT,
    cover_image_url TEXT,
    tags LIST<TEXT>,
    status TEXT,
    published_at TIMESTAMP,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

SUBMISSION_AUTHOR_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS submissions_author_idx
ON {keyspace}.submissions (author_id)
"""

SUBMISSION_STATUS_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS submissions_status_idx
ON {keyspace}.submissions (status)
"""

SUBMISSIONS_TABLES_CQL = [
    SUBMISSION_TABLE_CQL,
    SUBMISSION_AUTHOR_INDEX_CQL,
    SUBMISSION_STATUS_INDEX_CQL,
]

# Columns a caller may change through a partial update
EDITABLE_FIELDS = ("title", "excerpt", "content", "cover_image_url", "tags")


@dataclass
class Submission:
    """Submission entity."""

    submission_id: UUID
    author_id: UUID
    title: str = ""
    slug: str | None = None
    excerpt: str = ""
    content: str = ""
    cover_image_url: str | None = None
    tags: list[str] = field(default_factory=list)
    status: SubmissionStatus = SubmissionStatus.DRAFT
    published_at: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_row(cls, row: Any) -> "Submission":
        """Create Submission from Cassandra row."""
        return cls(
            submission_id=row.submission_id,
            author_id=row.author_id,
            title=row.title or "",
            slug=row.slug,
            excerpt=row.excerpt or "",
            content=row.content or "",
            cover_image_url=row.cover_image_url,
            tags=list(row.tags or []),
            status=SubmissionStatus(row.status or SubmissionStatus.DRAFT.value),
            published_at=row.published_at,
            created_at=row.created_at,
            updated_at=row.updated_at or row.created_at,
        )

    @property
    def is_published(self) -> bool:
        return self.status == SubmissionStatus.PUBLISHED


def create_draft(author_id: UUID) -> Submission:
    """Create an empty draft owned by ``author_id``."""
    return Submission(submission_id=uuid4(), author_id=author_id)
