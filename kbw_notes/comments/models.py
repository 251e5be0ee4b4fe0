"""Database models for threaded post comments.

Architecture: adjacency list. ``parent_id`` references the parent comment
(NULL for top-level comments); the nested shape is rebuilt on read.

- comments: one row per comment, keyed by id, indexed by post
- comment_likes: existence of (comment, user) is the like
- comment_likes_by_user: per-viewer lookup of liked comments on a post
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4


ANONYMOUS_AUTHOR = "Anonymous"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COMMENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments (
    comment_id UUID PRIMARY KEY,
    post_id UUID,
    parent_id UUID,
    author_id UUID,
    author_name TEXT,
    content TEXT,
    is_moderated BOOLEAN,
    is_deleted BOOLEAN,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

COMMENT_POST_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS comments_post_idx
ON {keyspace}.comments (post_id)
"""

COMMENT_LIKES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comment_likes (
    comment_id UUID,
    user_id UUID,
    created_at TIMESTAMP,
    PRIMARY KEY ((comment_id), user_id)
)
"""

COMMENT_LIKES_BY_USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comment_likes_by_user (
    user_id UUID,
    post_id UUID,
    comment_id UUID,
    PRIMARY KEY ((user_id, post_id), comment_id)
)
"""

COMMENTS_TABLES_CQL = [
    COMMENT_TABLE_CQL,
    COMMENT_POST_INDEX_CQL,
    COMMENT_LIKES_TABLE_CQL,
    COMMENT_LIKES_BY_USER_TABLE_CQL,
]


# ==============================================================================
# Entities
# ==============================================================================


@dataclass
class Comment:
    """Stored comment row."""

    comment_id: UUID
    post_id: UUID
    parent_id: UUID | None
    author_id: UUID | None
    author_name: str
    content: str
    is_moderated: bool
    is_deleted: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: Any) -> "Comment":
        """Create Comment from Cassandra row."""
        return cls(
            comment_id=row.comment_id,
            post_id=row.post_id,
            parent_id=row.parent_id,
            author_id=row.author_id,
            author_name=row.author_name or ANONYMOUS_AUTHOR,
            content=row.content,
            is_moderated=bool(row.is_moderated),
            is_deleted=bool(row.is_deleted),
            created_at=row.created_at,
            updated_at=row.updated_at or row.created_at,
        )

    @property
    def sort_key(self) -> tuple[datetime, str]:
        """Sibling order: oldest first, id breaks ties."""
        return (self.created_at, str(self.comment_id))


def create_comment(
    post_id: UUID,
    content: str,
    parent_id: UUID | None = None,
    author_id: UUID | None = None,
    author_name: str | None = None,
) -> Comment:
    """Create a new approved comment with default values."""
    now = datetime.now(UTC)
    return Comment(
        comment_id=uuid4(),
        post_id=post_id,
        parent_id=parent_id,
        author_id=author_id,
        author_name=author_name or ANONYMOUS_AUTHOR,
        content=content,
        is_moderated=True,
        is_deleted=False,
        created_at=now,
        updated_at=now,
    )
