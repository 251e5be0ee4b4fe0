"""Database models for post likes and bookmarks.

The existence of a ``(post_id, user_id)`` row is the state; toggling
inserts or deletes it.
"""

from enum import Enum


class EngagementKind(str, Enum):
    """Toggleable per-user state on a post."""

    LIKE = "like"
    BOOKMARK = "bookmark"


POST_LIKES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.post_likes (
    post_id UUID,
    user_id UUID,
    created_at TIMESTAMP,
    PRIMARY KEY ((post_id), user_id)
)
"""

POST_BOOKMARKS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.post_bookmarks (
    post_id UUID,
    user_id UUID,
    created_at TIMESTAMP,
    PRIMARY KEY ((post_id), user_id)
)
"""

ENGAGEMENT_TABLES_CQL = [
    POST_LIKES_TABLE_CQL,
    POST_BOOKMARKS_TABLE_CQL,
]

TABLE_BY_KIND = {
    EngagementKind.LIKE: "post_likes",
    EngagementKind.BOOKMARK: "post_bookmarks",
}
