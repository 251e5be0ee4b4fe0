"""Threaded comments on posts.

Provides:
- Comment storage and tree reads (``CommentService``)
- Pure forest operations (``tree``)
"""

from .service import CommentService
from .tree import (
    TOMBSTONE,
    CommentNode,
    build_comment_tree,
    filter_visible,
    insert_reply,
    soft_delete,
)


__all__ = [
    "TOMBSTONE",
    "CommentNode",
    "CommentService",
    "build_comment_tree",
    "filter_visible",
    "insert_reply",
    "soft_delete",
]
