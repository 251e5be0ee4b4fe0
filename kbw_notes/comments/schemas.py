"""Pydantic schemas for comments.

Wire field names are camelCase; Python attributes stay snake_case.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class CommentResponse(CamelModel):
    """A comment with its nested replies."""

    id: UUID
    post_id: UUID
    parent_id: UUID | None = None
    author_id: UUID | None = None
    author_name: str = "Anonymous"
    content: str
    created_at: datetime
    is_moderated: bool = True
    is_deleted: bool = False
    reaction_count: int = 0
    liked_by_viewer: bool = False
    replies: list["CommentResponse"] = Field(default_factory=list)


class CommentTreeResponse(CamelModel):
    """Every comment on a post visible to the viewer, as a forest."""

    post_id: UUID
    comments: list[CommentResponse]
    total: int


class CommentLikeResponse(CamelModel):
    """Result of toggling a like: the server's view after the write."""

    liked: bool
    reaction_count: int


class LikedCommentsResponse(CamelModel):
    """Comment ids on a post that the viewer has liked."""

    post_id: UUID
    comment_ids: list[UUID]


class MessageResponse(BaseModel):
    """Simple message response."""

    message: str
