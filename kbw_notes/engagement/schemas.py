"""Pydantic schemas for post engagement."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ToggleResponse(CamelModel):
    """State after a toggle, as stored."""

    post_id: UUID
    active: bool
    count: int


class EngagementResponse(CamelModel):
    """Counts for a post plus the viewer's own state."""

    post_id: UUID
    like_count: int
    bookmark_count: int
    liked: bool = False
    bookmarked: bool = False
