"""Pydantic schemas for submissions."""

from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .content import normalize_tags
from .models import SubmissionStatus


MAX_TAGS = 10


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class UpdateSubmissionRequest(CamelModel):
    """Partial update; only fields present in the body are written.

    Send ``coverImageUrl: null`` to clear the cover image.
    """

    title: str | None = Field(None, max_length=200)
    excerpt: str | None = Field(None, max_length=500)
    content: str | None = Field(None, max_length=100_000)
    cover_image_url: str | None = Field(None, max_length=2000)
    tags: list[str] | None = Field(None, max_length=MAX_TAGS)

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return None
        return normalize_tags(v)

    def changes(self) -> dict:
        """Field name -> new value for every field the caller sent."""
        changes = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            if value is None and name != "cover_image_url":
                continue
            changes[name] = value
        return changes


class SubmissionResponse(CamelModel):
    """Full submission as its author sees it."""

    id: UUID = Field(validation_alias=AliasChoices("submission_id", "id"))
    author_id: UUID
    title: str
    slug: str | None = None
    excerpt: str
    content: str
    cover_image_url: str | None = None
    tags: list[str]
    status: SubmissionStatus
    published_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class SubmissionListResponse(CamelModel):
    items: list[SubmissionResponse]
    total: int
