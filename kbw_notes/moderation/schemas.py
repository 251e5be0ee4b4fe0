"""Pydantic schemas for the moderation gateway."""

from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ModerationCategory(str, Enum):
    """Classifier verdict categories.

    ``ERROR`` is never produced by the classifier itself; it marks a verdict
    the gateway could not read and therefore rejected.
    """

    APPROVED = "approved"
    HATE_SPEECH = "hate_speech"
    HARASSMENT = "harassment"
    PROFANITY = "profanity"
    EXPLICIT = "explicit"
    SPAM = "spam"
    MISINFORMATION = "misinformation"
    ILLEGAL = "illegal"
    ERROR = "error"


class ClassifierVerdict(BaseModel):
    """The JSON object the classifier is instructed to answer with."""

    approved: bool
    category: ModerationCategory
    reason: str | None = None


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ModerateCommentRequest(CamelModel):
    """Raw, untrusted comment submission."""

    post_id: UUID
    content: str
    parent_id: UUID | None = None


class ModerationVerdict(CamelModel):
    """Gateway answer: an approval with the new id, or a rejection."""

    approved: bool
    comment_id: UUID | None = None
    rejection_reason: str | None = None
    category: ModerationCategory | None = None
