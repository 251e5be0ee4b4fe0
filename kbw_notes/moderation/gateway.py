"""Moderation gateway: the only write path for comments.

Every submission is validated, rate limited and classified before anything
is stored. A classifier that cannot be reached or read never results in an
approval.
"""

import re
import unicodedata
from uuid import UUID

import structlog

from kbw_notes.comments.service import CommentService
from kbw_notes.core.errors import (
    NotFoundOrForbidden,
    RateLimitError,
    StorageError,
    ValidationError,
)
from kbw_notes.ratelimit import UNKNOWN_CLIENT, RateLimiter
from kbw_notes.submissions.service import SubmissionService

from .classifier import Classifier
from .schemas import ModerationCategory, ModerationVerdict


logger = structlog.get_logger(__name__)

DEFAULT_REJECTION_REASON = (
    "Your comment was rejected for violating community guidelines."
)
SAVE_FAILED_MESSAGE = "Failed to save comment. Please try again."

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f]")
_WHITESPACE_RUN = re.compile(r"\s+")


def sanitize_comment(content: str) -> str:
    """Trim, NFKC-normalise, drop control characters and collapse whitespace.

    Newlines are control characters, so comments come out single-line.
    """
    text = unicodedata.normalize("NFKC", content.strip())
    text = _CONTROL_CHARS.sub("", text)
    return _WHITESPACE_RUN.sub(" ", text).strip()


class ModerationGateway:
    """Validates, rate limits, classifies and (on approval) stores comments."""

    def __init__(
        self,
        classifier: Classifier,
        rate_limiter: RateLimiter,
        comments: CommentService,
        submissions: SubmissionService,
        max_length: int = 2000,
    ):
        self.classifier = classifier
        self.rate_limiter = rate_limiter
        self.comments = comments
        self.submissions = submissions
        self.max_length = max_length

    def _validate(self, content: str) -> str:
        if not content or not content.strip():
            raise ValidationError("Comment cannot be empty")
        if len(content) > self.max_length:
            raise ValidationError(
                f"Comment must be {self.max_length} characters or fewer"
            )
        sanitized = sanitize_comment(content)
        if not sanitized:
            raise ValidationError("Comment cannot be empty")
        return sanitized

    async def _check_target(self, post_id: UUID, parent_id: UUID | None) -> None:
        if await self.submissions.get_published(post_id) is None:
            raise NotFoundOrForbidden("Post not found")

        if parent_id is None:
            return
        parent = await self.comments.get_comment_row(parent_id)
        if parent is None:
            raise NotFoundOrForbidden("Parent comment not found")
        if parent.post_id != post_id:
            raise ValidationError("Parent comment does not belong to this post")

    async def submit(
        self,
        post_id: UUID,
        content: str,
        parent_id: UUID | None = None,
        author_id: UUID | None = None,
        author_name: str | None = None,
        identifier: str = UNKNOWN_CLIENT,
    ) -> ModerationVerdict:
        """Moderate one comment submission.

        Returns:
            An approved verdict carrying the new comment id, or a rejection
            with the reason and category. Storage is untouched on rejection.

        Raises:
            ValidationError: Empty or oversized content, or a foreign parent
            RateLimitError: Identifier exceeded its window
            NotFoundOrForbidden: Unknown or unpublished post, unknown parent
            ServiceUnavailable: Classifier unreachable or not configured
            StorageError: Approved comment could not be stored
        """
        sanitized = self._validate(content)

        if not await self.rate_limiter.check_and_consume(identifier):
            raise RateLimitError()

        await self._check_target(post_id, parent_id)

        verdict = await self.classifier.classify(sanitized)

        if not verdict.approved:
            category = verdict.category
            if category == ModerationCategory.APPROVED:
                category = ModerationCategory.ERROR
            logger.info(
                "comment_moderated",
                approved=False,
                category=category.value,
            )
            return ModerationVerdict(
                approved=False,
                rejection_reason=verdict.reason or DEFAULT_REJECTION_REASON,
                category=category,
            )

        try:
            comment = await self.comments.insert_moderated_comment(
                post_id=post_id,
                content=sanitized,
                parent_id=parent_id,
                author_id=author_id,
                author_name=author_name,
            )
        except Exception as e:
            logger.error("comment_insert_failed", error_type=type(e).__name__)
            raise StorageError(SAVE_FAILED_MESSAGE) from e

        logger.info(
            "comment_moderated",
            approved=True,
            category=ModerationCategory.APPROVED.value,
        )
        return ModerationVerdict(approved=True, comment_id=comment.comment_id)
