"""Content classifier clients.

The classifier is an external LLM reached over HTTP. Transport failures are
``ServiceUnavailable`` (the caller may retry); an answer that cannot be read
is turned into a rejection, never an approval.
"""

import json
from abc import ABC, abstractmethod

import httpx
import structlog
from pydantic import ValidationError as PydanticValidationError

from kbw_notes.config.settings import Settings
from kbw_notes.core.errors import ServiceUnavailable

from .prompts import MODERATION_SYSTEM_PROMPT, build_user_message
from .schemas import ClassifierVerdict, ModerationCategory


logger = structlog.get_logger(__name__)

MODERATION_SERVICE_ERROR = "Moderation service error. Please try again."
UNVERIFIED_CONTENT_REASON = (
    "Unable to verify content. Please try again or contact support."
)


def fail_closed_verdict() -> ClassifierVerdict:
    """Rejection used whenever the classifier output is unusable."""
    return ClassifierVerdict(
        approved=False,
        category=ModerationCategory.ERROR,
        reason=UNVERIFIED_CONTENT_REASON,
    )


def parse_verdict(text: str) -> ClassifierVerdict:
    """Validate classifier text against the verdict schema, failing closed."""
    try:
        verdict = ClassifierVerdict.model_validate_json(text)
    except PydanticValidationError:
        logger.warning("moderation_verdict_invalid")
        return fail_closed_verdict()

    if verdict.category == ModerationCategory.ERROR:
        # Reserved for unreadable output
        return fail_closed_verdict()
    return verdict


class Classifier(ABC):
    """Judges a piece of text against the community policy."""

    @abstractmethod
    async def classify(self, content: str) -> ClassifierVerdict:
        """Classify sanitised content.

        Raises:
            ServiceUnavailable: The classifier could not be reached
        """


class AnthropicClassifier(Classifier):
    """Classifier backed by the Anthropic Messages API."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None):
        self.api_key = settings.moderation_api_key
        self.api_url = settings.moderation_api_url
        self.api_version = settings.moderation_api_version
        self.model = settings.moderation_model
        self.max_tokens = settings.moderation_max_tokens
        self._client = client or httpx.AsyncClient(
            timeout=settings.moderation_timeout_seconds
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def _payload(self, content: str) -> dict:
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": MODERATION_SYSTEM_PROMPT,
            "messages": [{"role": "user", "content": build_user_message(content)}],
        }

    async def classify(self, content: str) -> ClassifierVerdict:
        if not self.api_key:
            logger.error("moderation_not_configured")
            raise ServiceUnavailable(MODERATION_SERVICE_ERROR)

        try:
            response = await self._client.post(
                self.api_url,
                json=self._payload(content),
                headers={
                    "x-api-key": self.api_key,
                    "anthropic-version": self.api_version,
                    "content-type": "application/json",
                },
            )
        except httpx.TimeoutException as e:
            logger.error("moderation_api_timeout")
            raise ServiceUnavailable(MODERATION_SERVICE_ERROR) from e
        except httpx.RequestError as e:
            logger.error("moderation_api_request_error", error_type=type(e).__name__)
            raise ServiceUnavailable(MODERATION_SERVICE_ERROR) from e

        if response.status_code != httpx.codes.OK:
            # Status only: the body may echo the submitted content
            logger.error(
                "moderation_api_error",
                status_code=response.status_code,
                reason_phrase=response.reason_phrase,
            )
            raise ServiceUnavailable(MODERATION_SERVICE_ERROR)

        try:
            text = response.json()["content"][0]["text"]
        except (json.JSONDecodeError, KeyError, IndexError, TypeError):
            logger.warning("moderation_response_unreadable")
            return fail_closed_verdict()

        if not isinstance(text, str):
            return fail_closed_verdict()
        return parse_verdict(text)
