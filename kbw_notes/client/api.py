"""Async HTTP client for the KBW Notes API.

Responses are returned as decoded JSON. Error responses and transport
failures are mapped onto the ``kbw_notes.core.errors`` taxonomy so callers
handle the same exceptions the server raises.
"""

from typing import Any
from uuid import UUID

import httpx
import structlog

from kbw_notes.core.errors import (
    ERRORS_BY_CODE,
    AuthenticationRequired,
    NotesError,
    NotFoundOrForbidden,
    RateLimitError,
    ServiceUnavailable,
    StorageError,
    ValidationError,
)


logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = 15.0


def _error_envelope(response: httpx.Response) -> tuple[str, str | None]:
    """Message and code from the error envelope.

    The message falls back to the reason phrase when the body is not an
    envelope.
    """
    fallback = response.reason_phrase or f"HTTP {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        return fallback, None
    if not isinstance(body, dict):
        return fallback, None
    message = body.get("message") or body.get("detail")
    code = body.get("code")
    return (
        message if isinstance(message, str) and message else fallback,
        code if isinstance(code, str) else None,
    )


def map_error(status_code: int, message: str, code: str | None = None) -> NotesError:
    """Translate an HTTP failure into the matching domain error.

    Rate limiting is detected first, including from upstream messages. The
    envelope ``code`` then selects the error type; the status decides only
    for responses without a known code.
    """
    lowered = message.lower()
    if status_code == 429 or "429" in message or "rate" in lowered:
        return RateLimitError()
    error_class = ERRORS_BY_CODE.get(code) if code else None
    if error_class is not None:
        return error_class(message)
    if status_code == 401:
        return AuthenticationRequired(message)
    if status_code in (403, 404):
        return NotFoundOrForbidden(message)
    if status_code in (400, 422):
        return ValidationError(message)
    if status_code == 503:
        return ServiceUnavailable(message)
    return StorageError(message)


class NotesClient:
    """Thin wrapper over ``httpx.AsyncClient`` with a bearer token."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.token = token
        self._client = client or httpx.AsyncClient(
            base_url=base_url, timeout=DEFAULT_TIMEOUT
        )

    async def __aenter__(self) -> "NotesClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def _headers(self) -> dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    async def _request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        try:
            response = await self._client.request(
                method, path, json=json, params=params, headers=self._headers()
            )
        except httpx.RequestError as e:
            logger.warning(
                "api_request_failed",
                method=method,
                path=path,
                error_type=type(e).__name__,
            )
            raise ServiceUnavailable() from e

        if response.is_error:
            message, code = _error_envelope(response)
            error = map_error(response.status_code, message, code)
            logger.info(
                "api_error_response",
                method=method,
                path=path,
                status_code=response.status_code,
                code=error.code,
            )
            raise error

        if response.status_code == httpx.codes.NO_CONTENT or not response.content:
            return None
        return response.json()

    # ==========================================================================
    # Auth
    # ==========================================================================

    async def sign_up(
        self, email: str, password: str, display_name: str | None = None
    ) -> dict:
        body = {"email": email, "password": password}
        if display_name is not None:
            body["displayName"] = display_name
        return await self._request("POST", "/v1/auth/signup", json=body)

    async def sign_in(self, email: str, password: str) -> dict:
        return await self._request(
            "POST", "/v1/auth/signin", json={"email": email, "password": password}
        )

    async def request_password_reset(self, email: str) -> dict:
        return await self._request(
            "POST", "/v1/auth/password-reset", json={"email": email}
        )

    async def confirm_password_reset(self, token: str, new_password: str) -> dict:
        return await self._request(
            "POST",
            "/v1/auth/password-reset/confirm",
            json={"token": token, "newPassword": new_password},
        )

    async def me(self) -> dict:
        return await self._request("GET", "/v1/auth/me")

    # ==========================================================================
    # Comments
    # ==========================================================================

    async def moderate_comment(
        self, post_id: UUID, content: str, parent_id: UUID | None = None
    ) -> dict:
        """Submit a comment; returns the verdict (rejections are not errors)."""
        return await self._request(
            "POST",
            "/v1/moderate-comment",
            json={
                "postId": str(post_id),
                "content": content,
                "parentId": str(parent_id) if parent_id else None,
            },
        )

    async def get_comments(self, post_id: UUID) -> dict:
        return await self._request("GET", f"/v1/posts/{post_id}/comments")

    async def get_comment(self, comment_id: UUID) -> dict:
        return await self._request("GET", f"/v1/comments/{comment_id}")

    async def delete_comment(self, comment_id: UUID) -> None:
        await self._request("DELETE", f"/v1/comments/{comment_id}")

    async def toggle_comment_like(self, comment_id: UUID) -> dict:
        return await self._request("POST", f"/v1/comments/{comment_id}/like")

    # ==========================================================================
    # Submissions
    # ==========================================================================

    async def create_submission(self) -> dict:
        return await self._request("POST", "/v1/submissions")

    async def get_submission(self, submission_id: UUID) -> dict:
        return await self._request("GET", f"/v1/submissions/{submission_id}")

    async def list_submissions(self, status: str | None = None) -> dict:
        params = {"status": status} if status else None
        return await self._request("GET", "/v1/submissions", params=params)

    async def update_submission(self, submission_id: UUID, changes: dict) -> dict:
        return await self._request(
            "PATCH", f"/v1/submissions/{submission_id}", json=changes
        )

    async def publish_submission(self, submission_id: UUID) -> dict:
        return await self._request("POST", f"/v1/submissions/{submission_id}/publish")

    async def unpublish_submission(self, submission_id: UUID) -> dict:
        return await self._request(
            "POST", f"/v1/submissions/{submission_id}/unpublish"
        )

    async def delete_submission(self, submission_id: UUID) -> None:
        await self._request("DELETE", f"/v1/submissions/{submission_id}")

    # ==========================================================================
    # Engagement
    # ==========================================================================

    async def toggle_post_like(self, post_id: UUID) -> dict:
        return await self._request("POST", f"/v1/posts/{post_id}/like")

    async def toggle_post_bookmark(self, post_id: UUID) -> dict:
        return await self._request("POST", f"/v1/posts/{post_id}/bookmark")

    async def get_engagement(self, post_id: UUID) -> dict:
        return await self._request("GET", f"/v1/posts/{post_id}/engagement")
