"""Error taxonomy shared by the API and the client session library.

Every error carries a machine-readable ``code`` and the HTTP status it maps
to. The server renders both in its error envelope and the client rebuilds
the error from the ``code`` through ``ERRORS_BY_CODE``.
"""

from fastapi import status


class NotesError(Exception):
    """Base error."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, code: str = "notes_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(NotesError):
    """Local input validation failed; no external call was made."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, "validation_error")


class RateLimitError(NotesError):
    """Caller must slow down."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(
        self,
        message: str = "Too many comments. Please wait a moment before trying again.",
    ):
        super().__init__(message, "rate_limited")


class ModerationRejection(NotesError):
    """The classifier judged the content unacceptable.

    A judgment rather than a failure: the message is written for the
    submitter and is always shown to them.
    """

    status_code = status.HTTP_200_OK

    def __init__(
        self,
        message: str = "Your comment was rejected for violating community guidelines.",
        category: str | None = None,
    ):
        super().__init__(message, "moderation_rejected")
        self.category = category


class ServiceUnavailable(NotesError):
    """An external dependency is unreachable; the call may be retried."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, message: str = "Service unavailable. Please try again."):
        super().__init__(message, "service_unavailable")


class StorageError(NotesError):
    """Persisting data failed after all checks passed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Failed to save. Please try again."):
        super().__init__(message, "storage_error")


class NotFoundOrForbidden(NotesError):
    """Target is missing or not owned by the caller (deliberately merged)."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Not found"):
        super().__init__(message, "not_found")


class AuthenticationRequired(NotesError):
    """Action needs a signed-in actor."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "You must be logged in to do that"):
        super().__init__(message, "authentication_required")


class InvalidCredentialsError(NotesError):
    """Invalid email or password."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message, "invalid_credentials")


class InvalidTokenError(NotesError):
    """Invalid or expired token."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message, "invalid_token")


class UserExistsError(NotesError):
    """An account already exists for this email."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "An account with this email already exists"):
        super().__init__(message, "user_exists")


ERRORS_BY_CODE: dict[str, type[NotesError]] = {
    "validation_error": ValidationError,
    "rate_limited": RateLimitError,
    "service_unavailable": ServiceUnavailable,
    "storage_error": StorageError,
    "not_found": NotFoundOrForbidden,
    "authentication_required": AuthenticationRequired,
    "invalid_credentials": InvalidCredentialsError,
    "invalid_token": InvalidTokenError,
    "user_exists": UserExistsError,
}
