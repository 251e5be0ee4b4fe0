"""Signed-in session for the API client."""

from kbw_notes.auth.guard import IdentityGuard
from kbw_notes.config import get_settings
from kbw_notes.core.errors import ValidationError

from .api import NotesClient


class AuthSession:
    """Owns the access token on a ``NotesClient``.

    Addresses are checked locally first, so a disallowed email never
    reaches the server.
    """

    def __init__(
        self,
        api: NotesClient,
        allowed_domain: str | None = None,
        password_min_length: int | None = None,
    ):
        settings = get_settings()
        self.api = api
        self.guard = IdentityGuard(allowed_domain or settings.auth_allowed_email_domain)
        self.password_min_length = (
            password_min_length or settings.auth_password_min_length
        )
        self.user: dict | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.api.is_authenticated

    def is_email_allowed(self, email: str) -> bool:
        return self.guard.is_allowed(email)

    def _check_password(self, password: str) -> None:
        if len(password) < self.password_min_length:
            raise ValidationError(
                f"Password must be at least {self.password_min_length} characters"
            )

    def _adopt(self, data: dict) -> dict:
        self.api.token = data["accessToken"]
        self.user = data["user"]
        return self.user

    async def sign_up(
        self, email: str, password: str, display_name: str | None = None
    ) -> dict:
        email = self.guard.require(email)
        self._check_password(password)
        return self._adopt(await self.api.sign_up(email, password, display_name))

    async def sign_in(self, email: str, password: str) -> dict:
        email = self.guard.require(email)
        return self._adopt(await self.api.sign_in(email, password))

    async def request_password_reset(self, email: str) -> dict:
        email = self.guard.require(email)
        return await self.api.request_password_reset(email)

    async def confirm_password_reset(self, token: str, new_password: str) -> None:
        self._check_password(new_password)
        await self.api.confirm_password_reset(token, new_password)

    async def refresh_user(self) -> dict:
        self.user = await self.api.me()
        return self.user

    def sign_out(self) -> None:
        self.api.token = None
        self.user = None
