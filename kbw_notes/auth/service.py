"""Authentication service layer.

Every entry point that takes an email address runs it through the
``IdentityGuard`` first, so an off-domain address never reaches the database.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog
from jose import JWTError

from kbw_notes.auth.guard import IdentityGuard
from kbw_notes.auth.models import User
from kbw_notes.auth.schemas import TokenResponse, UserResponse
from kbw_notes.auth.security import (
    create_access_token,
    create_reset_token,
    decode_reset_token,
    hash_password,
    verify_password,
)
from kbw_notes.config.settings import get_settings
from kbw_notes.core.errors import (
    InvalidCredentialsError,
    InvalidTokenError,
    UserExistsError,
    ValidationError,
)


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)


class AuthService:
    """Sign-up, sign-in and password reset backed by Cassandra."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        guard: IdentityGuard | None = None,
    ):
        settings = get_settings()
        self.session = session
        self.keyspace = keyspace
        self.guard = guard or IdentityGuard(settings.auth_allowed_email_domain)
        self.password_min_length = settings.auth_password_min_length
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._get_user_by_id = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.users WHERE id = ?"
        )
        self._get_user_id_by_email = self.session.prepare(
            f"SELECT user_id FROM {self.keyspace}.users_by_email WHERE email = ?"
        )
        self._claim_email = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.users_by_email (email, user_id)
            VALUES (?, ?) IF NOT EXISTS
        """)
        self._insert_user = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.users
            (id, email, display_name, password_hash, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
        """)
        self._update_password = self.session.prepare(f"""
            UPDATE {self.keyspace}.users
            SET password_hash = ?, updated_at = ?
            WHERE id = ?
        """)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        rows = await self.session.aexecute(self._get_user_by_id, [user_id])
        row = rows.one()
        return User.from_row(row) if row else None

    async def get_user_by_email(self, email: str) -> User | None:
        """Look up a user by an already normalised email."""
        rows = await self.session.aexecute(self._get_user_id_by_email, [email])
        row = rows.one()
        if not row:
            return None
        return await self.get_user_by_id(row.user_id)

    # ------------------------------------------------------------------
    # Flows
    # ------------------------------------------------------------------

    async def sign_up(
        self, email: str, password: str, display_name: str | None = None
    ) -> User:
        """Create an account.

        Raises:
            ValidationError: Off-domain email or short password
            UserExistsError: Email already registered
        """
        email = self.guard.require(email)
        if len(password) < self.password_min_length:
            raise ValidationError(
                f"Password must be at least {self.password_min_length} characters"
            )

        user = User(
            email=email,
            display_name=display_name or "",
            password_hash=hash_password(password),
        )

        result = await self.session.aexecute(self._claim_email, [email, user.id])
        if not result.was_applied:
            raise UserExistsError

        await self.session.aexecute(
            self._insert_user,
            [
                user.id,
                user.email,
                user.display_name,
                user.password_hash,
                user.created_at,
                user.updated_at,
            ],
        )
        logger.info("user_signed_up", user_id=str(user.id))
        return user

    async def sign_in(self, email: str, password: str) -> User:
        """Verify a password sign-in.

        Raises:
            ValidationError: Off-domain email
            InvalidCredentialsError: Unknown email or wrong password
        """
        email = self.guard.require(email)
        user = await self.get_user_by_email(email)
        if user is None:
            raise InvalidCredentialsError

        is_valid, new_hash = verify_password(password, user.password_hash)
        if not is_valid:
            logger.info("sign_in_failed", user_id=str(user.id))
            raise InvalidCredentialsError

        if new_hash:
            await self.session.aexecute(
                self._update_password, [new_hash, datetime.now(UTC), user.id]
            )
            user.password_hash = new_hash

        return user

    async def request_password_reset(self, email: str) -> str | None:
        """Issue a reset token if the account exists.

        Returns None for unknown addresses; callers must answer identically
        in both cases.
        """
        email = self.guard.require(email)
        user = await self.get_user_by_email(email)
        if user is None:
            logger.info("password_reset_unknown_email")
            return None

        logger.info("password_reset_requested", user_id=str(user.id))
        return create_reset_token(str(user.id), user.email)

    async def reset_password(self, token: str, new_password: str) -> User:
        """Set a new password from a reset token.

        Raises:
            InvalidTokenError: Token invalid, expired or for a stale account
            ValidationError: Password too short
        """
        try:
            payload = decode_reset_token(token)
        except JWTError as e:
            raise InvalidTokenError from e

        if len(new_password) < self.password_min_length:
            raise ValidationError(
                f"Password must be at least {self.password_min_length} characters"
            )

        user = await self.get_user_by_id(UUID(payload["sub"]))
        if user is None or user.email != payload.get("email"):
            raise InvalidTokenError

        user.password_hash = hash_password(new_password)
        user.updated_at = datetime.now(UTC)
        await self.session.aexecute(
            self._update_password, [user.password_hash, user.updated_at, user.id]
        )
        logger.info("password_reset_completed", user_id=str(user.id))
        return user

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    def create_token_response(self, user: User) -> TokenResponse:
        settings = get_settings()
        token = create_access_token(
            {
                "sub": str(user.id),
                "email": user.email,
                "name": user.display_name,
            }
        )
        return TokenResponse(
            access_token=token,
            expires_in=settings.auth_access_token_expire_minutes * 60,
            user=self.to_response(user),
        )

    def to_response(self, user: User) -> UserResponse:
        return UserResponse(
            id=user.id,
            email=user.email,
            display_name=user.display_name,
            created_at=user.created_at,
        )
