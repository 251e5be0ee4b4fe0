"""Tests for AuthService flows."""

from datetime import UTC, datetime
from types import SimpleNamespace
from uuid import uuid4

import pytest

from kbw_notes.auth.security import create_reset_token, hash_password
from kbw_notes.auth.service import (
    AuthService,
    InvalidCredentialsError,
    InvalidTokenError,
    UserExistsError,
)
from kbw_notes.core.errors import ValidationError
from tests.helpers import applied, cql_router, executed, rows


def user_row(email: str = "alice@kbw.vc", password: str = "correct-horse"):
    return SimpleNamespace(
        id=uuid4(),
        email=email,
        display_name="Alice",
        password_hash=hash_password(password),
        created_at=datetime(2025, 1, 1, tzinfo=UTC),
        updated_at=None,
    )


@pytest.fixture
def auth_service(mock_session) -> AuthService:
    return AuthService(session=mock_session, keyspace="test_ks")


class TestSignUp:
    """Tests for AuthService.sign_up."""

    @pytest.mark.asyncio
    async def test_creates_user_with_normalised_email(
        self, auth_service, mock_session
    ) -> None:
        mock_session.aexecute.side_effect = cql_router(
            ("users_by_email (email, user_id)", applied(True)),
            ("INSERT INTO test_ks.users", rows()),
        )

        user = await auth_service.sign_up(" Alice@KBW.vc", "long-enough")

        assert user.email == "alice@kbw.vc"
        assert user.display_name == "alice"
        assert user.password_hash != "long-enough"
        assert executed(mock_session, "users_by_email (email, user_id)")[0] == [
            "alice@kbw.vc",
            user.id,
        ]

    @pytest.mark.asyncio
    async def test_off_domain_email_never_hits_database(
        self, auth_service, mock_session
    ) -> None:
        with pytest.raises(ValidationError):
            await auth_service.sign_up("alice@gmail.com", "long-enough")
        mock_session.aexecute.assert_not_called()

    @pytest.mark.asyncio
    async def test_short_password_rejected(self, auth_service, mock_session) -> None:
        with pytest.raises(ValidationError, match="at least 8"):
            await auth_service.sign_up("alice@kbw.vc", "short")
        mock_session.aexecute.assert_not_called()

    @pytest.mark.asyncio
    async def test_duplicate_email(self, auth_service, mock_session) -> None:
        mock_session.aexecute.side_effect = cql_router(
            ("users_by_email (email, user_id)", applied(False)),
        )
        with pytest.raises(UserExistsError):
            await auth_service.sign_up("alice@kbw.vc", "long-enough")
        assert executed(mock_session, "(id, email, display_name") == []


class TestSignIn:
    """Tests for AuthService.sign_in."""

    @pytest.mark.asyncio
    async def test_valid_credentials(self, auth_service, mock_session) -> None:
        row = user_row()
        mock_session.aexecute.side_effect = cql_router(
            ("users_by_email WHERE", rows(SimpleNamespace(user_id=row.id))),
            ("users WHERE id", rows(row)),
        )
        user = await auth_service.sign_in("ALICE@kbw.vc", "correct-horse")
        assert user.id == row.id

    @pytest.mark.asyncio
    async def test_wrong_password(self, auth_service, mock_session) -> None:
        row = user_row()
        mock_session.aexecute.side_effect = cql_router(
            ("users_by_email WHERE", rows(SimpleNamespace(user_id=row.id))),
            ("users WHERE id", rows(row)),
        )
        with pytest.raises(InvalidCredentialsError):
            await auth_service.sign_in("alice@kbw.vc", "wrong-horse")

    @pytest.mark.asyncio
    async def test_unknown_email(self, auth_service, mock_session) -> None:
        mock_session.aexecute.side_effect = cql_router(
            ("users_by_email WHERE", rows()),
        )
        with pytest.raises(InvalidCredentialsError):
            await auth_service.sign_in("nobody@kbw.vc", "whatever1")

    @pytest.mark.asyncio
    async def test_off_domain_rejected_before_lookup(
        self, auth_service, mock_session
    ) -> None:
        with pytest.raises(ValidationError):
            await auth_service.sign_in("alice@kbw.vc.evil.com", "whatever1")
        mock_session.aexecute.assert_not_called()


class TestPasswordReset:
    """Tests for the reset request and confirm flows."""

    @pytest.mark.asyncio
    async def test_unknown_email_returns_none(self, auth_service, mock_session) -> None:
        mock_session.aexecute.side_effect = cql_router(
            ("users_by_email WHERE", rows()),
        )
        assert await auth_service.request_password_reset("ghost@kbw.vc") is None

    @pytest.mark.asyncio
    async def test_known_email_returns_token(self, auth_service, mock_session) -> None:
        row = user_row()
        mock_session.aexecute.side_effect = cql_router(
            ("users_by_email WHERE", rows(SimpleNamespace(user_id=row.id))),
            ("users WHERE id", rows(row)),
        )
        assert await auth_service.request_password_reset("alice@kbw.vc")

    @pytest.mark.asyncio
    async def test_reset_password_updates_hash(
        self, auth_service, mock_session
    ) -> None:
        row = user_row()
        mock_session.aexecute.side_effect = cql_router(
            ("users WHERE id", rows(row)),
            ("SET password_hash", rows()),
        )
        token = create_reset_token(str(row.id), row.email)

        user = await auth_service.reset_password(token, "brand-new-pass")

        assert user.password_hash != row.password_hash
        params = executed(mock_session, "SET password_hash")[0]
        assert params[0] == user.password_hash
        assert params[2] == row.id

    @pytest.mark.asyncio
    async def test_reset_password_invalid_token(self, auth_service) -> None:
        with pytest.raises(InvalidTokenError):
            await auth_service.reset_password("not-a-token", "brand-new-pass")

    @pytest.mark.asyncio
    async def test_reset_token_for_changed_email(
        self, auth_service, mock_session
    ) -> None:
        row = user_row(email="new@kbw.vc")
        mock_session.aexecute.side_effect = cql_router(("users WHERE id", rows(row)))
        token = create_reset_token(str(row.id), "old@kbw.vc")
        with pytest.raises(InvalidTokenError):
            await auth_service.reset_password(token, "brand-new-pass")


class TestTokenResponse:
    def test_token_response_carries_user(self, auth_service) -> None:
        from kbw_notes.auth.models import User

        user = User(email="alice@kbw.vc", display_name="Alice")
        response = auth_service.create_token_response(user)
        data = response.model_dump(by_alias=True)
        assert data["tokenType"] == "bearer"
        assert data["user"]["displayName"] == "Alice"
        assert data["expiresIn"] == 1440 * 60
