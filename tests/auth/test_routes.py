"""Tests for the auth endpoints."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from kbw_notes.auth.models import User
from kbw_notes.auth.service import AuthService, InvalidCredentialsError
from kbw_notes.core.errors import ValidationError
from tests.helpers import auth_headers


@pytest.fixture
def auth_service(app, mock_session):
    service = AuthService(session=mock_session, keyspace="test_ks")
    service.sign_up = AsyncMock()
    service.sign_in = AsyncMock()
    service.request_password_reset = AsyncMock()
    service.reset_password = AsyncMock()
    service.get_user_by_id = AsyncMock(return_value=None)
    app.state.auth_service = service
    return service


class TestAuthRoutes:
    """Tests for /v1/auth."""

    def test_signup_returns_camel_case_token(self, client, auth_service) -> None:
        auth_service.sign_up.return_value = User(email="alice@kbw.vc")
        response = client.post(
            "/v1/auth/signup",
            json={"email": "alice@kbw.vc", "password": "long-enough"},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["accessToken"]
        assert data["user"]["email"] == "alice@kbw.vc"

    def test_signup_off_domain_uses_error_envelope(self, client, auth_service) -> None:
        auth_service.sign_up.side_effect = ValidationError(
            "Only @kbw.vc emails are allowed"
        )
        response = client.post(
            "/v1/auth/signup",
            json={"email": "alice@gmail.com", "password": "long-enough"},
        )
        assert response.status_code == 400
        body = response.json()
        assert body["error"] is True
        assert body["code"] == "validation_error"
        assert body["message"] == "Only @kbw.vc emails are allowed"
        assert body["request_id"]

    def test_signin_invalid_credentials(self, client, auth_service) -> None:
        auth_service.sign_in.side_effect = InvalidCredentialsError()
        response = client.post(
            "/v1/auth/signin", json={"email": "alice@kbw.vc", "password": "nope"}
        )
        assert response.status_code == 401
        assert response.json()["code"] == "invalid_credentials"

    def test_password_reset_same_message_for_unknown(
        self, client, auth_service
    ) -> None:
        auth_service.request_password_reset.return_value = None
        response = client.post(
            "/v1/auth/password-reset", json={"email": "ghost@kbw.vc"}
        )
        assert response.status_code == 200
        assert response.json()["message"].startswith("If an account exists")

    def test_password_reset_confirm(self, client, auth_service) -> None:
        response = client.post(
            "/v1/auth/password-reset/confirm",
            json={"token": "t", "newPassword": "brand-new-pass"},
        )
        assert response.status_code == 200
        auth_service.reset_password.assert_awaited_once_with("t", "brand-new-pass")

    def test_me_requires_token(self, client, auth_service) -> None:
        response = client.get("/v1/auth/me")
        assert response.status_code == 401
        assert response.json()["code"] == "authentication_required"

    def test_me_from_token(self, client, auth_service) -> None:
        user_id = uuid4()
        response = client.get("/v1/auth/me", headers=auth_headers(user_id))
        assert response.status_code == 200
        assert response.json()["id"] == str(user_id)

    def test_service_missing_is_503(self, app, client) -> None:
        app.state.auth_service = None
        response = client.post(
            "/v1/auth/signin", json={"email": "alice@kbw.vc", "password": "x"}
        )
        assert response.status_code == 503
        assert response.json()["error"] is True
