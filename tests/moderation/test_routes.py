"""Tests for POST /v1/moderate-comment."""

from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest

from kbw_notes.core.errors import RateLimitError, ServiceUnavailable
from kbw_notes.moderation.gateway import ModerationGateway
from kbw_notes.moderation.schemas import ModerationCategory, ModerationVerdict
from tests.helpers import auth_headers


@pytest.fixture
def gateway(app):
    gateway = Mock(spec=ModerationGateway)
    gateway.submit = AsyncMock()
    app.state.moderation_gateway = gateway
    return gateway


class TestModerateCommentRoute:
    """Wire contract of the moderation endpoint."""

    def test_approval(self, client, gateway) -> None:
        comment_id = uuid4()
        gateway.submit.return_value = ModerationVerdict(
            approved=True, comment_id=comment_id
        )
        response = client.post(
            "/v1/moderate-comment",
            json={"postId": str(uuid4()), "content": "Nice!", "parentId": None},
        )
        assert response.status_code == 200
        assert response.json() == {"approved": True, "commentId": str(comment_id)}

    def test_rejection_is_200(self, client, gateway) -> None:
        gateway.submit.return_value = ModerationVerdict(
            approved=False,
            rejection_reason="Spam detected",
            category=ModerationCategory.SPAM,
        )
        response = client.post(
            "/v1/moderate-comment",
            json={"postId": str(uuid4()), "content": "buy now"},
        )
        assert response.status_code == 200
        assert response.json() == {
            "approved": False,
            "rejectionReason": "Spam detected",
            "category": "spam",
        }

    def test_identifier_and_author_forwarded(self, client, gateway) -> None:
        gateway.submit.return_value = ModerationVerdict(
            approved=True, comment_id=uuid4()
        )
        post_id, user_id = uuid4(), uuid4()
        client.post(
            "/v1/moderate-comment",
            json={"postId": str(post_id), "content": "hi"},
            headers={
                **auth_headers(user_id, name="Alice"),
                "X-Forwarded-For": "203.0.113.9, 10.0.0.1",
            },
        )
        kwargs = gateway.submit.await_args.kwargs
        assert kwargs["identifier"] == "203.0.113.9"
        assert kwargs["author_id"] == user_id
        assert kwargs["author_name"] == "Alice"
        assert kwargs["post_id"] == post_id

    def test_anonymous_submission(self, client, gateway) -> None:
        gateway.submit.return_value = ModerationVerdict(
            approved=True, comment_id=uuid4()
        )
        client.post(
            "/v1/moderate-comment", json={"postId": str(uuid4()), "content": "hi"}
        )
        assert gateway.submit.await_args.kwargs["author_id"] is None

    def test_rate_limited_envelope(self, client, gateway) -> None:
        gateway.submit.side_effect = RateLimitError()
        response = client.post(
            "/v1/moderate-comment", json={"postId": str(uuid4()), "content": "hi"}
        )
        assert response.status_code == 429
        body = response.json()
        assert body["error"] is True
        assert body["code"] == "rate_limited"
        assert body["status_code"] == 429

    def test_service_unavailable_envelope(self, client, gateway) -> None:
        gateway.submit.side_effect = ServiceUnavailable(
            "Moderation service error. Please try again."
        )
        response = client.post(
            "/v1/moderate-comment", json={"postId": str(uuid4()), "content": "hi"}
        )
        assert response.status_code == 503
        assert response.json()["message"] == (
            "Moderation service error. Please try again."
        )

    def test_malformed_body(self, client, gateway) -> None:
        response = client.post("/v1/moderate-comment", json={"content": "hi"})
        assert response.status_code == 422
        assert response.json()["code"] == "validation_error"
        gateway.submit.assert_not_called()
