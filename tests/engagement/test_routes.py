"""Tests for engagement endpoints."""

from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest

from kbw_notes.engagement.models import EngagementKind
from kbw_notes.engagement.service import EngagementService
from tests.helpers import auth_headers


@pytest.fixture
def service(app):
    service = Mock(spec=EngagementService)
    service.toggle = AsyncMock(return_value=(True, 1))
    service.get_engagement = AsyncMock()
    app.state.engagement_service = service
    return service


class TestEngagementRoutes:
    def test_like_requires_login(self, client, service) -> None:
        response = client.post(f"/v1/posts/{uuid4()}/like")
        assert response.status_code == 401
        service.toggle.assert_not_called()

    def test_bookmark(self, client, service) -> None:
        post_id, user_id = uuid4(), uuid4()
        response = client.post(
            f"/v1/posts/{post_id}/bookmark", headers=auth_headers(user_id)
        )
        assert response.json() == {"postId": str(post_id), "active": True, "count": 1}
        service.toggle.assert_awaited_once_with(
            EngagementKind.BOOKMARK, post_id, user_id
        )

    def test_engagement_summary(self, client, service) -> None:
        post_id = uuid4()
        service.get_engagement.return_value = {
            "post_id": post_id,
            "like_count": 2,
            "bookmark_count": 1,
            "liked": False,
            "bookmarked": False,
        }
        data = client.get(f"/v1/posts/{post_id}/engagement").json()
        assert data["likeCount"] == 2
        assert data["bookmarkCount"] == 1
