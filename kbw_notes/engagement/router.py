"""Post like and bookmark endpoints."""

from uuid import UUID

from fastapi import APIRouter

from kbw_notes.auth.dependencies import CurrentUser, OptionalUser

from .dependencies import EngagementServiceDep
from .models import EngagementKind
from .schemas import EngagementResponse, ToggleResponse


router = APIRouter(prefix="/v1/posts", tags=["engagement"])


@router.post("/{post_id}/like", response_model=ToggleResponse, summary="Toggle like")
async def toggle_like(
    post_id: UUID, user: CurrentUser, service: EngagementServiceDep
) -> ToggleResponse:
    active, count = await service.toggle(EngagementKind.LIKE, post_id, user.id)
    return ToggleResponse(post_id=post_id, active=active, count=count)


@router.post(
    "/{post_id}/bookmark", response_model=ToggleResponse, summary="Toggle bookmark"
)
async def toggle_bookmark(
    post_id: UUID, user: CurrentUser, service: EngagementServiceDep
) -> ToggleResponse:
    active, count = await service.toggle(EngagementKind.BOOKMARK, post_id, user.id)
    return ToggleResponse(post_id=post_id, active=active, count=count)


@router.get("/{post_id}/engagement", response_model=EngagementResponse)
async def get_engagement(
    post_id: UUID, service: EngagementServiceDep, user: OptionalUser
) -> EngagementResponse:
    summary = await service.get_engagement(post_id, user.id if user else None)
    return EngagementResponse(**summary)
