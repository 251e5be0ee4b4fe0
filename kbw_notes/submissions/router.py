"""Submission and published post endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from kbw_notes.auth.dependencies import CurrentUser, OptionalUser

from .dependencies import SubmissionServiceDep
from .models import SubmissionStatus
from .schemas import (
    SubmissionListResponse,
    SubmissionResponse,
    UpdateSubmissionRequest,
)


router = APIRouter(prefix="/v1/submissions", tags=["submissions"])
posts_router = APIRouter(prefix="/v1/posts", tags=["posts"])


@router.post(
    "",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an empty draft",
)
async def create_submission(
    user: CurrentUser, service: SubmissionServiceDep
) -> SubmissionResponse:
    submission = await service.create(user.id)
    return SubmissionResponse.model_validate(submission)


@router.get("", response_model=SubmissionListResponse, summary="List my submissions")
async def list_submissions(
    user: CurrentUser,
    service: SubmissionServiceDep,
    status_filter: SubmissionStatus | None = Query(None, alias="status"),
) -> SubmissionListResponse:
    submissions = await service.list_by_author(user.id, status_filter)
    return SubmissionListResponse(
        items=[SubmissionResponse.model_validate(s) for s in submissions],
        total=len(submissions),
    )


@router.get("/{submission_id}", response_model=SubmissionResponse)
async def get_submission(
    submission_id: UUID, user: CurrentUser, service: SubmissionServiceDep
) -> SubmissionResponse:
    submission = await service.get_for_viewer(submission_id, user.id)
    return SubmissionResponse.model_validate(submission)


@router.patch(
    "/{submission_id}",
    response_model=SubmissionResponse,
    summary="Update some fields of a submission",
)
async def update_submission(
    submission_id: UUID,
    data: UpdateSubmissionRequest,
    user: CurrentUser,
    service: SubmissionServiceDep,
) -> SubmissionResponse:
    submission = await service.update(submission_id, user.id, data.changes())
    return SubmissionResponse.model_validate(submission)


@router.post("/{submission_id}/publish", response_model=SubmissionResponse)
async def publish_submission(
    submission_id: UUID, user: CurrentUser, service: SubmissionServiceDep
) -> SubmissionResponse:
    submission = await service.publish(submission_id, user.id)
    return SubmissionResponse.model_validate(submission)


@router.post("/{submission_id}/unpublish", response_model=SubmissionResponse)
async def unpublish_submission(
    submission_id: UUID, user: CurrentUser, service: SubmissionServiceDep
) -> SubmissionResponse:
    submission = await service.unpublish(submission_id, user.id)
    return SubmissionResponse.model_validate(submission)


@router.delete("/{submission_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_submission(
    submission_id: UUID, user: CurrentUser, service: SubmissionServiceDep
) -> None:
    await service.delete(submission_id, user.id)


# ==============================================================================
# Public posts (published submissions)
# ==============================================================================


@posts_router.get("", response_model=SubmissionListResponse, summary="Blog feed")
async def list_posts(
    service: SubmissionServiceDep,
    limit: int = Query(20, ge=1, le=100),
) -> SubmissionListResponse:
    posts = await service.list_published(limit)
    return SubmissionListResponse(
        items=[SubmissionResponse.model_validate(p) for p in posts],
        total=len(posts),
    )


@posts_router.get("/{post_id}", response_model=SubmissionResponse)
async def get_post(
    post_id: UUID, service: SubmissionServiceDep, user: OptionalUser
) -> SubmissionResponse:
    post = await service.get_for_viewer(post_id, user.id if user else None)
    return SubmissionResponse.model_validate(post)
