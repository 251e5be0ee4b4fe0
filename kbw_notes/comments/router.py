"""Comment read, delete and like endpoints.

Comments are created through ``POST /v1/moderate-comment`` only.
"""

from uuid import UUID

import structlog
from fastapi import APIRouter

from kbw_notes.auth.dependencies import CurrentUser, OptionalUser

from .dependencies import CommentServiceDep
from .schemas import (
    CommentLikeResponse,
    CommentResponse,
    CommentTreeResponse,
    LikedCommentsResponse,
    MessageResponse,
)
from .tree import iter_forest


logger = structlog.get_logger(__name__)


router = APIRouter(prefix="/v1", tags=["comments"])


@router.get(
    "/posts/{post_id}/comments",
    response_model=CommentTreeResponse,
    summary="Comment tree for a post",
)
async def get_post_comments(
    post_id: UUID,
    comment_service: CommentServiceDep,
    user: OptionalUser,
) -> CommentTreeResponse:
    """Approved comments plus the viewer's own pending ones, nested."""
    forest = await comment_service.fetch_tree(post_id, user.id if user else None)
    return CommentTreeResponse(
        post_id=post_id,
        comments=[CommentResponse.model_validate(node) for node in forest],
        total=sum(1 for _ in iter_forest(forest)),
    )


@router.get(
    "/posts/{post_id}/comments/liked",
    response_model=LikedCommentsResponse,
    summary="Comments on a post the caller liked",
)
async def get_liked_comments(
    post_id: UUID,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> LikedCommentsResponse:
    liked = await comment_service.liked_comment_ids(post_id, user.id)
    return LikedCommentsResponse(post_id=post_id, comment_ids=sorted(liked, key=str))


@router.get(
    "/comments/{comment_id}",
    response_model=CommentResponse,
    summary="Get a single comment",
    responses={404: {"description": "Comment not found"}},
)
async def get_comment(
    comment_id: UUID,
    comment_service: CommentServiceDep,
    user: OptionalUser,
) -> CommentResponse:
    node = await comment_service.get_comment(comment_id, user.id if user else None)
    return CommentResponse.model_validate(node)


@router.delete(
    "/comments/{comment_id}",
    response_model=MessageResponse,
    summary="Delete own comment",
    responses={404: {"description": "Comment not found or not yours"}},
)
async def delete_comment(
    comment_id: UUID,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> MessageResponse:
    """Soft delete: content becomes a tombstone, replies stay attached."""
    await comment_service.soft_delete(comment_id, user.id)
    return MessageResponse(message="Comment deleted")


@router.post(
    "/comments/{comment_id}/like",
    response_model=CommentLikeResponse,
    summary="Toggle like on a comment",
)
async def toggle_comment_like(
    comment_id: UUID,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> CommentLikeResponse:
    liked, count = await comment_service.toggle_like(comment_id, user.id)
    return CommentLikeResponse(liked=liked, reaction_count=count)
