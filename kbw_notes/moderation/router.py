"""Comment submission endpoint."""

from fastapi import APIRouter, Request

from kbw_notes.auth.dependencies import OptionalUser
from kbw_notes.ratelimit import UNKNOWN_CLIENT

from .dependencies import ModerationGatewayDep
from .schemas import ModerateCommentRequest, ModerationVerdict


router = APIRouter(prefix="/v1", tags=["moderation"])


@router.post(
    "/moderate-comment",
    response_model=ModerationVerdict,
    response_model_exclude_none=True,
    summary="Submit a comment for moderation",
)
async def moderate_comment(
    data: ModerateCommentRequest,
    request: Request,
    gateway: ModerationGatewayDep,
    user: OptionalUser,
) -> ModerationVerdict:
    """Classify a comment and store it if approved.

    A rejection is a normal answer (HTTP 200 with ``approved: false``);
    failures use the error envelope.
    """
    identifier = getattr(request.state, "client_identifier", None) or UNKNOWN_CLIENT
    return await gateway.submit(
        post_id=data.post_id,
        content=data.content,
        parent_id=data.parent_id,
        author_id=user.id if user else None,
        author_name=user.display_name if user else None,
        identifier=identifier,
    )
