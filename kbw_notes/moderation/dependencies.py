"""FastAPI dependencies for moderation."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .gateway import ModerationGateway


async def get_moderation_gateway(request: Request) -> ModerationGateway:
    """Get moderation gateway from app state."""
    gateway = getattr(request.app.state, "moderation_gateway", None)
    if gateway is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Moderation service not available",
        )
    return gateway


ModerationGatewayDep = Annotated[ModerationGateway, Depends(get_moderation_gateway)]
